"""
Exceptions for Ledgerman.

All errors are LedgerError with a structured code for programmatic handling.
StoreUnavailable is the infrastructure fault: orchestrators let it propagate
so the caller can decide on retries.
"""

from decimal import Decimal
from typing import Any


class LedgerError(Exception):
    """
    Structured exception for ledger operations.

    Usage:
        try:
            ledger.products.get(product_id)
        except LedgerError as e:
            if e.code == 'PRODUCT_NOT_FOUND':
                print(f"Unknown product {e.data['product_id']}")

    Attributes:
        code: Error code for programmatic handling
        message: Human-readable message
        data: Additional context data
    """

    _default_messages = {
        'PRODUCT_NOT_FOUND': 'Product not found',
        'BLEND_NOT_FOUND': 'Blend template not found',
        'BUNDLE_NOT_FOUND': 'Bundle not found',
        'CONTAINER_NOT_FOUND': 'Container not found',
        'CONTAINERS_NOT_TRACKED': 'Product does not track containers',
        'INVALID_QUANTITY': 'Invalid quantity (must be positive)',
        'IMMUTABLE_MOVEMENT': 'Movements are immutable; record a compensating movement instead',
    }

    def __init__(self, code: str, message: str | None = None, **data: Any):
        self.code = code
        self.message = message or self._default_messages.get(code, code)
        self.data = data
        super().__init__(self.message)

    def __str__(self) -> str:
        if not self.data:
            return self.message
        details = ', '.join(f'{k}={v}' for k, v in self.data.items())
        return f"{self.message} ({details})"

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.code!r}, {self.data!r})"

    def as_dict(self) -> dict[str, Any]:
        """Serialize to dict (useful for APIs)."""
        return {
            'code': self.code,
            'message': self.message,
            'data': {
                k: str(v) if isinstance(v, Decimal) else v
                for k, v in self.data.items()
            }
        }


class StoreUnavailable(LedgerError):
    """The backing store could not be reached. Never recorded as a per-item error."""

    def __init__(self, message: str | None = None, **data: Any):
        super().__init__('STORE_UNAVAILABLE', message or 'Ledger store unavailable', **data)
