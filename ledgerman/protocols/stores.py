"""
Store Protocols — persistence seams of the ledger.

Ledgerman defines these protocols; ``ledgerman.adapters.orm`` implements
them on the Django ORM and ``ledgerman.adapters.memory`` in process memory.
Orchestrators only ever talk to these interfaces.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Any, Callable, ContextManager, Iterable, Protocol, runtime_checkable

if TYPE_CHECKING:
    from ledgerman.services.allocator import Allocation


# ══════════════════════════════════════════════════════════════
# DATA TYPES
# ══════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class ProductInfo:
    """What the ledger needs to know about a product."""

    id: Any
    name: str
    base_unit: str = 'unit'
    tracks_containers: bool = False


@dataclass(frozen=True)
class BlendIngredientInfo:
    product_id: Any
    name: str
    quantity: Decimal  # per blend unit
    unit_of_measurement_id: str = ''
    unit_name: str = ''


@dataclass(frozen=True)
class BlendInfo:
    id: Any
    name: str
    ingredients: tuple[BlendIngredientInfo, ...] = ()


@dataclass(frozen=True)
class BundleLineInfo:
    product_type: str  # "product" | "fixed_blend"
    name: str
    quantity: Decimal  # per bundle
    product_id: Any = None
    blend_id: Any = None
    unit_of_measurement_id: str = ''
    unit_name: str = ''


@dataclass(frozen=True)
class BundleInfo:
    id: Any
    name: str
    lines: tuple[BundleLineInfo, ...] = ()


@dataclass(frozen=True)
class MovementRecord:
    """
    Plain movement fact, attribute-compatible with ledgerman.models.Movement.

    Returned by stores that do not persist model instances.
    """

    id: int
    product_id: Any
    movement_type: str
    quantity: Decimal
    converted_quantity: Decimal
    reference: str
    created_by: str
    product_name: str = ''
    unit_of_measurement_id: str = ''
    base_unit: str = 'unit'
    notes: str = ''
    container_id: str = ''
    container_status: str = ''
    remaining_quantity: Decimal | None = None
    created_at: datetime | None = None


# ══════════════════════════════════════════════════════════════
# PROTOCOLS
# ══════════════════════════════════════════════════════════════


@runtime_checkable
class MovementStore(Protocol):
    """Append-only movement persistence."""

    def atomic(self) -> ContextManager[Any]:
        """
        Unit of work. Nested calls must behave as savepoints: leaving the
        block with an exception discards everything written inside it,
        across all stores of the same bundle.
        """
        ...

    def create(self, **fields: Any) -> Any:
        """Persist a new movement and return it."""
        ...

    def find(self, reference: str, movement_types: Iterable[str] | None = None) -> list[Any]:
        """Movements under reference, in creation order."""
        ...

    def claim(self, reference: str, kind: str, actor: str = '') -> bool:
        """
        Take the unique (reference, kind) marker.

        Returns:
            False if it was already taken.
        """
        ...

    def release(self, reference: str, kind: str) -> None:
        """Drop the (reference, kind) marker so the reference can be retried."""
        ...

    def on_commit(self, callback: Callable[[], Any]) -> None:
        """
        Run callback once the enclosing unit of work commits.

        Outside any atomic block the callback runs immediately. Callbacks
        registered inside a block that rolls back are discarded.
        """
        ...


@runtime_checkable
class ProductStore(Protocol):
    """Product stock snapshot and container state."""

    def get(self, product_id: Any) -> ProductInfo:
        """
        Raises:
            LedgerError('PRODUCT_NOT_FOUND')
        """
        ...

    def adjust_stock(self, product_id: Any, delta: Decimal) -> None:
        """Add delta to current and available stock. No lower bound."""
        ...

    def allocate_container(self, product_id: Any, quantity: Decimal, container_code: str | None = None,
                           transaction_ref: str = '', actor: str = '') -> Allocation:
        """Partial container sale (see ContainerAllocator.allocate)."""
        ...

    def release_container(self, product_id: Any, quantity: Decimal, container_code: str,
                          transaction_ref: str = '', actor: str = '') -> Allocation:
        """Give volume back to a container (see ContainerAllocator.release)."""
        ...


@runtime_checkable
class CompositionStore(Protocol):
    """Blend templates and bundles."""

    def get_blend(self, blend_id: Any) -> BlendInfo:
        """
        Raises:
            LedgerError('BLEND_NOT_FOUND')
        """
        ...

    def record_blend_usage(self, blend_id: Any, multiplier: Decimal, when: datetime) -> None:
        ...

    def get_bundle(self, bundle_id: Any) -> BundleInfo:
        """
        Raises:
            LedgerError('BUNDLE_NOT_FOUND')
        """
        ...


@dataclass
class LedgerStores:
    """The three stores one ledger instance works against."""

    movements: MovementStore
    products: ProductStore
    compositions: CompositionStore
