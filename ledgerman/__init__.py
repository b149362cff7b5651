"""
Django Ledgerman — inventory movement ledger.

Completed sales become immutable stock movements; cancellations become
compensating ones.

Usage:
    from ledgerman import build_ledger, LedgerError

    ledger = build_ledger()
    ledger.process_transaction(sale, actor="cashier-3")
    ledger.reverse_transaction("TXN-1001", actor="manager")
"""


def __getattr__(name):
    """Lazy import to avoid circular imports during app loading."""
    if name == 'Ledger':
        from ledgerman.service import Ledger
        return Ledger
    elif name == 'build_ledger':
        from ledgerman.service import build_ledger
        return build_ledger
    elif name == 'LedgerError':
        from ledgerman.exceptions import LedgerError
        return LedgerError
    elif name == 'StoreUnavailable':
        from ledgerman.exceptions import StoreUnavailable
        return StoreUnavailable
    elif name == 'SaleTransaction':
        from ledgerman.protocols.transaction import SaleTransaction
        return SaleTransaction
    elif name == 'SaleItem':
        from ledgerman.protocols.transaction import SaleItem
        return SaleItem
    elif name == 'Product':
        from ledgerman.models.product import Product
        return Product
    elif name == 'Movement':
        from ledgerman.models.movement import Movement
        return Movement
    elif name == 'MovementType':
        from ledgerman.models.enums import MovementType
        return MovementType
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


__all__ = [
    'Ledger',
    'build_ledger',
    'LedgerError',
    'StoreUnavailable',
    'SaleTransaction',
    'SaleItem',
    'Product',
    'Movement',
    'MovementType',
]

__version__ = '0.1.0'
