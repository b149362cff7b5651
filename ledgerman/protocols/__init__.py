"""
Ledgerman Protocols.

Defines interfaces for external system integration.
"""

from ledgerman.protocols.events import (
    DEDUCTION_COMPLETED,
    MOVEMENT_CREATED,
    REVERSAL_COMPLETED,
    EventEmitter,
)
from ledgerman.protocols.stores import (
    BlendInfo,
    BlendIngredientInfo,
    BundleInfo,
    BundleLineInfo,
    CompositionStore,
    LedgerStores,
    MovementRecord,
    MovementStore,
    ProductInfo,
    ProductStore,
)
from ledgerman.protocols.transaction import (
    SaleItem,
    SaleItemLike,
    SaleTransaction,
    TransactionLike,
)

__all__ = [
    "EventEmitter",
    "MOVEMENT_CREATED",
    "DEDUCTION_COMPLETED",
    "REVERSAL_COMPLETED",
    "BlendInfo",
    "BlendIngredientInfo",
    "BundleInfo",
    "BundleLineInfo",
    "CompositionStore",
    "LedgerStores",
    "MovementRecord",
    "MovementStore",
    "ProductInfo",
    "ProductStore",
    "SaleItem",
    "SaleItemLike",
    "SaleTransaction",
    "TransactionLike",
]
