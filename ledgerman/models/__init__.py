"""
Ledgerman Models.

Core models for the inventory ledger:
- Product: Stock snapshot (aggregate counters, sealed container count)
- Container: Opened containers, in FIFO order
- BlendTemplate / BlendIngredient: Fixed recipes
- Bundle / BundleLine: Kits of products and blends
- Movement: Immutable ledger of stock changes
- ReferenceClaim: Optional unique marker per processed reference
"""

from ledgerman.models.blend import BlendIngredient, BlendTemplate
from ledgerman.models.bundle import Bundle, BundleLine
from ledgerman.models.claim import ClaimKind, ReferenceClaim
from ledgerman.models.container import Container
from ledgerman.models.enums import (
    DEDUCTING_TYPES,
    NO_INVENTORY_TYPES,
    BundleLineType,
    ContainerStatus,
    ItemType,
    MovementType,
    SaleType,
)
from ledgerman.models.movement import Movement
from ledgerman.models.product import Product

__all__ = [
    'MovementType',
    'ContainerStatus',
    'ItemType',
    'SaleType',
    'BundleLineType',
    'DEDUCTING_TYPES',
    'NO_INVENTORY_TYPES',
    'Product',
    'Container',
    'BlendTemplate',
    'BlendIngredient',
    'Bundle',
    'BundleLine',
    'Movement',
    'ClaimKind',
    'ReferenceClaim',
]
