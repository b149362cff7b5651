"""
Stock mutator — the only writer of aggregate stock counters.
"""

from decimal import Decimal

from ledgerman.models.enums import DEDUCTING_TYPES, MovementType
from ledgerman.protocols.stores import ProductStore


class StockMutator:
    """Applies a persisted movement to its product's counters."""

    def __init__(self, products: ProductStore):
        self.products = products

    @staticmethod
    def delta_for(movement) -> Decimal:
        """Signed stock change caused by movement."""
        if movement.movement_type in DEDUCTING_TYPES:
            return -movement.converted_quantity
        if movement.movement_type == MovementType.RETURN:
            return movement.converted_quantity
        return Decimal('0')

    def apply(self, movement) -> Decimal:
        """
        Change current/available stock by the movement's delta.

        No lower bound: negative stock is the oversold state and is
        reconciled elsewhere.
        """
        delta = self.delta_for(movement)
        if delta:
            self.products.adjust_stock(movement.product_id, delta)
        return delta
