"""
Item router — maps a transaction line's item_type to its handler.

Handlers share one signature:

    handler(item, context) -> list[movement]

New item kinds are added with ItemRouter.register(); the router itself
never changes. Unknown kinds go to the default handler (plain product)
with a warning.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Callable

from ledgerman.models.enums import NO_INVENTORY_TYPES, ItemType, MovementType, SaleType
from ledgerman.services.composition import CompositionResolver
from ledgerman.services.movements import MovementRecorder

logger = logging.getLogger('ledgerman')


@dataclass
class ProcessingContext:
    """Per-run values handed to every handler."""

    reference: str
    actor: str
    warnings: list[str] = field(default_factory=list)


ItemHandler = Callable[[Any, ProcessingContext], list]


def no_inventory(item, context: ProcessingContext) -> list:
    """Lines without stock impact."""
    return []


def custom_blend(item, context: ProcessingContext) -> list:
    """
    Custom blends are deducted by their own service when the transaction
    is created; deducting here would count them twice.
    """
    return []


def as_decimal(value) -> Decimal | None:
    """Decimal from whatever the sales side sent (str, int, float, Decimal)."""
    if value is None or isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def item_name(item) -> str:
    return getattr(item, 'name', '') or str(getattr(item, 'product_id', '?'))


class ItemRouter:
    """Registry of item_type → handler."""

    def __init__(self, recorder: MovementRecorder, composition: CompositionResolver):
        self.recorder = recorder
        self.composition = composition
        self._handlers: dict[str, ItemHandler] = {}

        self.register(ItemType.PRODUCT, self.process_product)
        self.register(ItemType.FIXED_BLEND, self.process_fixed_blend)
        self.register(ItemType.BUNDLE, self.process_bundle)
        self.register(ItemType.CUSTOM_BLEND, custom_blend)
        for item_type in NO_INVENTORY_TYPES:
            self.register(item_type, no_inventory)

        self.default_handler: ItemHandler = self.process_product

    def register(self, item_type: str, handler: ItemHandler) -> None:
        self._handlers[str(item_type)] = handler

    def handler_for(self, item_type: str | None) -> ItemHandler | None:
        return self._handlers.get(str(item_type or ItemType.PRODUCT))

    def route(self, item, context: ProcessingContext) -> list:
        """Run the handler for item and return the movements it produced."""
        item_type = getattr(item, 'item_type', None) or ItemType.PRODUCT
        handler = self.handler_for(item_type)

        if handler is None:
            message = f"Unknown item type {item_type!r} for {item_name(item)}; processed as product"
            context.warnings.append(message)
            logger.warning(
                "ledger.item.unknown_type",
                extra={"item_type": str(item_type), "reference": context.reference},
            )
            handler = self.default_handler

        return handler(item, context)

    # ══════════════════════════════════════════════════════════════
    # HANDLERS
    # ══════════════════════════════════════════════════════════════

    def process_product(self, item, context: ProcessingContext) -> list:
        volumetric = getattr(item, 'sale_type', SaleType.QUANTITY) == SaleType.VOLUME
        name = getattr(item, 'name', '')
        notes = f"Sale: {name} x {item.quantity}{' (volume)' if volumetric else ''}"

        movement = self.recorder.deduct(
            product_id=item.product_id,
            movement_type=MovementType.SALE,
            quantity=as_decimal(item.quantity),
            converted_quantity=as_decimal(getattr(item, 'converted_quantity', None)),
            reference=context.reference,
            actor=context.actor,
            notes=notes,
            product_name=name,
            unit_of_measurement_id=getattr(item, 'unit_of_measurement_id', '') or '',
            base_unit=getattr(item, 'base_unit', None),
            volumetric=volumetric,
            container_code=getattr(item, 'container_id', None),
        )
        return [movement]

    def process_fixed_blend(self, item, context: ProcessingContext) -> list:
        return self.composition.resolve_blend(
            item.product_id, as_decimal(item.quantity), context.reference, context.actor,
        )

    def process_bundle(self, item, context: ProcessingContext) -> list:
        return self.composition.resolve_bundle(
            item.product_id, as_decimal(item.quantity), context.reference, context.actor,
            warnings=context.warnings,
        )
