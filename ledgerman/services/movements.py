"""
Stock movements — write one movement and apply it, as a single unit of work.

Every deducting and compensating movement goes through MovementRecorder:
    1. resolve the product (missing product = LedgerError, nothing written)
    2. allocate/release a container for volumetric movements
    3. persist the Movement
    4. apply it to the aggregate counters
all inside movements.atomic(). MOVEMENT_CREATED goes out only once the
write commits.
"""

import logging
from decimal import Decimal
from functools import partial
from typing import Any

from ledgerman.conf import ledgerman_settings
from ledgerman.exceptions import LedgerError
from ledgerman.models.enums import MovementType
from ledgerman.protocols.events import MOVEMENT_CREATED, EventEmitter
from ledgerman.protocols.stores import LedgerStores
from ledgerman.services.mutator import StockMutator

logger = logging.getLogger('ledgerman')


class MovementRecorder:
    """Creates movements and keeps stock counters in step with them."""

    def __init__(self, stores: LedgerStores, mutator: StockMutator, events: EventEmitter):
        self.stores = stores
        self.mutator = mutator
        self.events = events

    def deduct(self, product_id: Any, movement_type: str, quantity: Decimal, reference: str,
               actor: str, notes: str = '', converted_quantity: Decimal | None = None,
               product_name: str = '', unit_of_measurement_id: str = '', base_unit: str | None = None,
               volumetric: bool = False, container_code: str | None = None):
        """
        Record a stock exit.

        volumetric=True routes the quantity through the product's container
        allocator when the product tracks containers.

        Raises:
            LedgerError('INVALID_QUANTITY'): If quantity or converted_quantity <= 0
            LedgerError('PRODUCT_NOT_FOUND'): If product_id is unknown
        """
        if quantity <= 0:
            raise LedgerError('INVALID_QUANTITY', requested=quantity, product_id=product_id)

        converted = converted_quantity if converted_quantity else quantity
        if converted <= 0:
            raise LedgerError('INVALID_QUANTITY', requested=converted, product_id=product_id)

        with self.stores.movements.atomic():
            product = self.stores.products.get(product_id)

            container = {}
            if volumetric and product.tracks_containers:
                allocation = self.stores.products.allocate_container(
                    product.id, converted, container_code,
                    transaction_ref=reference, actor=actor,
                )
                container = {
                    'container_id': allocation.container_code,
                    'container_status': allocation.container_status,
                    'remaining_quantity': allocation.remaining_after,
                }

            return self._write(
                product_id=product.id,
                movement_type=movement_type,
                quantity=quantity,
                converted_quantity=converted,
                unit_of_measurement_id=unit_of_measurement_id or '',
                base_unit=base_unit or product.base_unit or ledgerman_settings.DEFAULT_BASE_UNIT,
                reference=reference,
                notes=notes,
                created_by=actor,
                product_name=product_name or product.name,
                **container,
            )

    def compensate(self, original, reference: str, actor: str):
        """
        Record the RETURN movement that undoes original.

        Quantities, unit fields and container annotations are copied; the
        container (if any) gets its volume back.
        """
        with self.stores.movements.atomic():
            product = self.stores.products.get(original.product_id)

            container = {}
            if original.container_id:
                allocation = self.stores.products.release_container(
                    product.id, original.converted_quantity, original.container_id,
                    transaction_ref=reference, actor=actor,
                )
                container = {
                    'container_id': original.container_id,
                    'container_status': allocation.container_status,
                    'remaining_quantity': allocation.remaining_after,
                }

            return self._write(
                product_id=original.product_id,
                movement_type=MovementType.RETURN,
                quantity=original.quantity,
                converted_quantity=original.converted_quantity,
                unit_of_measurement_id=original.unit_of_measurement_id,
                base_unit=original.base_unit,
                reference=reference,
                notes=f"Cancellation reversal for {original.movement_type}: {original.notes or ''}",
                created_by=actor,
                product_name=original.product_name,
                **container,
            )

    def _write(self, **fields):
        movement = self.stores.movements.create(**fields)
        delta = self.mutator.apply(movement)

        self.stores.movements.on_commit(partial(
            self.events.emit,
            MOVEMENT_CREATED,
            movement_id=movement.id,
            reference=movement.reference,
            movement_type=str(movement.movement_type),
            product_id=movement.product_id,
            product_name=movement.product_name,
            quantity=str(movement.quantity),
            stock_delta=str(delta),
            container_id=movement.container_id or None,
        ))
        return movement
