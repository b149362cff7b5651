"""
Ledgerman ORM Adapter — the store protocols on the Django ORM.

This is the default STORE_BACKEND:

    LEDGERMAN = {
        "STORE_BACKEND": "ledgerman.adapters.orm.OrmStores",
        "DATABASE_ALIAS": "default",
    }

atomic() is transaction.atomic() on the configured alias, so nested blocks
are savepoints and every store of the bundle shares them. Connection
faults surface as StoreUnavailable.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from decimal import Decimal
from typing import Any

from django.core.exceptions import ValidationError
from django.db import IntegrityError, InterfaceError, OperationalError, transaction
from django.db.models import F
from django.utils import timezone

from ledgerman.conf import ledgerman_settings
from ledgerman.exceptions import LedgerError, StoreUnavailable
from ledgerman.models import (
    BlendTemplate,
    Bundle,
    Container,
    Movement,
    Product,
    ReferenceClaim,
)
from ledgerman.protocols.stores import (
    BlendInfo,
    BlendIngredientInfo,
    BundleInfo,
    BundleLineInfo,
    LedgerStores,
    ProductInfo,
)
from ledgerman.services.allocator import Allocation, ContainerAllocator, ContainerSlot, ContainerState

logger = logging.getLogger(__name__)

LOOKUP_ERRORS = (ValueError, TypeError, ValidationError)


@contextmanager
def store_errors(operation: str):
    """Translate connection-level database faults into StoreUnavailable."""
    try:
        yield
    except (OperationalError, InterfaceError) as exc:
        logger.error("ledger.store.unavailable", extra={"operation": operation, "error": str(exc)})
        raise StoreUnavailable(operation=operation, error=str(exc)) from exc


class OrmMovementStore:
    """Movement rows and reference claims."""

    def __init__(self, using: str):
        self.using = using

    def atomic(self):
        return transaction.atomic(using=self.using)

    def create(self, **fields: Any) -> Movement:
        with store_errors('movement.create'):
            return Movement.objects.using(self.using).create(**fields)

    def find(self, reference: str, movement_types=None) -> list[Movement]:
        with store_errors('movement.find'):
            qs = Movement.objects.using(self.using).for_reference(reference)
            if movement_types is not None:
                qs = qs.of_types(movement_types)
            return list(qs.order_by('created_at', 'id'))

    def claim(self, reference: str, kind: str, actor: str = '') -> bool:
        with store_errors('movement.claim'):
            try:
                with transaction.atomic(using=self.using):
                    ReferenceClaim.objects.using(self.using).create(
                        reference=reference, kind=kind, claimed_by=actor,
                    )
            except IntegrityError:
                logger.warning("ledger.claim.taken", extra={"reference": reference, "kind": str(kind)})
                return False
        return True

    def release(self, reference: str, kind: str) -> None:
        with store_errors('movement.release'):
            ReferenceClaim.objects.using(self.using).filter(reference=reference, kind=kind).delete()
        logger.info("ledger.claim.released", extra={"reference": reference, "kind": str(kind)})

    def on_commit(self, callback) -> None:
        transaction.on_commit(callback, using=self.using)


class OrmProductStore:
    """Product counters and opened containers."""

    def __init__(self, using: str, allocator: ContainerAllocator | None = None):
        self.using = using
        self.allocator = allocator or ContainerAllocator()

    def get(self, product_id: Any) -> ProductInfo:
        if product_id is None:
            raise LedgerError('PRODUCT_NOT_FOUND', product_id=product_id)

        with store_errors('product.get'):
            try:
                product = Product.objects.using(self.using).get(pk=product_id)
            except (Product.DoesNotExist, *LOOKUP_ERRORS):
                raise LedgerError('PRODUCT_NOT_FOUND', product_id=product_id) from None

        return ProductInfo(
            id=product.pk,
            name=product.name,
            base_unit=product.base_unit,
            tracks_containers=product.tracks_containers,
        )

    def adjust_stock(self, product_id: Any, delta: Decimal) -> None:
        with store_errors('product.adjust_stock'):
            updated = Product.objects.using(self.using).filter(pk=product_id).update(
                current_stock=F('current_stock') + delta,
                available_stock=F('available_stock') + delta,
                updated_at=timezone.now(),
            )
        if not updated:
            raise LedgerError('PRODUCT_NOT_FOUND', product_id=product_id)

    def allocate_container(self, product_id: Any, quantity: Decimal, container_code: str | None = None,
                           transaction_ref: str = '', actor: str = '') -> Allocation:
        with store_errors('product.allocate_container'), transaction.atomic(using=self.using):
            product, state, rows = self._load_containers(product_id)
            allocation = self.allocator.allocate(
                state, quantity, container_code,
                transaction_ref=transaction_ref, actor=actor,
            )
            self._save_containers(product, state, rows)

        if allocation.opened_sealed:
            logger.info(
                "ledger.container.opened",
                extra={"product_id": product_id, "container_id": allocation.container_code},
            )
        return allocation

    def release_container(self, product_id: Any, quantity: Decimal, container_code: str,
                          transaction_ref: str = '', actor: str = '') -> Allocation:
        with store_errors('product.release_container'), transaction.atomic(using=self.using):
            product, state, rows = self._load_containers(product_id)
            allocation = self.allocator.release(
                state, quantity, container_code,
                transaction_ref=transaction_ref, actor=actor,
            )
            self._save_containers(product, state, rows)
        return allocation

    def _load_containers(self, product_id):
        """Lock the product row and read its container queue."""
        try:
            product = Product.objects.using(self.using).select_for_update().get(pk=product_id)
        except (Product.DoesNotExist, *LOOKUP_ERRORS):
            raise LedgerError('PRODUCT_NOT_FOUND', product_id=product_id) from None

        if not product.tracks_containers:
            raise LedgerError('CONTAINERS_NOT_TRACKED', product_id=product_id)

        rows = {
            row.code: row
            for row in Container.objects.using(self.using).filter(product=product).order_by('sequence')
        }
        state = ContainerState(
            capacity=product.container_capacity,
            full=product.full_containers,
            partial=[
                ContainerSlot(
                    code=row.code,
                    capacity=row.capacity,
                    remaining=row.remaining,
                    status=row.status,
                    opened_at=row.opened_at,
                    sale_history=list(row.sale_history or []),
                )
                for row in rows.values()
            ],
        )
        return product, state, rows

    def _save_containers(self, product: Product, state: ContainerState, rows: dict[str, Container]) -> None:
        """Write back what the allocator changed. New slots go to the end of the queue."""
        next_sequence = max((row.sequence for row in rows.values()), default=0) + 1

        for slot in state.partial:
            row = rows.get(slot.code)
            if row is None:
                Container.objects.using(self.using).create(
                    product=product,
                    sequence=next_sequence,
                    code=slot.code,
                    capacity=slot.capacity,
                    remaining=slot.remaining,
                    status=slot.status,
                    opened_at=slot.opened_at or timezone.now(),
                    sale_history=slot.sale_history,
                )
                next_sequence += 1
            elif len(slot.sale_history) != len(row.sale_history or []):
                row.remaining = slot.remaining
                row.status = slot.status
                row.sale_history = slot.sale_history
                row.save(using=self.using, update_fields=['remaining', 'status', 'sale_history'])

        if state.full != product.full_containers:
            Product.objects.using(self.using).filter(pk=product.pk).update(
                full_containers=state.full,
                updated_at=timezone.now(),
            )


class OrmCompositionStore:
    """Blend templates and bundles."""

    def __init__(self, using: str):
        self.using = using

    def get_blend(self, blend_id: Any) -> BlendInfo:
        if blend_id is None:
            raise LedgerError('BLEND_NOT_FOUND', blend_id=blend_id)

        with store_errors('composition.get_blend'):
            try:
                blend = (
                    BlendTemplate.objects.using(self.using)
                    .prefetch_related('ingredients__product')
                    .get(pk=blend_id)
                )
            except (BlendTemplate.DoesNotExist, *LOOKUP_ERRORS):
                raise LedgerError('BLEND_NOT_FOUND', blend_id=blend_id) from None

            ingredients = tuple(
                BlendIngredientInfo(
                    product_id=ingredient.product_id,
                    name=ingredient.product.name,
                    quantity=ingredient.quantity,
                    unit_of_measurement_id=ingredient.unit_of_measurement_id,
                    unit_name=ingredient.unit_name,
                )
                for ingredient in blend.ingredients.all()
            )
        return BlendInfo(id=blend.pk, name=blend.name, ingredients=ingredients)

    def record_blend_usage(self, blend_id: Any, multiplier: Decimal, when) -> None:
        with store_errors('composition.record_blend_usage'):
            BlendTemplate.objects.using(self.using).filter(pk=blend_id).update(
                usage_count=F('usage_count') + multiplier,
                last_used=when,
            )

    def get_bundle(self, bundle_id: Any) -> BundleInfo:
        if bundle_id is None:
            raise LedgerError('BUNDLE_NOT_FOUND', bundle_id=bundle_id)

        with store_errors('composition.get_bundle'):
            try:
                bundle = Bundle.objects.using(self.using).prefetch_related('lines').get(pk=bundle_id)
            except (Bundle.DoesNotExist, *LOOKUP_ERRORS):
                raise LedgerError('BUNDLE_NOT_FOUND', bundle_id=bundle_id) from None

            lines = tuple(
                BundleLineInfo(
                    product_type=line.product_type,
                    name=line.name,
                    quantity=line.quantity,
                    product_id=line.product_id,
                    blend_id=line.blend_id,
                    unit_of_measurement_id=line.unit_of_measurement_id,
                    unit_name=line.unit_name,
                )
                for line in bundle.lines.all()
            )
        return BundleInfo(id=bundle.pk, name=bundle.name, lines=lines)


class OrmStores(LedgerStores):
    """Store bundle backed by one database alias."""

    def __init__(self, using: str | None = None):
        using = using or ledgerman_settings.DATABASE_ALIAS
        self.using = using
        super().__init__(
            movements=OrmMovementStore(using),
            products=OrmProductStore(using),
            compositions=OrmCompositionStore(using),
        )
