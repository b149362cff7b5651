"""
Memory Stores — in-process adapter for development, dry runs and tests.

Implements the three store protocols on plain Python objects. atomic()
snapshots the whole state and restores it when the block raises, so nested
blocks behave as savepoints just like the ORM adapter. on_commit() callbacks
wait for the outermost block and are dropped with a rolled-back one.

Usage in settings.py:
    LEDGERMAN = {
        "STORE_BACKEND": "ledgerman.adapters.memory.MemoryStores",
    }

WARNING: State lives in the process and is lost on exit. Not thread-safe.
"""

from __future__ import annotations

import copy
import itertools
from contextlib import contextmanager
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any

from django.utils import timezone

from ledgerman.exceptions import LedgerError
from ledgerman.protocols.stores import (
    BlendInfo,
    BlendIngredientInfo,
    BundleInfo,
    BundleLineInfo,
    LedgerStores,
    MovementRecord,
    ProductInfo,
)
from ledgerman.services.allocator import Allocation, ContainerAllocator, ContainerSlot, ContainerState


@dataclass
class StockRecord:
    """Mutable product row."""

    id: Any
    name: str
    base_unit: str = 'unit'
    current_stock: Decimal = Decimal('0')
    available_stock: Decimal = Decimal('0')
    containers: ContainerState | None = None


@dataclass
class MemoryState:
    products: dict[Any, StockRecord] = field(default_factory=dict)
    blends: dict[Any, BlendInfo] = field(default_factory=dict)
    blend_usage: dict[Any, dict[str, Any]] = field(default_factory=dict)
    bundles: dict[Any, BundleInfo] = field(default_factory=dict)
    movements: list[MovementRecord] = field(default_factory=list)
    claims: set[tuple[str, str]] = field(default_factory=set)
    next_movement_id: int = 1


class MemoryMovementStore:

    def __init__(self, stores: MemoryStores):
        self.stores = stores

    def atomic(self):
        return self.stores.atomic()

    def create(self, **fields: Any) -> MovementRecord:
        state = self.stores.state
        if not fields.get('reference'):
            raise ValueError("Reference is required")

        record = MovementRecord(id=state.next_movement_id, created_at=timezone.now(), **fields)
        state.next_movement_id += 1
        state.movements.append(record)
        return record

    def find(self, reference: str, movement_types=None) -> list[MovementRecord]:
        types = set(movement_types) if movement_types is not None else None
        return [
            m for m in self.stores.state.movements
            if m.reference == reference and (types is None or m.movement_type in types)
        ]

    def claim(self, reference: str, kind: str, actor: str = '') -> bool:
        key = (reference, str(kind))
        if key in self.stores.state.claims:
            return False
        self.stores.state.claims.add(key)
        return True

    def release(self, reference: str, kind: str) -> None:
        self.stores.state.claims.discard((reference, str(kind)))

    def on_commit(self, callback) -> None:
        self.stores.on_commit(callback)


class MemoryProductStore:

    def __init__(self, stores: MemoryStores, allocator: ContainerAllocator | None = None):
        self.stores = stores
        self.allocator = allocator or ContainerAllocator()

    def _record(self, product_id) -> StockRecord:
        try:
            return self.stores.state.products[product_id]
        except (KeyError, TypeError):
            raise LedgerError('PRODUCT_NOT_FOUND', product_id=product_id) from None

    def get(self, product_id: Any) -> ProductInfo:
        record = self._record(product_id)
        return ProductInfo(
            id=record.id,
            name=record.name,
            base_unit=record.base_unit,
            tracks_containers=record.containers is not None,
        )

    def adjust_stock(self, product_id: Any, delta: Decimal) -> None:
        record = self._record(product_id)
        record.current_stock += delta
        record.available_stock += delta

    def _containers(self, product_id) -> ContainerState:
        record = self._record(product_id)
        if record.containers is None:
            raise LedgerError('CONTAINERS_NOT_TRACKED', product_id=product_id)
        return record.containers

    def allocate_container(self, product_id: Any, quantity: Decimal, container_code: str | None = None,
                           transaction_ref: str = '', actor: str = '') -> Allocation:
        return self.allocator.allocate(
            self._containers(product_id), quantity, container_code,
            transaction_ref=transaction_ref, actor=actor,
        )

    def release_container(self, product_id: Any, quantity: Decimal, container_code: str,
                          transaction_ref: str = '', actor: str = '') -> Allocation:
        return self.allocator.release(
            self._containers(product_id), quantity, container_code,
            transaction_ref=transaction_ref, actor=actor,
        )


class MemoryCompositionStore:

    def __init__(self, stores: MemoryStores):
        self.stores = stores

    def get_blend(self, blend_id: Any) -> BlendInfo:
        try:
            return self.stores.state.blends[blend_id]
        except (KeyError, TypeError):
            raise LedgerError('BLEND_NOT_FOUND', blend_id=blend_id) from None

    def record_blend_usage(self, blend_id: Any, multiplier: Decimal, when) -> None:
        usage = self.stores.state.blend_usage.setdefault(
            blend_id, {'usage_count': Decimal('0'), 'last_used': None},
        )
        usage['usage_count'] += multiplier
        usage['last_used'] = when

    def get_bundle(self, bundle_id: Any) -> BundleInfo:
        try:
            return self.stores.state.bundles[bundle_id]
        except (KeyError, TypeError):
            raise LedgerError('BUNDLE_NOT_FOUND', bundle_id=bundle_id) from None


class MemoryStores(LedgerStores):
    """
    Store bundle over one MemoryState.

    The add_* helpers seed the catalog; stock() and containers() read it back.
    """

    def __init__(self):
        self.state = MemoryState()
        self._ids = itertools.count(1)
        self._depth = 0
        self._pending = []
        super().__init__(
            movements=MemoryMovementStore(self),
            products=MemoryProductStore(self),
            compositions=MemoryCompositionStore(self),
        )

    @contextmanager
    def atomic(self):
        snapshot = copy.deepcopy(self.state)
        pending = len(self._pending)
        self._depth += 1
        try:
            yield
        except BaseException:
            self.state = snapshot
            del self._pending[pending:]
            raise
        finally:
            self._depth -= 1

        if self._depth == 0:
            callbacks, self._pending = self._pending, []
            for callback in callbacks:
                callback()

    def on_commit(self, callback) -> None:
        """Queue callback until the outermost atomic() block exits cleanly."""
        if self._depth:
            self._pending.append(callback)
        else:
            callback()

    # ══════════════════════════════════════════════════════════════
    # SEEDING
    # ══════════════════════════════════════════════════════════════

    def add_product(self, name: str, stock: Decimal | int = 0, base_unit: str = 'unit',
                    container_capacity: Decimal | None = None, full_containers: int = 0,
                    partial: list[tuple[str, Decimal]] | None = None, product_id: Any = None) -> Any:
        """
        Register a product and return its id.

        partial lists opened containers as (code, remaining), oldest first.
        """
        product_id = product_id if product_id is not None else f"P{next(self._ids)}"
        containers = None
        if container_capacity:
            capacity = Decimal(str(container_capacity))
            containers = ContainerState(
                capacity=capacity,
                full=full_containers,
                partial=[
                    ContainerSlot(code=code, capacity=capacity, remaining=Decimal(str(remaining)))
                    for code, remaining in (partial or [])
                ],
            )
            for slot in containers.partial:
                slot.settle_status()

        self.state.products[product_id] = StockRecord(
            id=product_id,
            name=name,
            base_unit=base_unit,
            current_stock=Decimal(str(stock)),
            available_stock=Decimal(str(stock)),
            containers=containers,
        )
        return product_id

    def add_blend(self, name: str, ingredients: list[tuple[Any, Decimal]], blend_id: Any = None) -> Any:
        """ingredients: (product_id, quantity per blend unit) pairs."""
        blend_id = blend_id if blend_id is not None else f"B{next(self._ids)}"
        self.state.blends[blend_id] = BlendInfo(
            id=blend_id,
            name=name,
            ingredients=tuple(
                BlendIngredientInfo(
                    product_id=product_id,
                    name=self.state.products[product_id].name if product_id in self.state.products else '',
                    quantity=Decimal(str(quantity)),
                )
                for product_id, quantity in ingredients
            ),
        )
        return blend_id

    def add_bundle(self, name: str, lines: list[BundleLineInfo], bundle_id: Any = None) -> Any:
        bundle_id = bundle_id if bundle_id is not None else f"K{next(self._ids)}"
        self.state.bundles[bundle_id] = BundleInfo(id=bundle_id, name=name, lines=tuple(lines))
        return bundle_id

    # ══════════════════════════════════════════════════════════════
    # READ BACK
    # ══════════════════════════════════════════════════════════════

    def stock(self, product_id: Any) -> Decimal:
        return self.state.products[product_id].current_stock

    def containers(self, product_id: Any) -> ContainerState | None:
        return self.state.products[product_id].containers

    def blend_usage(self, blend_id: Any) -> Decimal:
        return self.state.blend_usage.get(blend_id, {}).get('usage_count', Decimal('0'))
