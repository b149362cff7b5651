"""
Container allocation — which physical container a volumetric sale drinks from.

Pure logic over a ContainerState snapshot; stores load the state (locked),
call the allocator and write the state back.

Policy, in order:
    1. explicit container code → that container, wherever it sits
    2. first container in queue order with remaining > 0
    3. open a sealed container (full -= 1) and append it to the queue
    4. deduct from the product's oversold container, creating it if needed

ContainerState.partial is a FIFO queue: position is priority. Containers
are only ever appended; nothing here (or in any store) may reorder it.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any

from django.utils import timezone

from ledgerman.exceptions import LedgerError
from ledgerman.models.enums import ContainerStatus


@dataclass
class ContainerSlot:
    """One opened container."""

    code: str
    capacity: Decimal
    remaining: Decimal
    status: str = ContainerStatus.PARTIAL
    opened_at: datetime | None = None
    sale_history: list[dict[str, Any]] = field(default_factory=list)

    @property
    def is_open(self) -> bool:
        """Can serve a FIFO scan."""
        return self.status == ContainerStatus.PARTIAL and self.remaining > 0

    def settle_status(self) -> None:
        """Derive status from remaining."""
        if self.remaining < 0:
            self.status = ContainerStatus.OVERSOLD
        elif self.remaining == 0:
            self.status = ContainerStatus.EMPTY
        else:
            self.status = ContainerStatus.PARTIAL


@dataclass
class ContainerState:
    """Container state of one product."""

    capacity: Decimal
    full: int = 0
    partial: list[ContainerSlot] = field(default_factory=list)

    def find(self, code: str) -> ContainerSlot | None:
        for slot in self.partial:
            if slot.code == code:
                return slot
        return None

    def first_open(self) -> ContainerSlot | None:
        for slot in self.partial:
            if slot.is_open:
                return slot
        return None

    def oversold(self) -> ContainerSlot | None:
        for slot in self.partial:
            if slot.status == ContainerStatus.OVERSOLD:
                return slot
        return None


@dataclass(frozen=True)
class Allocation:
    """Outcome of one allocation, copied onto the movement."""

    container_code: str
    container_status: str
    remaining_after: Decimal
    opened_sealed: bool = False
    created: bool = False


def new_container_code(prefix: str = 'CNT') -> str:
    return f"{prefix}-{uuid.uuid4().hex[:10].upper()}"


class ContainerAllocator:
    """Allocation policy. Mutates the given ContainerState in place."""

    def allocate(self, state: ContainerState, quantity: Decimal, container_code: str | None = None,
                 transaction_ref: str = '', actor: str = '', now: datetime | None = None) -> Allocation:
        """
        Take quantity out of one container.

        Raises:
            LedgerError('INVALID_QUANTITY'): If quantity <= 0
            LedgerError('CONTAINER_NOT_FOUND'): If container_code is not in the queue
        """
        if quantity <= 0:
            raise LedgerError('INVALID_QUANTITY', requested=quantity)

        now = now or timezone.now()
        opened_sealed = False
        created = False

        if container_code:
            slot = state.find(container_code)
            if slot is None:
                raise LedgerError('CONTAINER_NOT_FOUND', container_id=container_code)
        else:
            slot = state.first_open()

        if slot is None and state.full > 0:
            state.full -= 1
            slot = ContainerSlot(
                code=new_container_code(),
                capacity=state.capacity,
                remaining=state.capacity,
                opened_at=now,
            )
            state.partial.append(slot)
            opened_sealed = True
            created = True

        if slot is None:
            slot = state.oversold()

        if slot is None:
            slot = ContainerSlot(
                code=new_container_code('OVERSOLD'),
                capacity=state.capacity,
                remaining=Decimal('0'),
                status=ContainerStatus.OVERSOLD,
                opened_at=now,
            )
            state.partial.append(slot)
            created = True

        slot.remaining -= quantity
        slot.settle_status()
        slot.sale_history.append({
            'transaction_ref': transaction_ref,
            'quantity_sold': str(quantity),
            'sold_at': now.isoformat(),
            'sold_by': actor,
        })

        return Allocation(
            container_code=slot.code,
            container_status=slot.status,
            remaining_after=slot.remaining,
            opened_sealed=opened_sealed,
            created=created,
        )

    def release(self, state: ContainerState, quantity: Decimal, container_code: str,
                transaction_ref: str = '', actor: str = '', now: datetime | None = None) -> Allocation:
        """
        Put quantity back into a container (cancellation).

        A container that no longer exists is re-created at the end of the
        queue with the returned volume.
        """
        if quantity <= 0:
            raise LedgerError('INVALID_QUANTITY', requested=quantity)

        now = now or timezone.now()
        created = False

        slot = state.find(container_code)
        if slot is None:
            slot = ContainerSlot(
                code=container_code,
                capacity=state.capacity,
                remaining=Decimal('0'),
                opened_at=now,
            )
            state.partial.append(slot)
            created = True

        slot.remaining += quantity
        slot.settle_status()
        slot.sale_history.append({
            'transaction_ref': transaction_ref,
            'quantity_sold': str(-quantity),
            'sold_at': now.isoformat(),
            'sold_by': actor,
        })

        return Allocation(
            container_code=slot.code,
            container_status=slot.status,
            remaining_after=slot.remaining,
            created=created,
        )
