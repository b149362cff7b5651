"""
Tests for the container allocation policy (no database).
"""

from decimal import Decimal

import pytest

from ledgerman.exceptions import LedgerError
from ledgerman.models.enums import ContainerStatus
from ledgerman.services.allocator import ContainerAllocator, ContainerSlot, ContainerState


def slot(code, remaining, capacity='100', status=ContainerStatus.PARTIAL):
    return ContainerSlot(code=code, capacity=Decimal(capacity), remaining=Decimal(remaining), status=status)


@pytest.fixture
def allocator():
    return ContainerAllocator()


class TestFifo:
    """Without an explicit container the oldest opened one is drained first."""

    def test_first_open_container_in_queue_order(self, allocator):
        state = ContainerState(capacity=Decimal('100'), partial=[slot('A', '50'), slot('B', '80')])

        allocation = allocator.allocate(state, Decimal('10'))

        assert allocation.container_code == 'A'
        assert state.partial[0].remaining == Decimal('40')
        assert state.partial[1].remaining == Decimal('80')

    def test_empty_containers_are_skipped(self, allocator):
        state = ContainerState(
            capacity=Decimal('100'),
            partial=[slot('A', '0', status=ContainerStatus.EMPTY), slot('B', '80')],
        )

        allocation = allocator.allocate(state, Decimal('5'))

        assert allocation.container_code == 'B'

    def test_queue_order_is_never_changed(self, allocator):
        state = ContainerState(capacity=Decimal('100'), full=1, partial=[slot('Z', '5'), slot('A', '90')])

        allocator.allocate(state, Decimal('5'))
        allocator.allocate(state, Decimal('10'))

        assert [s.code for s in state.partial] == ['Z', 'A']


class TestExplicitContainer:

    def test_targets_only_that_container(self, allocator):
        state = ContainerState(capacity=Decimal('100'), partial=[slot('A', '50'), slot('B', '70')])

        allocation = allocator.allocate(state, Decimal('20'), container_code='B')

        assert allocation.container_code == 'B'
        assert state.find('A').remaining == Decimal('50')
        assert state.find('B').remaining == Decimal('50')

    def test_unknown_container_raises(self, allocator):
        state = ContainerState(capacity=Decimal('100'), partial=[slot('A', '50')])

        with pytest.raises(LedgerError) as exc:
            allocator.allocate(state, Decimal('1'), container_code='NOPE')

        assert exc.value.code == 'CONTAINER_NOT_FOUND'
        assert state.find('A').remaining == Decimal('50')

    def test_explicit_container_can_be_overdrawn(self, allocator):
        state = ContainerState(capacity=Decimal('100'), partial=[slot('A', '10')])

        allocation = allocator.allocate(state, Decimal('15'), container_code='A')

        assert allocation.remaining_after == Decimal('-5')
        assert allocation.container_status == ContainerStatus.OVERSOLD


class TestSealedAndOversold:

    def test_opens_exactly_one_sealed_container(self, allocator):
        state = ContainerState(capacity=Decimal('100'), full=3)

        allocation = allocator.allocate(state, Decimal('25'))

        assert state.full == 2
        assert len(state.partial) == 1
        assert state.partial[0].remaining == Decimal('75')
        assert state.partial[0].status == ContainerStatus.PARTIAL
        assert allocation.opened_sealed is True
        assert allocation.created is True

    def test_reaching_zero_marks_container_empty(self, allocator):
        state = ContainerState(capacity=Decimal('100'), partial=[slot('A', '10')])

        allocation = allocator.allocate(state, Decimal('10'))

        assert allocation.container_status == ContainerStatus.EMPTY
        assert state.find('A').remaining == Decimal('0')

    def test_overselling_past_empty_creates_oversold_container(self, allocator):
        state = ContainerState(capacity=Decimal('100'), partial=[slot('A', '10')])
        allocator.allocate(state, Decimal('10'))

        allocation = allocator.allocate(state, Decimal('4'))

        assert allocation.container_code.startswith('OVERSOLD-')
        assert allocation.container_status == ContainerStatus.OVERSOLD
        assert allocation.remaining_after == Decimal('-4')
        assert state.partial[0].code == 'A'

    def test_existing_oversold_container_is_reused(self, allocator):
        state = ContainerState(capacity=Decimal('100'))
        first = allocator.allocate(state, Decimal('3'))

        second = allocator.allocate(state, Decimal('2'))

        assert second.container_code == first.container_code
        assert second.remaining_after == Decimal('-5')
        assert len(state.partial) == 1

    def test_sale_history_is_recorded(self, allocator):
        state = ContainerState(capacity=Decimal('100'), partial=[slot('A', '50')])

        allocator.allocate(state, Decimal('7.5'), transaction_ref='TXN-9', actor='ana')

        entry = state.find('A').sale_history[-1]
        assert entry['transaction_ref'] == 'TXN-9'
        assert entry['quantity_sold'] == '7.5'
        assert entry['sold_by'] == 'ana'

    @pytest.mark.parametrize('quantity', ['0', '-1'])
    def test_non_positive_quantity_is_rejected(self, allocator, quantity):
        state = ContainerState(capacity=Decimal('100'), full=1)

        with pytest.raises(LedgerError) as exc:
            allocator.allocate(state, Decimal(quantity))

        assert exc.value.code == 'INVALID_QUANTITY'
        assert state.full == 1


class TestRelease:

    def test_release_gives_volume_back(self, allocator):
        state = ContainerState(capacity=Decimal('100'), partial=[slot('A', '0', status=ContainerStatus.EMPTY)])

        allocation = allocator.release(state, Decimal('10'), 'A')

        assert allocation.remaining_after == Decimal('10')
        assert allocation.container_status == ContainerStatus.PARTIAL
        assert state.find('A').sale_history[-1]['quantity_sold'] == '-10'

    def test_release_settles_oversold_container(self, allocator):
        state = ContainerState(capacity=Decimal('100'), partial=[slot('X', '-4', status=ContainerStatus.OVERSOLD)])

        allocation = allocator.release(state, Decimal('4'), 'X')

        assert allocation.remaining_after == Decimal('0')
        assert allocation.container_status == ContainerStatus.EMPTY

    def test_release_recreates_missing_container_at_queue_end(self, allocator):
        state = ContainerState(capacity=Decimal('100'), partial=[slot('A', '20')])

        allocation = allocator.release(state, Decimal('15'), 'GONE')

        assert allocation.created is True
        assert [s.code for s in state.partial] == ['A', 'GONE']
        assert state.find('GONE').remaining == Decimal('15')
