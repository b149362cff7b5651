"""
Tests for sale deduction through the ORM stores.
"""

from decimal import Decimal

import pytest

from ledgerman.adapters.orm import OrmStores
from ledgerman.models import (
    BlendIngredient,
    BlendTemplate,
    Container,
    ContainerStatus,
    Movement,
    MovementType,
    Product,
    ReferenceClaim,
)
from ledgerman.protocols.events import DEDUCTION_COMPLETED, MOVEMENT_CREATED
from ledgerman.protocols.transaction import SaleTransaction
from ledgerman.service import build_ledger
from ledgerman.tests.helpers import item, stock_of


pytestmark = pytest.mark.django_db


class TestProductSale:
    """Plain product lines."""

    def test_sale_deducts_stock(self, ledger, sale, product):
        """Stock 100, sell 5 → 95."""
        result = ledger.process_transaction(sale('TXN-1', item(product.pk, 5, name='Tea')), actor='cashier')

        assert result.success is True
        assert result.errors == []
        assert len(result.movements) == 1
        assert stock_of(product) == Decimal('95')
        product.refresh_from_db()
        assert product.available_stock == Decimal('95')

    def test_overselling_goes_negative(self, ledger, sale, product):
        """Stock 2, sell 10 → -8."""
        Product.objects.filter(pk=product.pk).update(current_stock=Decimal('2'), available_stock=Decimal('2'))

        ledger.process_transaction(sale('TXN-1', item(product.pk, 10)), actor='cashier')

        assert stock_of(product) == Decimal('-8')
        assert product.is_oversold
        assert product.backorder_quantity == Decimal('8')

    def test_movement_fields(self, ledger, sale, product):
        ledger.process_transaction(
            sale('TXN-7', item(product.pk, 2, name='Tea', unit_of_measurement_id='uom-box',
                               converted_quantity=Decimal('24'), base_unit='bag')),
            actor='cashier',
        )

        movement = Movement.objects.get(reference='TXN-7')
        assert movement.movement_type == MovementType.SALE
        assert movement.quantity == Decimal('2')
        assert movement.converted_quantity == Decimal('24')
        assert movement.unit_of_measurement_id == 'uom-box'
        assert movement.base_unit == 'bag'
        assert movement.created_by == 'cashier'
        assert movement.product_name == 'Tea'
        assert movement.notes == 'Sale: Tea x 2'
        assert stock_of(product) == Decimal('76')

    def test_base_unit_falls_back_to_product(self, ledger, sale, oil):
        ledger.process_transaction(sale('TXN-1', item(oil.pk, 1)), actor='cashier')

        movement = Movement.objects.get(reference='TXN-1')
        assert movement.base_unit == 'ml'
        assert movement.product_name == 'Lavender Oil'

    def test_dict_payload_is_accepted(self, ledger, product):
        result = ledger.process_transaction(
            {
                'transactionNumber': 'TXN-42',
                'items': [{'productId': product.pk, 'quantity': 3, 'name': 'Tea', 'itemType': 'product'}],
            },
            actor='api',
        )

        assert len(result.movements) == 1
        assert stock_of(product) == Decimal('97')


class TestVolumetricSale:
    """Container-tracked products sold by volume."""

    def test_fifo_drains_first_open_container(self, ledger, sale, opened_oil):
        """Partials [50, 80], sell 10 → first becomes 40, second unchanged."""
        ledger.process_transaction(sale('TXN-1', item(opened_oil.pk, 10, sale_type='volume')), actor='c')

        assert Container.objects.get(code='A').remaining == Decimal('40')
        assert Container.objects.get(code='B').remaining == Decimal('80')
        assert stock_of(opened_oil) == Decimal('290')

    def test_explicit_container(self, ledger, sale, opened_oil):
        """A=50, B=70, sell 20 targeting B → A stays 50, B becomes 50."""
        Container.objects.filter(code='B').update(remaining=Decimal('70'))

        ledger.process_transaction(
            sale('TXN-1', item(opened_oil.pk, 20, sale_type='volume', container_id='B')), actor='c',
        )

        assert Container.objects.get(code='A').remaining == Decimal('50')
        assert Container.objects.get(code='B').remaining == Decimal('50')

    def test_opens_sealed_container_when_none_open(self, ledger, sale, oil):
        """3 full, 0 partial, sell 25 of 100 → full 2, one partial with 75."""
        result = ledger.process_transaction(sale('TXN-1', item(oil.pk, 25, sale_type='volume')), actor='c')

        oil.refresh_from_db()
        assert oil.full_containers == 2
        container = Container.objects.get(product=oil)
        assert container.remaining == Decimal('75')
        assert container.status == ContainerStatus.PARTIAL
        assert container.sequence == 1

        movement = result.movements[0]
        assert movement.container_id == container.code
        assert movement.container_status == ContainerStatus.PARTIAL
        assert movement.remaining_quantity == Decimal('75')
        assert movement.notes.endswith('(volume)')

    def test_empty_then_oversold(self, ledger, sale, oil):
        Product.objects.filter(pk=oil.pk).update(full_containers=0)
        Container.objects.create(product=oil, sequence=1, code='A', capacity=Decimal('100'),
                                 remaining=Decimal('10'))

        ledger.process_transaction(sale('TXN-1', item(oil.pk, 10, sale_type='volume')), actor='c')
        assert Container.objects.get(code='A').status == ContainerStatus.EMPTY

        ledger.process_transaction(sale('TXN-2', item(oil.pk, 6, sale_type='volume')), actor='c')

        oversold = Container.objects.get(product=oil, status=ContainerStatus.OVERSOLD)
        assert oversold.remaining == Decimal('-6')
        assert oversold.sequence == 2
        assert Container.objects.get(code='A').remaining == Decimal('0')

    def test_unknown_container_is_an_item_error(self, ledger, sale, opened_oil):
        result = ledger.process_transaction(
            sale('TXN-1', item(opened_oil.pk, 5, sale_type='volume', container_id='NOPE', name='Oil')),
            actor='c',
        )

        assert result.success is True
        assert len(result.errors) == 1
        assert result.errors[0].startswith('Failed to process Oil:')
        assert not Movement.objects.filter(reference='TXN-1').exists()
        assert stock_of(opened_oil) == Decimal('300')

    def test_quantity_sale_of_tracked_product_leaves_containers_alone(self, ledger, sale, opened_oil):
        ledger.process_transaction(sale('TXN-1', item(opened_oil.pk, 10)), actor='c')

        assert Container.objects.get(code='A').remaining == Decimal('50')
        assert stock_of(opened_oil) == Decimal('290')


class TestBlendAndBundle:

    def test_fixed_blend_scales_ingredients(self, ledger, sale, blend):
        """Recipe {5 A, 3 B}, sale quantity 2 → A -10, B -6, usage +2."""
        result = ledger.process_transaction(
            sale('TXN-1', item(blend.pk, 2, item_type='fixed_blend', name='Calm Blend')), actor='c',
        )

        a = Product.objects.get(sku='ING-A')
        b = Product.objects.get(sku='ING-B')
        assert a.current_stock == Decimal('90')
        assert b.current_stock == Decimal('94')
        assert {m.movement_type for m in result.movements} == {MovementType.FIXED_BLEND}
        assert result.movements[0].notes == 'Fixed blend ingredient: Ingredient A for Calm Blend x 2'

        blend.refresh_from_db()
        assert blend.usage_count == Decimal('2')
        assert blend.last_used is not None

    def test_bundle_scales_lines_and_nested_blends(self, ledger, sale, bundle, product):
        """Bundle x2: tea 1 per bundle → 2, blend 2 per bundle → ingredient A 2*2*5 = 20."""
        result = ledger.process_transaction(
            sale('TXN-1', item(bundle.pk, 2, item_type='bundle', name='Relax Kit')), actor='c',
        )

        assert stock_of(product) == Decimal('98')
        assert Product.objects.get(sku='ING-A').current_stock == Decimal('80')
        assert Product.objects.get(sku='ING-B').current_stock == Decimal('88')

        types = [m.movement_type for m in result.movements]
        assert types == [
            MovementType.BUNDLE_SALE,
            MovementType.BUNDLE_BLEND_INGREDIENT,
            MovementType.BUNDLE_BLEND_INGREDIENT,
        ]
        assert result.movements[0].notes == 'Bundle sale: Peppermint Tea from Relax Kit x 2'
        assert BlendTemplate.objects.get().usage_count == Decimal('4')

    def test_bundle_line_with_deleted_blend_is_skipped(self, ledger, sale, bundle, blend, product):
        blend.ingredients.all().delete()
        blend.delete()

        result = ledger.process_transaction(
            sale('TXN-1', item(bundle.pk, 1, item_type='bundle')), actor='c',
        )

        assert result.errors == []
        assert len(result.movements) == 1
        assert any('skipped' in w for w in result.warnings)
        assert stock_of(product) == Decimal('99')

    def test_unknown_bundle_is_an_item_error(self, ledger, sale, product):
        result = ledger.process_transaction(
            sale('TXN-1', item(9999, 1, item_type='bundle', name='Ghost Kit'), item(product.pk, 1)),
            actor='c',
        )

        assert len(result.errors) == 1
        assert 'Ghost Kit' in result.errors[0]
        assert len(result.movements) == 1


class TestRouting:

    @pytest.mark.parametrize('item_type', ['miscellaneous', 'service', 'consultation', 'custom_blend'])
    def test_no_inventory_types_never_touch_stock(self, ledger, sale, product, item_type):
        result = ledger.process_transaction(
            sale('TXN-1', item(product.pk, 3, item_type=item_type)), actor='c',
        )

        assert result.movements == []
        assert result.errors == []
        assert stock_of(product) == Decimal('100')

    def test_unknown_type_is_processed_as_product(self, ledger, sale, product):
        result = ledger.process_transaction(
            sale('TXN-1', item(product.pk, 3, item_type='gift_card')), actor='c',
        )

        assert len(result.movements) == 1
        assert any("'gift_card'" in w for w in result.warnings)
        assert stock_of(product) == Decimal('97')

    def test_missing_type_is_a_product(self, ledger, sale, product):
        ledger.process_transaction(sale('TXN-1', item(product.pk, 3, item_type=None)), actor='c')

        assert stock_of(product) == Decimal('97')

    def test_custom_handler_can_be_registered(self, ledger, sale, product):
        seen = []
        ledger.router.register('voucher', lambda it, ctx: seen.append(it.product_id) or [])

        result = ledger.process_transaction(sale('TXN-1', item(product.pk, 1, item_type='voucher')), actor='c')

        assert seen == [product.pk]
        assert result.warnings == []
        assert stock_of(product) == Decimal('100')


class TestFailureIsolation:

    def test_mixed_validity_batch(self, ledger, sale, product):
        """One unknown product, one valid: completes with 1 error and 1 movement."""
        result = ledger.process_transaction(
            sale('TXN-1', item(424242, 1, name='Ghost'), item(product.pk, 4, name='Tea')),
            actor='c',
        )

        assert result.success is True
        assert len(result.errors) == 1
        assert result.errors[0].startswith('Failed to process Ghost:')
        assert len(result.movements) == 1
        assert result.has_discrepancies
        assert stock_of(product) == Decimal('96')

    def test_failed_bundle_keeps_nothing_of_its_own(self, ledger, sale, bundle, product, blend):
        """An item that fails midway leaves no partial movements behind."""
        ingredient = blend.ingredients.first()
        ingredient.quantity = Decimal('-1')
        ingredient.save()

        result = ledger.process_transaction(
            sale('TXN-1', item(bundle.pk, 1, item_type='bundle', name='Relax Kit')), actor='c',
        )

        assert len(result.errors) == 1
        assert result.movements == []
        assert not Movement.objects.filter(reference='TXN-1').exists()
        assert stock_of(product) == Decimal('100')

    def test_string_product_id_is_not_found(self, ledger, sale):
        result = ledger.process_transaction(sale('TXN-1', item('not-a-pk', 1, name='Odd')), actor='c')

        assert len(result.errors) == 1
        assert 'Product not found' in result.errors[0]

    def test_negative_converted_quantity_is_rejected(self, ledger, sale, product):
        result = ledger.process_transaction(
            sale('TXN-1', item(product.pk, 2, name='Tea', converted_quantity=Decimal('-24'))), actor='c',
        )

        assert len(result.errors) == 1
        assert 'Invalid quantity' in result.errors[0]
        assert not Movement.objects.filter(reference='TXN-1').exists()
        assert stock_of(product) == Decimal('100')


class TestIdempotency:

    def test_second_run_short_circuits(self, ledger, sale, product):
        txn = sale('TXN-1', item(product.pk, 5))
        first = ledger.process_transaction(txn, actor='c')

        second = ledger.process_transaction(txn, actor='c')

        assert [m.pk for m in second.movements] == [m.pk for m in first.movements]
        assert second.warnings == [
            'Inventory movements already exist (1). Skipping to prevent duplicate deduction.'
        ]
        assert Movement.objects.filter(reference='TXN-1').count() == 1
        assert stock_of(product) == Decimal('95')

    def test_claim_blocks_duplicate_even_without_movements(self, events, sale, product):
        ledger = build_ledger(stores=OrmStores(), events=events, claim_references=True)
        txn = sale('TXN-1', item(product.pk, 1, item_type='service'))

        first = ledger.process_transaction(txn, actor='c')
        second = ledger.process_transaction(txn, actor='c')

        assert first.warnings == []
        assert second.movements == []
        assert second.warnings == [
            'Reference TXN-1 already claimed by another run. Skipping to prevent duplicate deduction.'
        ]

    def test_claim_is_released_when_nothing_was_written(self, events, sale):
        """Sale of a product not yet synced can be retried once it exists."""
        ledger = build_ledger(stores=OrmStores(), events=events, claim_references=True)
        txn = sale('TXN-1', item(999, 5, name='Late Tea'))

        first = ledger.process_transaction(txn, actor='c')
        assert len(first.errors) == 1
        assert not ReferenceClaim.objects.filter(reference='TXN-1').exists()

        late = Product.objects.create(
            pk=999, name='Late Tea', sku='TEA-LATE',
            current_stock=Decimal('100'), available_stock=Decimal('100'),
        )
        retry = ledger.process_transaction(txn, actor='c')

        assert retry.errors == []
        assert retry.warnings == []
        assert len(retry.movements) == 1
        assert stock_of(late) == Decimal('95')
        assert ReferenceClaim.objects.filter(reference='TXN-1').count() == 1

    def test_claim_is_kept_when_some_items_were_written(self, events, sale, product):
        ledger = build_ledger(stores=OrmStores(), events=events, claim_references=True)

        result = ledger.process_transaction(
            sale('TXN-1', item(424242, 1, name='Ghost'), item(product.pk, 1)), actor='c',
        )

        assert len(result.errors) == 1
        assert ReferenceClaim.objects.filter(reference='TXN-1').exists()


class TestEvents:

    def test_events_are_emitted_on_commit(self, ledger, sale, product, events,
                                          django_capture_on_commit_callbacks):
        with django_capture_on_commit_callbacks(execute=True):
            ledger.process_transaction(sale('TXN-1', item(product.pk, 1), item(product.pk, 2)), actor='c')
            assert events.events == []

        assert events.names() == [MOVEMENT_CREATED, MOVEMENT_CREATED, DEDUCTION_COMPLETED]
        name, fields = events.events[-1]
        assert fields['reference'] == 'TXN-1'
        assert fields['movement_count'] == 2
        assert fields['error_count'] == 0
        assert fields['duration_ms'] >= 0

    def test_rolled_back_item_sends_no_movement_event(self, ledger, sale, blend, events,
                                                      django_capture_on_commit_callbacks):
        """Ingredient A is written, ingredient B fails: A is undone and so is its event."""
        BlendIngredient.objects.filter(template=blend, product__sku='ING-B').update(quantity=Decimal('-3'))

        with django_capture_on_commit_callbacks(execute=True):
            result = ledger.process_transaction(
                sale('TXN-1', item(blend.pk, 1, item_type='fixed_blend')), actor='c',
            )

        assert len(result.errors) == 1
        assert events.names() == [DEDUCTION_COMPLETED]
        assert Product.objects.get(sku='ING-A').current_stock == Decimal('100')

    def test_rolled_back_item_sends_no_movement_event_in_memory(self, memory_ledger, memory_stores,
                                                                sale, events):
        good = memory_stores.add_product('Good', stock=100)
        blend = memory_stores.add_blend('Half Blend', [(good, 5), ('GONE', 3)])

        result = memory_ledger.process_transaction(
            sale('TXN-1', item(blend, 1, item_type='fixed_blend'), item(good, 1)), actor='c',
        )

        assert len(result.errors) == 1
        assert events.names() == [MOVEMENT_CREATED, DEDUCTION_COMPLETED]
        assert events.events[0][1]['stock_delta'] == '-1'
        assert memory_stores.stock(good) == Decimal('99')

    def test_caller_rollback_discards_events(self, memory_ledger, memory_stores, sale, events):
        tea = memory_stores.add_product('Tea', stock=10)

        with pytest.raises(RuntimeError):
            with memory_stores.atomic():
                memory_ledger.process_transaction(sale('TXN-1', item(tea, 1)), actor='c')
                raise RuntimeError('checkout aborted')

        assert events.events == []
        assert memory_stores.stock(tea) == Decimal('10')

    def test_result_as_dict(self, ledger, product):
        result = ledger.process_transaction(
            SaleTransaction.from_dict({'transaction_number': 'TXN-5', 'items': [
                {'product_id': product.pk, 'quantity': '1.5'},
            ]}),
            actor='c',
        )

        data = result.as_dict()
        assert data['success'] is True
        assert data['movements'] == [result.movements[0].pk]
        assert stock_of(product) == Decimal('98.5')
