"""
Pytest fixtures for Ledgerman tests.
"""

from decimal import Decimal

import pytest

from ledgerman.adapters import reset_adapters
from ledgerman.adapters.memory import MemoryStores
from ledgerman.adapters.orm import OrmStores
from ledgerman.events import CollectingEventEmitter
from ledgerman.models import (
    BlendIngredient,
    BlendTemplate,
    Bundle,
    BundleLine,
    BundleLineType,
    Container,
    ContainerStatus,
    Product,
)
from ledgerman.protocols.transaction import SaleTransaction
from ledgerman.service import build_ledger


@pytest.fixture(autouse=True)
def _reset_adapters():
    reset_adapters()
    yield
    reset_adapters()


@pytest.fixture
def events():
    """Event emitter that keeps everything it is sent."""
    return CollectingEventEmitter()


@pytest.fixture
def ledger(db, events):
    """Ledger over the ORM stores."""
    return build_ledger(stores=OrmStores(), events=events)


@pytest.fixture
def memory_stores():
    return MemoryStores()


@pytest.fixture
def memory_ledger(memory_stores, events):
    """Ledger over in-memory stores. No database."""
    return build_ledger(stores=memory_stores, events=events, claim_references=False)


@pytest.fixture
def product(db):
    """Plain product with 100 units in stock."""
    return Product.objects.create(
        name='Peppermint Tea',
        sku='TEA-PEP',
        current_stock=Decimal('100'),
        available_stock=Decimal('100'),
    )


@pytest.fixture
def other_product(db):
    return Product.objects.create(
        name='Chamomile Tea',
        sku='TEA-CHA',
        current_stock=Decimal('50'),
        available_stock=Decimal('50'),
    )


@pytest.fixture
def oil(db):
    """Volumetric product: 100 ml bottles, 3 sealed, none opened."""
    return Product.objects.create(
        name='Lavender Oil',
        sku='OIL-LAV',
        base_unit='ml',
        current_stock=Decimal('300'),
        available_stock=Decimal('300'),
        container_capacity=Decimal('100'),
        full_containers=3,
    )


@pytest.fixture
def opened_oil(oil):
    """The oil with two opened bottles: A (50 ml left) then B (80 ml left)."""
    Container.objects.create(
        product=oil, sequence=1, code='A', capacity=Decimal('100'),
        remaining=Decimal('50'), status=ContainerStatus.PARTIAL,
    )
    Container.objects.create(
        product=oil, sequence=2, code='B', capacity=Decimal('100'),
        remaining=Decimal('80'), status=ContainerStatus.PARTIAL,
    )
    return oil


@pytest.fixture
def blend(db):
    """Recipe: 5 units of A and 3 units of B per blend unit."""
    a = Product.objects.create(name='Ingredient A', sku='ING-A', current_stock=Decimal('100'),
                               available_stock=Decimal('100'))
    b = Product.objects.create(name='Ingredient B', sku='ING-B', current_stock=Decimal('100'),
                               available_stock=Decimal('100'))
    template = BlendTemplate.objects.create(name='Calm Blend')
    BlendIngredient.objects.create(template=template, product=a, quantity=Decimal('5'))
    BlendIngredient.objects.create(template=template, product=b, quantity=Decimal('3'))
    return template


@pytest.fixture
def bundle(db, product, blend):
    """Kit: 1 tea and 2 units of the blend per bundle."""
    kit = Bundle.objects.create(name='Relax Kit', sku='KIT-RLX')
    BundleLine.objects.create(
        bundle=kit, product_type=BundleLineType.PRODUCT, product=product,
        name=product.name, quantity=Decimal('1'),
    )
    BundleLine.objects.create(
        bundle=kit, product_type=BundleLineType.FIXED_BLEND, blend=blend,
        name=blend.name, quantity=Decimal('2'),
    )
    return kit


@pytest.fixture
def sale():
    """Factory: sale('TXN-1', SaleItem(...), ...)."""

    def make(number, *items):
        return SaleTransaction(transaction_number=number, items=tuple(items))

    return make
