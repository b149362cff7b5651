"""Small helpers shared by the test modules."""

from decimal import Decimal

from ledgerman.protocols.transaction import SaleItem


def stock_of(product) -> Decimal:
    product.refresh_from_db()
    return product.current_stock


def item(product_id, quantity, **kwargs) -> SaleItem:
    return SaleItem(product_id=product_id, quantity=Decimal(str(quantity)), **kwargs)
