"""
Transaction input — what the sales side hands to the ledger.

Ledgerman does not own transactions. Any object exposing
``transaction_number`` and ``items`` (each item exposing the SaleItem
attributes) is accepted; these dataclasses are the reference shape and
the adapter for plain dict payloads.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Protocol, Sequence, runtime_checkable


@runtime_checkable
class SaleItemLike(Protocol):
    product_id: Any
    quantity: Decimal
    item_type: str | None


@runtime_checkable
class TransactionLike(Protocol):
    transaction_number: str
    items: Sequence[Any]


@dataclass(frozen=True)
class SaleItem:
    """One line of a completed sale."""

    product_id: Any
    quantity: Decimal
    name: str = ''
    item_type: str | None = 'product'
    sale_type: str = 'quantity'
    container_id: str | None = None
    converted_quantity: Decimal | None = None
    unit_of_measurement_id: str = ''
    base_unit: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> SaleItem:
        """Build from a JSON-like payload (snake_case or camelCase keys)."""

        def pick(*keys, default=None):
            for key in keys:
                if data.get(key) is not None:
                    return data[key]
            return default

        converted = pick('converted_quantity', 'convertedQuantity')
        return cls(
            product_id=pick('product_id', 'productId'),
            quantity=Decimal(str(pick('quantity', default='0'))),
            name=pick('name', default=''),
            item_type=pick('item_type', 'itemType', default='product'),
            sale_type=pick('sale_type', 'saleType', default='quantity'),
            container_id=pick('container_id', 'containerId'),
            converted_quantity=Decimal(str(converted)) if converted is not None else None,
            unit_of_measurement_id=str(pick('unit_of_measurement_id', 'unitOfMeasurementId', default='')),
            base_unit=pick('base_unit', 'baseUnit'),
        )


@dataclass(frozen=True)
class SaleTransaction:
    """A completed sale: its unique number and its lines, in order."""

    transaction_number: str
    items: tuple[SaleItem, ...] = field(default_factory=tuple)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> SaleTransaction:
        number = data.get('transaction_number') or data.get('transactionNumber')
        return cls(
            transaction_number=str(number),
            items=tuple(SaleItem.from_dict(item) for item in data.get('items', [])),
        )
