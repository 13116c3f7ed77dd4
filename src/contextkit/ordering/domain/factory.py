"""Creation contract and factory for Order aggregates.

``CreateOrderData`` is the only shape the factory accepts.  Foreign
shapes are translated into it by the application layer first.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from decimal import Decimal

from contextkit.domain.money import DEFAULT_CURRENCY, Money

from .model import Order
from .values import Address


@dataclass(frozen=True)
class CreateOrderItemData:
    product_id: uuid.UUID
    product_name: str
    unit_price: Decimal
    quantity: int


@dataclass(frozen=True)
class CreateOrderData:
    customer_id: uuid.UUID
    shipping_address: Address | None = None
    currency: str = DEFAULT_CURRENCY
    items: tuple[CreateOrderItemData, ...] = field(default_factory=tuple)
    external_order_id: str | None = None
    notes: str | None = None


class OrderFactory:
    """Builds a draft order with all its items in one step.

    Either every item is accepted or the factory raises and no order
    exists.
    """

    def __init__(self, data: CreateOrderData) -> None:
        self._data = data

    def create(self) -> Order:
        data = self._data
        order = Order.create(
            data.customer_id,
            shipping_address=data.shipping_address,
            currency=data.currency,
            external_order_id=data.external_order_id,
            notes=data.notes,
        )
        for item in data.items:
            order.add_item(
                item.product_id,
                item.product_name,
                Money(item.unit_price, data.currency),
                item.quantity,
            )
        return order
