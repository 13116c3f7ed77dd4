"""Order aggregate.

Lifecycle::

    DRAFT -> SUBMITTED -> PAID -> SHIPPED
      |          |
      +----------+--> CANCELLED

Items can only be changed while the order is a draft.  Each status
transition raises exactly one domain event; adding or removing items
raises none.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from decimal import Decimal

from contextkit.core.ids import utc_now
from contextkit.domain.entity import AggregateRoot, Entity
from contextkit.domain.money import DEFAULT_CURRENCY, CurrencyMustMatchRule, Money

from .events import OrderCancelled, OrderCreated, OrderPaid, OrderShipped, OrderSubmitted
from .rules import (
    ItemPriceMustBePositiveRule,
    ItemPriceMustMatchExistingLineRule,
    ItemQuantityMustBePositiveRule,
    OrderCanBeCancelledRule,
    OrderCustomerMustBeKnownRule,
    OrderItemMustExistRule,
    OrderMustBeInStatusRule,
    OrderMustHaveItemsRule,
    ProductNameMustBeProvidedRule,
)
from .values import Address, OrderId, OrderItemId, OrderStatus

_CANCELLABLE = (OrderStatus.DRAFT, OrderStatus.SUBMITTED)


class OrderItem(Entity[OrderItemId]):
    """Order line.  Mutated only through its :class:`Order`."""

    def __init__(
        self,
        item_id: OrderItemId,
        product_id: uuid.UUID,
        product_name: str,
        unit_price: Money,
        quantity: int,
    ) -> None:
        super().__init__(item_id)
        self._product_id = product_id
        self._product_name = product_name
        self._unit_price = unit_price
        self._quantity = quantity

    @property
    def product_id(self) -> uuid.UUID:
        return self._product_id

    @property
    def product_name(self) -> str:
        return self._product_name

    @property
    def unit_price(self) -> Money:
        return self._unit_price

    @property
    def quantity(self) -> int:
        return self._quantity

    @property
    def line_total(self) -> Money:
        return self._unit_price.multiply(self._quantity)

    def _add_quantity(self, quantity: int) -> None:
        self._quantity += quantity


class Order(AggregateRoot[OrderId]):
    def __init__(
        self,
        order_id: OrderId,
        customer_id: uuid.UUID,
        *,
        shipping_address: Address | None = None,
        currency: str = DEFAULT_CURRENCY,
        external_order_id: str | None = None,
        notes: str | None = None,
    ) -> None:
        super().__init__(order_id)
        self._customer_id = customer_id
        self._shipping_address = shipping_address
        self._currency = currency.upper()
        self._external_order_id = external_order_id
        self._notes = notes
        self._created_at: datetime = utc_now()
        self._submitted_at: datetime | None = None
        self._paid_at: datetime | None = None
        self._payment_id: str | None = None
        self._cancellation_reason: str | None = None
        self._status = OrderStatus.DRAFT
        self._items: list[OrderItem] = []

    @classmethod
    def create(
        cls,
        customer_id: uuid.UUID,
        *,
        shipping_address: Address | None = None,
        currency: str = DEFAULT_CURRENCY,
        external_order_id: str | None = None,
        notes: str | None = None,
        order_id: OrderId | None = None,
    ) -> Order:
        """Open a new draft order."""
        cls.check_rule(OrderCustomerMustBeKnownRule(customer_id))
        order = cls(
            order_id or OrderId.new(),
            customer_id,
            shipping_address=shipping_address,
            currency=currency,
            external_order_id=external_order_id,
            notes=notes,
        )
        order.raise_domain_event(
            OrderCreated(
                order_id=order.id,
                customer_id=customer_id,
                external_order_id=external_order_id,
            )
        )
        return order

    # -- Read model --------------------------------------------------------

    @property
    def customer_id(self) -> uuid.UUID:
        return self._customer_id

    @property
    def shipping_address(self) -> Address | None:
        return self._shipping_address

    @property
    def currency(self) -> str:
        return self._currency

    @property
    def external_order_id(self) -> str | None:
        return self._external_order_id

    @property
    def notes(self) -> str | None:
        return self._notes

    @property
    def created_at(self) -> datetime:
        return self._created_at

    @property
    def submitted_at(self) -> datetime | None:
        return self._submitted_at

    @property
    def paid_at(self) -> datetime | None:
        return self._paid_at

    @property
    def payment_id(self) -> str | None:
        return self._payment_id

    @property
    def cancellation_reason(self) -> str | None:
        return self._cancellation_reason

    @property
    def status(self) -> OrderStatus:
        return self._status

    @property
    def items(self) -> tuple[OrderItem, ...]:
        return tuple(self._items)

    @property
    def item_count(self) -> int:
        return len(self._items)

    @property
    def total(self) -> Money:
        total = Money.zero(self._currency)
        for item in self._items:
            total = total + item.line_total
        return total

    @property
    def total_amount(self) -> Decimal:
        return self.total.amount

    # -- Items -------------------------------------------------------------

    def add_item(
        self,
        product_id: uuid.UUID,
        product_name: str,
        unit_price: Money,
        quantity: int,
    ) -> OrderItem:
        """Add a line, or increase the quantity of an existing product.

        Merging requires the same unit price as the existing line.
        """
        self.check_rules([
            OrderMustBeInStatusRule(self._status, (OrderStatus.DRAFT,), "add items to"),
            ProductNameMustBeProvidedRule(product_name),
            ItemPriceMustBePositiveRule(unit_price.amount),
            ItemQuantityMustBePositiveRule(quantity),
            CurrencyMustMatchRule(self._currency, unit_price.currency),
        ])

        existing = self._find_item_by_product(product_id)
        self.check_rule(ItemPriceMustMatchExistingLineRule(
            existing.unit_price if existing is not None else None, unit_price,
        ))
        if existing is not None:
            existing._add_quantity(quantity)
            return existing

        item = OrderItem(
            OrderItemId.new(), product_id, product_name.strip(), unit_price, quantity,
        )
        self._items.append(item)
        return item

    def remove_item(self, item_id: OrderItemId) -> None:
        item = next((i for i in self._items if i.id == item_id), None)
        self.check_rules([
            OrderMustBeInStatusRule(self._status, (OrderStatus.DRAFT,), "remove items from"),
            OrderItemMustExistRule(item is not None),
        ])
        self._items.remove(item)  # type: ignore[arg-type]

    def _find_item_by_product(self, product_id: uuid.UUID) -> OrderItem | None:
        for item in self._items:
            if item.product_id == product_id:
                return item
        return None

    # -- Transitions -------------------------------------------------------

    def submit(self) -> None:
        self.check_rules([
            OrderMustBeInStatusRule(self._status, (OrderStatus.DRAFT,), "submit"),
            OrderMustHaveItemsRule(self.item_count),
        ])
        self._status = OrderStatus.SUBMITTED
        self._submitted_at = utc_now()
        self.raise_domain_event(
            OrderSubmitted(
                order_id=self.id,
                customer_id=self._customer_id,
                total=self.total,
                item_count=self.item_count,
            )
        )

    def mark_paid(self, payment_id: str) -> None:
        self.check_rule(
            OrderMustBeInStatusRule(self._status, (OrderStatus.SUBMITTED,), "mark as paid")
        )
        self._status = OrderStatus.PAID
        self._paid_at = utc_now()
        self._payment_id = payment_id
        self.raise_domain_event(OrderPaid(order_id=self.id, payment_id=payment_id))

    def ship(self) -> None:
        self.check_rule(
            OrderMustBeInStatusRule(self._status, (OrderStatus.PAID,), "ship")
        )
        self._status = OrderStatus.SHIPPED
        self.raise_domain_event(OrderShipped(order_id=self.id))

    def cancel(self, reason: str = "") -> None:
        self.check_rule(OrderCanBeCancelledRule(self._status, _CANCELLABLE))
        self._status = OrderStatus.CANCELLED
        self._cancellation_reason = reason
        self.raise_domain_event(OrderCancelled(order_id=self.id, reason=reason))
