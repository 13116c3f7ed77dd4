"""Domain events raised by the Order aggregate."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field

from contextkit.core.ids import NIL_UUID
from contextkit.domain.events import DomainEvent
from contextkit.domain.money import Money

from .values import OrderId


@dataclass(frozen=True)
class OrderCreated(DomainEvent):
    order_id: OrderId = field(default_factory=OrderId.empty)
    customer_id: uuid.UUID = NIL_UUID
    external_order_id: str | None = None


@dataclass(frozen=True)
class OrderSubmitted(DomainEvent):
    order_id: OrderId = field(default_factory=OrderId.empty)
    customer_id: uuid.UUID = NIL_UUID
    total: Money = field(default_factory=Money.zero)
    item_count: int = 0


@dataclass(frozen=True)
class OrderPaid(DomainEvent):
    order_id: OrderId = field(default_factory=OrderId.empty)
    payment_id: str = ""


@dataclass(frozen=True)
class OrderShipped(DomainEvent):
    order_id: OrderId = field(default_factory=OrderId.empty)


@dataclass(frozen=True)
class OrderCancelled(DomainEvent):
    order_id: OrderId = field(default_factory=OrderId.empty)
    reason: str = ""
