"""Domain events raised by the Payment aggregate."""

from __future__ import annotations

from dataclasses import dataclass, field

from contextkit.domain.events import DomainEvent
from contextkit.domain.money import Money

from .values import PaymentId


@dataclass(frozen=True)
class PaymentCreated(DomainEvent):
    payment_id: PaymentId = field(default_factory=PaymentId.empty)
    order_id: str = ""
    amount: Money = field(default_factory=Money.zero)


@dataclass(frozen=True)
class PaymentCompleted(DomainEvent):
    payment_id: PaymentId = field(default_factory=PaymentId.empty)
    order_id: str = ""
    amount: Money = field(default_factory=Money.zero)
    transaction_ref: str = ""


@dataclass(frozen=True)
class PaymentFailed(DomainEvent):
    payment_id: PaymentId = field(default_factory=PaymentId.empty)
    order_id: str = ""
    reason: str = ""


@dataclass(frozen=True)
class PaymentCancelled(DomainEvent):
    payment_id: PaymentId = field(default_factory=PaymentId.empty)
    order_id: str = ""
    reason: str = ""
