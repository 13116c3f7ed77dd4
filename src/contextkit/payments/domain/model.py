"""Payment aggregate.

A payment is opened for exactly one order and settles once::

    PENDING -> COMPLETED | FAILED | CANCELLED

The order is referenced by its foreign identifier string; the payments
context never imports ordering types.
"""

from __future__ import annotations

from datetime import datetime

from contextkit.core.ids import utc_now
from contextkit.domain.entity import AggregateRoot
from contextkit.domain.money import Money

from .events import PaymentCancelled, PaymentCompleted, PaymentCreated, PaymentFailed
from .rules import (
    PaymentAmountMustBePositiveRule,
    PaymentMustBeInStatusRule,
    PaymentMustReferenceOrderRule,
)
from .values import PaymentId, PaymentStatus

_PENDING = (PaymentStatus.PENDING,)


class Payment(AggregateRoot[PaymentId]):
    def __init__(self, payment_id: PaymentId, order_id: str, amount: Money) -> None:
        super().__init__(payment_id)
        self.order_id = order_id
        self.amount = amount
        self.created_at: datetime = utc_now()
        self.settled_at: datetime | None = None
        self.transaction_ref: str | None = None
        self.failure_reason: str | None = None
        self._status = PaymentStatus.PENDING

    @classmethod
    def create(
        cls,
        order_id: str,
        amount: Money,
        payment_id: PaymentId | None = None,
    ) -> Payment:
        cls.check_rules([
            PaymentMustReferenceOrderRule(order_id),
            PaymentAmountMustBePositiveRule(amount.amount),
        ])
        payment = cls(payment_id or PaymentId.new(), order_id.strip(), amount)
        payment.raise_domain_event(
            PaymentCreated(payment_id=payment.id, order_id=payment.order_id, amount=amount)
        )
        return payment

    @property
    def status(self) -> PaymentStatus:
        return self._status

    def complete(self, transaction_ref: str) -> None:
        self.check_rule(PaymentMustBeInStatusRule(self._status, _PENDING, "complete"))
        self._status = PaymentStatus.COMPLETED
        self.transaction_ref = transaction_ref
        self.settled_at = utc_now()
        self.raise_domain_event(
            PaymentCompleted(
                payment_id=self.id,
                order_id=self.order_id,
                amount=self.amount,
                transaction_ref=transaction_ref,
            )
        )

    def fail(self, reason: str) -> None:
        self.check_rule(PaymentMustBeInStatusRule(self._status, _PENDING, "fail"))
        self._status = PaymentStatus.FAILED
        self.failure_reason = reason
        self.settled_at = utc_now()
        self.raise_domain_event(
            PaymentFailed(payment_id=self.id, order_id=self.order_id, reason=reason)
        )

    def cancel(self, reason: str = "") -> None:
        self.check_rule(PaymentMustBeInStatusRule(self._status, _PENDING, "cancel"))
        self._status = PaymentStatus.CANCELLED
        self.failure_reason = reason
        self.raise_domain_event(
            PaymentCancelled(payment_id=self.id, order_id=self.order_id, reason=reason)
        )
