from __future__ import annotations

from contextkit.domain.specification import Comparison, Operator, Predicate, Specification

from .model import Payment
from .values import PaymentStatus


class PaymentForOrderSpecification(Specification[Payment]):
    def __init__(self, order_id: str) -> None:
        self.order_id = order_id

    def to_predicate(self) -> Predicate:
        return Comparison("order_id", Operator.EQ, self.order_id)


class PendingPaymentSpecification(Specification[Payment]):
    def to_predicate(self) -> Predicate:
        return Comparison("status", Operator.EQ, PaymentStatus.PENDING)
