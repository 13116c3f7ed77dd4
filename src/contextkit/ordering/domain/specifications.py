"""Query specifications over Order aggregates.

Field names match the ``Order`` read properties and the columns mapped in
``contextkit.ordering.sql``.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timedelta
from decimal import Decimal

from contextkit.core.ids import utc_now
from contextkit.domain.specification import (
    Comparison,
    Conjunction,
    Operator,
    Predicate,
    Specification,
)

from .model import Order
from .values import OrderStatus


class ReadyForProcessingSpecification(Specification[Order]):
    """Submitted orders that have at least one line."""

    def to_predicate(self) -> Predicate:
        return Conjunction.of(
            Comparison("status", Operator.EQ, OrderStatus.SUBMITTED),
            Comparison("item_count", Operator.GT, 0),
        )


class ReadyForShipmentSpecification(Specification[Order]):
    def to_predicate(self) -> Predicate:
        return Comparison("status", Operator.EQ, OrderStatus.PAID)


class OverdueOrderSpecification(Specification[Order]):
    """Orders submitted more than *hours* ago and still unpaid.

    The cut-off is fixed when the specification is built, so the
    in-memory and compiled forms use the same instant.
    """

    def __init__(self, hours: int, as_of: datetime | None = None) -> None:
        self.hours = hours
        self.cutoff = (as_of or utc_now()) - timedelta(hours=hours)

    def to_predicate(self) -> Predicate:
        return Conjunction.of(
            Comparison("status", Operator.EQ, OrderStatus.SUBMITTED),
            Comparison("submitted_at", Operator.LT, self.cutoff),
        )


class MinimumOrderValueSpecification(Specification[Order]):
    def __init__(self, minimum: Decimal) -> None:
        self.minimum = Decimal(str(minimum))

    def to_predicate(self) -> Predicate:
        return Comparison("total_amount", Operator.GE, self.minimum)


class CustomerOrdersSpecification(Specification[Order]):
    def __init__(self, customer_id: uuid.UUID) -> None:
        self.customer_id = customer_id

    def to_predicate(self) -> Predicate:
        return Comparison("customer_id", Operator.EQ, self.customer_id)


class ExternalOrderSpecification(Specification[Order]):
    """Orders imported from a foreign system under *external_order_id*."""

    def __init__(self, external_order_id: str) -> None:
        self.external_order_id = external_order_id

    def to_predicate(self) -> Predicate:
        return Comparison("external_order_id", Operator.EQ, self.external_order_id)
