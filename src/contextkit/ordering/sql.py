"""SQLAlchemy read model for orders.

One row per order, written by :func:`save_order`.  Column names match the
fields referenced by ``contextkit.ordering.domain.specifications`` so any
order specification can be compiled to a where-clause on this table.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any

from sqlalchemy import DateTime, Index, Integer, Numeric, String, select
from sqlalchemy.orm import DeclarativeBase, Mapped, Session, mapped_column
from sqlalchemy.sql.elements import ColumnElement

from contextkit.domain.specification import Specification
from contextkit.ordering.domain.model import Order
from contextkit.persistence.sql import where_clause


class Base(DeclarativeBase):
    """Declarative base for the ordering read model."""

    pass


class OrderRecord(Base):
    __tablename__ = "orders"

    order_id: Mapped[str] = mapped_column(String(36), primary_key=True)
    customer_id: Mapped[str] = mapped_column(String(36), nullable=False)
    external_order_id: Mapped[str | None] = mapped_column(
        String(128), unique=True, nullable=True,
    )
    status: Mapped[str] = mapped_column(String(16), nullable=False)
    currency: Mapped[str] = mapped_column(String(3), nullable=False)
    total_amount: Mapped[Decimal] = mapped_column(Numeric(18, 2), nullable=False)
    item_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    submitted_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True,
    )

    __table_args__ = (
        Index("ix_orders_customer_id", "customer_id"),
        Index("ix_orders_status", "status"),
        Index("ix_orders_submitted_at", "submitted_at"),
    )

    def __repr__(self) -> str:
        return f"<OrderRecord(order_id={self.order_id!r}, status={self.status!r})>"


#: Specification field name -> column.
ORDER_COLUMNS: dict[str, ColumnElement[Any]] = {
    "customer_id": OrderRecord.__table__.c.customer_id,
    "external_order_id": OrderRecord.__table__.c.external_order_id,
    "status": OrderRecord.__table__.c.status,
    "currency": OrderRecord.__table__.c.currency,
    "total_amount": OrderRecord.__table__.c.total_amount,
    "item_count": OrderRecord.__table__.c.item_count,
    "created_at": OrderRecord.__table__.c.created_at,
    "submitted_at": OrderRecord.__table__.c.submitted_at,
}


def order_to_record(order: Order) -> OrderRecord:
    """Project an :class:`Order` onto its read-model row."""
    return OrderRecord(
        order_id=str(order.id),
        customer_id=str(order.customer_id),
        external_order_id=order.external_order_id,
        status=order.status.value,
        currency=order.currency,
        total_amount=order.total_amount,
        item_count=order.item_count,
        version=order.version,
        created_at=order.created_at,
        submitted_at=order.submitted_at,
    )


def save_order(session: Session, order: Order) -> None:
    """Insert or refresh the row for *order*."""
    session.merge(order_to_record(order))


def find_order_ids(session: Session, specification: Specification[Order]) -> list[str]:
    """Ids of the orders whose row satisfies *specification*."""
    stmt = (
        select(OrderRecord.order_id)
        .where(where_clause(specification, ORDER_COLUMNS))
        .order_by(OrderRecord.created_at)
    )
    return list(session.scalars(stmt))
