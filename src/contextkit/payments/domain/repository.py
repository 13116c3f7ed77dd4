"""Payment repository."""

from __future__ import annotations

from typing import Protocol

from contextkit.persistence.interfaces import IRepository
from contextkit.persistence.memory import InMemoryRepository

from .model import Payment
from .specifications import PaymentForOrderSpecification


class IPaymentRepository(IRepository[Payment], Protocol):
    async def get_by_order_id(self, order_id: str) -> Payment | None: ...


class InMemoryPaymentRepository(InMemoryRepository[Payment]):
    entity_name = "Payment"

    async def get_by_order_id(self, order_id: str) -> Payment | None:
        found = await self.find(PaymentForOrderSpecification(order_id))
        return found[0] if found else None
