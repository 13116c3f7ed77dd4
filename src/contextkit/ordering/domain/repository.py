"""Order repository."""

from __future__ import annotations

from typing import Protocol

from contextkit.persistence.interfaces import IRepository
from contextkit.persistence.memory import InMemoryRepository

from .model import Order
from .specifications import ExternalOrderSpecification


class IOrderRepository(IRepository[Order], Protocol):
    async def get_by_external_id(self, external_order_id: str) -> Order | None: ...


class InMemoryOrderRepository(InMemoryRepository[Order]):
    entity_name = "Order"

    async def get_by_external_id(self, external_order_id: str) -> Order | None:
        found = await self.find(ExternalOrderSpecification(external_order_id))
        return found[0] if found else None
