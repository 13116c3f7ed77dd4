"""Storage collaborator protocols.

Repositories hand out aggregates and accept new ones; the unit of work is
the single commit point.  Committing persists every tracked aggregate and
then hands their drained domain events to the integration pipeline.
"""

from __future__ import annotations

from typing import Any, Protocol, TypeVar, runtime_checkable

from contextkit.domain.entity import AggregateRoot
from contextkit.domain.specification import Specification

A = TypeVar("A", bound=AggregateRoot[Any])


@runtime_checkable
class IUnitOfWork(Protocol):
    async def save_entities(self) -> bool:
        """Commit tracked aggregates, then dispatch their events."""
        ...

    def rollback(self) -> None:
        """Forget tracked aggregates without writing them."""
        ...


@runtime_checkable
class IRepository(Protocol[A]):
    @property
    def unit_of_work(self) -> IUnitOfWork: ...

    async def add(self, aggregate: A) -> A: ...

    async def get_by_id(self, aggregate_id: Any) -> A | None: ...

    async def get(self, aggregate_id: Any) -> A:
        """Like :meth:`get_by_id` but raises ``NotFoundError``."""
        ...

    async def find(self, specification: Specification[A]) -> list[A]: ...
