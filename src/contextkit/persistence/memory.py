"""In-memory repository and unit of work.

Stored aggregates are deep copies, so a caller's instance is never the
stored one and changes only become visible on commit.  Copies never carry
pending domain events (see ``AggregateRoot.__getstate__``).

Commit protocol (``InMemoryUnitOfWork.save_entities``):

1.  Check every tracked aggregate's version against the stored one;
    any mismatch raises ``ConcurrencyError`` and nothing is written.
2.  Write snapshots and bump versions.
3.  Drain pending events from each tracked aggregate, in tracking order.
4.  Hand them to the integration pipeline (publish-after-commit).
"""

from __future__ import annotations

import copy
import logging
from typing import Any, Generic, TypeVar

from contextkit.core.errors import ConcurrencyError, NotFoundError
from contextkit.domain.entity import AggregateRoot
from contextkit.domain.events import DomainEvent
from contextkit.domain.specification import Specification
from contextkit.integration.pipeline import IntegrationPipeline

logger = logging.getLogger(__name__)

A = TypeVar("A", bound=AggregateRoot[Any])


class InMemoryUnitOfWork:
    """Tracks aggregates handed out by its repositories."""

    def __init__(self, pipeline: IntegrationPipeline | None = None) -> None:
        self._pipeline = pipeline
        # Keyed by (repository id, aggregate id); insertion order is commit order.
        self._tracked: dict[tuple[int, Any], tuple[InMemoryRepository[Any], AggregateRoot[Any]]] = {}

    def track(self, repository: InMemoryRepository[Any], aggregate: AggregateRoot[Any]) -> None:
        self._tracked[(id(repository), aggregate.id)] = (repository, aggregate)

    @property
    def tracked_count(self) -> int:
        return len(self._tracked)

    async def save_entities(self) -> bool:
        entries = list(self._tracked.values())

        for repository, aggregate in entries:
            repository._check_version(aggregate)

        self._tracked.clear()
        events: list[DomainEvent] = []
        for repository, aggregate in entries:
            repository._persist(aggregate)
            events.extend(aggregate.pull_domain_events())

        logger.debug(
            "Committed %d aggregate(s), %d domain event(s)",
            len(entries),
            len(events),
        )

        if self._pipeline is not None and events:
            await self._pipeline.dispatch(events)
        return True

    def rollback(self) -> None:
        """Forget tracked aggregates without writing them."""
        self._tracked.clear()


class InMemoryRepository(Generic[A]):
    """Dictionary-backed repository for one aggregate type."""

    entity_name = "Aggregate"

    def __init__(self, unit_of_work: InMemoryUnitOfWork) -> None:
        self._uow = unit_of_work
        self._items: dict[Any, A] = {}

    @property
    def unit_of_work(self) -> InMemoryUnitOfWork:
        return self._uow

    async def add(self, aggregate: A) -> A:
        if aggregate.is_transient:
            raise ValueError(f"Cannot add transient {self.entity_name}")
        self._uow.track(self, aggregate)
        return aggregate

    async def get_by_id(self, aggregate_id: Any) -> A | None:
        stored = self._items.get(aggregate_id)
        if stored is None:
            return None
        aggregate = copy.deepcopy(stored)
        self._uow.track(self, aggregate)
        return aggregate

    async def get(self, aggregate_id: Any) -> A:
        aggregate = await self.get_by_id(aggregate_id)
        if aggregate is None:
            raise NotFoundError(self.entity_name, aggregate_id)
        return aggregate

    async def find(self, specification: Specification[A]) -> list[A]:
        matches = specification.filter(self._items.values())
        found = [copy.deepcopy(m) for m in matches]
        for aggregate in found:
            self._uow.track(self, aggregate)
        return found

    def __len__(self) -> int:
        return len(self._items)

    # -- Unit-of-work hooks ------------------------------------------------

    def _check_version(self, aggregate: A) -> None:
        stored = self._items.get(aggregate.id)
        actual = stored.version if stored is not None else 0
        if actual != aggregate.version:
            raise ConcurrencyError(
                self.entity_name, aggregate.id, aggregate.version, actual,
            )

    def _persist(self, aggregate: A) -> None:
        aggregate.version += 1
        self._items[aggregate.id] = copy.deepcopy(aggregate)
