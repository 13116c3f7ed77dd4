"""Identity-equality building blocks: typed identifiers, entities, aggregates.

Design invariants
-----------------
1.  An entity's identifier is assigned once (at creation, or by the
    storage layer for a transient entity) and never reassigned.
2.  Two entities are equal iff they have the same concrete type and equal
    identifiers, and neither identifier is a default/unset value.  Two
    transient entities are never equal to each other.
3.  An aggregate's pending domain events are an in-memory buffer only:
    they are excluded from pickling/copying, so a persisted snapshot of
    an aggregate never carries them.
"""

from __future__ import annotations

import uuid
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from contextkit.core.ids import NIL_UUID, new_uuid, parse_uuid

from . import rules as _rules
from .events import DomainEvent
from .value_object import ValueObject

TId = TypeVar("TId")
_IdT = TypeVar("_IdT", bound="EntityId")


# ---------------------------------------------------------------------------
# Typed identifiers
# ---------------------------------------------------------------------------

@dataclass(frozen=True, eq=False)
class EntityId(ValueObject):
    """Typed UUID identifier.

    Subclass per aggregate (``OrderId``, ``PaymentId``) so identifiers of
    different aggregates never compare equal even when the UUIDs match.
    """

    value: uuid.UUID = NIL_UUID

    @classmethod
    def new(cls: type[_IdT]) -> _IdT:
        return cls(new_uuid())

    @classmethod
    def empty(cls: type[_IdT]) -> _IdT:
        return cls(NIL_UUID)

    @classmethod
    def parse(cls: type[_IdT], raw: object) -> _IdT:
        """Build an identifier from a UUID or its string form.

        Unparseable input yields the empty identifier.
        """
        if isinstance(raw, cls):
            return raw
        return cls(parse_uuid(raw) or NIL_UUID)

    @property
    def is_empty(self) -> bool:
        return self.value == NIL_UUID

    def __str__(self) -> str:
        return str(self.value)


def is_default_id(value: Any) -> bool:
    """True for identifiers that mean "not assigned yet"."""
    if value is None:
        return True
    if isinstance(value, EntityId):
        return value.is_empty
    if isinstance(value, uuid.UUID):
        return value == NIL_UUID
    if isinstance(value, (str, int)) and not isinstance(value, bool):
        return not value
    return False


# ---------------------------------------------------------------------------
# Entity
# ---------------------------------------------------------------------------

class Entity(Generic[TId]):
    """Mutable domain object compared by identity."""

    def __init__(self, entity_id: TId | None = None) -> None:
        self._id: TId | None = entity_id

    @property
    def id(self) -> TId | None:
        return self._id

    @property
    def is_transient(self) -> bool:
        return is_default_id(self._id)

    def _assign_id(self, entity_id: TId) -> None:
        """Give a transient entity its identifier.  Only once."""
        if not self.is_transient:
            raise ValueError(
                f"{type(self).__name__} already has identifier {self._id}"
            )
        if is_default_id(entity_id):
            raise ValueError("Cannot assign a default identifier")
        self._id = entity_id

    def __eq__(self, other: object) -> bool:
        if self is other:
            return True
        if other is None or type(other) is not type(self):
            return False
        if self.is_transient or other.is_transient:  # type: ignore[attr-defined]
            return False
        return self._id == other._id  # type: ignore[attr-defined]

    def __hash__(self) -> int:
        if self.is_transient:
            return object.__hash__(self)
        return hash((type(self), self._id))

    def __repr__(self) -> str:
        return f"{type(self).__name__}(id={self._id!s})"


# ---------------------------------------------------------------------------
# Aggregate root
# ---------------------------------------------------------------------------

class AggregateRoot(Entity[TId]):
    """Consistency boundary that records domain events.

    Every public mutator follows the same contract: check the rules that
    guard the transition, and only when none is broken change state and
    call :meth:`raise_domain_event` with the facts describing it.

    ``version`` is owned by the repository and used for optimistic
    concurrency when the unit of work commits.
    """

    def __init__(self, entity_id: TId | None = None) -> None:
        super().__init__(entity_id)
        self._domain_events: list[DomainEvent] = []
        self.version: int = 0

    # -- Events ------------------------------------------------------------

    @property
    def domain_events(self) -> tuple[DomainEvent, ...]:
        """Pending events, oldest first (read-only snapshot)."""
        return tuple(self._domain_events)

    def raise_domain_event(self, event: DomainEvent) -> None:
        """Append *event* to the pending buffer.

        Called from the aggregate's own methods after a successful
        transition.
        """
        self._domain_events.append(event)

    def pull_domain_events(self) -> list[DomainEvent]:
        """Return all pending events and clear the buffer."""
        drained = self._domain_events[:]
        self._domain_events.clear()
        return drained

    def clear_domain_events(self) -> None:
        self._domain_events.clear()

    # -- Rule helpers ------------------------------------------------------

    @staticmethod
    def check_rule(rule: _rules.IBusinessRule) -> None:
        _rules.check_rule(rule)

    @staticmethod
    def check_rules(rules: Iterable[_rules.IBusinessRule]) -> None:
        _rules.check_rules(*rules)

    # -- Persistence boundary ----------------------------------------------

    def __getstate__(self) -> dict[str, Any]:
        state = self.__dict__.copy()
        state.pop("_domain_events", None)
        return state

    def __setstate__(self, state: dict[str, Any]) -> None:
        self.__dict__.update(state)
        self._domain_events = []
