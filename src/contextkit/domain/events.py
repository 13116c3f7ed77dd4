"""Base type for domain events.

Design invariants
-----------------
1.  Every event is **immutable** (``frozen=True``).
2.  ``event_id`` is a UUID4 generated at creation time.
3.  ``occurred_at`` is the UTC creation time.
4.  Events describe *what* happened using identifiers and the minimal
    data a subscriber needs; they never hold references to aggregates or
    child entities.
5.  Events are raised only from inside aggregate methods and stay inside
    their bounded context.  Crossing a boundary requires translation to
    an integration event (see ``contextkit.integration``).

Concrete events live next to the aggregate that raises them and declare
their fields with defaults, like the base::

    @dataclass(frozen=True)
    class OrderSubmitted(DomainEvent):
        order_id: OrderId = field(default_factory=OrderId.empty)
        total: Money = ...
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

from contextkit.core.ids import new_id as _uuid
from contextkit.core.ids import utc_now as _now


@dataclass(frozen=True)
class DomainEvent:
    """Immutable base for every domain event.

    Shared fields
    ~~~~~~~~~~~~~
    event_id        Unique identity (UUID4).
    occurred_at     UTC creation time.
    """

    event_id: str = field(default_factory=_uuid)
    occurred_at: datetime = field(default_factory=_now)

    @property
    def event_name(self) -> str:
        return type(self).__name__
