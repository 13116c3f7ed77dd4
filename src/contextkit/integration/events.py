"""Integration events: the transport-stable, cross-boundary messages.

An integration event is derived from exactly one domain event.  It carries
only portable data (strings, numbers, decimals, timestamps), never
references to aggregates or internal value objects.

Wire shape (stable across transports)::

    {
        "messageId": "<uuid4>",
        "occurredAt": "<ISO-8601 UTC>",
        "eventType": "<context>.<name>.v<N>",
        "payload": {...}
    }

``eventType`` includes a schema version; a breaking payload change gets a
new class with a bumped tag, never an edit of the old one.
"""

from __future__ import annotations

import re
from datetime import datetime
from typing import Any, ClassVar

from pydantic import BaseModel, ConfigDict, Field

from contextkit.core.ids import new_id as _uuid
from contextkit.core.ids import utc_now as _now

EVENT_TYPE_PATTERN = re.compile(r"^[a-z][a-z0-9_]*\.[a-z][a-z0-9_]*\.v(\d+)$")

_ENVELOPE_FIELDS = frozenset({"message_id", "occurred_at"})


class IntegrationEvent(BaseModel):
    """Base for all integration events.

    Subclasses declare ``event_type`` and their payload fields::

        class OrderSubmittedIntegrationEvent(IntegrationEvent):
            event_type: ClassVar[str] = "ordering.order_submitted.v1"

            order_id: str
            total_amount: Decimal
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    event_type: ClassVar[str] = ""

    message_id: str = Field(default_factory=_uuid)
    occurred_at: datetime = Field(default_factory=_now)

    @classmethod
    def __pydantic_init_subclass__(cls, **kwargs: Any) -> None:
        super().__pydantic_init_subclass__(**kwargs)
        if not EVENT_TYPE_PATTERN.match(cls.event_type):
            raise TypeError(
                f"{cls.__name__}.event_type must look like "
                f"'<context>.<name>.v<N>', got {cls.event_type!r}"
            )

    @classmethod
    def schema_version(cls) -> int:
        match = EVENT_TYPE_PATTERN.match(cls.event_type)
        return int(match.group(1)) if match else 0

    def payload(self) -> dict[str, Any]:
        """Portable payload fields (JSON-safe)."""
        return self.model_dump(mode="json", exclude=set(_ENVELOPE_FIELDS))

    def to_wire(self) -> dict[str, Any]:
        """Envelope + payload in the stable wire shape."""
        return {
            "messageId": self.message_id,
            "occurredAt": self.occurred_at.isoformat(),
            "eventType": self.event_type,
            "payload": self.payload(),
        }

    @classmethod
    def from_wire_fields(
        cls,
        message_id: str,
        occurred_at: str | datetime,
        payload: dict[str, Any],
    ) -> IntegrationEvent:
        """Rebuild an event of this class from decoded wire fields."""
        return cls.model_validate(
            {**payload, "message_id": message_id, "occurred_at": occurred_at}
        )
