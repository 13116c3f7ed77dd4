"""Event type tag → schema registry.

Maps wire ``eventType`` tags to their integration event models.
Used for serialization/deserialization on every transport.

Contracts register themselves with :func:`register_event_type` when
``contextkit.contracts`` is imported.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from typing import Any, TypeVar

from contextkit.core.errors import UnknownEventTypeError

from .events import IntegrationEvent

logger = logging.getLogger(__name__)

_E = TypeVar("_E", bound=type[IntegrationEvent])

# Flat map: event type tag → event class (for deserialization)
EVENT_TYPE_MAP: dict[str, type[IntegrationEvent]] = {}


def register_event_type(cls: _E) -> _E:
    """Class decorator: make *cls* decodable from the wire."""
    existing = EVENT_TYPE_MAP.get(cls.event_type)
    if existing is not None and existing is not cls:
        raise ValueError(
            f"Event type {cls.event_type!r} already registered to "
            f"{existing.__name__}"
        )
    EVENT_TYPE_MAP[cls.event_type] = cls
    return cls


def get_event_class(event_type: str) -> type[IntegrationEvent] | None:
    """Look up event class by wire tag."""
    return EVENT_TYPE_MAP.get(event_type)


def decode(wire: Mapping[str, Any]) -> IntegrationEvent:
    """Rebuild an integration event from its wire dict.

    Raises
    ------
    UnknownEventTypeError
        If the tag is missing or not registered.
    """
    event_type = wire.get("eventType")
    if not event_type:
        raise UnknownEventTypeError(f"Wire message has no eventType: {dict(wire)}")
    cls = get_event_class(event_type)
    if cls is None:
        raise UnknownEventTypeError(f"Unknown event type: {event_type}")
    return cls.from_wire_fields(
        message_id=wire["messageId"],
        occurred_at=wire["occurredAt"],
        payload=dict(wire.get("payload") or {}),
    )


def dumps(event: IntegrationEvent) -> str:
    """Serialize *event* to a JSON wire string."""
    return json.dumps(event.to_wire(), sort_keys=True)


def loads(raw: str | bytes) -> IntegrationEvent:
    """Deserialize a JSON wire string."""
    return decode(json.loads(raw))
