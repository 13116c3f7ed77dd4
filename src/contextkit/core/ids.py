"""Canonical ID and timestamp factories.

All modules import from here instead of defining local _uuid()/_now() copies.

ID Categories
-------------
1. Aggregate identifiers: ``uuid.UUID`` wrapped in a typed ``EntityId``.
2. Message identifiers: UUID v4 strings (integration ``message_id``).
3. External identifiers: opaque strings assigned by foreign systems.

Timestamp Rule
--------------
All timestamps are ``datetime`` with ``tzinfo=timezone.utc``, never naive.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone

#: The all-zero UUID.  Treated as "no identifier" everywhere.
NIL_UUID = uuid.UUID(int=0)


def new_id() -> str:
    """Generate a new UUID v4 string.  Use for message identifiers."""
    return str(uuid.uuid4())


def new_uuid() -> uuid.UUID:
    """Generate a new UUID v4.  Use for aggregate identifiers."""
    return uuid.uuid4()


def utc_now() -> datetime:
    """Return the current UTC time as a timezone-aware datetime."""
    return datetime.now(timezone.utc)


def parse_uuid(raw: object) -> uuid.UUID | None:
    """Parse *raw* into a UUID, returning ``None`` if it is not one.

    Accepts ``UUID`` instances and their string forms.  The nil UUID
    parses to ``None`` as it never identifies anything.
    """
    if isinstance(raw, uuid.UUID):
        value = raw
    elif isinstance(raw, str) and raw.strip():
        try:
            value = uuid.UUID(raw.strip())
        except ValueError:
            return None
    else:
        return None
    return None if value == NIL_UUID else value
