"""Consumer-side idempotency.

Delivery is at-least-once, so every consumer may see the same message
twice.  :func:`idempotent` wraps a handler so that a message id already
processed by the same consumer is acknowledged without running the
handler again.  The id is recorded only after the handler succeeded; a
failing handler can be redelivered.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from typing import Protocol, runtime_checkable

from contextkit.observability.logger import message_context, trace_scope

from .bus import IntegrationEventHandler
from .events import IntegrationEvent

logger = logging.getLogger(__name__)


@runtime_checkable
class IProcessedMessageStore(Protocol):
    """Records which message ids a consumer has handled."""

    async def has_processed(self, consumer: str, message_id: str) -> bool: ...

    async def mark_processed(self, consumer: str, message_id: str) -> None: ...


class InMemoryProcessedMessageStore:
    """Process-local inbox.  Sufficient for tests and the memory bus."""

    def __init__(self) -> None:
        self._seen: dict[str, set[str]] = defaultdict(set)

    async def has_processed(self, consumer: str, message_id: str) -> bool:
        return message_id in self._seen[consumer]

    async def mark_processed(self, consumer: str, message_id: str) -> None:
        self._seen[consumer].add(message_id)

    def processed_count(self, consumer: str) -> int:
        return len(self._seen[consumer])


def idempotent(
    handler: IntegrationEventHandler,
    store: IProcessedMessageStore,
    consumer: str,
) -> IntegrationEventHandler:
    """Wrap *handler* so each ``message_id`` is handled once per consumer."""

    async def wrapper(event: IntegrationEvent) -> None:
        with trace_scope(event.message_id), message_context(
            consumer=consumer,
            message_id=event.message_id,
            event_type=event.event_type,
        ):
            if await store.has_processed(consumer, event.message_id):
                logger.info(
                    "Duplicate %s %s ignored by %s",
                    event.event_type,
                    event.message_id,
                    consumer,
                )
                return
            await handler(event)
            await store.mark_processed(consumer, event.message_id)

    wrapper.__name__ = getattr(handler, "__name__", "handler")
    wrapper.__qualname__ = getattr(handler, "__qualname__", wrapper.__name__)
    return wrapper
