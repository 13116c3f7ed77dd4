"""Event bus abstraction and in-memory implementation.

Design goals
------------
1.  **Tag-routed dispatching**: subscribers register for a wire
    ``eventType`` tag.  When an integration event is published the bus
    routes it to every handler registered for ``event.event_type``.
2.  **Transport fidelity**: the in-memory bus round-trips every event
    through the wire encoding before delivery (``serialize=True``), so a
    consumer never shares an object with the producer and a payload that
    is not portable fails in tests the same way it would on Redis.
3.  **Handler isolation**: a failing handler never affects the publisher
    or other handlers; failures are counted and dead-lettered.

This module provides:

*  ``IEventBus`` - the protocol (interface).
*  ``InMemoryEventBus`` - deterministic implementation for tests and
   single-process deployments.
*  ``create_event_bus()`` - factory driven by ``BusConfig``.
"""

from __future__ import annotations

import logging
import time
from collections import defaultdict
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Protocol, runtime_checkable

from contextkit.core.config import BusConfig
from contextkit.core.enums import BusBackend

from .events import IntegrationEvent
from .schemas import decode

if TYPE_CHECKING:
    from .redis_streams import RedisStreamsBus

logger = logging.getLogger(__name__)

# Type alias for async integration event handlers.
IntegrationEventHandler = Callable[[IntegrationEvent], Awaitable[None]]

ErrorCallback = Callable[[str, str, str, Exception], None]


# ---------------------------------------------------------------------------
# Protocol
# ---------------------------------------------------------------------------

@runtime_checkable
class IEventBus(Protocol):
    """Publish/subscribe bus for integration events.

    ``publish`` is fire-and-forget from the producer's viewpoint: it
    returns once the transport accepted the message and raises only when
    the transport itself failed.
    """

    async def publish(self, event: IntegrationEvent) -> None:
        """Hand *event* to the transport."""
        ...

    async def subscribe(
        self,
        event_type: str,
        handler: IntegrationEventHandler,
        group: str = "default",
    ) -> None:
        """Register *handler* for events tagged *event_type*."""
        ...

    async def start(self) -> None: ...
    async def stop(self) -> None: ...


# ---------------------------------------------------------------------------
# In-memory implementation
# ---------------------------------------------------------------------------

@dataclass
class MemoryDeadLetter:
    """Record of a handler failure in the memory bus."""

    event_type: str
    group: str
    message_id: str
    error: str
    timestamp: float = field(default_factory=time.monotonic)


class InMemoryEventBus:
    """Deterministic, in-process event bus.

    Handlers run sequentially in subscription order inside ``publish``.

    Parameters
    ----------
    serialize
        When ``True`` (default), each delivery gets a fresh copy decoded
        from the wire form.
    on_handler_error
        Optional callback ``(event_type, group, message_id, exc)``
        invoked when a handler raises.
    """

    def __init__(
        self,
        *,
        serialize: bool = True,
        on_handler_error: ErrorCallback | None = None,
    ) -> None:
        self._handlers: dict[
            str, list[tuple[str, IntegrationEventHandler]]
        ] = defaultdict(list)
        self._history: list[IntegrationEvent] = []
        self._serialize = serialize
        self._on_handler_error = on_handler_error
        self._running = False

        # Observability
        self._error_counts: dict[str, int] = defaultdict(int)
        self._dead_letters: list[MemoryDeadLetter] = []
        self._messages_processed: int = 0

    # -- Lifecycle ---------------------------------------------------------

    async def start(self) -> None:
        self._running = True

    async def stop(self) -> None:
        self._running = False

    # -- Core API ----------------------------------------------------------

    async def publish(self, event: IntegrationEvent) -> None:
        """Deliver *event* to every handler subscribed to its tag."""
        self._history.append(event)

        for group, handler in list(self._handlers.get(event.event_type, [])):
            delivered = decode(event.to_wire()) if self._serialize else event
            try:
                await handler(delivered)
                self._messages_processed += 1
            except Exception as exc:
                error_key = f"{event.event_type}/{group}"
                self._error_counts[error_key] += 1
                self._dead_letters.append(
                    MemoryDeadLetter(
                        event_type=event.event_type,
                        group=group,
                        message_id=event.message_id,
                        error=str(exc),
                    )
                )
                logger.exception(
                    "Handler error on event_type=%s group=%s message_id=%s",
                    event.event_type,
                    group,
                    event.message_id,
                )

                if self._on_handler_error is not None:
                    try:
                        self._on_handler_error(
                            event.event_type, group, event.message_id, exc,
                        )
                    except Exception:
                        logger.warning(
                            "on_handler_error callback failed",
                            exc_info=True,
                        )

    async def subscribe(
        self,
        event_type: str,
        handler: IntegrationEventHandler,
        group: str = "default",
    ) -> None:
        """Register *handler* for *event_type* under a consumer group name."""
        self._handlers[event_type].append((group, handler))

    # -- Observability -----------------------------------------------------

    def get_history(self, event_type: str | None = None) -> list[IntegrationEvent]:
        """Return published events, optionally filtered by tag."""
        if event_type is None:
            return list(self._history)
        return [e for e in self._history if e.event_type == event_type]

    def clear_history(self) -> None:
        """Clear the event history (testing helper)."""
        self._history.clear()

    def get_error_counts(self) -> dict[str, int]:
        """Return per-event-type/group error counts."""
        return dict(self._error_counts)

    @property
    def dead_letters(self) -> list[MemoryDeadLetter]:
        return list(self._dead_letters)

    def clear_dead_letters(self) -> list[MemoryDeadLetter]:
        """Drain and return dead letters."""
        drained = self._dead_letters[:]
        self._dead_letters.clear()
        return drained

    @property
    def messages_processed(self) -> int:
        return self._messages_processed


# ---------------------------------------------------------------------------
# Factory
# ---------------------------------------------------------------------------

def create_event_bus(
    config: BusConfig,
    on_handler_error: ErrorCallback | None = None,
) -> InMemoryEventBus | RedisStreamsBus:
    """Create an event bus for the configured backend.

    - MEMORY: InMemoryEventBus (no external deps, deterministic)
    - REDIS: RedisStreamsBus (persistent, at-least-once)
    """
    if config.backend == BusBackend.MEMORY:
        return InMemoryEventBus(on_handler_error=on_handler_error)

    from .redis_streams import RedisStreamsBus

    return RedisStreamsBus(
        redis_url=config.redis_url,
        stream_prefix=config.stream_prefix,
        max_stream_length=config.max_stream_length,
        block_ms=config.block_ms,
        batch_size=config.batch_size,
        max_handler_retries=config.max_handler_retries,
        on_handler_error=on_handler_error,
    )
