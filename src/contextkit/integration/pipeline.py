"""Domain event → integration event translation and dispatch.

The pipeline is invoked by the unit of work *after* it committed.  For
every drained domain event, in order, it looks up the translator
registered for the event's type and publishes the resulting integration
event on the bus.

Failure semantics
-----------------
- Events with no registered translator stay inside their bounded context
  and are skipped.
- A failed publish is retried in-process up to ``max_publish_attempts``
  total attempts.  After that the event is recorded as undelivered and
  ``on_publish_failure`` is invoked; the error is never raised back to
  the committer, because the state change it describes already happened.
- Cancellation propagates: the committed state stays committed, the
  remaining events are simply not published.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from typing import TypeVar

from contextkit.domain.events import DomainEvent
from contextkit.observability.logger import message_context

from .bus import IEventBus
from .events import IntegrationEvent

logger = logging.getLogger(__name__)

_D = TypeVar("_D", bound=DomainEvent)

Translator = Callable[[DomainEvent], IntegrationEvent]
PublishFailureCallback = Callable[[IntegrationEvent, Exception], None]


@dataclass
class UndeliveredMessage:
    """An integration event whose publication was given up on."""

    event: IntegrationEvent
    source_event_id: str
    error: str
    attempts: int
    timestamp: float = field(default_factory=time.monotonic)


class IntegrationPipeline:
    """Translate drained domain events and publish them.

    Parameters
    ----------
    bus
        Transport the integration events are published on.
    max_publish_attempts
        Total attempts per event (first try included).
    retry_delay_ms
        Pause between attempts.
    on_publish_failure
        Optional escalation hook ``(event, exc)`` called once an event
        exhausted its attempts.
    """

    def __init__(
        self,
        bus: IEventBus,
        *,
        max_publish_attempts: int = 2,
        retry_delay_ms: int = 0,
        on_publish_failure: PublishFailureCallback | None = None,
    ) -> None:
        if max_publish_attempts < 1:
            raise ValueError("max_publish_attempts must be at least 1")
        self._bus = bus
        self._max_attempts = max_publish_attempts
        self._retry_delay = retry_delay_ms / 1000.0
        self._on_publish_failure = on_publish_failure
        self._translators: dict[type[DomainEvent], Translator] = {}
        self._undelivered: list[UndeliveredMessage] = []

    @property
    def bus(self) -> IEventBus:
        return self._bus

    # -- Registration ------------------------------------------------------

    def register(
        self,
        domain_event_type: type[_D],
        translator: Callable[[_D], IntegrationEvent],
    ) -> None:
        """Register the single translator for *domain_event_type*."""
        if domain_event_type in self._translators:
            raise ValueError(
                f"Translator for {domain_event_type.__name__} already registered"
            )
        self._translators[domain_event_type] = translator  # type: ignore[assignment]

    def translates(
        self, domain_event_type: type[_D],
    ) -> Callable[[Callable[[_D], IntegrationEvent]], Callable[[_D], IntegrationEvent]]:
        """Decorator form of :meth:`register`."""

        def decorator(
            fn: Callable[[_D], IntegrationEvent],
        ) -> Callable[[_D], IntegrationEvent]:
            self.register(domain_event_type, fn)
            return fn

        return decorator

    def has_translator(self, domain_event_type: type[DomainEvent]) -> bool:
        return domain_event_type in self._translators

    # -- Translation -------------------------------------------------------

    def translate(self, event: DomainEvent) -> IntegrationEvent | None:
        """Map *event* to its integration event, or ``None`` if internal."""
        translator = self._translators.get(type(event))
        if translator is None:
            logger.debug(
                "No translator for %s; event stays in its context",
                event.event_name,
            )
            return None

        integration_event = translator(event)
        if not isinstance(integration_event, IntegrationEvent):
            raise TypeError(
                f"Translator for {event.event_name} returned "
                f"{type(integration_event).__name__}, expected IntegrationEvent"
            )
        return integration_event

    # -- Dispatch ----------------------------------------------------------

    async def dispatch(self, events: Iterable[DomainEvent]) -> list[IntegrationEvent]:
        """Translate and publish *events* in order.

        Returns the integration events that were accepted by the bus.
        """
        published: list[IntegrationEvent] = []
        for event in events:
            integration_event = self.translate(event)
            if integration_event is None:
                continue
            if await self._publish(integration_event, event):
                published.append(integration_event)
        return published

    async def _publish(
        self, integration_event: IntegrationEvent, source: DomainEvent,
    ) -> bool:
        with message_context(
            message_id=integration_event.message_id,
            event_type=integration_event.event_type,
        ):
            last_error: Exception | None = None
            for attempt in range(1, self._max_attempts + 1):
                try:
                    await self._bus.publish(integration_event)
                except asyncio.CancelledError:
                    raise
                except Exception as exc:
                    last_error = exc
                    logger.warning(
                        "Publish of %s %s failed (attempt %d/%d): %s",
                        integration_event.event_type,
                        integration_event.message_id,
                        attempt,
                        self._max_attempts,
                        exc,
                    )
                    if attempt < self._max_attempts and self._retry_delay > 0:
                        await asyncio.sleep(self._retry_delay)
                    continue

                logger.debug(
                    "Published %s %s (from %s)",
                    integration_event.event_type,
                    integration_event.message_id,
                    source.event_name,
                )
                return True

            assert last_error is not None
            self._escalate(integration_event, source, last_error)
            return False

    def _escalate(
        self,
        integration_event: IntegrationEvent,
        source: DomainEvent,
        error: Exception,
    ) -> None:
        logger.error(
            "Giving up on %s %s after %d attempts; committed state is kept",
            integration_event.event_type,
            integration_event.message_id,
            self._max_attempts,
        )
        self._undelivered.append(
            UndeliveredMessage(
                event=integration_event,
                source_event_id=source.event_id,
                error=str(error),
                attempts=self._max_attempts,
            )
        )
        if self._on_publish_failure is not None:
            try:
                self._on_publish_failure(integration_event, error)
            except Exception:
                logger.warning("on_publish_failure callback failed", exc_info=True)

    # -- Observability -----------------------------------------------------

    @property
    def undelivered(self) -> list[UndeliveredMessage]:
        return list(self._undelivered)

    def clear_undelivered(self) -> list[UndeliveredMessage]:
        """Drain and return the undelivered list."""
        drained = self._undelivered[:]
        self._undelivered.clear()
        return drained
