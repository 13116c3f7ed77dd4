"""Tests for domain → integration event translation and publishing."""

from __future__ import annotations

from dataclasses import dataclass

import pytest

from contextkit.contracts import OrderCancelledIntegrationEvent, OrderShippedIntegrationEvent
from contextkit.core.errors import PublishError
from contextkit.domain.events import DomainEvent
from contextkit.integration.pipeline import IntegrationPipeline


@dataclass(frozen=True)
class ThingCancelled(DomainEvent):
    thing_id: str = ""
    reason: str = ""


@dataclass(frozen=True)
class ThingShipped(DomainEvent):
    thing_id: str = ""


@dataclass(frozen=True)
class ThingRenamed(DomainEvent):
    """Has no translator: stays internal."""

    thing_id: str = ""


def _cancelled(e: ThingCancelled) -> OrderCancelledIntegrationEvent:
    return OrderCancelledIntegrationEvent(order_id=e.thing_id, reason=e.reason)


def _shipped(e: ThingShipped) -> OrderShippedIntegrationEvent:
    return OrderShippedIntegrationEvent(order_id=e.thing_id)


class FlakyBus:
    """Fails the first *failures* publishes, then accepts."""

    def __init__(self, failures: int) -> None:
        self.failures = failures
        self.attempts = 0
        self.published = []

    async def publish(self, event) -> None:
        self.attempts += 1
        if self.attempts <= self.failures:
            raise PublishError(f"attempt {self.attempts} failed")
        self.published.append(event)

    async def subscribe(self, event_type, handler, group="default") -> None:
        pass

    async def start(self) -> None:
        pass

    async def stop(self) -> None:
        pass


@pytest.fixture
def wired(pipeline) -> IntegrationPipeline:
    pipeline.register(ThingCancelled, _cancelled)
    pipeline.register(ThingShipped, _shipped)
    return pipeline


class TestRegistration:
    def test_duplicate_rejected(self, wired) -> None:
        with pytest.raises(ValueError, match="ThingCancelled"):
            wired.register(ThingCancelled, _cancelled)

    def test_decorator(self, pipeline) -> None:
        @pipeline.translates(ThingShipped)
        def translate(e):
            return _shipped(e)

        assert pipeline.has_translator(ThingShipped)
        assert not pipeline.has_translator(ThingCancelled)
        assert translate(ThingShipped(thing_id="x")).order_id == "x"

    def test_attempts_floor(self, memory_bus) -> None:
        with pytest.raises(ValueError):
            IntegrationPipeline(memory_bus, max_publish_attempts=0)


class TestTranslate:
    def test_untranslated_event_stays_internal(self, wired) -> None:
        assert wired.translate(ThingRenamed(thing_id="x")) is None

    def test_exact_type_lookup(self, wired) -> None:
        event = wired.translate(ThingCancelled(thing_id="x", reason="r"))
        assert isinstance(event, OrderCancelledIntegrationEvent)
        assert event.reason == "r"

    def test_translator_must_return_integration_event(self, pipeline) -> None:
        pipeline.register(ThingRenamed, lambda e: {"not": "an event"})
        with pytest.raises(TypeError, match="expected IntegrationEvent"):
            pipeline.translate(ThingRenamed())


class TestDispatch:
    async def test_publishes_in_order_and_skips_internal(self, wired, memory_bus) -> None:
        published = await wired.dispatch([
            ThingCancelled(thing_id="a"),
            ThingRenamed(thing_id="b"),
            ThingShipped(thing_id="c"),
        ])
        assert [type(e) for e in published] == [
            OrderCancelledIntegrationEvent,
            OrderShippedIntegrationEvent,
        ]
        assert [e.order_id for e in memory_bus.get_history()] == ["a", "c"]

    async def test_empty(self, wired) -> None:
        assert await wired.dispatch([]) == []

    async def test_one_retry_succeeds(self) -> None:
        bus = FlakyBus(failures=1)
        pipeline = IntegrationPipeline(bus)
        pipeline.register(ThingShipped, _shipped)
        published = await pipeline.dispatch([ThingShipped(thing_id="a")])
        assert bus.attempts == 2
        assert len(published) == 1
        assert pipeline.undelivered == []

    async def test_gives_up_after_attempts_without_raising(self) -> None:
        failures = []
        bus = FlakyBus(failures=10)
        pipeline = IntegrationPipeline(
            bus, on_publish_failure=lambda event, exc: failures.append((event, exc)),
        )
        pipeline.register(ThingShipped, _shipped)
        source = ThingShipped(thing_id="a")

        published = await pipeline.dispatch([source])

        assert published == []
        assert bus.attempts == 2
        [undelivered] = pipeline.undelivered
        assert undelivered.source_event_id == source.event_id
        assert undelivered.attempts == 2
        assert undelivered.error == "attempt 2 failed"
        assert failures[0][0] is undelivered.event
        assert isinstance(failures[0][1], PublishError)

    async def test_failure_does_not_stop_later_events(self) -> None:
        bus = FlakyBus(failures=2)
        pipeline = IntegrationPipeline(bus)
        pipeline.register(ThingShipped, _shipped)
        published = await pipeline.dispatch(
            [ThingShipped(thing_id="a"), ThingShipped(thing_id="b")]
        )
        assert [e.order_id for e in published] == ["b"]
        assert [u.event.order_id for u in pipeline.clear_undelivered()] == ["a"]
        assert pipeline.undelivered == []

    async def test_broken_callback_swallowed(self) -> None:
        def callback(event, exc):
            raise RuntimeError("pager down")

        pipeline = IntegrationPipeline(
            FlakyBus(failures=5), max_publish_attempts=1, on_publish_failure=callback,
        )
        pipeline.register(ThingShipped, _shipped)
        assert await pipeline.dispatch([ThingShipped(thing_id="a")]) == []
        assert len(pipeline.undelivered) == 1
