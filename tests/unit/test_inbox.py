"""Tests for consumer-side idempotency."""

from __future__ import annotations

import pytest

from contextkit.contracts import OrderShippedIntegrationEvent
from contextkit.integration.inbox import (
    IProcessedMessageStore,
    InMemoryProcessedMessageStore,
    idempotent,
)
from contextkit.observability.logger import get_trace_id


@pytest.fixture
def store() -> InMemoryProcessedMessageStore:
    return InMemoryProcessedMessageStore()


class TestIdempotent:
    async def test_duplicate_ignored(self, store) -> None:
        calls = []

        async def handler(event):
            calls.append(event.message_id)

        wrapped = idempotent(handler, store, "payments")
        event = OrderShippedIntegrationEvent(order_id="o-1")
        await wrapped(event)
        await wrapped(event)
        assert calls == [event.message_id]
        assert store.processed_count("payments") == 1

    async def test_consumers_tracked_separately(self, store) -> None:
        calls = []

        async def handler(event):
            calls.append(event)

        event = OrderShippedIntegrationEvent(order_id="o-1")
        await idempotent(handler, store, "payments")(event)
        await idempotent(handler, store, "shipping")(event)
        assert len(calls) == 2

    async def test_failure_not_recorded(self, store) -> None:
        attempts = []

        async def handler(event):
            attempts.append(event)
            if len(attempts) == 1:
                raise RuntimeError("transient")

        wrapped = idempotent(handler, store, "payments")
        event = OrderShippedIntegrationEvent(order_id="o-1")
        with pytest.raises(RuntimeError):
            await wrapped(event)
        assert not await store.has_processed("payments", event.message_id)
        await wrapped(event)
        assert len(attempts) == 2
        assert await store.has_processed("payments", event.message_id)

    async def test_handler_runs_under_message_trace(self, store) -> None:
        seen = []

        async def handler(event):
            seen.append(get_trace_id())

        event = OrderShippedIntegrationEvent(order_id="o-1")
        await idempotent(handler, store, "payments")(event)
        assert seen == [event.message_id]

    def test_wrapper_keeps_name(self, store) -> None:
        async def on_order_shipped(event):
            pass

        assert idempotent(on_order_shipped, store, "x").__name__ == "on_order_shipped"

    def test_store_protocol(self, store) -> None:
        assert isinstance(store, IProcessedMessageStore)
