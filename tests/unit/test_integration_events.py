"""Tests for integration event envelopes and the wire schema registry."""

from __future__ import annotations

import json
from datetime import datetime
from decimal import Decimal
from typing import ClassVar

import pytest
from pydantic import ValidationError

from contextkit.contracts import (
    OrderCancelledIntegrationEvent,
    OrderSubmittedIntegrationEvent,
    PaymentCompletedIntegrationEvent,
)
from contextkit.core.errors import UnknownEventTypeError
from contextkit.integration.events import IntegrationEvent
from contextkit.integration.schemas import (
    decode,
    dumps,
    get_event_class,
    loads,
    register_event_type,
)


def _submitted(**overrides) -> OrderSubmittedIntegrationEvent:
    fields = dict(
        order_id="o-1",
        customer_id="c-1",
        total_amount=Decimal("150.00"),
        currency="USD",
        item_count=2,
    )
    fields.update(overrides)
    return OrderSubmittedIntegrationEvent(**fields)


class TestEnvelope:
    def test_defaults(self) -> None:
        event = _submitted()
        assert event.message_id
        assert event.occurred_at.tzinfo is not None
        assert event.schema_version() == 1

    def test_message_ids_unique(self) -> None:
        assert _submitted().message_id != _submitted().message_id

    def test_frozen(self) -> None:
        with pytest.raises(ValidationError):
            _submitted().order_id = "other"  # type: ignore[misc]

    def test_extra_fields_rejected(self) -> None:
        with pytest.raises(ValidationError):
            _submitted(unexpected=1)

    def test_wire_shape(self) -> None:
        event = _submitted()
        wire = event.to_wire()
        assert set(wire) == {"messageId", "occurredAt", "eventType", "payload"}
        assert wire["eventType"] == "ordering.order_submitted.v1"
        assert wire["messageId"] == event.message_id
        assert wire["payload"] == {
            "order_id": "o-1",
            "customer_id": "c-1",
            "total_amount": "150.00",
            "currency": "USD",
            "item_count": 2,
        }
        json.dumps(wire)

    def test_bad_event_type_rejected_at_class_creation(self) -> None:
        with pytest.raises(TypeError, match="event_type"):

            class Broken(IntegrationEvent):
                event_type: ClassVar[str] = "NoVersion"

    def test_missing_event_type_rejected(self) -> None:
        with pytest.raises(TypeError):

            class Untagged(IntegrationEvent):
                pass


class TestRegistry:
    def test_contracts_registered(self) -> None:
        assert get_event_class("ordering.order_submitted.v1") is OrderSubmittedIntegrationEvent
        assert get_event_class("payments.payment_completed.v1") is PaymentCompletedIntegrationEvent
        assert get_event_class("nope.nothing.v1") is None

    def test_reregistering_same_class_is_noop(self) -> None:
        assert register_event_type(OrderCancelledIntegrationEvent) is OrderCancelledIntegrationEvent

    def test_duplicate_tag_rejected(self) -> None:
        class Impostor(IntegrationEvent):
            event_type: ClassVar[str] = "ordering.order_cancelled.v1"

            order_id: str

        with pytest.raises(ValueError, match="already registered"):
            register_event_type(Impostor)
        assert get_event_class("ordering.order_cancelled.v1") is OrderCancelledIntegrationEvent


class TestDecode:
    def test_decode_preserves_envelope(self) -> None:
        event = _submitted()
        decoded = decode(event.to_wire())
        assert isinstance(decoded, OrderSubmittedIntegrationEvent)
        assert decoded == event
        assert decoded is not event
        assert decoded.total_amount == Decimal("150.00")
        assert isinstance(decoded.occurred_at, datetime)

    def test_json_string(self) -> None:
        event = OrderCancelledIntegrationEvent(order_id="o-9", reason="declined")
        assert loads(dumps(event)) == event
        assert loads(dumps(event).encode()) == event

    def test_unknown_type(self) -> None:
        wire = _submitted().to_wire()
        wire["eventType"] = "ordering.order_teleported.v1"
        with pytest.raises(UnknownEventTypeError, match="order_teleported"):
            decode(wire)

    def test_missing_type(self) -> None:
        wire = _submitted().to_wire()
        del wire["eventType"]
        with pytest.raises(UnknownEventTypeError):
            decode(wire)

    def test_invalid_payload(self) -> None:
        wire = _submitted().to_wire()
        wire["payload"]["item_count"] = "many"
        with pytest.raises(ValidationError):
            decode(wire)
