"""Integration contracts published by the ordering context."""

from __future__ import annotations

from decimal import Decimal
from typing import ClassVar

from contextkit.integration.events import IntegrationEvent
from contextkit.integration.schemas import register_event_type


@register_event_type
class OrderSubmittedIntegrationEvent(IntegrationEvent):
    event_type: ClassVar[str] = "ordering.order_submitted.v1"

    order_id: str
    customer_id: str
    total_amount: Decimal
    currency: str
    item_count: int


@register_event_type
class OrderCancelledIntegrationEvent(IntegrationEvent):
    event_type: ClassVar[str] = "ordering.order_cancelled.v1"

    order_id: str
    reason: str = ""


@register_event_type
class OrderShippedIntegrationEvent(IntegrationEvent):
    event_type: ClassVar[str] = "ordering.order_shipped.v1"

    order_id: str
