"""Integration contracts published by the payments context."""

from __future__ import annotations

from decimal import Decimal
from typing import ClassVar

from contextkit.integration.events import IntegrationEvent
from contextkit.integration.schemas import register_event_type


@register_event_type
class PaymentCompletedIntegrationEvent(IntegrationEvent):
    event_type: ClassVar[str] = "payments.payment_completed.v1"

    payment_id: str
    order_id: str
    amount: Decimal
    currency: str
    transaction_ref: str


@register_event_type
class PaymentFailedIntegrationEvent(IntegrationEvent):
    event_type: ClassVar[str] = "payments.payment_failed.v1"

    payment_id: str
    order_id: str
    reason: str
