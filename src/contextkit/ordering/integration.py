"""Ordering context's side of the anti-corruption boundary.

Outbound: translators from Order domain events to the shared contracts.
``OrderCreated`` and ``OrderPaid`` have no translator and stay internal.

Inbound: consumers of payment contracts.  They only ever talk to the
Order aggregate through its own methods.
"""

from __future__ import annotations

import logging
from collections.abc import Callable

from contextkit.contracts import (
    OrderCancelledIntegrationEvent,
    OrderShippedIntegrationEvent,
    OrderSubmittedIntegrationEvent,
    PaymentCompletedIntegrationEvent,
    PaymentFailedIntegrationEvent,
)
from contextkit.core.errors import DomainError
from contextkit.integration.bus import IEventBus
from contextkit.integration.inbox import IProcessedMessageStore, idempotent
from contextkit.integration.pipeline import IntegrationPipeline
from contextkit.ordering.domain.events import OrderCancelled, OrderShipped, OrderSubmitted
from contextkit.ordering.domain.repository import IOrderRepository
from contextkit.ordering.domain.values import OrderId, OrderStatus

logger = logging.getLogger(__name__)

CONSUMER_GROUP = "ordering"


# ---------------------------------------------------------------------------
# Outbound translation
# ---------------------------------------------------------------------------

def order_submitted(event: OrderSubmitted) -> OrderSubmittedIntegrationEvent:
    return OrderSubmittedIntegrationEvent(
        order_id=str(event.order_id),
        customer_id=str(event.customer_id),
        total_amount=event.total.amount,
        currency=event.total.currency,
        item_count=event.item_count,
    )


def order_cancelled(event: OrderCancelled) -> OrderCancelledIntegrationEvent:
    return OrderCancelledIntegrationEvent(
        order_id=str(event.order_id), reason=event.reason,
    )


def order_shipped(event: OrderShipped) -> OrderShippedIntegrationEvent:
    return OrderShippedIntegrationEvent(order_id=str(event.order_id))


def register_translators(pipeline: IntegrationPipeline) -> None:
    pipeline.register(OrderSubmitted, order_submitted)
    pipeline.register(OrderCancelled, order_cancelled)
    pipeline.register(OrderShipped, order_shipped)


# ---------------------------------------------------------------------------
# Inbound consumers
# ---------------------------------------------------------------------------

class PaymentEventsConsumer:
    """Applies payment outcomes to orders."""

    def __init__(self, orders: IOrderRepository) -> None:
        self._orders = orders

    async def on_payment_completed(self, event: PaymentCompletedIntegrationEvent) -> None:
        order = await self._orders.get_by_id(OrderId.parse(event.order_id))
        if order is None:
            logger.warning("Payment %s refers to unknown order %s",
                           event.payment_id, event.order_id)
            return
        if order.status == OrderStatus.PAID and order.payment_id == event.payment_id:
            self._orders.unit_of_work.rollback()
            return
        await self._apply(lambda: order.mark_paid(event.payment_id), event.order_id)

    async def on_payment_failed(self, event: PaymentFailedIntegrationEvent) -> None:
        order = await self._orders.get_by_id(OrderId.parse(event.order_id))
        if order is None:
            logger.warning("Payment %s refers to unknown order %s",
                           event.payment_id, event.order_id)
            return
        if order.status == OrderStatus.CANCELLED:
            self._orders.unit_of_work.rollback()
            return
        await self._apply(
            lambda: order.cancel(f"Payment failed: {event.reason}"), event.order_id,
        )

    async def _apply(self, mutation: Callable[[], None], order_id: str) -> None:
        uow = self._orders.unit_of_work
        try:
            mutation()
        except DomainError as exc:
            # Order moved on since the payment started.
            uow.rollback()
            logger.warning("Ignoring payment outcome for order %s: %s", order_id, exc)
            return
        await uow.save_entities()

    async def subscribe(
        self,
        bus: IEventBus,
        inbox: IProcessedMessageStore,
        group: str = CONSUMER_GROUP,
    ) -> None:
        await bus.subscribe(
            PaymentCompletedIntegrationEvent.event_type,
            idempotent(self.on_payment_completed, inbox, f"{group}.payment_completed"),  # type: ignore[arg-type]
            group,
        )
        await bus.subscribe(
            PaymentFailedIntegrationEvent.event_type,
            idempotent(self.on_payment_failed, inbox, f"{group}.payment_failed"),  # type: ignore[arg-type]
            group,
        )
