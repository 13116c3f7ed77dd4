"""Payments context's side of the anti-corruption boundary.

Outbound: ``PaymentCompleted`` and ``PaymentFailed`` are published;
``PaymentCreated`` and ``PaymentCancelled`` stay internal.

Inbound: a submitted order opens exactly one payment, keyed by the
order id; a cancelled order cancels its payment while still pending.
"""

from __future__ import annotations

import logging

from contextkit.contracts import (
    OrderCancelledIntegrationEvent,
    OrderSubmittedIntegrationEvent,
    PaymentCompletedIntegrationEvent,
    PaymentFailedIntegrationEvent,
)
from contextkit.domain.money import Money
from contextkit.integration.bus import IEventBus
from contextkit.integration.inbox import IProcessedMessageStore, idempotent
from contextkit.integration.pipeline import IntegrationPipeline
from contextkit.payments.application.commands import PaymentCommandHandlers, ProcessPayment
from contextkit.payments.domain.events import PaymentCompleted, PaymentFailed
from contextkit.payments.domain.model import Payment
from contextkit.payments.domain.repository import IPaymentRepository
from contextkit.payments.domain.values import PaymentStatus

logger = logging.getLogger(__name__)

CONSUMER_GROUP = "payments"


def payment_completed(event: PaymentCompleted) -> PaymentCompletedIntegrationEvent:
    return PaymentCompletedIntegrationEvent(
        payment_id=str(event.payment_id),
        order_id=event.order_id,
        amount=event.amount.amount,
        currency=event.amount.currency,
        transaction_ref=event.transaction_ref,
    )


def payment_failed(event: PaymentFailed) -> PaymentFailedIntegrationEvent:
    return PaymentFailedIntegrationEvent(
        payment_id=str(event.payment_id),
        order_id=event.order_id,
        reason=event.reason,
    )


def register_translators(pipeline: IntegrationPipeline) -> None:
    pipeline.register(PaymentCompleted, payment_completed)
    pipeline.register(PaymentFailed, payment_failed)


class OrderEventsConsumer:
    """Opens and cancels payments in reaction to order contracts."""

    def __init__(
        self,
        payments: IPaymentRepository,
        handlers: PaymentCommandHandlers,
        *,
        auto_process: bool = True,
    ) -> None:
        self._payments = payments
        self._handlers = handlers
        self._auto_process = auto_process

    async def on_order_submitted(self, event: OrderSubmittedIntegrationEvent) -> None:
        uow = self._payments.unit_of_work
        existing = await self._payments.get_by_order_id(event.order_id)
        if existing is not None:
            uow.rollback()
            logger.info(
                "Order %s already has payment %s", event.order_id, existing.id,
            )
            return

        payment = Payment.create(
            event.order_id, Money(event.total_amount, event.currency),
        )
        await self._payments.add(payment)
        await uow.save_entities()
        logger.info(
            "Opened payment %s for order %s (%s)",
            payment.id,
            event.order_id,
            payment.amount,
        )

        if self._auto_process:
            await self._handlers.process_payment(ProcessPayment(payment_id=str(payment.id)))

    async def on_order_cancelled(self, event: OrderCancelledIntegrationEvent) -> None:
        uow = self._payments.unit_of_work
        payment = await self._payments.get_by_order_id(event.order_id)
        if payment is None or payment.status != PaymentStatus.PENDING:
            uow.rollback()
            return
        payment.cancel(event.reason or "Order cancelled")
        await uow.save_entities()

    async def subscribe(
        self,
        bus: IEventBus,
        inbox: IProcessedMessageStore,
        group: str = CONSUMER_GROUP,
    ) -> None:
        await bus.subscribe(
            OrderSubmittedIntegrationEvent.event_type,
            idempotent(self.on_order_submitted, inbox, f"{group}.order_submitted"),  # type: ignore[arg-type]
            group,
        )
        await bus.subscribe(
            OrderCancelledIntegrationEvent.event_type,
            idempotent(self.on_order_cancelled, inbox, f"{group}.order_cancelled"),  # type: ignore[arg-type]
            group,
        )
