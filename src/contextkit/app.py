"""Wires both bounded contexts into one process.

Each context owns its repositories and unit of work; the only things
they share are the integration pipeline, the bus and the contracts.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any

from contextkit.application.dispatcher import CommandDispatcher
from contextkit.core.config import Settings
from contextkit.integration.bus import IEventBus, InMemoryEventBus, create_event_bus
from contextkit.integration.inbox import InMemoryProcessedMessageStore
from contextkit.integration.pipeline import IntegrationPipeline
from contextkit.ordering import integration as ordering_integration
from contextkit.ordering.application.commands import (
    AddOrderItem,
    CreateOrder,
    OrderCommandHandlers,
    SubmitOrder,
)
from contextkit.ordering.domain.repository import InMemoryOrderRepository
from contextkit.ordering.domain.values import OrderId
from contextkit.payments import integration as payments_integration
from contextkit.payments.application.commands import PaymentCommandHandlers
from contextkit.payments.domain.repository import InMemoryPaymentRepository
from contextkit.payments.gateway import InMemoryPaymentGateway
from contextkit.persistence.memory import InMemoryUnitOfWork

logger = logging.getLogger(__name__)


@dataclass
class App:
    settings: Settings
    bus: IEventBus
    pipeline: IntegrationPipeline
    dispatcher: CommandDispatcher
    orders: InMemoryOrderRepository
    payments: InMemoryPaymentRepository
    gateway: InMemoryPaymentGateway
    inbox: InMemoryProcessedMessageStore = field(default_factory=InMemoryProcessedMessageStore)
    started: bool = False

    async def start(self) -> None:
        if self.started:
            return
        group = self.settings.bus.consumer_group
        await ordering_integration.PaymentEventsConsumer(self.orders).subscribe(
            self.bus, self.inbox, f"{group}.ordering",
        )
        payment_handlers = PaymentCommandHandlers(self.payments, self.gateway)
        await payments_integration.OrderEventsConsumer(
            self.payments,
            payment_handlers,
            auto_process=self.settings.payments.auto_process,
        ).subscribe(self.bus, self.inbox, f"{group}.payments")
        await self.bus.start()
        self.started = True
        logger.info("Consumers subscribed on %s bus", self.settings.bus.backend.value)

    async def stop(self) -> None:
        await self.bus.stop()
        self.started = False


def build_app(settings: Settings | None = None, bus: IEventBus | None = None) -> App:
    """Assemble an :class:`App`.  Call :meth:`App.start` before use."""
    settings = settings or Settings()
    settings.validate_settings()

    bus = bus or create_event_bus(settings.bus)
    pipeline = IntegrationPipeline(
        bus,
        max_publish_attempts=settings.pipeline.max_publish_attempts,
        retry_delay_ms=settings.pipeline.retry_delay_ms,
    )
    ordering_integration.register_translators(pipeline)
    payments_integration.register_translators(pipeline)

    orders = InMemoryOrderRepository(InMemoryUnitOfWork(pipeline))
    payments = InMemoryPaymentRepository(InMemoryUnitOfWork(pipeline))
    gateway = InMemoryPaymentGateway(decline_above=settings.payments.decline_above)

    dispatcher = CommandDispatcher()
    OrderCommandHandlers(orders).register(dispatcher)
    PaymentCommandHandlers(payments, gateway).register(dispatcher)

    return App(
        settings=settings,
        bus=bus,
        pipeline=pipeline,
        dispatcher=dispatcher,
        orders=orders,
        payments=payments,
        gateway=gateway,
    )


async def order_snapshot(app: App, order_id: str) -> dict[str, Any]:
    """JSON-ready view of an order and its payment."""
    order = await app.orders.get(OrderId.parse(order_id))
    app.orders.unit_of_work.rollback()
    payment = await app.payments.get_by_order_id(order_id)
    app.payments.unit_of_work.rollback()
    return {
        "order_id": str(order.id),
        "status": order.status.value,
        "total": str(order.total),
        "items": [
            {
                "product_name": item.product_name,
                "quantity": item.quantity,
                "line_total": str(item.line_total),
            }
            for item in order.items
        ],
        "payment": None if payment is None else {
            "payment_id": str(payment.id),
            "status": payment.status.value,
            "transaction_ref": payment.transaction_ref,
            "failure_reason": payment.failure_reason,
        },
    }


async def run_demo(settings: Settings | None = None) -> dict[str, Any]:
    """Create an order, add two items, submit it and let payments settle it."""
    app = build_app(settings)
    await app.start()
    try:
        created = await app.dispatcher.dispatch(CreateOrder(
            customer_id=uuid.uuid4(),
            street="1 Main St",
            city="Springfield",
            country="US",
            zip_code="12345",
        ))
        order_id = created.value
        for name, price, qty in (("Keyboard", "100.00", 1), ("Mouse", "25.00", 2)):
            await app.dispatcher.dispatch(AddOrderItem(
                order_id=order_id,
                product_id=uuid.uuid4(),
                product_name=name,
                unit_price=Decimal(price),
                quantity=qty,
            ))
        submitted = await app.dispatcher.dispatch(SubmitOrder(order_id=order_id))
        result = await order_snapshot(app, order_id)
        result["submit"] = submitted.model_dump(mode="json")
        if isinstance(app.bus, InMemoryEventBus):
            result["published"] = [e.to_wire() for e in app.bus.get_history()]
        return result
    finally:
        await app.stop()
