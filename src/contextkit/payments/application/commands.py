"""Payment commands and their handlers."""

from __future__ import annotations

import logging

from contextkit.application.dispatcher import Command, CommandDispatcher
from contextkit.core.errors import ConcurrencyError, DomainError
from contextkit.payments.domain.repository import IPaymentRepository
from contextkit.payments.domain.rules import PaymentMustBeInStatusRule
from contextkit.payments.domain.values import PaymentId, PaymentStatus
from contextkit.payments.gateway import IPaymentGateway

logger = logging.getLogger(__name__)


class ProcessPayment(Command):
    payment_id: str


class PaymentCommandHandlers:
    def __init__(self, payments: IPaymentRepository, gateway: IPaymentGateway) -> None:
        self._payments = payments
        self._gateway = gateway

    def register(self, dispatcher: CommandDispatcher) -> None:
        dispatcher.register(ProcessPayment, self.process_payment)

    async def process_payment(self, command: ProcessPayment) -> str:
        """Charge a pending payment and settle it with the gateway's answer."""
        uow = self._payments.unit_of_work
        try:
            payment = await self._payments.get(PaymentId.parse(command.payment_id))
            payment.check_rule(
                PaymentMustBeInStatusRule(payment.status, (PaymentStatus.PENDING,), "process")
            )
            result = await self._gateway.charge(
                str(payment.id), payment.order_id, payment.amount,
            )
            if result.succeeded:
                payment.complete(result.transaction_ref)
            else:
                payment.fail(result.reason)
        except DomainError:
            uow.rollback()
            raise

        try:
            await uow.save_entities()
        except ConcurrencyError:
            uow.rollback()
            raise
        logger.info(
            "Payment %s for order %s is %s",
            payment.id,
            payment.order_id,
            payment.status.value,
        )
        return str(payment.id)
