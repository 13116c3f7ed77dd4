"""Order commands and their handlers.

Handlers only orchestrate: load or build the aggregate, call one
aggregate method, commit.  Every business decision lives in the domain
or in the boundary rules.  Handlers return the affected order id as a
string.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Callable
from decimal import Decimal
from typing import TypeVar

from pydantic import BaseModel, ConfigDict, Field

from contextkit.application.dispatcher import Command, CommandDispatcher
from contextkit.core.errors import ConcurrencyError, DomainError
from contextkit.domain.money import DEFAULT_CURRENCY, Money
from contextkit.domain.rules import validate_all
from contextkit.ordering.domain.factory import OrderFactory
from contextkit.ordering.domain.model import Order
from contextkit.ordering.domain.repository import IOrderRepository
from contextkit.ordering.domain.rules import AddressMustBeCompleteRule
from contextkit.ordering.domain.values import Address, OrderId, OrderItemId

from .acl import ExternalOrderDto, ExternalOrderItemDto, ExternalOrderTranslator
from .rules import (
    CustomerIdMustBeProvidedRule,
    ImportedItemsMustHaveValidPricesRule,
    ImportedItemsMustHaveValidQuantitiesRule,
    ImportedOrderMustHaveItemsRule,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------

class CreateOrder(Command):
    customer_id: uuid.UUID | None = None
    street: str | None = None
    city: str | None = None
    state: str | None = None
    country: str | None = None
    zip_code: str | None = None
    currency: str = DEFAULT_CURRENCY


class AddOrderItem(Command):
    order_id: str
    product_id: uuid.UUID
    product_name: str
    unit_price: Decimal
    quantity: int


class RemoveOrderItem(Command):
    order_id: str
    item_id: str


class SubmitOrder(Command):
    order_id: str


class CancelOrder(Command):
    order_id: str
    reason: str = ""


class ShipOrder(Command):
    order_id: str


class ImportExternalOrderItem(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    product_id: uuid.UUID | None = Field(default=None, alias="productId")
    product_name: str = Field(default="", alias="productName")
    unit_price: Decimal = Field(alias="unitPrice")
    quantity: int


class ImportExternalOrder(Command):
    """An order placed in a foreign system, in that system's terms."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    external_order_id: str | None = Field(default=None, alias="externalOrderId")
    customer_id: uuid.UUID | None = Field(default=None, alias="customerId")
    customer_name: str | None = Field(default=None, alias="customerName")
    shipping_street: str | None = Field(default=None, alias="shippingStreet")
    shipping_city: str | None = Field(default=None, alias="shippingCity")
    shipping_state: str | None = Field(default=None, alias="shippingState")
    shipping_country: str | None = Field(default=None, alias="shippingCountry")
    shipping_zip_code: str | None = Field(default=None, alias="shippingZipCode")
    currency: str = DEFAULT_CURRENCY
    items: tuple[ImportExternalOrderItem, ...] = ()
    notes: str | None = None


# ---------------------------------------------------------------------------
# Handlers
# ---------------------------------------------------------------------------

class OrderCommandHandlers:
    def __init__(
        self,
        orders: IOrderRepository,
        translator: ExternalOrderTranslator | None = None,
    ) -> None:
        self._orders = orders
        self._translator = translator or ExternalOrderTranslator()

    def register(self, dispatcher: CommandDispatcher) -> None:
        dispatcher.register(CreateOrder, self.create_order)
        dispatcher.register(AddOrderItem, self.add_item)
        dispatcher.register(RemoveOrderItem, self.remove_item)
        dispatcher.register(SubmitOrder, self.submit)
        dispatcher.register(CancelOrder, self.cancel)
        dispatcher.register(ShipOrder, self.ship)
        dispatcher.register(ImportExternalOrder, self.import_external_order)

    async def _commit(self) -> None:
        """Commit, forgetting the tracked aggregates if a writer got there first."""
        uow = self._orders.unit_of_work
        try:
            await uow.save_entities()
        except ConcurrencyError:
            uow.rollback()
            raise

    async def _mutate(self, order_id: str, mutation: Callable[[Order], T]) -> T:
        """Load, apply *mutation*, commit.  Nothing is kept on failure."""
        uow = self._orders.unit_of_work
        try:
            order = await self._orders.get(OrderId.parse(order_id))
            result = mutation(order)
        except DomainError:
            uow.rollback()
            raise
        await self._commit()
        return result

    async def create_order(self, command: CreateOrder) -> str:
        address = None
        if any((command.street, command.city, command.country, command.zip_code)):
            address = Address.create(
                command.street, command.city, command.country,
                command.zip_code, command.state,
            )
        order = Order.create(
            command.customer_id,  # type: ignore[arg-type]
            shipping_address=address,
            currency=command.currency,
        )
        await self._orders.add(order)
        await self._commit()
        return str(order.id)

    async def add_item(self, command: AddOrderItem) -> str:
        item = await self._mutate(
            command.order_id,
            lambda order: order.add_item(
                command.product_id,
                command.product_name,
                Money(command.unit_price, order.currency),
                command.quantity,
            ),
        )
        return str(item.id)

    async def remove_item(self, command: RemoveOrderItem) -> str:
        await self._mutate(
            command.order_id,
            lambda order: order.remove_item(OrderItemId.parse(command.item_id)),
        )
        return command.order_id

    async def submit(self, command: SubmitOrder) -> str:
        await self._mutate(command.order_id, lambda order: order.submit())
        return command.order_id

    async def cancel(self, command: CancelOrder) -> str:
        await self._mutate(command.order_id, lambda order: order.cancel(command.reason))
        return command.order_id

    async def ship(self, command: ShipOrder) -> str:
        await self._mutate(command.order_id, lambda order: order.ship())
        return command.order_id

    async def import_external_order(self, command: ImportExternalOrder) -> str:
        """Validate, translate, build, persist.  Returns the new order id."""
        validate_all(
            CustomerIdMustBeProvidedRule(command.customer_id),
            AddressMustBeCompleteRule(
                command.shipping_street,
                command.shipping_city,
                command.shipping_country,
                command.shipping_zip_code,
            ),
            ImportedOrderMustHaveItemsRule(len(command.items)),
            ImportedItemsMustHaveValidPricesRule(
                tuple(i.unit_price for i in command.items)
            ),
            ImportedItemsMustHaveValidQuantitiesRule(
                tuple(i.quantity for i in command.items)
            ),
        )

        dto = ExternalOrderDto(
            external_order_id=command.external_order_id,
            customer_id=command.customer_id,
            customer_name=command.customer_name,
            shipping_street=command.shipping_street,
            shipping_city=command.shipping_city,
            shipping_state=command.shipping_state,
            shipping_country=command.shipping_country,
            shipping_zip_code=command.shipping_zip_code,
            currency=command.currency,
            items=tuple(
                ExternalOrderItemDto(
                    product_id=i.product_id,
                    product_name=i.product_name,
                    unit_price=i.unit_price,
                    quantity=i.quantity,
                )
                for i in command.items
            ),
            notes=command.notes,
        )
        data = self._translator.translate(dto)

        existing = await self._orders.get_by_external_id(data.external_order_id)  # type: ignore[arg-type]
        if existing is not None:
            self._orders.unit_of_work.rollback()
            raise DomainError(
                f"External order {data.external_order_id} was already imported "
                f"as order {existing.id}.",
                code="DUPLICATE_EXTERNAL_ORDER",
            )

        order = OrderFactory(data).create()
        await self._orders.add(order)
        await self._commit()
        logger.info(
            "Imported external order %s as %s", data.external_order_id, order.id,
        )
        return str(order.id)
