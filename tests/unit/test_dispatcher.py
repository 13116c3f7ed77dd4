"""Tests for command dispatch and the order command handlers."""

from __future__ import annotations

import uuid
from decimal import Decimal

import pytest
from pydantic import ValidationError

from contextkit.application.dispatcher import (
    Command,
    CommandDispatcher,
    CommandResult,
    ErrorDetail,
    error_detail_from,
)
from contextkit.core.errors import (
    AggregateBusinessRuleValidationError,
    ConcurrencyError,
    DomainError,
    NotFoundError,
)
from contextkit.domain.rules import validate_all
from contextkit.ordering.application.commands import (
    AddOrderItem,
    CancelOrder,
    CreateOrder,
    OrderCommandHandlers,
    RemoveOrderItem,
    ShipOrder,
    SubmitOrder,
)
from contextkit.ordering.domain.repository import InMemoryOrderRepository
from contextkit.ordering.domain.rules import ItemPriceMustBePositiveRule, OrderMustHaveItemsRule
from contextkit.ordering.domain.values import OrderId, OrderStatus
from contextkit.ordering.integration import register_translators
from contextkit.persistence.memory import InMemoryUnitOfWork


class Ping(Command):
    text: str = "ping"


@pytest.fixture
def orders(pipeline) -> InMemoryOrderRepository:
    register_translators(pipeline)
    return InMemoryOrderRepository(InMemoryUnitOfWork(pipeline))


@pytest.fixture
def dispatcher(orders) -> CommandDispatcher:
    d = CommandDispatcher()
    OrderCommandHandlers(orders).register(d)
    return d


async def _create(dispatcher, customer_id, *items) -> str:
    created = await dispatcher.dispatch(CreateOrder(customer_id=customer_id))
    assert created.ok
    for name, price, qty in items:
        added = await dispatcher.dispatch(AddOrderItem(
            order_id=created.value,
            product_id=uuid.uuid4(),
            product_name=name,
            unit_price=Decimal(price),
            quantity=qty,
        ))
        assert added.ok, added.error
    return created.value


class TestDispatcher:
    async def test_success(self) -> None:
        d = CommandDispatcher()

        async def handle(command: Ping) -> str:
            return command.text.upper()

        d.register(Ping, handle)
        assert d.handles(Ping)
        result = await d.dispatch(Ping())
        assert result == CommandResult(ok=True, value="PING")

    async def test_unknown_command(self) -> None:
        with pytest.raises(LookupError, match="Ping"):
            await CommandDispatcher().dispatch(Ping())

    def test_duplicate_registration(self) -> None:
        d = CommandDispatcher()

        async def handle(command):
            return None

        d.register(Ping, handle)
        with pytest.raises(ValueError):
            d.register(Ping, handle)

    async def test_domain_error_becomes_result(self) -> None:
        d = CommandDispatcher()

        async def handle(command):
            raise NotFoundError("Order", "abc")

        d.register(Ping, handle)
        result = await d.dispatch(Ping())
        assert not result.ok
        assert result.error.code == "NOT_FOUND"
        assert result.error.violations[0].code == "NOT_FOUND"

    async def test_other_errors_propagate(self) -> None:
        d = CommandDispatcher()

        async def handle(command):
            raise RuntimeError("bug")

        d.register(Ping, handle)
        with pytest.raises(RuntimeError):
            await d.dispatch(Ping())

    def test_commands_are_frozen(self) -> None:
        with pytest.raises(ValidationError):
            Ping().text = "pong"  # type: ignore[misc]


class TestErrorDetail:
    def test_aggregate(self) -> None:
        with pytest.raises(AggregateBusinessRuleValidationError) as exc_info:
            validate_all(ItemPriceMustBePositiveRule(Decimal("0")), OrderMustHaveItemsRule(0))
        detail = error_detail_from(exc_info.value)
        assert detail.code == "MULTIPLE_RULES_VIOLATED"
        assert [v.code for v in detail.violations] == ["INVALID_ITEM_PRICE", "ORDER_EMPTY"]

    def test_single(self) -> None:
        detail = error_detail_from(DomainError("nope", code="X"))
        assert detail == ErrorDetail(
            code="X", message="nope", violations=[{"code": "X", "message": "nope"}],
        )

    def test_serializable(self) -> None:
        result = CommandResult.failure(error_detail_from(DomainError("nope")))
        dumped = result.model_dump(mode="json")
        assert dumped["ok"] is False
        assert dumped["error"]["code"] == "DOMAIN_ERROR"


class TestOrderHandlers:
    async def test_full_lifecycle(self, dispatcher, orders, memory_bus, customer_id) -> None:
        order_id = await _create(
            dispatcher, customer_id, ("Keyboard", "100.00", 1), ("Mouse", "25.00", 2),
        )
        assert (await dispatcher.dispatch(SubmitOrder(order_id=order_id))).ok

        order = await orders.get(OrderId.parse(order_id))
        orders.unit_of_work.rollback()
        assert order.status == OrderStatus.SUBMITTED
        assert order.total_amount == Decimal("150.00")
        [published] = memory_bus.get_history()
        assert published.total_amount == Decimal("150.00")
        assert published.item_count == 2

    async def test_create_requires_customer(self, dispatcher) -> None:
        result = await dispatcher.dispatch(CreateOrder())
        assert not result.ok
        assert result.error.code == "CUSTOMER_ID_REQUIRED"

    async def test_create_with_partial_address(self, dispatcher, customer_id) -> None:
        result = await dispatcher.dispatch(CreateOrder(customer_id=customer_id, city="X"))
        assert result.error.code == "INCOMPLETE_SHIPPING_ADDRESS"

    async def test_submit_empty_leaves_nothing_tracked(
        self, dispatcher, orders, customer_id,
    ) -> None:
        order_id = await _create(dispatcher, customer_id)
        result = await dispatcher.dispatch(SubmitOrder(order_id=order_id))
        assert result.error.code == "ORDER_EMPTY"
        assert orders.unit_of_work.tracked_count == 0
        order = await orders.get(OrderId.parse(order_id))
        assert order.status == OrderStatus.DRAFT

    async def test_unknown_order(self, dispatcher) -> None:
        result = await dispatcher.dispatch(SubmitOrder(order_id=str(uuid.uuid4())))
        assert result.error.code == "NOT_FOUND"

    async def test_remove_item(self, dispatcher, orders, customer_id) -> None:
        order_id = await _create(dispatcher, customer_id, ("Pen", "1.00", 1))
        order = await orders.get(OrderId.parse(order_id))
        orders.unit_of_work.rollback()
        item_id = str(order.items[0].id)
        assert (await dispatcher.dispatch(RemoveOrderItem(order_id=order_id, item_id=item_id))).ok
        missing = await dispatcher.dispatch(RemoveOrderItem(order_id=order_id, item_id=item_id))
        assert missing.error.code == "ORDER_ITEM_NOT_FOUND"

    async def test_cancel_then_ship(self, dispatcher, memory_bus, customer_id) -> None:
        order_id = await _create(dispatcher, customer_id, ("Pen", "1.00", 1))
        assert (await dispatcher.dispatch(CancelOrder(order_id=order_id, reason="dup"))).ok
        [cancelled] = memory_bus.get_history()
        assert cancelled.reason == "dup"
        shipped = await dispatcher.dispatch(ShipOrder(order_id=order_id))
        assert shipped.error.code == "INVALID_ORDER_STATUS"

    async def test_conflicting_commit_leaves_nothing_tracked(
        self, dispatcher, orders, customer_id,
    ) -> None:
        order_id = await _create(dispatcher, customer_id, ("Pen", "1.00", 1))
        handlers = OrderCommandHandlers(orders)

        def submit_while_another_writer_commits(order):
            order.submit()
            # Another writer commits the same order before this one does.
            orders._items[order.id].version += 1

        with pytest.raises(ConcurrencyError):
            await handlers._mutate(order_id, submit_while_another_writer_commits)
        assert orders.unit_of_work.tracked_count == 0

        retried = await dispatcher.dispatch(SubmitOrder(order_id=order_id))
        assert retried.ok, retried.error
        order = await orders.get(OrderId.parse(order_id))
        assert order.status == OrderStatus.SUBMITTED
