"""Tests for importing orders from foreign systems through the ACL."""

from __future__ import annotations

import uuid
from decimal import Decimal

import pytest

from contextkit.application.dispatcher import CommandDispatcher
from contextkit.core.errors import AggregateBusinessRuleValidationError
from contextkit.domain.money import Money
from contextkit.ordering.application.acl import (
    ExternalOrderDto,
    ExternalOrderItemDto,
    ExternalOrderTranslator,
)
from contextkit.ordering.application.commands import ImportExternalOrder, OrderCommandHandlers
from contextkit.ordering.domain.repository import InMemoryOrderRepository
from contextkit.ordering.domain.values import OrderId, OrderStatus
from contextkit.persistence.memory import InMemoryUnitOfWork


def _payload(**overrides) -> dict:
    payload = {
        "externalOrderId": "EXT-1001",
        "customerId": "11111111-2222-3333-4444-555555555555",
        "customerName": "Ada",
        "shippingStreet": "1 Main St",
        "shippingCity": "Springfield",
        "shippingState": "IL",
        "shippingCountry": "US",
        "shippingZipCode": "12345",
        "currency": "usd",
        "items": [
            {"productName": "Keyboard", "unitPrice": "100.00", "quantity": 1},
            {
                "productId": "aaaaaaaa-bbbb-cccc-dddd-eeeeeeeeeeee",
                "productName": "Mouse",
                "unitPrice": "25.00",
                "quantity": 2,
            },
        ],
    }
    payload.update(overrides)
    return payload


def _dto(**overrides) -> ExternalOrderDto:
    fields = dict(
        external_order_id=" EXT-1 ",
        customer_id=uuid.uuid4(),
        shipping_street="1 Main St",
        shipping_city="Springfield",
        shipping_country="US",
        shipping_zip_code="12345",
        currency="gbp",
        items=(ExternalOrderItemDto(None, "Lamp", Decimal("20"), 1),),
    )
    fields.update(overrides)
    return ExternalOrderDto(**fields)


@pytest.fixture
def orders() -> InMemoryOrderRepository:
    return InMemoryOrderRepository(InMemoryUnitOfWork())


@pytest.fixture
def dispatcher(orders) -> CommandDispatcher:
    d = CommandDispatcher()
    OrderCommandHandlers(orders).register(d)
    return d


class TestTranslator:
    def test_reshapes(self) -> None:
        data = ExternalOrderTranslator().translate(_dto())
        assert data.external_order_id == "EXT-1"
        assert data.currency == "GBP"
        assert data.shipping_address.city == "Springfield"
        assert data.items[0].product_name == "Lamp"

    def test_missing_product_id_is_stable(self) -> None:
        translator = ExternalOrderTranslator()
        first = translator.translate(_dto()).items[0].product_id
        second = translator.translate(_dto()).items[0].product_id
        assert isinstance(first, uuid.UUID)
        assert first == second

    def test_collects_every_violation(self) -> None:
        dto = _dto(
            external_order_id="",
            currency="JPY",
            shipping_city=None,
            items=(ExternalOrderItemDto(None, "Lamp", Decimal("20"), 0),),
        )
        with pytest.raises(AggregateBusinessRuleValidationError) as exc_info:
            ExternalOrderTranslator().translate(dto)
        assert exc_info.value.codes == [
            "EXTERNAL_ORDER_ID_REQUIRED",
            "UNSUPPORTED_CURRENCY",
            "INCOMPLETE_SHIPPING_ADDRESS",
            "INVALID_ITEM_QUANTITY",
        ]

    @pytest.mark.parametrize(
        "overrides,code",
        [
            ({"customer_id": None}, "CUSTOMER_ID_REQUIRED"),
            ({"customer_id": uuid.UUID(int=0)}, "CUSTOMER_ID_REQUIRED"),
            ({"items": ()}, "IMPORT_ORDER_EMPTY"),
            (
                {"items": (ExternalOrderItemDto(None, "Lamp", Decimal("-5"), 1),)},
                "INVALID_ITEM_PRICE",
            ),
            (
                {"items": (ExternalOrderItemDto(None, "Lamp", Decimal("0"), 1),)},
                "INVALID_ITEM_PRICE",
            ),
            (
                {"items": (ExternalOrderItemDto(None, "  ", Decimal("20"), 1),)},
                "PRODUCT_NAME_REQUIRED",
            ),
        ],
    )
    def test_malformed_input_never_translated(self, overrides, code) -> None:
        with pytest.raises(AggregateBusinessRuleValidationError) as exc_info:
            ExternalOrderTranslator().translate(_dto(**overrides))
        assert exc_info.value.codes == [code]


class TestImportHandler:
    async def test_imports_draft_order(self, dispatcher, orders) -> None:
        result = await dispatcher.dispatch(ImportExternalOrder.model_validate(_payload()))
        assert result.ok, result.error
        order = await orders.get(OrderId.parse(result.value))
        assert order.status == OrderStatus.DRAFT
        assert order.external_order_id == "EXT-1001"
        assert order.currency == "USD"
        assert order.total == Money(Decimal("150.00"))
        assert order.shipping_address.state == "IL"
        assert [i.quantity for i in order.items] == [1, 2]

    async def test_negative_price_rejected_and_nothing_persisted(
        self, dispatcher, orders,
    ) -> None:
        payload = _payload(
            items=[{"productName": "Keyboard", "unitPrice": "-5.00", "quantity": 1}],
        )
        result = await dispatcher.dispatch(ImportExternalOrder.model_validate(payload))
        assert not result.ok
        assert result.error.code == "MULTIPLE_RULES_VIOLATED"
        assert [v.code for v in result.error.violations] == ["INVALID_ITEM_PRICE"]
        assert len(orders) == 0
        assert orders.unit_of_work.tracked_count == 0

    async def test_all_boundary_violations_reported(self, dispatcher, orders) -> None:
        payload = _payload(customerId=None, shippingStreet="", items=[])
        result = await dispatcher.dispatch(ImportExternalOrder.model_validate(payload))
        assert not result.ok
        assert [v.code for v in result.error.violations] == [
            "CUSTOMER_ID_REQUIRED",
            "INCOMPLETE_SHIPPING_ADDRESS",
            "IMPORT_ORDER_EMPTY",
        ]
        assert len(orders) == 0

    async def test_unsupported_currency(self, dispatcher, orders) -> None:
        result = await dispatcher.dispatch(
            ImportExternalOrder.model_validate(_payload(currency="JPY"))
        )
        assert not result.ok
        assert [v.code for v in result.error.violations] == ["UNSUPPORTED_CURRENCY"]
        assert len(orders) == 0

    async def test_duplicate_external_order(self, dispatcher, orders) -> None:
        first = await dispatcher.dispatch(ImportExternalOrder.model_validate(_payload()))
        second = await dispatcher.dispatch(ImportExternalOrder.model_validate(_payload()))
        assert first.ok
        assert not second.ok
        assert second.error.code == "DUPLICATE_EXTERNAL_ORDER"
        assert first.value in second.error.message
        assert len(orders) == 1
        assert orders.unit_of_work.tracked_count == 0

    async def test_snake_case_accepted(self, dispatcher) -> None:
        command = ImportExternalOrder(
            external_order_id="EXT-2",
            customer_id=uuid.uuid4(),
            shipping_street="1 Main St",
            shipping_city="Springfield",
            shipping_country="US",
            shipping_zip_code="12345",
            items=[{"product_name": "Pen", "unit_price": "1.50", "quantity": 4}],
        )
        result = await dispatcher.dispatch(command)
        assert result.ok
