"""Shared fixtures for the contextkit test suite."""

from __future__ import annotations

import uuid
from decimal import Decimal

import pytest

from contextkit.app import App, build_app
from contextkit.core.config import Settings
from contextkit.domain.money import Money
from contextkit.integration.bus import InMemoryEventBus
from contextkit.integration.pipeline import IntegrationPipeline
from contextkit.ordering.domain.model import Order
from contextkit.ordering.domain.values import Address


# ---------------------------------------------------------------------------
# Ordering
# ---------------------------------------------------------------------------

@pytest.fixture
def customer_id() -> uuid.UUID:
    return uuid.UUID("11111111-2222-3333-4444-555555555555")


@pytest.fixture
def address() -> Address:
    return Address.create("1 Main St", "Springfield", "US", "12345", "IL")


def _make_order(customer: uuid.UUID | None = None, *items: tuple[str, str, int]) -> Order:
    """Draft order with ``(name, unit_price, quantity)`` items."""
    order = Order.create(customer or uuid.uuid4())
    for name, price, qty in items:
        order.add_item(uuid.uuid4(), name, Money(Decimal(price)), qty)
    return order


@pytest.fixture
def order_factory():
    return _make_order


@pytest.fixture
def draft_order(customer_id) -> Order:
    return _make_order(customer_id, ("Keyboard", "100.00", 1), ("Mouse", "25.00", 2))


# ---------------------------------------------------------------------------
# Integration
# ---------------------------------------------------------------------------

@pytest.fixture
def memory_bus() -> InMemoryEventBus:
    return InMemoryEventBus()


@pytest.fixture
def pipeline(memory_bus) -> IntegrationPipeline:
    return IntegrationPipeline(memory_bus)


@pytest.fixture
async def app() -> App:
    application = build_app(Settings())
    await application.start()
    yield application
    await application.stop()
