"""Property-based tests for value and identity equality."""

from __future__ import annotations

import uuid
from decimal import Decimal

from hypothesis import given
from hypothesis import strategies as st

from contextkit.domain.money import Money
from contextkit.ordering.domain.model import Order
from contextkit.ordering.domain.values import Address, OrderId, OrderItemId
from contextkit.payments.domain.values import PaymentId

amounts = st.decimals(
    min_value=Decimal("-1000000"),
    max_value=Decimal("1000000"),
    places=2,
    allow_nan=False,
    allow_infinity=False,
)
currencies = st.sampled_from(["USD", "EUR", "GBP"])
money = st.builds(Money, amounts, currencies)
uuids = st.uuids()
text = st.text(min_size=1, max_size=12).filter(lambda s: s.strip() == s and s)


@given(money)
def test_money_reflexive(m: Money) -> None:
    assert m == m
    assert hash(m) == hash(m)


@given(money, money)
def test_money_symmetric_and_hash_consistent(a: Money, b: Money) -> None:
    assert (a == b) == (b == a)
    if a == b:
        assert hash(a) == hash(b)


@given(amounts, currencies)
def test_money_copies_equal(amount: Decimal, currency: str) -> None:
    assert Money(amount, currency) == Money(Decimal(str(amount)), currency.lower())


@given(money, money, money)
def test_money_addition_associative(a: Money, b: Money, c: Money) -> None:
    b = Money(b.amount, a.currency)
    c = Money(c.amount, a.currency)
    assert (a + b) + c == a + (b + c)


@given(text, text, text, text)
def test_address_structural(street: str, city: str, country: str, zip_code: str) -> None:
    a = Address(street, city, country, zip_code)
    b = Address(street, city, country, zip_code)
    assert a == b
    assert hash(a) == hash(b)
    assert a != Address(street, city, country, zip_code + "x")


@given(uuids)
def test_ids_of_different_aggregates_never_equal(value: uuid.UUID) -> None:
    assert OrderId(value) == OrderId(value)
    assert OrderId(value) != PaymentId(value)
    assert OrderId(value) != OrderItemId(value)


@given(uuids, uuids)
def test_entity_equality_follows_id(a: uuid.UUID, b: uuid.UUID) -> None:
    customer = uuid.uuid4()
    first = Order(OrderId(a), customer)
    second = Order(OrderId(b), customer)
    expected = a == b and a.int != 0
    assert (first == second) is expected
    if expected:
        assert hash(first) == hash(second)
