"""Identifiers, statuses and value objects of the ordering context."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from contextkit.domain.entity import EntityId
from contextkit.domain.rules import check_rule
from contextkit.domain.value_object import ValueObject

from .rules import AddressMustBeCompleteRule


@dataclass(frozen=True, eq=False)
class OrderId(EntityId):
    pass


@dataclass(frozen=True, eq=False)
class OrderItemId(EntityId):
    pass


class OrderStatus(str, Enum):
    DRAFT = "draft"
    SUBMITTED = "submitted"
    PAID = "paid"
    SHIPPED = "shipped"
    CANCELLED = "cancelled"


@dataclass(frozen=True, eq=False)
class Address(ValueObject):
    street: str
    city: str
    country: str
    zip_code: str
    state: str = ""

    @classmethod
    def create(
        cls,
        street: str | None,
        city: str | None,
        country: str | None,
        zip_code: str | None,
        state: str | None = None,
    ) -> Address:
        """Build a complete address or raise ``INCOMPLETE_SHIPPING_ADDRESS``."""
        check_rule(AddressMustBeCompleteRule(street, city, country, zip_code))
        return cls(
            street=street.strip(),  # type: ignore[union-attr]
            city=city.strip(),  # type: ignore[union-attr]
            country=country.strip(),  # type: ignore[union-attr]
            zip_code=zip_code.strip(),  # type: ignore[union-attr]
            state=(state or "").strip(),
        )
