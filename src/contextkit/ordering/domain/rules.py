"""Invariants guarding Order mutations."""

from __future__ import annotations

from collections.abc import Collection
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum

from contextkit.domain.entity import is_default_id
from contextkit.domain.rules import BusinessRule


@dataclass(frozen=True)
class OrderMustBeInStatusRule(BusinessRule):
    current: Enum
    allowed: Collection[Enum]
    action: str

    code = "INVALID_ORDER_STATUS"

    @property
    def message(self) -> str:  # type: ignore[override]
        allowed = ", ".join(s.value for s in self.allowed)
        return (
            f"Cannot {self.action} an order in status '{self.current.value}' "
            f"(requires: {allowed})."
        )

    def is_broken(self) -> bool:
        return self.current not in self.allowed


@dataclass(frozen=True)
class OrderMustHaveItemsRule(BusinessRule):
    item_count: int

    message = "An order must contain at least one item."
    code = "ORDER_EMPTY"

    def is_broken(self) -> bool:
        return self.item_count < 1


@dataclass(frozen=True)
class OrderCanBeCancelledRule(BusinessRule):
    current: Enum
    cancellable: Collection[Enum]

    code = "ORDER_CANNOT_BE_CANCELLED"

    @property
    def message(self) -> str:  # type: ignore[override]
        return f"An order in status '{self.current.value}' cannot be cancelled."

    def is_broken(self) -> bool:
        return self.current not in self.cancellable


@dataclass(frozen=True)
class ItemPriceMustBePositiveRule(BusinessRule):
    unit_price: Decimal

    message = "Item unit price must be greater than zero."
    code = "INVALID_ITEM_PRICE"

    def is_broken(self) -> bool:
        return self.unit_price <= 0


@dataclass(frozen=True)
class ItemQuantityMustBePositiveRule(BusinessRule):
    quantity: int

    message = "Item quantity must be greater than zero."
    code = "INVALID_ITEM_QUANTITY"

    def is_broken(self) -> bool:
        return self.quantity <= 0


@dataclass(frozen=True)
class ProductNameMustBeProvidedRule(BusinessRule):
    product_name: str | None

    message = "Product name is required."
    code = "PRODUCT_NAME_REQUIRED"

    def is_broken(self) -> bool:
        return not (self.product_name or "").strip()


@dataclass(frozen=True)
class ItemPriceMustMatchExistingLineRule(BusinessRule):
    existing_price: object
    unit_price: object

    message = "The product is already on the order at a different unit price."
    code = "ITEM_PRICE_MISMATCH"

    def is_broken(self) -> bool:
        return self.existing_price is not None and self.existing_price != self.unit_price


@dataclass(frozen=True)
class OrderItemMustExistRule(BusinessRule):
    found: bool

    message = "The order does not contain that item."
    code = "ORDER_ITEM_NOT_FOUND"

    def is_broken(self) -> bool:
        return not self.found


@dataclass(frozen=True)
class OrderCustomerMustBeKnownRule(BusinessRule):
    customer_id: object

    message = "An order must belong to a customer."
    code = "CUSTOMER_ID_REQUIRED"

    def is_broken(self) -> bool:
        return is_default_id(self.customer_id)


@dataclass(frozen=True)
class AddressMustBeCompleteRule(BusinessRule):
    street: str | None
    city: str | None
    country: str | None
    zip_code: str | None

    message = "Shipping address must include street, city, country, and zip code."
    code = "INCOMPLETE_SHIPPING_ADDRESS"

    def is_broken(self) -> bool:
        return any(
            not (part or "").strip()
            for part in (self.street, self.city, self.country, self.zip_code)
        )
