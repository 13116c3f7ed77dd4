"""Boundary rules for data arriving from foreign systems."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from decimal import Decimal

from contextkit.domain.entity import is_default_id
from contextkit.domain.money import SUPPORTED_CURRENCIES
from contextkit.domain.rules import BusinessRule


@dataclass(frozen=True)
class CustomerIdMustBeProvidedRule(BusinessRule):
    customer_id: object

    message = "Customer ID is required."
    code = "CUSTOMER_ID_REQUIRED"

    def is_broken(self) -> bool:
        return is_default_id(self.customer_id)


@dataclass(frozen=True)
class ExternalOrderIdMustBeProvidedRule(BusinessRule):
    external_order_id: str | None

    message = "External order ID is required."
    code = "EXTERNAL_ORDER_ID_REQUIRED"

    def is_broken(self) -> bool:
        return not (self.external_order_id or "").strip()


@dataclass(frozen=True)
class ImportedOrderMustHaveItemsRule(BusinessRule):
    item_count: int

    message = "Imported order must contain at least one item."
    code = "IMPORT_ORDER_EMPTY"

    def is_broken(self) -> bool:
        return self.item_count <= 0


@dataclass(frozen=True)
class ImportedItemsMustHaveValidPricesRule(BusinessRule):
    prices: Sequence[Decimal]

    message = "All imported items must have a positive unit price."
    code = "INVALID_ITEM_PRICE"

    def is_broken(self) -> bool:
        return any(price <= 0 for price in self.prices)


@dataclass(frozen=True)
class ImportedItemsMustHaveValidQuantitiesRule(BusinessRule):
    quantities: Sequence[int]

    message = "All imported items must have a positive quantity."
    code = "INVALID_ITEM_QUANTITY"

    def is_broken(self) -> bool:
        return any(quantity <= 0 for quantity in self.quantities)


@dataclass(frozen=True)
class CurrencyMustBeSupportedRule(BusinessRule):
    currency: str | None

    code = "UNSUPPORTED_CURRENCY"

    @property
    def message(self) -> str:  # type: ignore[override]
        supported = ", ".join(sorted(SUPPORTED_CURRENCIES))
        return f"Currency '{self.currency}' is not supported (supported: {supported})."

    def is_broken(self) -> bool:
        return (self.currency or "").strip().upper() not in SUPPORTED_CURRENCIES


@dataclass(frozen=True)
class ImportedItemsMustHaveProductNamesRule(BusinessRule):
    product_names: Sequence[str | None]

    message = "All imported items must have a product name."
    code = "PRODUCT_NAME_REQUIRED"

    def is_broken(self) -> bool:
        return any(not (name or "").strip() for name in self.product_names)
