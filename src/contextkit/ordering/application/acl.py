"""Anti-corruption layer for orders imported from external systems.

``ExternalOrderDto`` mirrors the foreign order shape field for field.
``ExternalOrderTranslator`` checks it against every boundary rule, so no
malformed import reaches ``OrderFactory``, and reshapes it into the
ordering context's own ``CreateOrderData``.  The translator is pure: it
never builds the aggregate and never touches storage.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Sequence
from dataclasses import dataclass, field
from decimal import Decimal

from contextkit.core.errors import AggregateBusinessRuleValidationError
from contextkit.domain.money import DEFAULT_CURRENCY
from contextkit.domain.rules import validate_all
from contextkit.ordering.domain.factory import CreateOrderData, CreateOrderItemData
from contextkit.ordering.domain.rules import AddressMustBeCompleteRule
from contextkit.ordering.domain.values import Address

from .rules import (
    CurrencyMustBeSupportedRule,
    CustomerIdMustBeProvidedRule,
    ExternalOrderIdMustBeProvidedRule,
    ImportedItemsMustHaveProductNamesRule,
    ImportedItemsMustHaveValidPricesRule,
    ImportedItemsMustHaveValidQuantitiesRule,
    ImportedOrderMustHaveItemsRule,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ExternalOrderItemDto:
    product_id: uuid.UUID | None
    product_name: str
    unit_price: Decimal
    quantity: int


@dataclass(frozen=True)
class ExternalOrderDto:
    external_order_id: str | None
    customer_id: uuid.UUID | None
    customer_name: str | None = None
    shipping_street: str | None = None
    shipping_city: str | None = None
    shipping_state: str | None = None
    shipping_country: str | None = None
    shipping_zip_code: str | None = None
    currency: str = DEFAULT_CURRENCY
    items: Sequence[ExternalOrderItemDto] = field(default_factory=tuple)
    notes: str | None = None


class ExternalOrderTranslator:
    """Maps an :class:`ExternalOrderDto` onto :class:`CreateOrderData`."""

    def translate(self, dto: ExternalOrderDto) -> CreateOrderData:
        try:
            validate_all(
                ExternalOrderIdMustBeProvidedRule(dto.external_order_id),
                CustomerIdMustBeProvidedRule(dto.customer_id),
                CurrencyMustBeSupportedRule(dto.currency),
                AddressMustBeCompleteRule(
                    dto.shipping_street,
                    dto.shipping_city,
                    dto.shipping_country,
                    dto.shipping_zip_code,
                ),
                ImportedOrderMustHaveItemsRule(len(dto.items)),
                ImportedItemsMustHaveValidPricesRule(
                    tuple(i.unit_price for i in dto.items)
                ),
                ImportedItemsMustHaveValidQuantitiesRule(
                    tuple(i.quantity for i in dto.items)
                ),
                ImportedItemsMustHaveProductNamesRule(
                    tuple(i.product_name for i in dto.items)
                ),
            )
        except AggregateBusinessRuleValidationError as exc:
            logger.info(
                "Rejected external order %s: %s",
                dto.external_order_id,
                ", ".join(exc.codes),
            )
            raise

        currency = dto.currency.strip().upper()
        return CreateOrderData(
            customer_id=dto.customer_id,  # type: ignore[arg-type]
            shipping_address=Address.create(
                dto.shipping_street,
                dto.shipping_city,
                dto.shipping_country,
                dto.shipping_zip_code,
                dto.shipping_state,
            ),
            currency=currency,
            items=tuple(
                CreateOrderItemData(
                    product_id=item.product_id or uuid.uuid5(
                        uuid.NAMESPACE_URL, f"external-product:{item.product_name}"
                    ),
                    product_name=item.product_name,
                    unit_price=item.unit_price,
                    quantity=item.quantity,
                )
                for item in dto.items
            ),
            external_order_id=dto.external_order_id.strip(),  # type: ignore[union-attr]
            notes=dto.notes,
        )
