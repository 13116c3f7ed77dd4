"""Invariants guarding Payment mutations."""

from __future__ import annotations

from collections.abc import Collection
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum

from contextkit.domain.rules import BusinessRule


@dataclass(frozen=True)
class PaymentAmountMustBePositiveRule(BusinessRule):
    amount: Decimal

    message = "Payment amount must be greater than zero."
    code = "INVALID_PAYMENT_AMOUNT"

    def is_broken(self) -> bool:
        return self.amount <= 0


@dataclass(frozen=True)
class PaymentMustReferenceOrderRule(BusinessRule):
    order_id: str | None

    message = "A payment must reference an order."
    code = "ORDER_ID_REQUIRED"

    def is_broken(self) -> bool:
        return not (self.order_id or "").strip()


@dataclass(frozen=True)
class PaymentMustBeInStatusRule(BusinessRule):
    current: Enum
    allowed: Collection[Enum]
    action: str

    code = "INVALID_PAYMENT_STATUS"

    @property
    def message(self) -> str:  # type: ignore[override]
        return f"Cannot {self.action} a payment in status '{self.current.value}'."

    def is_broken(self) -> bool:
        return self.current not in self.allowed
