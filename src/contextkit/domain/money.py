"""Currency-safe monetary amount shared by every bounded context."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from .rules import BusinessRule, check_rule
from .value_object import ValueObject

DEFAULT_CURRENCY = "USD"
SUPPORTED_CURRENCIES = frozenset({"USD", "EUR", "GBP"})


@dataclass(frozen=True)
class CurrencyMustMatchRule(BusinessRule):
    left: str
    right: str

    message = "Cannot combine amounts in different currencies."
    code = "CURRENCY_MISMATCH"

    def is_broken(self) -> bool:
        return self.left != self.right


@dataclass(frozen=True, eq=False)
class Money(ValueObject):
    amount: Decimal
    currency: str = DEFAULT_CURRENCY

    def __post_init__(self) -> None:
        object.__setattr__(self, "amount", Decimal(str(self.amount)))
        object.__setattr__(self, "currency", self.currency.strip().upper())

    @classmethod
    def zero(cls, currency: str = DEFAULT_CURRENCY) -> Money:
        return cls(Decimal("0"), currency)

    @property
    def is_positive(self) -> bool:
        return self.amount > 0

    def __add__(self, other: Money) -> Money:
        check_rule(CurrencyMustMatchRule(self.currency, other.currency))
        return Money(self.amount + other.amount, self.currency)

    def multiply(self, quantity: int) -> Money:
        return Money(self.amount * quantity, self.currency)

    def __str__(self) -> str:
        return f"{self.amount:.2f} {self.currency}"
