"""Payment gateway collaborator.

The real gateway is an external system; only the protocol and an
in-memory fake live here.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Protocol, runtime_checkable

from contextkit.core.ids import new_id
from contextkit.domain.money import Money

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ChargeResult:
    succeeded: bool
    transaction_ref: str = ""
    reason: str = ""


@runtime_checkable
class IPaymentGateway(Protocol):
    async def charge(self, payment_id: str, order_id: str, amount: Money) -> ChargeResult: ...


class InMemoryPaymentGateway:
    """Approves every charge up to *decline_above* (inclusive)."""

    def __init__(self, decline_above: Decimal | None = None) -> None:
        self._decline_above = decline_above
        self.charges: list[tuple[str, Money, ChargeResult]] = []

    async def charge(self, payment_id: str, order_id: str, amount: Money) -> ChargeResult:
        if self._decline_above is not None and amount.amount > self._decline_above:
            result = ChargeResult(False, reason=f"Amount {amount} exceeds limit")
        else:
            result = ChargeResult(True, transaction_ref=f"txn-{new_id()}")
        logger.debug("Charge %s for order %s: %s", payment_id, order_id, result)
        self.charges.append((payment_id, amount, result))
        return result
