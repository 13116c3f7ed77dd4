"""Business rules and the stateless rule checker.

A rule is a small immutable object bound to the values it checks.  It
answers three questions: is it broken, what to tell a human, and which
code to hand to a machine.  Concrete rules are frozen dataclasses::

    @dataclass(frozen=True)
    class OrderMustHaveItemsRule(BusinessRule):
        item_count: int

        message = "An order must contain at least one item."
        code = "ORDER_EMPTY"

        def is_broken(self) -> bool:
            return self.item_count < 1

Two checking styles are provided:

- **fail-fast** (:func:`check_rule`, :func:`check_rules`) for aggregate
  invariants; the first broken rule aborts the mutation before any state
  changes, so later rules may assume earlier ones held.
- **collect-all** (:func:`validate_all`) for input boundaries, where the
  caller wants every problem reported at once.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import ClassVar, Protocol, runtime_checkable

from contextkit.core.errors import (
    AggregateBusinessRuleValidationError,
    BusinessRuleValidationError,
)

logger = logging.getLogger(__name__)

DEFAULT_RULE_CODE = "BUSINESS_RULE_VIOLATION"


@runtime_checkable
class IBusinessRule(Protocol):
    """Anything that can be checked as a business rule."""

    @property
    def message(self) -> str: ...

    @property
    def code(self) -> str: ...

    def is_broken(self) -> bool: ...


class BusinessRule(ABC):
    """Convenience base for rules with a fixed message and code.

    Subclasses set ``message`` (and optionally ``code``) as class
    attributes, or override them as properties when the text depends on
    the bound values.
    """

    message: ClassVar[str] = "Business rule is broken."
    code: ClassVar[str] = DEFAULT_RULE_CODE

    @abstractmethod
    def is_broken(self) -> bool:
        """Return ``True`` when the checked values violate the rule."""


# ---------------------------------------------------------------------------
# Checker
# ---------------------------------------------------------------------------

def check_rule(rule: IBusinessRule) -> None:
    """Raise :class:`BusinessRuleValidationError` if *rule* is broken."""
    if rule.is_broken():
        logger.debug("Business rule broken: %s (%s)", rule.code, type(rule).__name__)
        raise BusinessRuleValidationError(rule)


def check_rules(*rules: IBusinessRule) -> None:
    """Check *rules* in order, stopping at the first broken one."""
    for rule in rules:
        check_rule(rule)


def get_broken_rules(*rules: IBusinessRule) -> list[IBusinessRule]:
    """Evaluate every rule and return the broken ones, in order."""
    return [rule for rule in rules if rule.is_broken()]


def validate_all(*rules: IBusinessRule) -> None:
    """Evaluate every rule; raise once listing all broken ones.

    Raises
    ------
    AggregateBusinessRuleValidationError
        If at least one rule is broken.  Its message joins every broken
        rule's message with ``"; "``.
    """
    broken = get_broken_rules(*rules)
    if broken:
        logger.debug(
            "Validation failed with %d broken rule(s): %s",
            len(broken),
            ", ".join(r.code for r in broken),
        )
        raise AggregateBusinessRuleValidationError(broken)
