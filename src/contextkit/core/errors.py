"""Custom exception hierarchy for contextkit.

Domain errors carry a machine-readable ``code`` next to the human-readable
message so the command boundary can report them as structured errors.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from contextkit.domain.rules import IBusinessRule


class ContextKitError(Exception):
    """Base exception for all contextkit errors."""


# --- Configuration ---
class ConfigError(ContextKitError):
    """Invalid or missing configuration."""


# --- Domain ---
class DomainError(ContextKitError):
    """Error surfaced to callers with a code and a message."""

    default_code = "DOMAIN_ERROR"

    def __init__(self, message: str, code: str | None = None) -> None:
        self.code = code or self.default_code
        self.message = message
        super().__init__(message)

    def __str__(self) -> str:
        return f"[{self.code}] {self.message}"


class BusinessRuleValidationError(DomainError):
    """A single business rule is broken."""

    def __init__(self, rule: IBusinessRule) -> None:
        self.rule = rule
        super().__init__(rule.message, code=rule.code)


class AggregateBusinessRuleValidationError(DomainError):
    """Several business rules are broken at once (collect-all validation)."""

    default_code = "MULTIPLE_RULES_VIOLATED"

    def __init__(self, broken_rules: Sequence[IBusinessRule]) -> None:
        self.broken_rules: tuple[IBusinessRule, ...] = tuple(broken_rules)
        super().__init__("; ".join(r.message for r in self.broken_rules))

    @property
    def violations(self) -> list[tuple[str, str]]:
        """``(code, message)`` for every broken rule, in check order."""
        return [(r.code, r.message) for r in self.broken_rules]

    @property
    def codes(self) -> list[str]:
        return [r.code for r in self.broken_rules]


class NotFoundError(DomainError):
    """Requested aggregate does not exist."""

    default_code = "NOT_FOUND"

    def __init__(self, entity: str, entity_id: Any) -> None:
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} {entity_id} was not found.")


class ConcurrencyError(DomainError):
    """Aggregate was modified by someone else since it was loaded."""

    default_code = "CONCURRENCY_CONFLICT"

    def __init__(self, entity: str, entity_id: Any, expected: int, actual: int) -> None:
        self.expected_version = expected
        self.actual_version = actual
        super().__init__(
            f"{entity} {entity_id} is at version {actual}, expected {expected}."
        )


# --- Integration ---
class IntegrationError(ContextKitError):
    """Integration pipeline or transport failure."""


class PublishError(IntegrationError):
    """A transport could not accept an integration event."""


class UnknownEventTypeError(IntegrationError):
    """Wire message carries an event type tag with no registered schema."""
