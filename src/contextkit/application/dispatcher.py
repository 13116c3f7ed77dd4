"""Command dispatch and the handler boundary.

Handlers raise domain errors; the dispatcher is the one place that turns
them into structured results.  Anything that is not a ``DomainError``
(bugs, infrastructure failures) propagates unchanged.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field

from contextkit.core.errors import AggregateBusinessRuleValidationError, DomainError
from contextkit.observability.logger import get_logger, trace_scope

logger = get_logger(__name__)

C = TypeVar("C", bound=BaseModel)
R = TypeVar("R")

CommandHandler = Callable[[Any], Awaitable[Any]]


# ---------------------------------------------------------------------------
# Result models
# ---------------------------------------------------------------------------

class Command(BaseModel):
    """Base for command objects: immutable, external-context values."""

    model_config = ConfigDict(frozen=True)


class Violation(BaseModel):
    code: str
    message: str


class ErrorDetail(BaseModel):
    """Structured error reported to callers."""

    code: str
    message: str
    violations: list[Violation] = Field(default_factory=list)


class CommandResult(BaseModel, Generic[R]):
    ok: bool
    value: R | None = None
    error: ErrorDetail | None = None

    @classmethod
    def success(cls, value: Any = None) -> CommandResult[Any]:
        return cls(ok=True, value=value)

    @classmethod
    def failure(cls, error: ErrorDetail) -> CommandResult[Any]:
        return cls(ok=False, error=error)


def error_detail_from(exc: DomainError) -> ErrorDetail:
    """Map a domain error onto its structured form."""
    if isinstance(exc, AggregateBusinessRuleValidationError):
        violations = [Violation(code=c, message=m) for c, m in exc.violations]
    else:
        violations = [Violation(code=exc.code, message=exc.message)]
    return ErrorDetail(code=exc.code, message=exc.message, violations=violations)


# ---------------------------------------------------------------------------
# Dispatcher
# ---------------------------------------------------------------------------

class CommandDispatcher:
    """Routes each command type to exactly one handler."""

    def __init__(self) -> None:
        self._handlers: dict[type[BaseModel], CommandHandler] = {}

    def register(self, command_type: type[C], handler: Callable[[C], Awaitable[Any]]) -> None:
        if command_type in self._handlers:
            raise ValueError(f"Handler for {command_type.__name__} already registered")
        self._handlers[command_type] = handler

    def handles(self, command_type: type[BaseModel]) -> bool:
        return command_type in self._handlers

    async def dispatch(self, command: BaseModel) -> CommandResult[Any]:
        handler = self._handlers.get(type(command))
        if handler is None:
            raise LookupError(f"No handler registered for {type(command).__name__}")

        command_name = type(command).__name__
        with trace_scope():
            try:
                value = await handler(command)
            except DomainError as exc:
                logger.info(
                    "command_rejected",
                    command=command_name,
                    code=exc.code,
                    error=exc.message,
                )
                return CommandResult.failure(error_detail_from(exc))

            logger.info("command_handled", command=command_name)
            return CommandResult.success(value)
