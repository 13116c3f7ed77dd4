"""Composable specifications backed by a small predicate AST.

A specification does not hold a Python callable.  It builds a
:class:`Predicate` tree (comparisons over named fields joined by
conjunction, disjunction and negation) that is:

- interpreted directly for in-memory checks (:meth:`Specification.is_satisfied_by`);
- compiled by a storage adapter into its native query language
  (see ``contextkit.persistence.sql``).

Composition only ever builds new tree nodes, so a composed specification
stays translatable whenever its parts are.

Evaluation is two-valued: a comparison against a missing or ``None``
field is false, whatever the operator.  ``Negation`` is therefore a plain
complement, and ``~spec`` is satisfied exactly when ``spec`` is not.  The
SQL compiler guards every comparison with ``IS NOT NULL`` so compiled
queries give the same answer.
"""

from __future__ import annotations

import logging
import operator as _op
from abc import ABC, abstractmethod
from collections.abc import Callable, Iterable, Iterator, Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any, Generic, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class Operator(str, Enum):
    """Comparison operators for predicate evaluation."""

    EQ = "eq"                # field == value
    NE = "ne"                # field != value
    LT = "lt"                # field < value
    LE = "le"                # field <= value
    GT = "gt"                # field > value
    GE = "ge"                # field >= value
    IN = "in"                # field in value (sequence)
    NOT_IN = "not_in"        # field not in value (sequence)
    BETWEEN = "between"      # value[0] <= field <= value[1]


_OPS: dict[Operator, Callable[[Any, Any], bool]] = {
    Operator.EQ: _op.eq,
    Operator.NE: _op.ne,
    Operator.LT: _op.lt,
    Operator.LE: _op.le,
    Operator.GT: _op.gt,
    Operator.GE: _op.ge,
}


def resolve_field(candidate: Any, path: str) -> Any:
    """Resolve a dot-path against attributes or mapping keys.

    Returns ``None`` as soon as a segment is missing.
    """
    current = candidate
    for part in path.split("."):
        if current is None:
            return None
        if isinstance(current, Mapping):
            current = current.get(part)
        else:
            current = getattr(current, part, None)
    return current


# ---------------------------------------------------------------------------
# Predicate AST
# ---------------------------------------------------------------------------

class Predicate(ABC):
    """Node of a predicate tree."""

    @abstractmethod
    def evaluate(self, candidate: Any) -> bool:
        """Return whether *candidate* matches this node."""

    @abstractmethod
    def walk(self) -> Iterator[Predicate]:
        """Yield this node and every descendant, depth-first."""

    def fields(self) -> set[str]:
        """Names of every field referenced by the tree."""
        return {n.field for n in self.walk() if isinstance(n, Comparison)}


@dataclass(frozen=True)
class Constant(Predicate):
    value: bool

    def evaluate(self, candidate: Any) -> bool:
        return self.value

    def walk(self) -> Iterator[Predicate]:
        yield self


@dataclass(frozen=True)
class Comparison(Predicate):
    field: str
    operator: Operator
    value: Any

    def __post_init__(self) -> None:
        if self.operator in (Operator.IN, Operator.NOT_IN):
            object.__setattr__(self, "value", tuple(self.value))
        elif self.operator == Operator.BETWEEN:
            low, high = self.value
            object.__setattr__(self, "value", (low, high))

    def evaluate(self, candidate: Any) -> bool:
        actual = resolve_field(candidate, self.field)
        if actual is None:
            return False
        try:
            if self.operator in _OPS:
                return bool(_OPS[self.operator](actual, self.value))
            if self.operator == Operator.IN:
                return actual in self.value
            if self.operator == Operator.NOT_IN:
                return actual not in self.value
            low, high = self.value
            return bool(low <= actual <= high)
        except TypeError:
            # Fail-closed: incomparable types never satisfy a comparison.
            logger.warning(
                "Type mismatch evaluating %s %s %r against %r",
                self.field,
                self.operator.value,
                self.value,
                actual,
            )
            return False

    def walk(self) -> Iterator[Predicate]:
        yield self


@dataclass(frozen=True)
class Conjunction(Predicate):
    operands: tuple[Predicate, ...]

    @classmethod
    def of(cls, *operands: Predicate) -> Conjunction:
        """Build a flattened conjunction (nested conjunctions are inlined)."""
        flat: list[Predicate] = []
        for operand in operands:
            if isinstance(operand, Conjunction):
                flat.extend(operand.operands)
            else:
                flat.append(operand)
        return cls(tuple(flat))

    def evaluate(self, candidate: Any) -> bool:
        return all(operand.evaluate(candidate) for operand in self.operands)

    def walk(self) -> Iterator[Predicate]:
        yield self
        for operand in self.operands:
            yield from operand.walk()


@dataclass(frozen=True)
class Disjunction(Predicate):
    operands: tuple[Predicate, ...]

    @classmethod
    def of(cls, *operands: Predicate) -> Disjunction:
        """Build a flattened disjunction (nested disjunctions are inlined)."""
        flat: list[Predicate] = []
        for operand in operands:
            if isinstance(operand, Disjunction):
                flat.extend(operand.operands)
            else:
                flat.append(operand)
        return cls(tuple(flat))

    def evaluate(self, candidate: Any) -> bool:
        return any(operand.evaluate(candidate) for operand in self.operands)

    def walk(self) -> Iterator[Predicate]:
        yield self
        for operand in self.operands:
            yield from operand.walk()


@dataclass(frozen=True)
class Negation(Predicate):
    operand: Predicate

    def evaluate(self, candidate: Any) -> bool:
        return not self.operand.evaluate(candidate)

    def walk(self) -> Iterator[Predicate]:
        yield self
        yield from self.operand.walk()


# ---------------------------------------------------------------------------
# Specifications
# ---------------------------------------------------------------------------

class Specification(ABC, Generic[T]):
    """Reusable, composable predicate over ``T``.

    Subclasses only implement :meth:`to_predicate`; combinators and
    evaluation come from the base.  ``a & b``, ``a | b`` and ``~a`` are
    aliases for :meth:`and_`, :meth:`or_` and :meth:`not_`.
    """

    @abstractmethod
    def to_predicate(self) -> Predicate:
        """Build the predicate tree for this specification."""

    def is_satisfied_by(self, candidate: T) -> bool:
        return self.to_predicate().evaluate(candidate)

    def filter(self, candidates: Iterable[T]) -> list[T]:
        """Return the candidates that satisfy the specification."""
        predicate = self.to_predicate()
        return [c for c in candidates if predicate.evaluate(c)]

    # -- Combinators -------------------------------------------------------

    def and_(self, other: Specification[T]) -> Specification[T]:
        return AndSpecification(self, other)

    def or_(self, other: Specification[T]) -> Specification[T]:
        return OrSpecification(self, other)

    def not_(self) -> Specification[T]:
        return NotSpecification(self)

    def __and__(self, other: Specification[T]) -> Specification[T]:
        return self.and_(other)

    def __or__(self, other: Specification[T]) -> Specification[T]:
        return self.or_(other)

    def __invert__(self) -> Specification[T]:
        return self.not_()


class AndSpecification(Specification[T]):
    def __init__(self, left: Specification[T], right: Specification[T]) -> None:
        self.left = left
        self.right = right

    def to_predicate(self) -> Predicate:
        return Conjunction.of(self.left.to_predicate(), self.right.to_predicate())

    def __repr__(self) -> str:
        return f"({self.left!r} AND {self.right!r})"


class OrSpecification(Specification[T]):
    def __init__(self, left: Specification[T], right: Specification[T]) -> None:
        self.left = left
        self.right = right

    def to_predicate(self) -> Predicate:
        return Disjunction.of(self.left.to_predicate(), self.right.to_predicate())

    def __repr__(self) -> str:
        return f"({self.left!r} OR {self.right!r})"


class NotSpecification(Specification[T]):
    def __init__(self, inner: Specification[T]) -> None:
        self.inner = inner

    def to_predicate(self) -> Predicate:
        return Negation(self.inner.to_predicate())

    def __repr__(self) -> str:
        return f"(NOT {self.inner!r})"


class FieldSpecification(Specification[T]):
    """Single comparison, for ad-hoc queries."""

    def __init__(self, field: str, operator: Operator, value: Any) -> None:
        self.field = field
        self.operator = operator
        self.value = value

    def to_predicate(self) -> Predicate:
        return Comparison(self.field, self.operator, self.value)

    def __repr__(self) -> str:
        return f"{self.field} {self.operator.value} {self.value!r}"


class AnySpecification(Specification[T]):
    """Satisfied by every candidate.  Identity element for ``and_``."""

    def to_predicate(self) -> Predicate:
        return Constant(True)

    def __repr__(self) -> str:
        return "ANY"
