"""Compile specification predicates into SQLAlchemy where-clauses.

Every comparison is compiled as ``col IS NOT NULL AND <comparison>`` so it
is false, never ``NULL``, on a missing value.  ``NOT`` then behaves as a
plain complement and the compiled query agrees with in-memory evaluation.

Usage::

    columns = {"status": orders.c.status, "item_count": orders.c.item_count}
    stmt = select(orders).where(where_clause(spec, columns))
"""

from __future__ import annotations

import uuid
from collections.abc import Mapping
from enum import Enum
from typing import Any

from sqlalchemy import and_, false, not_, or_, true
from sqlalchemy.sql.elements import ColumnElement

from contextkit.domain.entity import EntityId
from contextkit.domain.specification import (
    Comparison,
    Conjunction,
    Constant,
    Disjunction,
    Negation,
    Operator,
    Predicate,
    Specification,
)


def _bind(value: Any) -> Any:
    """Convert domain values to column-compatible literals."""
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (EntityId, uuid.UUID)):
        return str(value)
    return value


_ORDERING = (Operator.LT, Operator.LE, Operator.GT, Operator.GE)


def _compare(column: ColumnElement[Any], node: Comparison) -> ColumnElement[bool]:
    op = node.operator
    if op == Operator.EQ:
        return column == _bind(node.value)
    if op == Operator.NE:
        return column != _bind(node.value)
    if op in _ORDERING:
        if node.value is None:
            return false()
        value = _bind(node.value)
        if op == Operator.LT:
            return column < value
        if op == Operator.LE:
            return column <= value
        if op == Operator.GT:
            return column > value
        return column >= value
    if op in (Operator.IN, Operator.NOT_IN):
        # NULL inside an IN list would make a miss NULL instead of false.
        values = [_bind(v) for v in node.value if v is not None]
        return column.in_(values) if op == Operator.IN else column.not_in(values)
    low, high = node.value
    if low is None or high is None:
        return false()
    return column.between(_bind(low), _bind(high))


def _guarded(column: ColumnElement[Any], node: Comparison) -> ColumnElement[bool]:
    """Comparison that is false, never ``NULL``, when the column is ``NULL``."""
    return and_(column.is_not(None), _compare(column, node))


def compile_predicate(
    predicate: Predicate,
    columns: Mapping[str, ColumnElement[Any]],
) -> ColumnElement[bool]:
    """Translate *predicate* using *columns* to resolve field names.

    Raises
    ------
    ValueError
        If the predicate references a field with no mapped column.
    """
    if isinstance(predicate, Constant):
        return true() if predicate.value else false()
    if isinstance(predicate, Comparison):
        column = columns.get(predicate.field)
        if column is None:
            raise ValueError(f"No column mapped for field {predicate.field!r}")
        return _guarded(column, predicate)
    if isinstance(predicate, Conjunction):
        return and_(*(compile_predicate(p, columns) for p in predicate.operands))
    if isinstance(predicate, Disjunction):
        return or_(*(compile_predicate(p, columns) for p in predicate.operands))
    if isinstance(predicate, Negation):
        return not_(compile_predicate(predicate.operand, columns))
    raise TypeError(f"Unsupported predicate node: {type(predicate).__name__}")


def where_clause(
    specification: Specification[Any],
    columns: Mapping[str, ColumnElement[Any]],
) -> ColumnElement[bool]:
    return compile_predicate(specification.to_predicate(), columns)
