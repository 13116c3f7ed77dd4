"""Domain kernel: identity, values, rules, specifications, events.

This package defines the modeling primitives every bounded context
depends on but never modifies.
"""

from .entity import AggregateRoot, Entity, EntityId, is_default_id
from .events import DomainEvent
from .rules import (
    DEFAULT_RULE_CODE,
    BusinessRule,
    IBusinessRule,
    check_rule,
    check_rules,
    get_broken_rules,
    validate_all,
)
from .specification import (
    AnySpecification,
    FieldSpecification,
    Operator,
    Predicate,
    Specification,
)
from .value_object import ValueObject

__all__ = [
    "AggregateRoot",
    "AnySpecification",
    "BusinessRule",
    "DEFAULT_RULE_CODE",
    "DomainEvent",
    "Entity",
    "EntityId",
    "FieldSpecification",
    "IBusinessRule",
    "Operator",
    "Predicate",
    "Specification",
    "ValueObject",
    "check_rule",
    "check_rules",
    "get_broken_rules",
    "is_default_id",
    "validate_all",
]
