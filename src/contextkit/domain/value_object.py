"""Attribute-equality building block.

A value object has no identity.  Two instances are equal when their
equality components are element-wise equal, and hashing is derived from
the same components, so concrete types never write ``__eq__`` by hand.

Concrete value objects are declared as::

    @dataclass(frozen=True, eq=False)
    class Money(ValueObject):
        amount: Decimal
        currency: str

``frozen=True`` makes them immutable after ``__init__``/``__post_init__``;
``eq=False`` keeps the generic equality defined here.
"""

from __future__ import annotations

import dataclasses
from collections.abc import Iterable
from typing import Any


class ValueObject:
    """Base for immutable, structurally-compared domain values."""

    __slots__ = ()

    def equality_components(self) -> Iterable[Any]:
        """Ordered values that define equality.

        Defaults to the declared dataclass fields in declaration order.
        Override to exclude derived or cached attributes.
        """
        if not dataclasses.is_dataclass(self):
            raise TypeError(
                f"{type(self).__name__} must be a dataclass or override "
                "equality_components()"
            )
        return tuple(getattr(self, f.name) for f in dataclasses.fields(self))

    def __eq__(self, other: object) -> bool:
        if other is None or type(other) is not type(self):
            return False
        return tuple(self.equality_components()) == tuple(
            other.equality_components()  # type: ignore[attr-defined]
        )

    def __hash__(self) -> int:
        return hash((type(self), tuple(self.equality_components())))
