"""Property-based tests for specification composition."""

from __future__ import annotations

from hypothesis import given
from hypothesis import strategies as st

from contextkit.domain.specification import (
    AnySpecification,
    Comparison,
    Conjunction,
    Disjunction,
    FieldSpecification,
    Negation,
    Operator,
    Specification,
)

FIELDS = ("a", "b", "c")

candidates = st.fixed_dictionaries(
    {name: st.one_of(st.none(), st.integers(-5, 5)) for name in FIELDS}
)

leaf_specs = st.builds(
    FieldSpecification,
    st.sampled_from(FIELDS),
    st.sampled_from([Operator.EQ, Operator.NE, Operator.LT, Operator.GE]),
    st.integers(-5, 5),
)

specs = st.recursive(
    leaf_specs,
    lambda children: st.one_of(
        st.tuples(children, children).map(lambda p: p[0] & p[1]),
        st.tuples(children, children).map(lambda p: p[0] | p[1]),
        children.map(lambda s: ~s),
    ),
    max_leaves=8,
)


def _value(spec: Specification, candidate) -> bool:
    return spec.to_predicate().evaluate(candidate)


@given(specs, candidates)
def test_double_negation(spec, candidate) -> None:
    assert _value(~~spec, candidate) == _value(spec, candidate)


@given(specs, specs, candidates)
def test_de_morgan(a, b, candidate) -> None:
    assert _value(~(a & b), candidate) == _value(~a | ~b, candidate)
    assert _value(~(a | b), candidate) == _value(~a & ~b, candidate)


@given(specs, specs, candidates)
def test_commutative(a, b, candidate) -> None:
    assert _value(a & b, candidate) == _value(b & a, candidate)
    assert _value(a | b, candidate) == _value(b | a, candidate)


@given(specs, specs, specs, candidates)
def test_associative(a, b, c, candidate) -> None:
    assert _value((a & b) & c, candidate) == _value(a & (b & c), candidate)
    assert _value((a | b) | c, candidate) == _value(a | (b | c), candidate)


@given(specs, candidates)
def test_any_is_identity_for_and(spec, candidate) -> None:
    assert _value(spec & AnySpecification(), candidate) == _value(spec, candidate)


@given(specs, specs, candidates)
def test_and_or_not_laws(a, b, candidate) -> None:
    assert (a & b).is_satisfied_by(candidate) == (
        a.is_satisfied_by(candidate) and b.is_satisfied_by(candidate)
    )
    assert (a | b).is_satisfied_by(candidate) == (
        a.is_satisfied_by(candidate) or b.is_satisfied_by(candidate)
    )
    assert (~a).is_satisfied_by(candidate) == (not a.is_satisfied_by(candidate))


@given(specs, candidates)
def test_exactly_one_of_spec_and_negation(spec, candidate) -> None:
    assert spec.is_satisfied_by(candidate) != (~spec).is_satisfied_by(candidate)


@given(specs)
def test_predicate_tree_is_flat(spec) -> None:
    for node in spec.to_predicate().walk():
        if isinstance(node, Conjunction):
            assert not any(isinstance(o, Conjunction) for o in node.operands)
        if isinstance(node, Disjunction):
            assert not any(isinstance(o, Disjunction) for o in node.operands)
        assert isinstance(node, (Comparison, Conjunction, Disjunction, Negation))
