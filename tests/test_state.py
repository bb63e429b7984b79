import pytest

from slate.infrastructure.arango.query_builder.state import (
    ClauseSet,
    Operator,
    SortOrder,
    TraversalDirection,
    TraversalSpec,
)


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        ("==", Operator.EQ),
        ("like", Operator.LIKE),
        ("not  like", Operator.NOT_LIKE),
        ("Not In", Operator.NOT_IN),
        (Operator.GTE, Operator.GTE),
    ],
)
def test_operator_parse(value, expected):
    assert Operator.parse(value) is expected


@pytest.mark.parametrize("value", ["=", "<>", "CONTAINS", "", 3])
def test_operator_parse_rejects_unknown_values(value):
    with pytest.raises(ValueError):
        Operator.parse(value)


def test_only_like_operators_wrap_values():
    assert Operator.LIKE.wraps_value
    assert Operator.NOT_LIKE.wraps_value
    assert not Operator.EQ.wraps_value


def test_sort_order_does_not_default_unknown_values():
    assert SortOrder.parse("asc") is SortOrder.ASC
    assert SortOrder.parse("DESC") is SortOrder.DESC
    with pytest.raises(ValueError):
        SortOrder.parse("descending")


def test_traversal_direction_parse():
    assert TraversalDirection.parse("outbound") is TraversalDirection.OUTBOUND
    with pytest.raises(ValueError):
        TraversalDirection.parse("SIDEWAYS")


def test_traversal_depth():
    spec = TraversalSpec(direction=TraversalDirection.ANY, source="@start")
    assert spec.depth == ""

    spec.min_depth, spec.max_depth = 1, 3
    assert spec.depth == "1..3"

    spec.min_depth, spec.max_depth = None, 2
    assert spec.depth == "1..2"

    spec.min_depth, spec.max_depth = 2, None
    assert spec.depth == "2..2"


def test_clause_set_clear():
    clauses = ClauseSet(
        parts=["FILTER users.age == @users_age1"],
        arguments={"users_age1": 1},
        sort_field="users.name",
        sort_order=SortOrder.DESC,
        offset=10,
        limit=5,
        traversal=TraversalSpec(direction=TraversalDirection.ANY, source="@start"),
        returns="users",
    )
    assert not clauses.is_empty()

    clauses.clear()

    assert clauses.is_empty()
    assert clauses.fragment == ""
