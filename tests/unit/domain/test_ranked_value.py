"""Tests for the reference model of the generated reducers."""

import itertools

import pytest
from pydantic import ValidationError

from argminmax.domain.ranked_value import (
    EMPTY,
    INT8_MAX,
    INT8_MIN,
    AggregateDirection,
    RankedValue,
    aggregate,
    combine,
    combine_max,
    combine_min,
    project,
)

CANDIDATES = [
    EMPTY,
    RankedValue[int](arg=None, value=3),
    RankedValue[int](arg=1, value=5),
    RankedValue[int](arg=2, value=3),
    RankedValue[int](arg=3, value=3),
    RankedValue[int](arg=4, value=-1),
    RankedValue[int](arg=5, value=INT8_MAX),
    RankedValue[int](arg=6, value=INT8_MIN),
]


@pytest.mark.parametrize("direction", list(AggregateDirection))
def test_combine_is_commutative_in_value(direction):
    """Swapping operands never changes the winning value."""
    for a, b in itertools.product(CANDIDATES, repeat=2):
        left = combine(direction, a, b)
        right = combine(direction, b, a)
        assert left.value == right.value or (left.is_empty and right.is_empty)
        if a.value != b.value:
            assert left.arg == right.arg


@pytest.mark.parametrize("direction", list(AggregateDirection))
def test_combine_is_associative_in_value(direction):
    """Grouping of operands never changes the winning value."""
    for a, b, c in itertools.product(CANDIDATES, repeat=3):
        left = combine(direction, combine(direction, a, b), c)
        right = combine(direction, a, combine(direction, b, c))
        assert left.is_empty == right.is_empty
        if not left.is_empty:
            assert left.value == right.value


@pytest.mark.parametrize("direction", list(AggregateDirection))
def test_empty_is_identity(direction):
    """A value with a null arg is the identity on both sides."""
    assert combine(direction, EMPTY, EMPTY) is EMPTY
    for candidate in CANDIDATES:
        if candidate.is_empty:
            continue
        assert combine(direction, EMPTY, candidate) == candidate
        assert combine(direction, candidate, EMPTY) == candidate


def test_null_arg_with_value_is_still_empty():
    """Only the arg decides emptiness, a stray value is ignored."""
    stray = RankedValue[int](arg=None, value=-100)
    candidate = RankedValue[int](arg=9, value=0)

    assert combine_min(stray, candidate) == candidate
    assert combine_min(candidate, stray) == candidate


def test_tie_keeps_left_operand_for_min():
    """Equal values keep the left operand in the min direction."""
    a = RankedValue[int](arg=2, value=3)
    b = RankedValue[int](arg=3, value=3)

    assert combine_min(a, b) is a
    assert combine_min(b, a) is b


def test_tie_keeps_right_operand_for_max():
    """Equal values keep the right operand in the max direction."""
    a = RankedValue[int](arg=2, value=3)
    b = RankedValue[int](arg=3, value=3)

    assert combine_max(a, b) is b
    assert combine_max(b, a) is a


def test_projection_returns_arg():
    """The final function extracts the argument."""
    for candidate in CANDIDATES:
        assert project(candidate) == candidate.arg


def test_tied_minimum_never_picks_larger_value():
    """Any evaluation order picks one of the tied rows, never the larger one."""
    rows = [
        RankedValue[int](arg=1, value=5),
        RankedValue[int](arg=2, value=3),
        RankedValue[int](arg=3, value=3),
    ]

    winners = set()
    for a, b, c in itertools.permutations(rows):
        winners.add(aggregate(AggregateDirection.MIN, [a, b, c]))
        winners.add(project(combine_min(a, combine_min(b, c))))

    assert winners == {2, 3}


def test_empty_group_is_null():
    """An aggregate over zero rows yields null."""
    assert aggregate(AggregateDirection.MAX, []) is None
    assert aggregate(AggregateDirection.MIN, []) is None


def test_single_row_wins_both_directions():
    """A single row is both the minimum and the maximum."""
    rows = [RankedValue[int](arg=7, value=10)]

    assert aggregate(AggregateDirection.MIN, rows) == 7
    assert aggregate(AggregateDirection.MAX, rows) == 7


def test_aggregate_picks_extremes():
    """Min and max pick the rows with the extreme values."""
    rows = [
        RankedValue[str](arg="b", value=2),
        RankedValue[str](arg="a", value=-4),
        RankedValue[str](arg="c", value=11),
    ]

    assert aggregate(AggregateDirection.MIN, rows) == "a"
    assert aggregate(AggregateDirection.MAX, rows) == "c"


def test_value_is_int8():
    """Ranking values outside the int8 range are rejected."""
    with pytest.raises(ValidationError):
        RankedValue[int](arg=1, value=INT8_MAX + 1)


def test_arg_without_value_is_rejected():
    """A candidate must have a ranking value."""
    with pytest.raises(ValidationError):
        RankedValue[int](arg=1)


def test_direction_operators():
    """The SQL and Python comparisons agree."""
    assert AggregateDirection.MIN.keep_left_operator == "<="
    assert AggregateDirection.MAX.keep_left_operator == ">"
    assert AggregateDirection.MIN.keeps_left(3, 3)
    assert not AggregateDirection.MAX.keeps_left(3, 3)
    assert AggregateDirection.MAX.keeps_left(4, 3)
