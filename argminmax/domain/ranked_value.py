"""
Executable model of the generated reducers.

The SQL functions emitted for every type are a direct transcription of
:func:`combine`. Keeping the rule here, as plain Python, lets the laws the
database relies on (commutativity, associativity and the empty-state
identity) be checked without a database.

A note on ties: when two candidates carry the same ranking value the
reducer keeps its left operand. Postgres is free to pair and group rows in
any order, and to merge partial aggregates from parallel workers, so which
of several tied candidates wins is unspecified. It is deterministic for a
given evaluation order, but it is *not* "the first row wins".
"""

import operator
from collections.abc import Callable, Iterable
from enum import StrEnum
from functools import reduce
from typing import Generic, Self, TypeVar

from pydantic import BaseModel, ConfigDict, Field, model_validator

T = TypeVar("T")

INT8_MIN = -(2**63)
INT8_MAX = 2**63 - 1


class AggregateDirection(StrEnum):
    """Which extreme an aggregate selects."""

    MIN = "min"
    MAX = "max"

    @property
    def keep_left_operator(self) -> str:
        """
        SQL comparison under which the reducer keeps its left operand.

        ``<=`` for min and ``>`` for max: equal values keep the left operand
        in the min direction and the right operand in the max direction.
        """
        return "<=" if self is AggregateDirection.MIN else ">"

    @property
    def keeps_left(self) -> Callable[[int, int], bool]:
        """Python predicate matching :attr:`keep_left_operator`."""
        return operator.le if self is AggregateDirection.MIN else operator.gt

    @property
    def extreme(self) -> str:
        """Describe the selected value in aggregate comments."""
        return "smallest" if self is AggregateDirection.MIN else "largest"


class RankedValue(BaseModel, Generic[T]):
    """
    One candidate row: the argument to return and its ranking value.

    Mirrors the generated ``<T>_and_value`` composite type. A value whose
    ``arg`` is null stands for "no candidate yet".
    """

    model_config = ConfigDict(frozen=True)

    arg: T | None = None
    value: int | None = Field(default=None, ge=INT8_MIN, le=INT8_MAX)

    @model_validator(mode="after")
    def validate_ranked(self) -> Self:
        """A candidate must carry a ranking value."""
        if self.arg is not None and self.value is None:
            msg = "A ranked value with an argument must also have a value."
            raise ValueError(msg)
        return self

    @property
    def is_empty(self) -> bool:
        """Return True if this is the empty state."""
        return self.arg is None


EMPTY: RankedValue = RankedValue()


def combine(
    direction: AggregateDirection, a: RankedValue[T], b: RankedValue[T]
) -> RankedValue[T]:
    """Combine two candidates, keeping the one with the extreme value."""
    if a.is_empty:
        return b
    if b.is_empty:
        return a
    if direction.keeps_left(a.value, b.value):
        return a
    return b


def combine_min(a: RankedValue[T], b: RankedValue[T]) -> RankedValue[T]:
    """Reducer for arg_min."""
    return combine(AggregateDirection.MIN, a, b)


def combine_max(a: RankedValue[T], b: RankedValue[T]) -> RankedValue[T]:
    """Reducer for arg_max."""
    return combine(AggregateDirection.MAX, a, b)


def project(state: RankedValue[T]) -> T | None:
    """Extract the winning argument, the aggregate's final function."""
    return state.arg


def aggregate(
    direction: AggregateDirection, rows: Iterable[RankedValue[T]]
) -> T | None:
    """
    Fold rows the way a sequential, unparallelized aggregate would.

    An empty group yields ``None``, as the generated aggregate yields null.
    """
    return project(
        reduce(lambda a, b: combine(direction, a, b), rows, EMPTY),
    )
