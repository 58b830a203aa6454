"""The roster of scalar types that get their own arg_min/arg_max aggregates."""

from collections import Counter
from collections.abc import Iterator
from typing import Annotated, Self

from pydantic import (
    ConfigDict,
    RootModel,
    StringConstraints,
    ValidationError,
    model_validator,
)

from argminmax.core.exceptions import RosterError

# Type names end up inside identifiers (arg_min_<T>, <T>_and_value), so only
# names that are valid unquoted identifiers can be monomorphized.
TypeName = Annotated[
    str,
    StringConstraints(
        strip_whitespace=True, to_lower=True, pattern=r"^[A-Za-z_][A-Za-z0-9_]*$"
    ),
]


class TypeRoster(RootModel[tuple[TypeName, ...]]):
    """
    Ordered, immutable sequence of the types to monomorphize.

    The order is the order in which blocks appear in the generated artifacts.
    Each type's block is self-contained, so the order carries no meaning for
    the database, but keeping it stable keeps the artifacts byte-identical
    between runs.
    """

    model_config = ConfigDict(frozen=True)

    @model_validator(mode="after")
    def validate_unique(self) -> Self:
        """Reject duplicate types, which would collide at apply time."""
        duplicates = [name for name, count in Counter(self.root).items() if count > 1]
        if duplicates:
            msg = f"Type roster contains duplicate types: {', '.join(duplicates)}."
            raise ValueError(msg)
        return self

    @classmethod
    def from_names(cls, *names: str) -> Self:
        """Build a roster from type names, raising RosterError if invalid."""
        try:
            return cls.model_validate(names)
        except ValidationError as exc:
            msg = f"Invalid type roster {list(names)}: {exc.errors()[0]['msg']}"
            raise RosterError(msg) from exc

    def extend(self, *names: str) -> Self:
        """Return a new roster with the given types appended."""
        return self.from_names(*self.root, *names)

    def __iter__(self) -> Iterator[str]:  # type: ignore[override]
        """Iterate over type names in roster order."""
        return iter(self.root)

    def __len__(self) -> int:
        """Return the number of types in the roster."""
        return len(self.root)

    def __getitem__(self, index: int) -> str:
        """Return the type name at the given position."""
        return self.root[index]


DEFAULT_ROSTER = TypeRoster(("int4", "int8", "numeric"))
