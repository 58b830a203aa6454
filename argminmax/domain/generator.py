"""Monomorphize the aggregate templates over a type roster."""

from enum import StrEnum

from opentelemetry import trace
from pydantic import BaseModel, ConfigDict, Field

from argminmax.core.telemetry.attributes import Attributes, trace_attribute
from argminmax.core.telemetry.logger import get_logger
from argminmax.domain.roster import DEFAULT_ROSTER, TypeRoster
from argminmax.domain.templates import (
    HEADER,
    apply_statements,
    preamble_statements,
    revert_statements,
)

logger = get_logger(__name__)
tracer = trace.get_tracer(__name__)


class ArtifactDirection(StrEnum):
    """Which way a migration artifact moves the schema."""

    APPLY = "apply"
    REVERT = "revert"


class TypeBlock(BaseModel):
    """Everything generated for a single type, independent of other types."""

    model_config = ConfigDict(frozen=True)

    type_name: str
    apply_statements: tuple[str, ...]
    revert_statements: tuple[str, ...]

    @property
    def apply(self) -> str:
        """Return the apply block as text."""
        return "\n\n".join(self.apply_statements)

    @property
    def revert(self) -> str:
        """Return the revert block as text."""
        return "\n".join(self.revert_statements)


class MigrationArtifacts(BaseModel):
    """The apply/revert pair produced by one generation run."""

    model_config = ConfigDict(frozen=True)

    roster: TypeRoster
    schema_name: str = Field(description="Schema the composite types live in.")
    preamble_statements: tuple[str, ...]
    blocks: tuple[TypeBlock, ...] = Field(
        description="One block per roster type, in roster order."
    )

    @property
    def preamble(self) -> str:
        """Return the preamble shared by both artifacts."""
        return "\n".join([HEADER, *self.preamble_statements])

    @property
    def apply(self) -> str:
        """Return the script creating every aggregate."""
        return self._assemble([block.apply for block in self.blocks])

    @property
    def revert(self) -> str:
        """Return the script dropping everything apply created."""
        return self._assemble([block.revert for block in self.blocks])

    def text(self, direction: ArtifactDirection) -> str:
        """Return the artifact text for the given direction."""
        if direction == ArtifactDirection.APPLY:
            return self.apply
        return self.revert

    def statements(self, direction: ArtifactDirection) -> list[str]:
        """Return the artifact for the given direction as single statements."""
        statements = list(self.preamble_statements)
        for block in self.blocks:
            if direction == ArtifactDirection.APPLY:
                statements.extend(block.apply_statements)
            else:
                statements.extend(block.revert_statements)
        return statements

    def _assemble(self, blocks: list[str]) -> str:
        """Join the preamble and per-type blocks into one script."""
        return "\n\n".join([self.preamble, *blocks]) + "\n"


def instantiate_block(type_name: str, schema_name: str) -> TypeBlock:
    """Instantiate the apply and revert templates for one type."""
    return TypeBlock(
        type_name=type_name,
        apply_statements=tuple(apply_statements(type_name, schema_name)),
        revert_statements=tuple(revert_statements(type_name)),
    )


@tracer.start_as_current_span("Generate arg_min/arg_max migration")
def generate(
    roster: TypeRoster = DEFAULT_ROSTER, schema_name: str = "public"
) -> MigrationArtifacts:
    """
    Render the apply and revert artifacts for every type in the roster.

    This is a pure text transform. Nothing is checked against a live schema;
    naming collisions and similar errors surface when the artifact runs.
    """
    trace_attribute(Attributes.ROSTER, list(roster))
    trace_attribute(Attributes.ROSTER_SIZE, len(roster))
    trace_attribute(Attributes.SCHEMA_NAME, schema_name)

    blocks = tuple(instantiate_block(type_name, schema_name) for type_name in roster)
    logger.debug("Rendered aggregate blocks.", roster=list(roster), schema=schema_name)

    return MigrationArtifacts(
        roster=roster,
        schema_name=schema_name,
        preamble_statements=tuple(preamble_statements(schema_name)),
        blocks=blocks,
    )
