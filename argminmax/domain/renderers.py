"""Lay generated artifacts out as migration files."""

import datetime
from abc import ABC, abstractmethod
from enum import StrEnum

from argminmax.core.exceptions import TemplateError
from argminmax.domain.generator import ArtifactDirection, MigrationArtifacts


class ArtifactFormat(StrEnum):
    """Supported migration file layouts."""

    SQL = "sql"
    ALEMBIC = "alembic"


class ArtifactRenderer(ABC):
    """Turns a generated artifact pair into named file contents."""

    @abstractmethod
    def render(self, artifacts: MigrationArtifacts) -> dict[str, str]:
        """Return a mapping of file name to file contents."""


class SqlPairRenderer(ArtifactRenderer):
    """An ``up.sql``/``down.sql`` pair, as consumed by SQL migration runners."""

    def __init__(
        self, apply_name: str = "up.sql", revert_name: str = "down.sql"
    ) -> None:
        """Initialize the renderer with the names of the two files."""
        self.apply_name = apply_name
        self.revert_name = revert_name

    def render(self, artifacts: MigrationArtifacts) -> dict[str, str]:
        """Render the apply and revert scripts verbatim."""
        return {
            self.apply_name: artifacts.apply,
            self.revert_name: artifacts.revert,
        }


ALEMBIC_REVISION_TEMPLATE = '''\
"""
Add arg_min and arg_max aggregates for {types}

Revision ID: {revision}
Revises: {down_revision}
Create Date: {create_date}

"""
from collections.abc import Sequence
from typing import Union

from alembic import op


# revision identifiers, used by Alembic.
revision: str = {revision!r}
down_revision: Union[str, None] = {down_revision!r}
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

{header}

UPGRADE_STATEMENTS = [
{upgrade_statements}
]

DOWNGRADE_STATEMENTS = [
{downgrade_statements}
]


def upgrade() -> None:
    # Postgresql can't declare an aggregate over any argument type, so there
    # is one composite type, two reducers, a projection and two aggregates
    # per type.
    for statement in UPGRADE_STATEMENTS:
        op.execute(statement)


def downgrade() -> None:
    for statement in DOWNGRADE_STATEMENTS:
        op.execute(statement)
'''


class AlembicRevisionRenderer(ArtifactRenderer):
    """A single Alembic revision whose upgrade/downgrade run the artifacts."""

    def __init__(
        self,
        revision: str,
        down_revision: str | None = None,
        create_date: datetime.datetime | None = None,
    ) -> None:
        """
        Initialize the renderer.

        Args:
            revision (str): The revision id of the generated migration.
            down_revision (str | None): The revision it follows, if any.
            create_date (datetime | None): Stamped into the docstring,
                defaults to now.

        """
        self.revision = revision
        self.down_revision = down_revision
        self.create_date = create_date or datetime.datetime.now(tz=datetime.UTC)

    @property
    def file_name(self) -> str:
        """Name of the revision module, following Alembic's convention."""
        return f"{self.revision}_add_arg_min_max_aggregates.py"

    @staticmethod
    def _python_literals(statements: list[str]) -> str:
        if any('"""' in statement or "\\" in statement for statement in statements):
            msg = "Statements cannot be embedded in a Python string literal."
            raise TemplateError(msg, placeholders=[])
        return "\n".join(f'    """\n{statement}\n    """,' for statement in statements)

    def render(self, artifacts: MigrationArtifacts) -> dict[str, str]:
        """Render the revision module."""
        module = ALEMBIC_REVISION_TEMPLATE.format(
            types=", ".join(artifacts.roster),
            revision=self.revision,
            down_revision=self.down_revision,
            create_date=self.create_date.isoformat(sep=" "),
            header="# " + artifacts.preamble.splitlines()[0].removeprefix("-- "),
            upgrade_statements=self._python_literals(
                artifacts.statements(ArtifactDirection.APPLY)
            ),
            downgrade_statements=self._python_literals(
                artifacts.statements(ArtifactDirection.REVERT)
            ),
        )
        return {self.file_name: module}


def get_renderer(
    artifact_format: ArtifactFormat,
    revision: str | None = None,
    down_revision: str | None = None,
) -> ArtifactRenderer:
    """Return the renderer for the requested layout."""
    if artifact_format == ArtifactFormat.ALEMBIC:
        if not revision:
            msg = "An Alembic revision needs a revision id."
            raise ValueError(msg)
        return AlembicRevisionRenderer(revision=revision, down_revision=down_revision)
    return SqlPairRenderer()
