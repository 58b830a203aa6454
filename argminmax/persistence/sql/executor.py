"""Run generated artifacts against a Postgres database."""

import contextlib
from collections.abc import AsyncIterator

from opentelemetry import trace
from sqlalchemy import bindparam, text
from sqlalchemy.exc import DBAPIError
from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine, create_async_engine

from argminmax.core.config import DatabaseConfig
from argminmax.core.exceptions import (
    ArtifactExecutionError,
    DatabaseNotConfiguredError,
    DatabaseUnavailableError,
)
from argminmax.core.telemetry.attributes import Attributes, trace_attribute
from argminmax.core.telemetry.logger import get_logger
from argminmax.domain.generator import ArtifactDirection, MigrationArtifacts
from argminmax.domain.roster import TypeRoster
from argminmax.domain.templates import object_names

logger = get_logger(__name__)
tracer = trace.get_tracer(__name__)

_EXISTING_TYPES = text(
    """
    SELECT t.typname
    FROM pg_type AS t
    JOIN pg_namespace AS n ON n.oid = t.typnamespace
    WHERE n.nspname = :schema_name AND t.typname IN :names
    """
).bindparams(bindparam("names", expanding=True))

_EXISTING_ROUTINES = text(
    """
    SELECT p.proname, p.prokind::text AS prokind
    FROM pg_proc AS p
    JOIN pg_namespace AS n ON n.oid = p.pronamespace
    WHERE n.nspname = :schema_name AND p.proname IN :names
    """
).bindparams(bindparam("names", expanding=True))


class ArtifactExecutor:
    """
    Executes apply/revert artifacts, one transaction per artifact.

    Tracking which migrations have run is left to the migration runner; this
    exists to check artifacts against a real database.
    """

    def __init__(self) -> None:
        """Init ArtifactExecutor."""
        self._engine: AsyncEngine | None = None

    def init(
        self, db_config: DatabaseConfig | None = None, db_url: str | None = None
    ) -> None:
        """Initialize the engine from a database config or a raw URL."""
        if db_url is None:
            if db_config is None:
                msg = "No database configured to execute artifacts against."
                raise DatabaseNotConfiguredError(msg)
            db_url = db_config.connection_string
        self._engine = create_async_engine(url=db_url, pool_pre_ping=True)

    async def close(self) -> None:
        """Close all database connections and dispose of references."""
        if self._engine is None:
            return
        await self._engine.dispose()
        self._engine = None

    @contextlib.asynccontextmanager
    async def connect(self) -> AsyncIterator[AsyncConnection]:
        """Yield a connection inside a transaction."""
        if self._engine is None:
            msg = "ArtifactExecutor is not initialized"
            raise DatabaseNotConfiguredError(msg)
        async with self._engine.begin() as connection:
            yield connection

    @tracer.start_as_current_span("Execute migration artifact")
    async def execute(
        self, artifacts: MigrationArtifacts, direction: ArtifactDirection
    ) -> None:
        """
        Execute one artifact atomically.

        Statements run one by one in a single transaction, so an error from
        the database (an object that already exists, or a drop blocked by a
        dependent object) rolls the whole artifact back.
        """
        trace_attribute(Attributes.ARTIFACT_DIRECTION, direction.value)
        trace_attribute(Attributes.DB_SYSTEM_NAME, "postgresql")
        try:
            async with self.connect() as connection:
                for statement in artifacts.statements(direction):
                    await connection.exec_driver_sql(statement)
        except DBAPIError as exc:
            error = ArtifactExecutionError.from_dbapi_error(exc, direction.value)
            logger.error(
                "Artifact rejected by the database.",
                direction=direction.value,
                reason=error.reason,
            )
            raise error from exc
        except OSError as exc:
            # asyncpg raises connection failures (refused, timed out) unwrapped
            logger.error(
                "Could not connect to the database.",
                direction=direction.value,
                reason=str(exc),
            )
            msg = f"Unable to connect to the database: {exc}"
            raise DatabaseUnavailableError(msg) from exc

        logger.info(
            "Executed migration artifact.",
            direction=direction.value,
            roster=list(artifacts.roster),
        )


async def existing_objects(
    connection: AsyncConnection, roster: TypeRoster, schema_name: str = "public"
) -> dict[str, set[str]]:
    """Return the generated objects for the roster that exist in the schema."""
    expected: dict[str, list[str]] = {"type": [], "function": [], "aggregate": []}
    for type_name in roster:
        for kind, names in object_names(type_name).items():
            expected[kind].extend(names)

    found: dict[str, set[str]] = {kind: set() for kind in expected}

    types = await connection.execute(
        _EXISTING_TYPES, {"schema_name": schema_name, "names": expected["type"]}
    )
    found["type"] = {row.typname for row in types}

    routines = await connection.execute(
        _EXISTING_ROUTINES,
        {
            "schema_name": schema_name,
            "names": expected["function"] + expected["aggregate"],
        },
    )
    for row in routines:
        found["aggregate" if row.prokind == "a" else "function"].add(row.proname)

    return found
