"""Generate the arg_min/arg_max apply and revert migrations."""

import argparse
import asyncio
import sys
from pathlib import Path

from opentelemetry import trace
from pydantic import ValidationError

from argminmax.core.config import LogLevel, Settings, get_settings
from argminmax.core.exceptions import ArgMinMaxError, DatabaseNotConfiguredError
from argminmax.core.telemetry.attributes import Attributes, trace_attribute
from argminmax.core.telemetry.logger import get_logger, logger_configurer
from argminmax.domain.generator import (
    ArtifactDirection,
    MigrationArtifacts,
    generate,
)
from argminmax.domain.renderers import ArtifactFormat, get_renderer
from argminmax.persistence.sql.executor import ArtifactExecutor
from argminmax.persistence.writer import write_artifacts

logger = get_logger(__name__)
tracer = trace.get_tracer(__name__)


def argument_parser() -> argparse.ArgumentParser:
    """Create argument parser for migration generation."""
    parser = argparse.ArgumentParser(
        prog="argminmax-generate",
        description=(
            "Generate migrations defining arg_min and arg_max aggregates for "
            "every configured type."
        ),
    )

    parser.add_argument(
        "-o",
        "--output-dir",
        type=Path,
        default=None,
        help="Directory to write the migration to. Defaults to configuration.",
    )

    parser.add_argument(
        "-f",
        "--format",
        type=ArtifactFormat,
        choices=list(ArtifactFormat),
        default=ArtifactFormat.SQL,
        help="Write an up.sql/down.sql pair or a single Alembic revision.",
    )

    parser.add_argument(
        "--revision",
        type=str,
        help="Revision id of the Alembic revision. Required with --format alembic.",
    )

    parser.add_argument(
        "--down-revision",
        type=str,
        default=None,
        help="Revision the Alembic revision follows.",
    )

    parser.add_argument(
        "--apply-to-database",
        action="store_true",
        help="Execute the apply artifact against the configured database.",
    )

    parser.add_argument(
        "--version",
        action="store_true",
        help="Print the generator version and exit.",
    )

    return parser


async def apply_to_database(settings: Settings, artifacts: MigrationArtifacts) -> None:
    """Execute the apply artifact against the configured database."""
    executor = ArtifactExecutor()
    executor.init(db_config=settings.db_config)
    try:
        await executor.execute(artifacts, ArtifactDirection.APPLY)
    finally:
        await executor.close()


@tracer.start_as_current_span("argminmax-generate")
def run(args: argparse.Namespace, settings: Settings) -> list[Path]:
    """Generate, render and write the artifacts."""
    trace_attribute(Attributes.ARTIFACT_FORMAT, args.format.value)
    if args.apply_to_database and settings.db_config is None:
        msg = "--apply-to-database needs a database configuration."
        raise DatabaseNotConfiguredError(msg)

    artifacts = generate(settings.roster, settings.schema_name)
    renderer = get_renderer(args.format, args.revision, args.down_revision)
    written = write_artifacts(
        renderer.render(artifacts), args.output_dir or settings.output_dir
    )
    logger.info(
        "Wrote migration artifacts.",
        files=[str(path) for path in written],
        roster=list(artifacts.roster),
    )

    if args.apply_to_database:
        asyncio.run(apply_to_database(settings, artifacts))

    return written


def main(argv: list[str] | None = None) -> int:
    """Entrypoint for argminmax-generate."""
    parser = argument_parser()
    args = parser.parse_args(argv)

    if args.format == ArtifactFormat.ALEMBIC and not args.revision:
        parser.error("--revision is required with --format alembic")

    try:
        settings = get_settings()
    except ValidationError as exc:
        logger_configurer.configure_console_logger(LogLevel.ERROR, rich_rendering=False)
        logger.error("Invalid configuration.", errors=exc.errors(include_url=False))
        return 1

    logger_configurer.configure_console_logger(
        settings.log_level, rich_rendering=settings.running_locally
    )

    if args.version:
        print(settings.app_version)  # noqa: T201
        return 0

    try:
        run(args, settings)
    except ArgMinMaxError as exc:
        logger.error("Generation failed.", detail=exc.detail)
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
