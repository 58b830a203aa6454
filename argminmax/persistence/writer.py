"""All-or-nothing writing of migration artifacts."""

import contextlib
import os
import tempfile
from pathlib import Path

from opentelemetry import trace

from argminmax.core.exceptions import ArtifactWriteError
from argminmax.core.telemetry.attributes import Attributes, trace_attribute
from argminmax.core.telemetry.logger import get_logger

logger = get_logger(__name__)
tracer = trace.get_tracer(__name__)

ARTIFACT_MODE = 0o644


def _stage(directory: Path, name: str, content: str) -> Path:
    """Write content to a temporary file beside its final location."""
    fd, staged = tempfile.mkstemp(dir=directory, prefix=f".{name}.", suffix=".tmp")
    with os.fdopen(fd, "w", encoding="utf-8", newline="\n") as handle:
        handle.write(content)
        handle.flush()
        os.fsync(handle.fileno())
    os.chmod(staged, ARTIFACT_MODE)
    return Path(staged)


def _reserve_backup(directory: Path, name: str) -> Path:
    """Reserve a unique name to move an existing artifact aside to."""
    fd, backup = tempfile.mkstemp(dir=directory, prefix=f".{name}.", suffix=".bak")
    os.close(fd)
    return Path(backup)


def _discard(paths: list[Path]) -> None:
    for path in paths:
        with contextlib.suppress(FileNotFoundError):
            path.unlink()


@tracer.start_as_current_span("Write migration artifacts")
def write_artifacts(files: dict[str, str], output_dir: Path) -> list[Path]:
    """
    Write every file or none of them.

    Contents are already fully rendered, so the write happens in two phases.
    First each file is staged next to its target. Then every staged file is
    swapped into place with ``os.replace``, keeping the previous contents
    aside. If any swap fails the earlier swaps are rolled back, so a run
    never leaves a mix of old and new artifacts behind. Existing files are
    overwritten, never appended to.
    """
    trace_attribute(Attributes.OUTPUT_DIR, str(output_dir))
    trace_attribute(Attributes.ARTIFACT_FILES, sorted(files))

    staged: dict[Path, Path] = {}
    backups: dict[Path, Path] = {}
    swapped: list[Path] = []

    try:
        output_dir.mkdir(parents=True, exist_ok=True)
        for name, content in files.items():
            staged[output_dir / name] = _stage(output_dir, name, content)

        for target, staged_path in staged.items():
            if target.exists():
                backups[target] = _reserve_backup(output_dir, target.name)
                os.replace(target, backups[target])
            os.replace(staged_path, target)
            swapped.append(target)
    except OSError as exc:
        logger.warning(
            "Failed to write artifacts, rolling back.",
            files=sorted(files),
            error=str(exc),
        )
        for target in reversed(swapped):
            with contextlib.suppress(FileNotFoundError):
                target.unlink()
        for target, backup in backups.items():
            with contextlib.suppress(OSError):
                os.replace(backup, target)
        _discard([*staged.values(), *backups.values()])
        msg = f"Could not write artifacts to {output_dir}: {exc}"
        raise ArtifactWriteError(msg) from exc

    _discard(list(backups.values()))
    logger.debug(
        "Wrote migration artifacts.",
        output_dir=str(output_dir),
        files=[target.name for target in swapped],
    )
    return swapped
