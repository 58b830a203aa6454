"""Mixes OpenTelemetry semantic conventions with application-specific attributes."""

from enum import StrEnum

from opentelemetry import trace
from opentelemetry.semconv.attributes import db_attributes
from opentelemetry.util.types import AttributeValue


class Attributes(StrEnum):
    """OpenTelemetry semantic conventions for the generator."""

    ### OTEL attributes

    DB_SYSTEM_NAME = db_attributes.DB_SYSTEM_NAME

    ### Application attributes

    ROSTER = "app.roster"
    ROSTER_SIZE = "app.roster.size"
    SCHEMA_NAME = "app.schema.name"
    ARTIFACT_DIRECTION = "app.artifact.direction"
    ARTIFACT_FORMAT = "app.artifact.format"
    ARTIFACT_FILES = "app.artifact.files"
    OUTPUT_DIR = "app.output.dir"


def trace_attribute(attribute: Attributes, value: AttributeValue) -> None:
    """Trace an attribute in the current span."""
    trace.get_current_span().set_attribute(attribute.value, value)


def set_span_status(
    status: trace.StatusCode,
    detail: str | None = None,
    exception: BaseException | None = None,
) -> None:
    """Set the status of the current span."""
    trace.get_current_span().set_status(trace.Status(status, detail))
    if exception:
        trace.get_current_span().record_exception(exception)
