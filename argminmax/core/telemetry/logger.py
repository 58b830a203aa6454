"""Functionality for logging with structured attributes."""

import logging
import sys
from typing import TYPE_CHECKING, Any, cast

import structlog
from opentelemetry import trace

if TYPE_CHECKING:
    from argminmax.core.config import LogLevel


def add_open_telemetry_spans(
    _logger: Any,  # noqa: ANN401
    _method_name: str,
    event_dict: structlog.typing.EventDict,
) -> structlog.typing.EventDict:
    """Add OpenTelemetry span information to the event dictionary."""
    span = trace.get_current_span()
    if not span.is_recording():
        return event_dict

    ctx = span.get_span_context()
    event_dict["span"] = {
        "span_id": format(ctx.span_id, "016x"),
        "trace_id": format(ctx.trace_id, "032x"),
    }
    return event_dict


class LoggerConfigurer:
    """Class to configure application logging."""

    def __init__(self) -> None:
        """Initialize the logger configurer."""
        self._root_logger = logging.root

        self._hydrating_processors = cast(
            list[structlog.types.Processor],
            [
                structlog.contextvars.merge_contextvars,
                add_open_telemetry_spans,
                structlog.processors.TimeStamper(fmt="iso", utc=True),
                structlog.processors.add_log_level,
                structlog.stdlib.add_logger_name,
            ],
        )

    def configure_console_logger(
        self, log_level: "LogLevel", *, rich_rendering: bool
    ) -> None:
        """
        Configure the logging for the generator.

        Sets up structlog so that both structlog loggers and plain stdlib
        loggers (SQLAlchemy, asyncpg, testcontainers) render through the same
        processor chain: context variables, span ids, ISO timestamps in UTC,
        log level and logger name. Rendering is colourful for local runs and
        logfmt everywhere else.
        """
        if structlog.is_configured():
            return

        self._root_logger.handlers.clear()

        console_render_processors = [
            structlog.processors.StackInfoRenderer(),
            structlog.dev.set_exc_info
            if rich_rendering
            else structlog.processors.ExceptionRenderer(),
            structlog.dev.ConsoleRenderer()
            if rich_rendering
            else structlog.processors.LogfmtRenderer(),
        ]

        # This applies to generator logging (use get_logger()!)
        structlog.configure(
            wrapper_class=structlog.make_filtering_bound_logger(
                getattr(logging, log_level.upper())
            ),
            logger_factory=structlog.stdlib.LoggerFactory(),
            processors=[
                *self._hydrating_processors,
                structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
            ],
            cache_logger_on_first_use=True,
        )

        # Override root python logging
        # This primarily applies to third-party libraries
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(
            structlog.stdlib.ProcessorFormatter(
                processors=[
                    structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                    *console_render_processors,
                ],
                foreign_pre_chain=self._hydrating_processors,
            )
        )
        self._root_logger.addHandler(handler)
        self._root_logger.setLevel(getattr(logging, log_level.upper()))


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Get a structured logger, named after the calling module by convention."""
    return structlog.get_logger(name)


logger_configurer = LoggerConfigurer()
