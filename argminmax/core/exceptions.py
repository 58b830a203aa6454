"""Custom exceptions for the arg_min/arg_max generator."""

import re
from typing import Self

from opentelemetry.trace import StatusCode
from sqlalchemy.exc import DBAPIError

from argminmax.core.telemetry.attributes import set_span_status


class ArgMinMaxError(Exception):
    """Base class for all exceptions raised by the generator."""

    def __init__(self, detail: str | None = None, *args: object) -> None:
        """
        Initialize the ArgMinMaxError.

        Args:
            detail (str | None): The detail message for the exception.
            *args: Additional arguments for the exception.

        """
        set_span_status(
            StatusCode.ERROR,
            detail=detail,
            exception=self,
        )
        self.detail = detail or "No detail provided."
        super().__init__(detail, *args)


class RosterError(ArgMinMaxError):
    """Exception for a type roster that cannot be monomorphized."""

    def __init__(self, detail: str, *args: object) -> None:
        """
        Initialize the RosterError exception.

        Args:
            detail (str): The detail message for the exception.
            *args: Additional arguments for the exception.

        """
        super().__init__(detail, *args)


class TemplateError(ArgMinMaxError):
    """Exception for a template that did not fully instantiate."""

    def __init__(self, detail: str, placeholders: list[str], *args: object) -> None:
        """
        Initialize the TemplateError exception.

        Args:
            detail (str): The detail message for the exception.
            placeholders (list[str]): The placeholders left in the rendered text.
            *args: Additional arguments for the exception.

        """
        self.placeholders = placeholders
        super().__init__(detail, *args)


class ArtifactWriteError(ArgMinMaxError):
    """Exception for when the artifact files could not be written."""

    def __init__(self, detail: str, *args: object) -> None:
        """
        Initialize the ArtifactWriteError exception.

        Args:
            detail (str): The detail message for the exception.
            *args: Additional arguments for the exception.

        """
        super().__init__(detail, *args)


class DatabaseNotConfiguredError(ArgMinMaxError):
    """Exception for database operations requested without a database config."""

    def __init__(self, detail: str, *args: object) -> None:
        """
        Initialize the DatabaseNotConfiguredError exception.

        Args:
            detail (str): The detail message for the exception.
            *args: Additional arguments for the exception.

        """
        super().__init__(detail, *args)


class DatabaseUnavailableError(ArgMinMaxError):
    """Exception for when the configured database cannot be reached."""

    def __init__(self, detail: str, *args: object) -> None:
        """
        Initialize the DatabaseUnavailableError exception.

        Args:
            detail (str): The detail message for the exception.
            *args: Additional arguments for the exception.

        """
        super().__init__(detail, *args)


class ArtifactExecutionError(ArgMinMaxError):
    """Exception for when the database rejects an artifact."""

    def __init__(
        self,
        detail: str,
        direction: str,
        reason: str,
        *args: object,
    ) -> None:
        """
        Initialize the ArtifactExecutionError exception.

        Args:
            detail (str): The detail message for the exception.
            direction (str): Which artifact was executed (apply or revert).
            reason (str): The reason reported by the database.
            *args: Additional arguments for the exception.

        """
        self.direction = direction
        self.reason = reason
        super().__init__(detail, *args)

    @classmethod
    def from_dbapi_error(cls, error: DBAPIError, direction: str) -> Self:
        """
        Construct an ArtifactExecutionError from an error raised by SQLAlchemy.

        Postgres reports naming collisions ("already exists") when an artifact
        is applied twice and dependency errors ("depends on") when a revert
        runs out of order. The first line of the driver message is kept as the
        reason.

        Args:
            error (sqlalchemy.exc.DBAPIError): Error thrown by sqlalchemy
            direction (str): Which artifact was executed (apply or revert).

        """
        err_str = str(error.orig) if error.orig is not None else str(error)
        reason_match = re.search(r"^(?:<[^>]+>:\s*)?(.+)$", err_str, re.MULTILINE)
        reason = reason_match.group(1).strip() if reason_match else err_str

        return cls(
            detail=f"Unable to execute the {direction} artifact: {reason}",
            direction=direction,
            reason=reason,
        )
