"""Custom exception hierarchy for fluentsql.

All public errors inherit from FluentSQLError so callers can catch the base
class for any fluentsql-specific failure.  Validation and configuration
errors are raised synchronously while a statement is built or compiled, so
they never reach the database.
"""
from __future__ import annotations

from typing import Any


class FluentSQLError(Exception):
    """Base exception for all fluentsql errors."""


class ValidationError(FluentSQLError):
    """Raised when an identifier, operator or value is rejected.

    Args:
        message: Human-readable description.
        code: Machine-readable error code (e.g. RESERVED_KEYWORD).
        details: Extra context about the rejected input.
    """

    def __init__(
        self,
        message: str,
        code: str = "INVALID_INPUT",
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.details: dict[str, Any] = details or {}

    def to_error_response(self) -> dict[str, Any]:
        """Returns a structured error response for API layers."""
        return {
            "error": self.code,
            "message": str(self),
            "details": self.details,
        }


class InvalidIdentifierError(ValidationError):
    """Raised when a table or column name fails identifier validation."""

    def __init__(self, identifier: object, reason: str, code: str) -> None:
        super().__init__(
            f"Invalid identifier {identifier!r}: {reason}.",
            code=code,
            details={"identifier": identifier, "reason": reason},
        )


class InvalidOperatorError(ValidationError):
    """Raised when a predicate uses an operator outside the supported set."""

    def __init__(self, operator: object, allowed: list[str]) -> None:
        super().__init__(
            f"Unsupported operator: {operator!r}.",
            code="INVALID_OPERATOR",
            details={"operator": operator, "allowed_operators": allowed},
        )


class InvalidValueError(ValidationError):
    """Raised when a row value falls outside the supported value domain."""

    def __init__(self, column: str, value: object) -> None:
        super().__init__(
            f"Unsupported value for column '{column}': {type(value).__name__}.",
            code="INVALID_VALUE",
            details={"column": column, "type": type(value).__name__},
        )


class ConfigurationError(FluentSQLError):
    """Raised when a statement is compiled before a required clause is set.

    Also raised when a builder has no database to execute against, or a
    :class:`~fluentsql.database.Database` is created from incomplete
    settings.

    Args:
        message: Human-readable description.
        missing: Builder method(s) that must be called first.
    """

    def __init__(self, message: str, missing: list[str] | None = None) -> None:
        super().__init__(message)
        self.missing = missing or []


class CompilationError(FluentSQLError):
    """Raised when SQL compilation fails for an unexpected reason.

    Args:
        message: Human-readable description.
        clause: The clause being compiled when the error occurred.
    """

    def __init__(self, message: str, clause: str | None = None) -> None:
        super().__init__(message)
        self.clause = clause


class ExecutionError(FluentSQLError):
    """Raised when the driver reports a failure.

    The driver exception is chained as ``__cause__``.

    Args:
        message: Human-readable description.
        sql: The statement text that failed.
        params: The parameters sent with it.
    """

    def __init__(
        self,
        message: str,
        sql: str | None = None,
        params: list[Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.sql = sql
        self.params = params or []


class TransactionStateError(FluentSQLError):
    """Raised when a committed or rolled-back transaction is used again.

    Args:
        message: Human-readable description.
        state: The terminal state the transaction is in.
    """

    def __init__(self, message: str, state: str) -> None:
        super().__init__(message)
        self.state = state
