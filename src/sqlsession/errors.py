"""
Structured error types for sqlsession.

Every failure a caller can see from a :class:`~sqlsession.session.Session`
falls into one of two families, and the family decides what the caller
should do next:

- **Configuration errors** (:class:`ConfigError`): programming or setup
  mistakes such as executing before ``sql()``, a data source that cannot
  hand out a connection, or a failed ``commit()``. They are fatal and never
  retried.
- **Execution errors** (:class:`ExecutionError`): anything that went wrong
  while preparing, binding, fetching or processing a statement. The
  underlying driver error is chained as ``cause`` so diagnostics keep the
  original traceback.

Architecture:
    ::

        ┌──────────────────────────────────────────────────────────┐
        │                      SessionError                         │
        │        (category, retryable, context, cause)              │
        ├──────────────────────────────────────────────────────────┤
        │  ConfigError (CONFIG)            ExecutionError (DATABASE) │
        │    MissingQueryError                                      │
        │    ConnectionUnavailableError    ResultError (DATA)       │
        │    CommitError                     EmptyResultError       │
        │    SessionClosedError              ResultClosedError      │
        │    InvalidConfigError                                     │
        └──────────────────────────────────────────────────────────┘

Examples:
    >>> err = ExecutionError("SELECT failed").with_context(query="SELECT 1")
    >>> err.context.query
    'SELECT 1'
    >>> err.retryable
    False

Guardrails:
    ❌ DON'T: Leak raw driver exceptions to callers
    ✅ DO: Wrap them and pass the original as ``cause=``

Tags:
    error-handling, exception-hierarchy, sqlsession
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    """Error categories used for classification and log routing."""

    CONFIG = "CONFIG"          # Missing query, unusable session, bad settings
    DATABASE = "DATABASE"      # Driver failures during a statement round-trip
    DATA = "DATA"              # Result shape did not match the handler's needs
    INTERNAL = "INTERNAL"      # Bugs, unexpected state


@dataclass
class ErrorContext:
    """
    Structured metadata attached to an error.

    Attributes:
        query: SQL text that was current when the error happened
        position: 1-based placeholder position, for binding failures
        mode: Execution mode (``select``, ``update``, ``insert``)
        metadata: Additional key-value pairs
    """

    query: str | None = None
    position: int | None = None
    mode: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging."""
        result = {}
        for key in ["query", "position", "mode"]:
            value = getattr(self, key)
            if value is not None:
                result[key] = value
        if self.metadata:
            result.update(self.metadata)
        return result


class SessionError(Exception):
    """
    Base exception for all sqlsession errors.

    Subclasses set ``default_category`` and ``default_retryable``; nothing
    in this package is retried automatically, so every default is
    ``False``.
    """

    default_category: ErrorCategory = ErrorCategory.INTERNAL
    default_retryable: bool = False

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory | None = None,
        retryable: bool | None = None,
        context: ErrorContext | None = None,
        cause: BaseException | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category or self.default_category
        self.retryable = retryable if retryable is not None else self.default_retryable
        self.context = context or ErrorContext()
        self.cause = cause

        if cause is not None:
            self.__cause__ = cause

    def with_context(self, **kwargs: Any) -> SessionError:
        """
        Add context to this error (fluent API).

        Usage:
            raise ExecutionError("Failed", cause=e).with_context(
                query="SELECT name FROM foo WHERE id = ?",
                mode="select",
            )
        """
        for key, value in kwargs.items():
            if hasattr(self.context, key) and key != "metadata":
                setattr(self.context, key, value)
            else:
                self.context.metadata[key] = value
        return self

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging/serialization."""
        result: dict[str, Any] = {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "category": self.category.value,
            "retryable": self.retryable,
        }
        context_dict = self.context.to_dict()
        if context_dict:
            result["context"] = context_dict
        if self.cause is not None:
            result["cause"] = str(self.cause)
        return result

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, category={self.category.value})"


# =============================================================================
# CONFIGURATION ERRORS (fatal)
# =============================================================================


class ConfigError(SessionError):
    """
    Configuration or usage error.

    Never retryable - the calling code or its setup must be fixed.
    """

    default_category = ErrorCategory.CONFIG


class MissingQueryError(ConfigError):
    """An execution was requested before ``sql()`` set a query."""

    def __init__(self, message: str = "call sql() first", **kwargs: Any):
        super().__init__(message, **kwargs)


class ConnectionUnavailableError(ConfigError):
    """The data source could not hand out a connection."""


class CommitError(ConfigError):
    """``commit()`` failed on the underlying connection."""


class SessionClosedError(ConfigError):
    """The session's connection has already been committed or rolled back and closed."""

    def __init__(self, message: str = "session connection is closed", **kwargs: Any):
        super().__init__(message, **kwargs)


class InvalidConfigError(ConfigError):
    """Configuration value is invalid."""

    def __init__(self, key: str, value: Any, message: str | None = None):
        self.key = key
        self.value = value
        super().__init__(message or f"Invalid configuration for {key}: {value!r}")


# =============================================================================
# EXECUTION ERRORS (client-facing)
# =============================================================================


class ExecutionError(SessionError):
    """A statement failed while being prepared, bound, executed or processed."""

    default_category = ErrorCategory.DATABASE


# =============================================================================
# RESULT ERRORS (raised by handlers and row cursors)
# =============================================================================


class ResultError(SessionError):
    """The result set could not be read the way the handler expected."""

    default_category = ErrorCategory.DATA


class EmptyResultError(ResultError, LookupError):
    """A handler required at least one row and got none."""

    def __init__(self, message: str = "no records found", **kwargs: Any):
        super().__init__(message, **kwargs)


class ResultClosedError(ResultError):
    """A row cursor was read after it had been released."""

    def __init__(self, message: str = "row cursor is closed", **kwargs: Any):
        super().__init__(message, **kwargs)


# =============================================================================
# UTILITY FUNCTIONS
# =============================================================================


def is_retryable(error: BaseException) -> bool:
    """Check if an error is retryable."""
    if isinstance(error, SessionError):
        return error.retryable
    return False


def is_fatal(error: BaseException) -> bool:
    """Check if an error belongs to the fatal configuration family."""
    return isinstance(error, ConfigError)


__all__ = [
    "ErrorCategory",
    "ErrorContext",
    "SessionError",
    "ConfigError",
    "MissingQueryError",
    "ConnectionUnavailableError",
    "CommitError",
    "SessionClosedError",
    "InvalidConfigError",
    "ExecutionError",
    "ResultError",
    "EmptyResultError",
    "ResultClosedError",
    "is_retryable",
    "is_fatal",
]
