"""
Structured error types for quarry.

Provides a typed hierarchy of errors with metadata for categorization,
retry decisions and diagnostics. Every error raised by the query pipeline
extends QuarryError and carries:

- **Category:** What kind of error (config, validation, database, mapping)
- **Retryable:** Whether the operation can be retried automatically
- **Context:** Structured metadata (connection, backend, query, custom fields)
- **Cause:** Chained underlying exception (usually a DB-API driver error)

Manifesto:
    - **Typed Error Hierarchy:** One type per failure point of the pipeline
    - **Fail before the backend:** Parameter problems surface before execute
    - **Diagnostic payloads:** Errors carry the SQL and parameter names
    - **Error Chaining:** Driver exceptions are preserved as ``cause``

Architecture:
    ::

        ┌─────────────────────────────────────────────────────────────────┐
        │                        QuarryError                               │
        │  (category, retryable, context, cause)                          │
        ├─────────────────────────────────────────────────────────────────┤
        │                                                                  │
        │  ConfigError         ValidationError          DatabaseError      │
        │  (CONFIG)            (VALIDATION)             (DATABASE)         │
        │      │                    │                        │             │
        │  MissingConfigError  ParameterMismatchError   DriverError        │
        │  InvalidConfigError  UnbindableValueError     QueryError         │
        │                      QueryStateError          TransactionError   │
        │                                                                  │
        │  DatabaseConnectionError        MappingError                     │
        │  (DATABASE, retryable)          (MAPPING)                        │
        └─────────────────────────────────────────────────────────────────┘

Examples:
    >>> error = QueryError("no such table: users", sql="SELECT * FROM users")
    >>> error.sql
    'SELECT * FROM users'
    >>> error.to_dict()["category"]
    'DATABASE'

Guardrails:
    ❌ DON'T: Raise bare Exception from the pipeline
    ✅ DO: Use the QuarryError subclass for the failing stage

    ❌ DON'T: Swallow the driver exception
    ✅ DO: Pass it as cause= for error chaining

Tags:
    error-handling, exception-hierarchy, query-pipeline, quarry

Doc-Types:
    - API Reference
    - Error Handling Guide
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    """
    Standard error categories for classification and routing.

    Attributes:
        DATABASE: Connection, query and transaction failures
        CONFIG: Missing or invalid connection profiles
        VALIDATION: Query construction and parameter problems
        MAPPING: Row materialization onto result mappers
        INTERNAL: Bugs, unexpected state
        UNKNOWN: Uncategorized errors
    """

    DATABASE = "DATABASE"
    CONFIG = "CONFIG"
    VALIDATION = "VALIDATION"
    MAPPING = "MAPPING"
    INTERNAL = "INTERNAL"
    UNKNOWN = "UNKNOWN"


@dataclass
class ErrorContext:
    """
    Structured metadata context for errors.

    Typed fields cover the metadata every pipeline stage knows about
    (connection profile, backend, SQL text). Anything else goes into
    ``metadata``. ``to_dict()`` serializes the non-None fields for logging.

    Examples:
        >>> ctx = ErrorContext(connection="default", backend="sqlite")
        >>> ctx.to_dict()
        {'connection': 'default', 'backend': 'sqlite'}

    Guardrails:
        ❌ DON'T: Store parameter values (they may hold credentials or PII)
        ✅ DO: Store parameter names and the rewritten SQL
    """

    connection: str | None = None
    backend: str | None = None
    query: str | None = None
    query_type: str | None = None

    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging."""
        result = {}
        for key in ["connection", "backend", "query", "query_type"]:
            value = getattr(self, key)
            if value is not None:
                result[key] = value
        if self.metadata:
            result.update(self.metadata)
        return result


class QuarryError(Exception):
    """
    Base exception for all quarry errors.

    Subclasses set ``default_category`` and ``default_retryable`` so that
    callers rarely need to pass them explicitly.

    Examples:
        >>> error = QuarryError("Something went wrong")
        >>> error.category
        <ErrorCategory.INTERNAL: 'INTERNAL'>
        >>> error.with_context(connection="default").context.connection
        'default'
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
        cause: Exception | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category or self.default_category
        self.retryable = retryable if retryable is not None else self.default_retryable
        self.context = context or ErrorContext()
        self.cause = cause

        if cause is not None:
            self.__cause__ = cause

    def with_context(self, **kwargs: Any) -> QuarryError:
        """
        Add context to this error (fluent API).

        Usage:
            raise QueryError("failed", sql=sql).with_context(connection="default")
        """
        for key, value in kwargs.items():
            if hasattr(self.context, key) and key != "metadata":
                setattr(self.context, key, value)
            else:
                self.context.metadata[key] = value
        return self

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging/serialization."""
        result = {
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
# CONFIGURATION ERRORS
# =============================================================================


class ConfigError(QuarryError):
    """
    Configuration error.

    Never retryable - configuration must be fixed. Raised at Builder
    construction when no backend can be resolved for a connection profile.
    """

    default_category = ErrorCategory.CONFIG
    default_retryable = False


class MissingConfigError(ConfigError):
    """Required configuration is missing."""

    def __init__(self, key: str, message: str | None = None):
        self.key = key
        super().__init__(message or f"Missing required configuration: {key}")


class InvalidConfigError(ConfigError):
    """Configuration value is invalid."""

    def __init__(self, key: str, value: Any, message: str | None = None):
        self.key = key
        self.value = value
        super().__init__(message or f"Invalid configuration for {key}: {value!r}")


# =============================================================================
# VALIDATION ERRORS
# =============================================================================


class ValidationError(QuarryError):
    """
    Query construction error.

    Never retryable - string and parameter construction is deterministic,
    so running it again cannot change the outcome.
    """

    default_category = ErrorCategory.VALIDATION
    default_retryable = False


class ParameterMismatchError(ValidationError):
    """A named placeholder in the SQL has no bound parameter.

    Carries the unmatched placeholder names and a snapshot of the
    parameter bag as it was when the SQL was rewritten.
    """

    def __init__(
        self,
        message: str,
        *,
        unmatched: list[str] | None = None,
        parameters: dict[str, Any] | None = None,
        **kwargs: Any,
    ):
        super().__init__(message, **kwargs)
        self.unmatched = list(unmatched or [])
        self.parameters = dict(parameters or {})

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        result["unmatched"] = self.unmatched
        result["parameter_names"] = list(self.parameters)
        return result


class UnbindableValueError(ValidationError):
    """A bound value has no wire type (unsupported runtime shape)."""

    def __init__(self, name: str, value: Any, message: str | None = None):
        self.name = name
        self.value = value
        super().__init__(
            message or f"Parameter '{name}' has unsupported type {type(value).__name__}"
        )


class QueryStateError(ValidationError):
    """The builder was used in a way its single-query lifecycle forbids."""

    pass


# =============================================================================
# DATABASE ERRORS
# =============================================================================


class DatabaseError(QuarryError):
    """Database query or transaction error."""

    default_category = ErrorCategory.DATABASE
    default_retryable = False


class DatabaseConnectionError(DatabaseError):
    """Database connection could not be established."""

    default_retryable = True


class DriverError(DatabaseError):
    """The backend driver rejected a statement.

    Raised by platforms and translated into QueryError by the processor
    once the transaction has been rolled back.
    """

    def __init__(self, message: str, *, backend_message: str | None = None, **kwargs: Any):
        super().__init__(message, **kwargs)
        self.backend_message = backend_message or message


class QueryError(DatabaseError):
    """SQL execution failed at the backend.

    ``sql`` is the rewritten statement that was sent to the driver.
    """

    def __init__(
        self,
        message: str,
        *,
        sql: str = "",
        backend_message: str | None = None,
        **kwargs: Any,
    ):
        super().__init__(message, **kwargs)
        self.sql = sql
        self.backend_message = backend_message or message
        if sql and self.context.query is None:
            self.context.query = sql


class TransactionError(DatabaseError):
    """Begin, commit or rollback failed."""

    pass


# =============================================================================
# MAPPING ERRORS
# =============================================================================


class MappingError(QuarryError):
    """
    A result column does not correspond to a declared mapper field.

    Raised during materialization, after the statement has committed:
    the query's side effects are not undone.
    """

    default_category = ErrorCategory.MAPPING
    default_retryable = False

    def __init__(
        self,
        message: str,
        *,
        column: str | None = None,
        mapper: str | None = None,
        **kwargs: Any,
    ):
        super().__init__(message, **kwargs)
        self.column = column
        self.mapper = mapper


def is_retryable(error: Exception) -> bool:
    """Check whether an error may succeed when retried."""
    if isinstance(error, QuarryError):
        return error.retryable
    return False


__all__ = [
    "ErrorCategory",
    "ErrorContext",
    "QuarryError",
    "ConfigError",
    "MissingConfigError",
    "InvalidConfigError",
    "ValidationError",
    "ParameterMismatchError",
    "UnbindableValueError",
    "QueryStateError",
    "DatabaseError",
    "DatabaseConnectionError",
    "DriverError",
    "QueryError",
    "TransactionError",
    "MappingError",
    "is_retryable",
]
