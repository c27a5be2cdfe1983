"""
Structured error types for authstore.

Provides a small hierarchy of typed errors carrying a category, structured
context and a chained cause. Only errors that authstore itself detects live
here; failures reported by the database driver (constraint violations, lost
connections, syntax errors) are never wrapped and reach the caller as the
driver's own exception.

Architecture:
    ::

        ┌─────────────────────────────────────────────────────────────┐
        │                      AuthStoreError                          │
        │            (category, context, cause)                        │
        ├─────────────────────────────────────────────────────────────┤
        │  ValidationError         ConfigError        DatabaseError    │
        │  (VALIDATION)            (CONFIG)           (DATABASE)       │
        │       │                       │                  │           │
        │  SchemaError           InvalidConfigError  DatabaseConnection│
        │  EmptyUpdateError                          Error             │
        │  AttributeCollisionError                                     │
        └─────────────────────────────────────────────────────────────┘

Guardrails:
    ❌ DON'T: Wrap driver exceptions raised while executing a statement
    ✅ DO: Let them propagate unchanged so callers can inspect them

    ❌ DON'T: Signal "no row" with an exception
    ✅ DO: Return ``None`` / ``[]`` for lookups that match nothing

Tags:
    error-handling, exception-hierarchy, error-context, authstore
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    """Standard error categories for classification and routing."""

    VALIDATION = "VALIDATION"     # Bad caller input, unmappable record types
    CONFIG = "CONFIG"             # Unknown dialect, unsupported database URL
    DATABASE = "DATABASE"         # Connection setup failures
    INTERNAL = "INTERNAL"         # Bugs, unexpected state


@dataclass
class ErrorContext:
    """
    Structured metadata attached to an error.

    Attributes:
        table: Table the failing operation targeted
        operation: Adapter operation name (e.g. ``"update_user"``)
        column: Column involved, when a single one is to blame
        metadata: Additional key-value pairs
    """

    table: str | None = None
    operation: str | None = None
    column: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging."""
        result = {}
        for key in ["table", "operation", "column"]:
            value = getattr(self, key)
            if value is not None:
                result[key] = value
        if self.metadata:
            result.update(self.metadata)
        return result


class AuthStoreError(Exception):
    """
    Base exception for all authstore errors.

    Subclasses set ``default_category``; every instance carries an
    :class:`ErrorContext` that can be extended fluently with
    :meth:`with_context`.

    Examples:
        >>> error = AuthStoreError("Something went wrong")
        >>> error.category
        <ErrorCategory.INTERNAL: 'INTERNAL'>

        >>> error = EmptyUpdateError("nothing to update").with_context(table='"auth_user"')
        >>> error.context.table
        '"auth_user"'
    """

    default_category: ErrorCategory = ErrorCategory.INTERNAL

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory | None = None,
        context: ErrorContext | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category or self.default_category
        self.context = context or ErrorContext()
        self.cause = cause

        if cause is not None:
            self.__cause__ = cause

    def with_context(self, **kwargs: Any) -> AuthStoreError:
        """
        Add context to this error (fluent API).

        Usage:
            raise EmptyUpdateError("no columns").with_context(
                table='"user_key"',
                operation="update_key",
            )
        """
        for key, value in kwargs.items():
            if hasattr(self.context, key):
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
# VALIDATION ERRORS
# =============================================================================


class ValidationError(AuthStoreError):
    """Caller input that cannot be turned into a valid statement."""

    default_category = ErrorCategory.VALIDATION


class SchemaError(ValidationError):
    """A value whose type has no usable field-to-column mapping."""

    pass


class EmptyUpdateError(ValidationError):
    """A partial update with no columns to set.

    Raised before any SQL is built so that ``UPDATE t SET WHERE id = $1``
    is never sent to the database.
    """

    pass


class AttributeCollisionError(ValidationError):
    """A dynamic attribute names a column the typed record already maps."""

    def __init__(self, column: str, message: str | None = None):
        super().__init__(
            message or f"Attribute {column!r} collides with a typed column",
            context=ErrorContext(column=column),
        )
        self.column = column


# =============================================================================
# CONFIG ERRORS
# =============================================================================


class ConfigError(AuthStoreError):
    """Invalid or unsupported configuration."""

    default_category = ErrorCategory.CONFIG


class InvalidConfigError(ConfigError):
    """Configuration value is invalid."""

    def __init__(self, key: str, value: Any, message: str | None = None):
        super().__init__(
            message or f"Invalid value for {key}: {value!r}",
            context=ErrorContext(metadata={"config_key": key, "config_value": str(value)}),
        )
        self.key = key
        self.value = value


# =============================================================================
# DATABASE ERRORS
# =============================================================================


class DatabaseError(AuthStoreError):
    """Database handle error raised by authstore itself."""

    default_category = ErrorCategory.DATABASE


class DatabaseConnectionError(DatabaseError):
    """Opening a database connection or pool failed."""

    pass


__all__ = [
    "ErrorCategory",
    "ErrorContext",
    "AuthStoreError",
    "ValidationError",
    "SchemaError",
    "EmptyUpdateError",
    "AttributeCollisionError",
    "ConfigError",
    "InvalidConfigError",
    "DatabaseError",
    "DatabaseConnectionError",
]
