"""SQL dialect abstraction for generated statements.

Provides a ``Dialect`` protocol and the concrete ordinal-placeholder
dialects authstore can target.  The schema introspector and statement
builder ask the dialect for two things only: the placeholder for a given
argument position and the quoting of identifiers.  Everything else about
a statement's shape is dialect independent.

Architecture::

    ┌──────────────────────────────────────────────────────────────────┐
    │                     Dialect Abstraction Layer                     │
    └──────────────────────────────────────────────────────────────────┘

    build_fields(record, dialect)
        columns       ← dialect.escape(column)
        placeholders  ← dialect.placeholder(index)
                              │
                              ▼
    ┌──────────────┐ ┌──────────────┐ ┌──────────────┐
    │ PostgreSQL   │ │ SQLite       │ │ Oracle       │
    │ $1, $2, $3   │ │ ?1, ?2, ?3   │ │ :1, :2, :3   │
    │ "name"       │ │ "name"       │ │ "name"       │
    └──────────────┘ └──────────────┘ └──────────────┘

Every dialect here numbers its placeholders, so an argument list can be
extended (dynamic attributes, the trailing ``WHERE id = $n+1``) without
re-rendering the placeholders already produced.

Examples:
    >>> from authstore.dialect import get_dialect
    >>> d = get_dialect("postgresql")
    >>> d.placeholders(3)
    '$1, $2, $3'
    >>> d.escape("auth_user")
    '"auth_user"'
    >>> d.escape("auth.user")
    'auth.user'

Tags:
    dialect, sql, placeholders, identifiers, portability
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from authstore.errors import InvalidConfigError

ESCAPE_CHAR = '"'
NAMESPACE_SEPARATOR = "."


def escape_name(name: str, quote: str = ESCAPE_CHAR) -> str:
    """Escape a table or column name unless it is schema-qualified.

    A name that already contains a namespace separator is trusted as
    written; wrapping ``auth.user`` in quotes would turn it into a single
    identifier.  This guards against reserved words and case folding only;
    argument values always go through parameter binding.
    """
    if NAMESPACE_SEPARATOR in name:
        return name
    return quote + name + quote


@runtime_checkable
class Dialect(Protocol):
    """SQL dialect contract.

    Every method returns a **SQL fragment** (string) that is valid for
    the target database.
    """

    @property
    def name(self) -> str:
        """Human-readable dialect name (e.g. ``'postgresql'``)."""
        ...

    def placeholder(self, index: int) -> str:
        """Single positional placeholder (0-based index).

        ``index`` 0 renders the first ordinal (``$1`` on PostgreSQL).
        """
        ...

    def placeholders(self, count: int, start: int = 0) -> str:
        """Comma-separated placeholder list beginning at ``start``."""
        ...

    def escape(self, name: str) -> str:
        """Quote an identifier (see :func:`escape_name`)."""
        ...


# =========================================================================
# Concrete Dialect Implementations
# =========================================================================


class _OrdinalDialect:
    """Shared behaviour for dialects with numbered placeholders."""

    name = "ordinal"
    prefix = "$"
    quote = ESCAPE_CHAR

    def placeholder(self, index: int) -> str:
        if index < 0:
            raise ValueError(f"Placeholder index must be >= 0, got {index}")
        return f"{self.prefix}{index + 1}"

    def placeholders(self, count: int, start: int = 0) -> str:
        return ", ".join(self.placeholder(start + i) for i in range(count))

    def escape(self, name: str) -> str:
        return escape_name(name, self.quote)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}()"


class PostgreSQLDialect(_OrdinalDialect):
    """PostgreSQL dialect -- native ``$1, $2`` placeholders.

    Matches the server's own parameter syntax, as used by psycopg's
    ``RawCursor`` (see :mod:`authstore.adapters.postgresql`).
    """

    name = "postgresql"
    prefix = "$"


class SQLiteDialect(_OrdinalDialect):
    """SQLite dialect -- numbered ``?1, ?2`` placeholders."""

    name = "sqlite"
    prefix = "?"


class OracleDialect(_OrdinalDialect):
    """Oracle dialect -- ``:1, :2`` numbered bind variables (python-oracledb)."""

    name = "oracle"
    prefix = ":"


# =========================================================================
# Registry / Factory
# =========================================================================

# Pre-instantiated singletons (dialects are stateless)
_DIALECTS: dict[str, Dialect] = {
    "postgresql": PostgreSQLDialect(),
    "postgres": PostgreSQLDialect(),  # alias
    "sqlite": SQLiteDialect(),
    "oracle": OracleDialect(),
}


def get_dialect(db_type: str) -> Dialect:
    """Get a dialect by database type name.

    Raises:
        InvalidConfigError: If ``db_type`` is not recognised.
    """
    key = db_type.lower()
    if key not in _DIALECTS:
        raise InvalidConfigError(
            "dialect",
            db_type,
            f"Unknown dialect '{db_type}'. "
            f"Supported: {sorted(set(_DIALECTS) - {'postgres'})}",
        )
    return _DIALECTS[key]


def register_dialect(name: str, dialect: Dialect) -> None:
    """Register a custom dialect implementation.

    Useful for third-party drivers with another ordinal syntax, or for
    test doubles.
    """
    _DIALECTS[name.lower()] = dialect


__all__ = [
    "ESCAPE_CHAR",
    "escape_name",
    "Dialect",
    "PostgreSQLDialect",
    "SQLiteDialect",
    "OracleDialect",
    "get_dialect",
    "register_dialect",
]
