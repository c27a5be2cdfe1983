"""
Canonical protocol definitions for authstore.

Two contracts meet in this package:

- **Downward**, the database handle the adapter runs statements through
  (:class:`Executor`, :class:`Database`).  Anything with this shape works;
  :mod:`authstore.adapters` ships SQLite and PostgreSQL implementations.
- **Upward**, the capability contract the authentication core calls
  (:class:`AdapterWithGetter`).  :class:`~authstore.adapter.AuthAdapter`
  satisfies it structurally.

Architecture:
    ::

        authentication core
              │  AdapterWithGetter  (get/set/update/delete per entity,
              ▼                      get_session_and_user)
        AuthAdapter
              │  Database           (dialect, execute, query, transaction)
              ▼
        SQLiteDatabase / PostgreSQLDatabase / test doubles

Guardrails:
    ❌ DON'T: Add pooling or retry knobs to these protocols
    ✅ DO: Keep them to "execute SQL with positional args; open a transaction"

Tags:
    protocol, database, adapter, contracts, authstore
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from contextlib import AbstractContextManager
from typing import Any, Protocol, runtime_checkable

from authstore.dialect import Dialect

# ---------------------------------------------------------------------------
# Database handle protocols
# ---------------------------------------------------------------------------


@runtime_checkable
class Executor(Protocol):
    """
    Runs one statement with ordered positional arguments.

    Both a :class:`Database` and the handle yielded by
    :meth:`Database.transaction` satisfy this protocol.
    """

    def execute(self, sql: str, args: Sequence[Any] = ()) -> int:
        """Execute a statement; return the number of rows affected."""
        ...

    def query(self, sql: str, args: Sequence[Any] = ()) -> list[dict[str, Any]]:
        """Execute a SELECT; return rows as column -> value dicts, in result order."""
        ...


@runtime_checkable
class Database(Executor, Protocol):
    """
    A live database handle.

    ``transaction()`` returns a context manager yielding an
    :class:`Executor` bound to one connection.  Leaving the block normally
    commits; leaving it by any exception rolls back and re-raises.
    """

    @property
    def dialect(self) -> Dialect:
        """Placeholder and quoting rules of this backend."""
        ...

    def transaction(self) -> AbstractContextManager[Executor]:
        """Open a transaction scope."""
        ...


# ---------------------------------------------------------------------------
# Adapter contract
# ---------------------------------------------------------------------------


class Adapter(Protocol):
    """CRUD contract over users, keys and sessions."""

    def get_user(self, user_id: str) -> Any | None: ...

    def set_user(self, user: Any, key: Any | None = None) -> None: ...

    def update_user(self, user_id: str, partial: Mapping[str, Any] | Any) -> None: ...

    def delete_user(self, user_id: str) -> None: ...

    def get_key(self, key_id: str) -> Any | None: ...

    def get_keys_by_user_id(self, user_id: str) -> list[Any]: ...

    def set_key(self, key: Any) -> None: ...

    def update_key(self, key_id: str, partial: Mapping[str, Any] | Any) -> None: ...

    def delete_key(self, key_id: str) -> None: ...

    def delete_keys_by_user_id(self, user_id: str) -> None: ...

    def get_session(self, session_id: str) -> Any | None: ...

    def get_sessions_by_user_id(self, user_id: str) -> list[Any]: ...

    def set_session(self, session: Any) -> None: ...

    def update_session(self, session_id: str, partial: Mapping[str, Any] | Any) -> None: ...

    def delete_session(self, session_id: str) -> None: ...

    def delete_sessions_by_user_id(self, user_id: str) -> None: ...


@runtime_checkable
class AdapterWithGetter(Adapter, Protocol):
    """:class:`Adapter` plus the joined session + user lookup."""

    def get_session_and_user(self, session_id: str) -> tuple[Any | None, Any | None]: ...


__all__ = [
    "Executor",
    "Database",
    "Adapter",
    "AdapterWithGetter",
]
