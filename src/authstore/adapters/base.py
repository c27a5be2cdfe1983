"""Database handle base class.

Manifesto:
    The auth adapter needs three things from a database: run a statement,
    run a query, and group statements into a transaction that either
    commits whole or leaves nothing behind.  Backends differ in how a
    connection is checked out and how a statement is sent; they must not
    differ in transaction semantics.  ``BaseDatabase`` owns those semantics
    once so every backend gets them identically.

Features:
    - ``execute()`` returns rows affected, ``query()`` returns dict rows
    - ``transaction()`` yields an executor bound to one connection
    - Commit only on clean exit; rollback on every other exit path
      (exceptions, ``KeyboardInterrupt``, generator close)
    - A failing rollback is logged and never replaces the original error
    - Context-manager protocol for handle lifetime

Tags:
    database, abstract-base, transaction, adapter-pattern, authstore
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterator, Sequence
from contextlib import contextmanager
from typing import Any

from authstore.dialect import Dialect
from authstore.logging import get_logger


class BoundExecutor:
    """Executor pinned to one checked-out connection (used inside transactions)."""

    def __init__(self, database: BaseDatabase, conn: Any) -> None:
        self._database = database
        self._conn = conn

    def execute(self, sql: str, args: Sequence[Any] = ()) -> int:
        cursor = self._database._run(self._conn, sql, args)
        return cursor.rowcount

    def query(self, sql: str, args: Sequence[Any] = ()) -> list[dict[str, Any]]:
        cursor = self._database._run(self._conn, sql, args)
        return self._database._rows(cursor)


class BaseDatabase(ABC):
    """
    Abstract base class for database handles.

    Subclasses provide connection checkout and statement dispatch; the
    base class provides execution helpers and transaction scoping.
    """

    def __init__(self, dialect: Dialect):
        self._dialect = dialect
        self._log = get_logger(__name__)

    @property
    def dialect(self) -> Dialect:
        """SQL dialect for this handle's database."""
        return self._dialect

    @abstractmethod
    @contextmanager
    def connection(self) -> Iterator[Any]:
        """Check out a connection for the duration of the block."""
        ...

    @abstractmethod
    def _run(self, conn: Any, sql: str, args: Sequence[Any]) -> Any:
        """Send one statement on ``conn``; return a DB-API cursor."""
        ...

    def _rows(self, cursor: Any) -> list[dict[str, Any]]:
        return [dict(row) for row in cursor.fetchall()]

    @abstractmethod
    def close(self) -> None:
        """Release every connection held by this handle."""
        ...

    def execute(self, sql: str, args: Sequence[Any] = ()) -> int:
        """Execute one statement in its own implicit transaction."""
        with self.connection() as conn:
            return BoundExecutor(self, conn).execute(sql, args)

    def query(self, sql: str, args: Sequence[Any] = ()) -> list[dict[str, Any]]:
        """Execute a SELECT and return rows as dicts."""
        with self.connection() as conn:
            return BoundExecutor(self, conn).query(sql, args)

    @contextmanager
    def transaction(self) -> Iterator[BoundExecutor]:
        """Transaction scope: commit on clean exit, roll back otherwise."""
        with self.connection() as conn:
            self._run(conn, "BEGIN", ())
            try:
                yield BoundExecutor(self, conn)
                self._run(conn, "COMMIT", ())
            except BaseException:
                self._rollback(conn)
                raise

    def _rollback(self, conn: Any) -> None:
        try:
            self._run(conn, "ROLLBACK", ())
        except Exception as rollback_error:
            # The caller is already unwinding with the error that matters.
            self._log.error("rollback_failed", dialect=self._dialect.name, error=str(rollback_error))
        else:
            self._log.debug("transaction_rolled_back", dialect=self._dialect.name)

    def __enter__(self) -> BaseDatabase:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()


__all__ = [
    "BaseDatabase",
    "BoundExecutor",
]
