"""SQLite database handle."""

from __future__ import annotations

import sqlite3
import threading
from collections.abc import Iterator, Sequence
from contextlib import contextmanager
from typing import Any

from authstore.dialect import SQLiteDialect
from authstore.errors import DatabaseConnectionError

from .base import BaseDatabase


class SQLiteDatabase(BaseDatabase):
    """
    SQLite database handle.

    Uses the built-in sqlite3 module with numbered ``?1`` placeholders.
    Suitable for:
    - Development and testing
    - Single-process deployments

    The connection runs in autocommit mode (``isolation_level=None``) so a
    lone statement is durable immediately and transactions are opened with
    an explicit ``BEGIN``.  One connection is shared; an ``RLock``
    serializes access so a transaction on one thread never interleaves
    with statements from another.
    """

    def __init__(
        self,
        path: str = ":memory:",
        *,
        timeout: float = 5.0,
        readonly: bool = False,
    ):
        super().__init__(SQLiteDialect())
        self._path = path
        self._lock = threading.RLock()
        uri = path.startswith("file:")

        try:
            self._conn = sqlite3.connect(
                path,
                timeout=timeout,
                check_same_thread=False,
                isolation_level=None,
                uri=uri,
            )
            self._conn.row_factory = sqlite3.Row

            # Enable foreign keys
            self._conn.execute("PRAGMA foreign_keys = ON")

            if readonly:
                self._conn.execute("PRAGMA query_only = ON")

        except sqlite3.Error as e:
            raise DatabaseConnectionError(
                f"Failed to connect to SQLite: {e}",
                cause=e,
            ) from e

    @contextmanager
    def connection(self) -> Iterator[sqlite3.Connection]:
        with self._lock:
            yield self._conn

    def _run(self, conn: sqlite3.Connection, sql: str, args: Sequence[Any]) -> sqlite3.Cursor:
        return conn.execute(sql, tuple(args))

    def close(self) -> None:
        """Close SQLite connection."""
        with self._lock:
            self._conn.close()

    @property
    def raw(self) -> sqlite3.Connection:
        """Access the underlying ``sqlite3.Connection`` (e.g. for DDL in tests)."""
        return self._conn

    def __repr__(self) -> str:
        return f"SQLiteDatabase({self._path!r})"


__all__ = [
    "SQLiteDatabase",
]
