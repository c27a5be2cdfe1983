"""PostgreSQL database handle."""

from __future__ import annotations

from collections.abc import Iterator, Sequence
from contextlib import contextmanager
from typing import Any

import psycopg
from psycopg.rows import dict_row
from psycopg_pool import ConnectionPool, PoolTimeout

from authstore.dialect import PostgreSQLDialect
from authstore.errors import DatabaseConnectionError

from .base import BaseDatabase


class PostgreSQLDatabase(BaseDatabase):
    """
    PostgreSQL database handle.

    Uses psycopg 3 with a ``psycopg_pool.ConnectionPool``.
    Suitable for production deployments.

    Pooled connections are configured with:
    - ``autocommit=True``: transactions are opened with an explicit ``BEGIN``
    - ``RawCursor``: statements use the server's native ``$1`` placeholders
    - ``dict_row``: rows come back as ``column -> value`` dicts

    Every ``execute``/``query`` checks a connection out for one statement;
    a ``transaction()`` keeps the same connection for the whole block.
    """

    def __init__(self, pool: ConnectionPool):
        super().__init__(PostgreSQLDialect())
        self._pool = pool

    @classmethod
    def from_url(
        cls,
        url: str,
        *,
        min_size: int = 1,
        max_size: int = 10,
        statement_timeout_ms: int = 0,
        connect_timeout: float = 30.0,
    ) -> PostgreSQLDatabase:
        """Open a pool against ``url`` and wait until it holds ``min_size`` connections."""
        kwargs: dict[str, Any] = {
            "autocommit": True,
            "row_factory": dict_row,
            "cursor_factory": psycopg.RawCursor,
        }
        if statement_timeout_ms:
            kwargs["options"] = f"-c statement_timeout={statement_timeout_ms}"

        try:
            pool = ConnectionPool(
                url,
                min_size=min_size,
                max_size=max_size,
                kwargs=kwargs,
                open=True,
            )
            if min_size > 0:
                pool.wait(timeout=connect_timeout)
        except (psycopg.Error, PoolTimeout) as e:
            raise DatabaseConnectionError(
                f"Failed to connect to PostgreSQL: {e}",
                cause=e,
            ) from e

        return cls(pool)

    @contextmanager
    def connection(self) -> Iterator[psycopg.Connection]:
        with self._pool.connection() as conn:
            yield conn

    def _run(self, conn: psycopg.Connection, sql: str, args: Sequence[Any]) -> psycopg.Cursor:
        return conn.execute(sql, list(args))

    def _rows(self, cursor: Any) -> list[dict[str, Any]]:
        if cursor.description is None:
            return []
        return [dict(row) for row in cursor.fetchall()]

    def close(self) -> None:
        """Close the connection pool."""
        self._pool.close()

    @property
    def pool(self) -> ConnectionPool:
        return self._pool


__all__ = [
    "PostgreSQLDatabase",
]
