"""Tests for the PostgreSQL handle with a mocked connection pool."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import psycopg
import pytest
from psycopg.rows import dict_row
from psycopg_pool import PoolTimeout

from authstore.adapter import AuthAdapter, Tables
from authstore.adapters import PostgreSQLDatabase
from authstore.errors import DatabaseConnectionError
from authstore.models import KeySchema, UserSchema


@pytest.fixture
def conn() -> MagicMock:
    return MagicMock(name="conn")


@pytest.fixture
def pool(conn: MagicMock) -> MagicMock:
    pool = MagicMock(name="pool")
    pool.connection.return_value.__enter__.return_value = conn
    return pool


@pytest.fixture
def pg(pool: MagicMock) -> PostgreSQLDatabase:
    return PostgreSQLDatabase(pool)


def sent(conn: MagicMock) -> list[str]:
    return [c.args[0] for c in conn.execute.call_args_list]


class TestFromUrl:
    def test_pool_configuration(self) -> None:
        with patch("authstore.adapters.postgresql.ConnectionPool") as pool_cls:
            db = PostgreSQLDatabase.from_url("postgresql://u@h/db", min_size=2, max_size=5)

        _, kwargs = pool_cls.call_args
        assert pool_cls.call_args.args == ("postgresql://u@h/db",)
        assert kwargs["min_size"] == 2
        assert kwargs["max_size"] == 5
        assert kwargs["kwargs"] == {
            "autocommit": True,
            "row_factory": dict_row,
            "cursor_factory": psycopg.RawCursor,
        }
        pool_cls.return_value.wait.assert_called_once_with(timeout=30.0)
        assert db.pool is pool_cls.return_value
        assert db.dialect.name == "postgresql"

    def test_statement_timeout(self) -> None:
        with patch("authstore.adapters.postgresql.ConnectionPool") as pool_cls:
            PostgreSQLDatabase.from_url("postgresql://u@h/db", statement_timeout_ms=2000)
        assert pool_cls.call_args.kwargs["kwargs"]["options"] == "-c statement_timeout=2000"

    def test_lazy_pool_does_not_wait(self) -> None:
        with patch("authstore.adapters.postgresql.ConnectionPool") as pool_cls:
            PostgreSQLDatabase.from_url("postgresql://u@h/db", min_size=0)
        pool_cls.return_value.wait.assert_not_called()

    def test_timeout_wrapped(self) -> None:
        with patch("authstore.adapters.postgresql.ConnectionPool") as pool_cls:
            pool_cls.return_value.wait.side_effect = PoolTimeout("no connection")
            with pytest.raises(DatabaseConnectionError) as exc_info:
                PostgreSQLDatabase.from_url("postgresql://u@h/db")
        assert isinstance(exc_info.value.cause, PoolTimeout)


class TestExecution:
    def test_execute(self, pg: PostgreSQLDatabase, conn: MagicMock) -> None:
        conn.execute.return_value.rowcount = 1
        assert pg.execute("DELETE FROM t WHERE id = $1", ("a",)) == 1
        conn.execute.assert_called_once_with("DELETE FROM t WHERE id = $1", ["a"])

    def test_query(self, pg: PostgreSQLDatabase, conn: MagicMock) -> None:
        conn.execute.return_value.fetchall.return_value = [{"id": "a"}]
        assert pg.query("SELECT * FROM t WHERE id = $1", ["a"]) == [{"id": "a"}]

    def test_query_without_result_set(self, pg: PostgreSQLDatabase, conn: MagicMock) -> None:
        conn.execute.return_value.description = None
        assert pg.query("SELECT 1") == []

    def test_close(self, pg: PostgreSQLDatabase, pool: MagicMock) -> None:
        pg.close()
        pool.close.assert_called_once_with()


class TestTransaction:
    def test_commit(self, pg: PostgreSQLDatabase, conn: MagicMock) -> None:
        with pg.transaction() as tx:
            tx.execute("INSERT INTO t (a) VALUES ($1)", [1])
        assert sent(conn) == ["BEGIN", "INSERT INTO t (a) VALUES ($1)", "COMMIT"]

    def test_rollback(self, pg: PostgreSQLDatabase, conn: MagicMock) -> None:
        with pytest.raises(ValueError):
            with pg.transaction() as tx:
                tx.execute("INSERT INTO t (a) VALUES ($1)", [1])
                raise ValueError("bad")
        assert sent(conn) == ["BEGIN", "INSERT INTO t (a) VALUES ($1)", "ROLLBACK"]

    def test_one_connection_per_transaction(self, pg: PostgreSQLDatabase, pool: MagicMock) -> None:
        with pg.transaction() as tx:
            tx.execute("SELECT 1")
            tx.execute("SELECT 2")
        pool.connection.assert_called_once_with()


class TestAdapterOnPostgres:
    def test_set_user_with_key_sql(self, pg: PostgreSQLDatabase, conn: MagicMock) -> None:
        adapter = AuthAdapter(pg, Tables("auth_user", "user_key", "user_session"))
        adapter.set_user(
            UserSchema(id="u1", attributes={"username": "a"}),
            KeySchema(id="k1", user_id="u1", hashed_password="h"),
        )

        calls = conn.execute.call_args_list
        assert [c.args for c in calls] == [
            ("BEGIN", []),
            ('INSERT INTO "auth_user" ( "id", "username" ) VALUES ( $1, $2 )', ["u1", "a"]),
            (
                'INSERT INTO "user_key" ( "id", "user_id", "hashed_password" ) VALUES ( $1, $2, $3 )',
                ["k1", "u1", "h"],
            ),
            ("COMMIT", []),
        ]

    def test_update_key_placeholder_follows_set_clause(self, pg: PostgreSQLDatabase, conn: MagicMock) -> None:
        adapter = AuthAdapter(pg, Tables("auth_user", "user_key"))
        adapter.update_user("u1", {"username": "b", "email": "e"})
        conn.execute.assert_called_once_with(
            'UPDATE "auth_user" SET "username" = $1, "email" = $2 WHERE id = $3',
            ["b", "e", "u1"],
        )
