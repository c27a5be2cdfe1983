"""
Shared pytest fixtures for authstore tests.

This module provides:
- An in-memory SQLite handle with the auth_user / user_key / user_session schema
- Adapters with and without a session table
- A tripwire handle that fails the test if any statement reaches it

Usage:
    def test_something(adapter):
        adapter.set_user(UserSchema(id="u1", attributes={"username": "ada"}))
"""

import sys
from collections.abc import Iterator
from pathlib import Path
from typing import Any

import pytest

# Ensure authstore package is importable
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from authstore.adapter import AuthAdapter, Tables
from authstore.adapters import SQLiteDatabase
from authstore.dialect import SQLiteDialect

SCHEMA = """
CREATE TABLE auth_user (
    id TEXT PRIMARY KEY,
    username TEXT UNIQUE
);
CREATE TABLE user_session (
    id TEXT PRIMARY KEY,
    user_id TEXT NOT NULL REFERENCES auth_user(id),
    active_expires INTEGER NOT NULL,
    idle_expires INTEGER NOT NULL
);
CREATE TABLE user_key (
    id TEXT PRIMARY KEY,
    user_id TEXT NOT NULL REFERENCES auth_user(id),
    hashed_password TEXT
);
"""


class TripwireDatabase:
    """Database handle that fails the test on any use beyond ``dialect``."""

    def __init__(self) -> None:
        self._dialect = SQLiteDialect()

    @property
    def dialect(self) -> SQLiteDialect:
        return self._dialect

    def execute(self, sql: str, args: Any = ()) -> int:
        pytest.fail(f"unexpected execute: {sql}")

    def query(self, sql: str, args: Any = ()) -> list[dict[str, Any]]:
        pytest.fail(f"unexpected query: {sql}")

    def transaction(self) -> Any:
        pytest.fail("unexpected transaction")


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    """Auto-mark tests: adapter/handle tests are integration, the rest unit."""
    integration_files = {"test_adapter.py", "test_sqlite.py"}
    for item in items:
        if Path(item.fspath).name in integration_files:
            item.add_marker(pytest.mark.integration)
        else:
            item.add_marker(pytest.mark.unit)


@pytest.fixture
def db() -> Iterator[SQLiteDatabase]:
    """In-memory SQLite handle with the auth schema applied."""
    database = SQLiteDatabase(":memory:")
    database.raw.executescript(SCHEMA)
    yield database
    database.close()


@pytest.fixture
def tables() -> Tables:
    return Tables(user="auth_user", key="user_key", session="user_session")


@pytest.fixture
def adapter(db: SQLiteDatabase, tables: Tables) -> AuthAdapter:
    return AuthAdapter(db, tables, debug=True)


@pytest.fixture
def tripwire() -> TripwireDatabase:
    return TripwireDatabase()
