"""Tests for identifier escaping and ordinal placeholder dialects."""

from __future__ import annotations

import pytest

import authstore.dialect as dialect_module
from authstore.dialect import (
    Dialect,
    OracleDialect,
    PostgreSQLDialect,
    SQLiteDialect,
    escape_name,
    get_dialect,
    register_dialect,
)
from authstore.errors import ConfigError, InvalidConfigError


@pytest.fixture(params=["sqlite", "postgresql", "oracle"])
def dialect(request: pytest.FixtureRequest) -> Dialect:
    """Parametric fixture: run each test against every dialect."""
    return get_dialect(request.param)


class TestEscapeName:
    def test_wraps_plain_name(self) -> None:
        assert escape_name("user") == '"user"'

    def test_schema_qualified_name_unchanged(self) -> None:
        assert escape_name("auth.user") == "auth.user"

    def test_escaping_twice_wraps_twice(self) -> None:
        once = escape_name("user")
        assert escape_name(once) == '""user""'
        assert escape_name(once) != once

    def test_custom_quote(self) -> None:
        assert escape_name("user", "`") == "`user`"

    def test_empty_name_is_not_validated(self) -> None:
        assert escape_name("") == '""'


class TestProtocol:
    def test_isinstance(self, dialect: Dialect) -> None:
        assert isinstance(dialect, Dialect)

    def test_name(self, dialect: Dialect) -> None:
        assert dialect.name in {"sqlite", "postgresql", "oracle"}

    def test_escape_delegates(self, dialect: Dialect) -> None:
        assert dialect.escape("id") == '"id"'
        assert dialect.escape("public.id") == "public.id"


class TestPlaceholders:
    def test_postgresql(self) -> None:
        pg = PostgreSQLDialect()
        assert pg.placeholder(0) == "$1"
        assert pg.placeholder(9) == "$10"

    def test_sqlite(self) -> None:
        assert SQLiteDialect().placeholder(2) == "?3"

    def test_oracle(self) -> None:
        assert OracleDialect().placeholder(0) == ":1"

    def test_placeholders_with_start(self) -> None:
        assert PostgreSQLDialect().placeholders(3) == "$1, $2, $3"
        assert PostgreSQLDialect().placeholders(2, start=3) == "$4, $5"

    def test_zero_placeholders(self, dialect: Dialect) -> None:
        assert dialect.placeholders(0) == ""

    def test_negative_index_rejected(self, dialect: Dialect) -> None:
        with pytest.raises(ValueError):
            dialect.placeholder(-1)


class TestRegistry:
    def test_postgres_alias(self) -> None:
        assert get_dialect("postgres").name == "postgresql"

    def test_case_insensitive(self) -> None:
        assert get_dialect("SQLite").name == "sqlite"

    def test_unknown_dialect(self) -> None:
        with pytest.raises(InvalidConfigError) as exc_info:
            get_dialect("mysql")
        assert isinstance(exc_info.value, ConfigError)
        assert exc_info.value.key == "dialect"

    def test_register_custom(self, monkeypatch: pytest.MonkeyPatch) -> None:
        class AtDialect(PostgreSQLDialect):
            name = "at"
            prefix = "@p"

        monkeypatch.setattr(dialect_module, "_DIALECTS", dict(dialect_module._DIALECTS))
        register_dialect("At", AtDialect())
        assert get_dialect("at").placeholder(0) == "@p1"

    def test_registration_does_not_leak(self) -> None:
        with pytest.raises(InvalidConfigError):
            get_dialect("at")

    def test_class_level_names(self) -> None:
        assert PostgreSQLDialect.name == "postgresql"
        assert SQLiteDialect.name == "sqlite"
        assert OracleDialect.name == "oracle"
