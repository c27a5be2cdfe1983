"""Tests for AuthStoreSettings and settings-driven wiring.

Covers:
- Defaults
- AUTHSTORE_* environment overrides
- Table name validation and the sessions-disabled sentinel
- Tables.from_settings / create_adapter
"""

from unittest.mock import patch

import pytest
import structlog
from pydantic import ValidationError

from authstore.adapter import AuthAdapter, Tables, create_adapter
from authstore.settings import AuthStoreSettings, get_settings


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch, tmp_path):
    for name in (
        "AUTHSTORE_DATABASE_URL",
        "AUTHSTORE_USER_TABLE",
        "AUTHSTORE_SESSION_TABLE",
        "AUTHSTORE_DEBUG",
        "AUTHSTORE_LOG_LEVEL",
    ):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
    structlog.reset_defaults()


class TestDefaults:
    def test_database_url(self):
        assert AuthStoreSettings().database_url == "memory"

    def test_tables(self):
        s = AuthStoreSettings()
        assert (s.user_table, s.key_table, s.session_table) == ("auth_user", "user_key", "user_session")
        assert s.sessions_enabled is True

    def test_debug_false(self):
        assert AuthStoreSettings().debug is False


class TestEnvOverride:
    def test_database_url_from_env(self, monkeypatch):
        monkeypatch.setenv("AUTHSTORE_DATABASE_URL", "postgresql://u@h/db")
        assert AuthStoreSettings().database_url == "postgresql://u@h/db"

    def test_debug_from_env(self, monkeypatch):
        monkeypatch.setenv("AUTHSTORE_DEBUG", "true")
        assert AuthStoreSettings().debug is True

    def test_empty_session_table_disables_sessions(self, monkeypatch):
        monkeypatch.setenv("AUTHSTORE_SESSION_TABLE", "")
        s = AuthStoreSettings()
        assert s.session_table is None
        assert s.sessions_enabled is False

    def test_dotenv_file(self, tmp_path):
        (tmp_path / ".env").write_text("AUTHSTORE_USER_TABLE=members\n")
        assert AuthStoreSettings().user_table == "members"


class TestValidation:
    def test_log_level_uppercased(self):
        assert AuthStoreSettings(log_level="debug").log_level == "DEBUG"

    def test_unknown_log_level(self):
        with pytest.raises(ValidationError):
            AuthStoreSettings(log_level="chatty")

    def test_blank_user_table(self):
        with pytest.raises(ValidationError):
            AuthStoreSettings(user_table="  ")

    def test_pool_bounds(self):
        with pytest.raises(ValidationError):
            AuthStoreSettings(pool_max_size=0)


class TestGetSettings:
    def test_cached(self):
        assert get_settings() is get_settings()


class TestWiring:
    def test_tables_from_settings(self):
        tables = Tables.from_settings(AuthStoreSettings(session_table=""))
        assert tables == Tables("auth_user", "user_key", None)

    def test_create_adapter(self):
        adapter = create_adapter(AuthStoreSettings(debug=True))
        assert isinstance(adapter, AuthAdapter)
        assert adapter.dialect.name == "sqlite"
        assert adapter.tables.user == "auth_user"
        adapter.database.close()

    def test_create_adapter_applies_log_level(self):
        with patch("authstore.adapter.configure_logging") as configure:
            adapter = create_adapter(AuthStoreSettings(log_level="warning"))
        configure.assert_called_once_with(level="WARNING")
        adapter.database.close()

    def test_log_level_from_env_reaches_logging(self, monkeypatch):
        monkeypatch.setenv("AUTHSTORE_LOG_LEVEL", "error")
        with patch("authstore.adapter.configure_logging") as configure:
            adapter = create_adapter()
        configure.assert_called_once_with(level="ERROR")
        adapter.database.close()

    def test_create_adapter_uses_cached_settings(self, monkeypatch):
        monkeypatch.setenv("AUTHSTORE_SESSION_TABLE", "")
        adapter = create_adapter()
        assert adapter.sessions_enabled is False
        adapter.database.close()
