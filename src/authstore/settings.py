"""Environment-driven settings for authstore.

``AuthStoreSettings`` gathers everything needed to stand up an adapter
outside of code: where the database is, which tables hold users, keys and
sessions, and how chatty the adapter should be.

Examples:
    >>> AuthStoreSettings(session_table="").sessions_enabled
    False

Fields
──────
database_url          : ``postgresql://…``, ``sqlite:///path`` or ``memory``
user_table            : Table holding users
key_table             : Table holding keys (credentials)
session_table         : Table holding sessions; empty disables sessions
debug                 : Per-adapter debug logging (DEBUG instead of ERROR)
log_level             : Level passed to ``configure_logging``
pool_min_size         : PostgreSQL pool lower bound
pool_max_size         : PostgreSQL pool upper bound
statement_timeout_ms  : PostgreSQL ``statement_timeout``; 0 disables it
sqlite_timeout        : SQLite busy timeout in seconds
"""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class AuthStoreSettings(BaseSettings):
    """authstore configuration, read from ``AUTHSTORE_*`` variables and ``.env``."""

    model_config = SettingsConfigDict(
        env_prefix="AUTHSTORE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Database ─────────────────────────────────────────────────
    database_url: str = Field(default="memory", description="Database URL or SQLite path")
    pool_min_size: int = Field(default=1, ge=0)
    pool_max_size: int = Field(default=10, ge=1)
    statement_timeout_ms: int = Field(default=0, ge=0)
    sqlite_timeout: float = Field(default=5.0, gt=0)

    # ── Tables ───────────────────────────────────────────────────
    user_table: str = "auth_user"
    key_table: str = "user_key"
    session_table: str | None = "user_session"

    # ── Observability ────────────────────────────────────────────
    debug: bool = False
    log_level: str = "INFO"

    @field_validator("user_table", "key_table")
    @classmethod
    def _required_table(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("table name must not be empty")
        return value.strip()

    @field_validator("session_table")
    @classmethod
    def _optional_table(cls, value: str | None) -> str | None:
        if value is None:
            return None
        return value.strip() or None

    @field_validator("log_level")
    @classmethod
    def _known_level(cls, value: str) -> str:
        level = value.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"unknown log level {value!r}")
        return level

    @property
    def sessions_enabled(self) -> bool:
        return self.session_table is not None


@lru_cache(maxsize=1)
def get_settings() -> AuthStoreSettings:
    """Process-wide settings, read once."""
    return AuthStoreSettings()


__all__ = [
    "AuthStoreSettings",
    "get_settings",
]
