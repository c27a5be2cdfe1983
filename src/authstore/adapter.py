"""
Auth adapter -- CRUD for users, keys and sessions over any ordinal-placeholder database.

Manifesto:
    An authentication core should not care where its users live.  It talks
    to a fixed contract (get/set/update/delete per entity plus one joined
    session lookup) and this adapter turns each call into a single
    parameterized statement built from the record type's column tags.
    No per-entity SQL is written by hand.

Architecture:
    ::

        AuthAdapter.set_user(user, key)
            │
            ├── build_fields(user)        typed columns      ("id")        $1
            ├── merge_attributes(...)     dynamic attributes ("username")  $2
            ├── insert_statement(...)     INSERT INTO "auth_user" ( ... ) VALUES ( ... )
            │
            └── key given?  ── no ──► database.execute(sql, args)
                            └─ yes ─► with database.transaction() as tx:
                                          tx.execute(user insert)
                                          tx.execute(key insert)
                                      (commit on clean exit, rollback otherwise)

Guardrails:
    ❌ DON'T: Raise for "no such row"
    ✅ DO: Return ``None`` / ``[]`` / ``(None, None)``

    ❌ DON'T: Send ``UPDATE t SET WHERE id = $1`` for an empty update
    ✅ DO: Raise ``EmptyUpdateError`` before any SQL is built

    ❌ DON'T: Touch the database for session calls when sessions are disabled
    ✅ DO: Short-circuit to the "not found" value

Tags:
    adapter, auth, crud, transaction, authstore
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any

from authstore.connection import create_database, database_from_settings
from authstore.dialect import Dialect
from authstore.errors import EmptyUpdateError
from authstore.logging import configure_logging, get_logger
from authstore.models import KeySchema, SessionSchema, UserJoinSession, UserSchema
from authstore.protocols import Database, Executor
from authstore.schema import (
    StatementFragment,
    attributes_of,
    build_fields,
    materialize,
    schema_for,
)
from authstore.settings import AuthStoreSettings, get_settings
from authstore.statements import (
    delete_by_column,
    fragment_from_mapping,
    insert_statement,
    merge_attributes,
    select_by_column,
    select_joined,
    update_statement,
)

SESSION_ID_ALIAS = "__session_id"
FOREIGN_KEY = "user_id"


@dataclass(frozen=True)
class Tables:
    """Names of the user, key and session tables.

    ``session`` may be ``None`` or ``""`` to run without sessions.
    """

    user: str
    key: str
    session: str | None = None

    @property
    def sessions_enabled(self) -> bool:
        return bool(self.session)

    @classmethod
    def from_settings(cls, settings: AuthStoreSettings) -> Tables:
        return cls(settings.user_table, settings.key_table, settings.session_table)


class AuthAdapter:
    """
    Adapter between an authentication core and a relational database.

    Table names are escaped once here and kept on the instance.  Record
    types default to :mod:`authstore.models` and may be replaced by any
    dataclass tagged with :func:`~authstore.schema.column`.

    Examples:
        >>> db = create_database()
        >>> adapter = AuthAdapter(db, Tables("auth_user", "user_key", "user_session"))
        >>> adapter.get_user("missing") is None
        True
    """

    def __init__(
        self,
        database: Database,
        tables: Tables,
        *,
        user_type: type = UserSchema,
        key_type: type = KeySchema,
        session_type: type = SessionSchema,
        user_join_type: type = UserJoinSession,
        dialect: Dialect | None = None,
        debug: bool = False,
    ):
        self._db = database
        self._dialect = dialect or database.dialect
        self._tables = tables

        self.user_table = self._dialect.escape(tables.user)
        self.key_table = self._dialect.escape(tables.key)
        self.session_table = self._dialect.escape(tables.session) if tables.sessions_enabled else None

        self._user_type = user_type
        self._key_type = key_type
        self._session_type = session_type
        self._user_join_type = user_join_type

        # Unmappable record types raise SchemaError here.
        for record_type in (user_type, key_type, session_type, user_join_type):
            schema_for(record_type)

        self._log = get_logger(__name__, debug=debug)

    @property
    def database(self) -> Database:
        return self._db

    @property
    def dialect(self) -> Dialect:
        return self._dialect

    @property
    def tables(self) -> Tables:
        return self._tables

    @property
    def sessions_enabled(self) -> bool:
        return self.session_table is not None

    # ── Statement plumbing ────────────────────────────────────────────

    def _run(
        self,
        operation: str,
        sql: str,
        args: Sequence[Any],
        *,
        executor: Executor | None = None,
    ) -> int:
        target = executor or self._db
        self._log.debug("statement", operation=operation, sql=sql, args=list(args))
        try:
            return target.execute(sql, args)
        except Exception as e:
            self._log.error("statement_failed", operation=operation, sql=sql, error=str(e))
            raise

    def _select(self, operation: str, sql: str, args: Sequence[Any]) -> list[dict[str, Any]]:
        self._log.debug("query", operation=operation, sql=sql, args=list(args))
        try:
            rows = self._db.query(sql, args)
        except Exception as e:
            self._log.error("query_failed", operation=operation, sql=sql, error=str(e))
            raise
        self._log.debug("query_returned", operation=operation, rows=len(rows))
        return rows

    def _insert(self, table: str, record: Any) -> tuple[str, tuple[Any, ...]]:
        schema = schema_for(type(record))
        fragment = merge_attributes(
            build_fields(record, self._dialect),
            attributes_of(record),
            self._dialect,
            reserved=schema.columns,
        )
        return insert_statement(table, fragment.columns, fragment.placeholders), fragment.args

    def _update_fragment(self, partial: Mapping[str, Any] | Any) -> StatementFragment:
        if isinstance(partial, Mapping):
            return fragment_from_mapping(partial, self._dialect)
        schema = schema_for(type(partial))
        return merge_attributes(
            build_fields(partial, self._dialect, omit_unset=True),
            attributes_of(partial),
            self._dialect,
            reserved=schema.columns,
        )

    def _update(self, operation: str, table: str, record_id: str, partial: Mapping[str, Any] | Any) -> None:
        fragment = self._update_fragment(partial)
        if not fragment:
            raise EmptyUpdateError(f"{operation} called with nothing to update").with_context(
                table=table,
                operation=operation,
            )
        sql = update_statement(
            table,
            fragment.columns,
            fragment.placeholders,
            self._dialect.placeholder(fragment.next_index),
        )
        self._run(operation, sql, (*fragment.args, record_id))

    def _select_where(self, operation: str, table: str, column: str, value: Any, record_type: type) -> list[Any]:
        sql = select_by_column(table, self._dialect.escape(column), self._dialect.placeholder(0))
        return materialize(self._select(operation, sql, (value,)), record_type)

    def _first(self, records: list[Any]) -> Any | None:
        return records[0] if records else None

    def _delete_where(self, operation: str, table: str, column: str, value: Any) -> None:
        sql = delete_by_column(table, self._dialect.escape(column), self._dialect.placeholder(0))
        self._run(operation, sql, (value,))

    # ── Users ─────────────────────────────────────────────────────────

    def get_user(self, user_id: str) -> Any | None:
        return self._first(self._select_where("get_user", self.user_table, "id", user_id, self._user_type))

    def set_user(self, user: Any, key: Any | None = None) -> None:
        """Insert ``user``; with ``key``, insert both atomically.

        The user's attributes bag is written alongside its typed columns.
        When a key is given both inserts run in one transaction: a failure
        of either leaves neither row behind and re-raises the driver error.
        """
        user_sql, user_args = self._insert(self.user_table, user)

        if key is None:
            self._run("set_user", user_sql, user_args)
            self._log.debug("user_inserted", table=self.user_table)
            return

        key_sql, key_args = self._insert(self.key_table, key)
        with self._db.transaction() as tx:
            self._run("set_user", user_sql, user_args, executor=tx)
            self._run("set_user", key_sql, key_args, executor=tx)
        self._log.debug("user_inserted", table=self.user_table, key_table=self.key_table)

    def update_user(self, user_id: str, partial: Mapping[str, Any] | Any) -> None:
        self._update("update_user", self.user_table, user_id, partial)

    def delete_user(self, user_id: str) -> None:
        self._delete_where("delete_user", self.user_table, "id", user_id)

    # ── Keys ──────────────────────────────────────────────────────────

    def get_key(self, key_id: str) -> Any | None:
        return self._first(self._select_where("get_key", self.key_table, "id", key_id, self._key_type))

    def get_keys_by_user_id(self, user_id: str) -> list[Any]:
        return self._select_where("get_keys_by_user_id", self.key_table, FOREIGN_KEY, user_id, self._key_type)

    def set_key(self, key: Any) -> None:
        sql, args = self._insert(self.key_table, key)
        self._run("set_key", sql, args)

    def update_key(self, key_id: str, partial: Mapping[str, Any] | Any) -> None:
        self._update("update_key", self.key_table, key_id, partial)

    def delete_key(self, key_id: str) -> None:
        self._delete_where("delete_key", self.key_table, "id", key_id)

    def delete_keys_by_user_id(self, user_id: str) -> None:
        self._delete_where("delete_keys_by_user_id", self.key_table, FOREIGN_KEY, user_id)

    # ── Sessions ──────────────────────────────────────────────────────

    def get_session(self, session_id: str) -> Any | None:
        if self.session_table is None:
            return None
        return self._first(
            self._select_where("get_session", self.session_table, "id", session_id, self._session_type)
        )

    def get_sessions_by_user_id(self, user_id: str) -> list[Any]:
        if self.session_table is None:
            return []
        return self._select_where(
            "get_sessions_by_user_id", self.session_table, FOREIGN_KEY, user_id, self._session_type
        )

    def set_session(self, session: Any) -> None:
        if self.session_table is None:
            return
        sql, args = self._insert(self.session_table, session)
        self._run("set_session", sql, args)

    def update_session(self, session_id: str, partial: Mapping[str, Any] | Any) -> None:
        if self.session_table is None:
            return
        self._update("update_session", self.session_table, session_id, partial)

    def delete_session(self, session_id: str) -> None:
        if self.session_table is None:
            return
        self._delete_where("delete_session", self.session_table, "id", session_id)

    def delete_sessions_by_user_id(self, user_id: str) -> None:
        if self.session_table is None:
            return
        self._delete_where("delete_sessions_by_user_id", self.session_table, FOREIGN_KEY, user_id)

    def get_session_and_user(self, session_id: str) -> tuple[Any | None, Any | None]:
        """Return ``(session, user)`` for ``session_id``, or ``(None, None)``.

        The user is materialized as ``user_join_type``: every user column
        plus the session id under ``__session_id``.  A session whose
        ``user_id`` matches no user counts as not found.
        """
        session = self.get_session(session_id)
        if session is None:
            return None, None

        sql = select_joined(
            self.user_table,
            self.session_table,
            self._dialect.escape(FOREIGN_KEY),
            SESSION_ID_ALIAS,
            self._dialect.placeholder(0),
        )
        rows = self._select("get_session_and_user", sql, (session_id,))
        user = self._first(materialize(rows, self._user_join_type))
        if user is None:
            self._log.warning(
                "session_user_missing",
                session_table=self.session_table,
                user_table=self.user_table,
            )
            return None, None
        return session, user

    def __repr__(self) -> str:
        return (
            f"AuthAdapter(user={self.user_table}, key={self.key_table}, "
            f"session={self.session_table}, dialect={self._dialect.name})"
        )


def create_adapter(settings: AuthStoreSettings | None = None, **kwargs: Any) -> AuthAdapter:
    """Build a database handle and an :class:`AuthAdapter` from settings.

    Applies ``settings.log_level`` through :func:`~authstore.logging.configure_logging`.
    Extra keyword arguments (record types, ``dialect``) go to the adapter.
    """
    settings = settings or get_settings()
    configure_logging(level=settings.log_level)
    kwargs.setdefault("debug", settings.debug)
    return AuthAdapter(database_from_settings(settings), Tables.from_settings(settings), **kwargs)


__all__ = [
    "AuthAdapter",
    "Tables",
    "create_adapter",
    "SESSION_ID_ALIAS",
]
