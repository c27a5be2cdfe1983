"""Database handles -- the collaborators ``AuthAdapter`` runs SQL through.

Manifesto:
    The adapter builds SQL text and ordered arguments; something has to
    send them.  A handle hides connection checkout and driver calls behind
    ``execute`` / ``query`` / ``transaction`` and advertises the
    :class:`~authstore.dialect.Dialect` whose placeholders it accepts.

Architecture::

    BaseDatabase (base.py)           execute/query helpers, transaction scope
        |-- SQLiteDatabase           stdlib sqlite3, ?1 placeholders
        |-- PostgreSQLDatabase       psycopg 3 + psycopg_pool, $1 placeholders

Modules
-------
base            Abstract BaseDatabase and BoundExecutor
sqlite          SQLite handle (stdlib)
postgresql      PostgreSQL handle (psycopg, psycopg_pool)

Guardrails:
    ❌ ``db.execute("SELECT * FROM t WHERE id='" + user_input + "'")``
    ✅ ``db.execute(f"SELECT * FROM t WHERE id = {db.dialect.placeholder(0)}", [user_input])``
    ❌ Calling ``commit()`` on a handle's connection directly
    ✅ ``with db.transaction() as tx: ...``

Tags:
    authstore, database, adapters, postgresql, sqlite
"""

from .base import BaseDatabase, BoundExecutor
from .postgresql import PostgreSQLDatabase
from .sqlite import SQLiteDatabase

__all__ = [
    "BaseDatabase",
    "BoundExecutor",
    "PostgreSQLDatabase",
    "SQLiteDatabase",
]
