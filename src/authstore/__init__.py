"""
authstore -- generic persistence adapter for a pluggable authentication core.

Maps user, key (credential) and session dataclasses onto parameterized
CRUD statements for any database with ordinal placeholders.

Architecture::

    Layer 1 -- Names & Errors
        errors.py          Structured error hierarchy (AuthStoreError)
        dialect.py         Identifier escaping + ordinal placeholders ($1, ?1, :1)

    Layer 2 -- Statement Building
        schema.py          Field-to-column tags, introspection, row materialization
        statements.py      INSERT / UPDATE / SELECT / DELETE text

    Layer 3 -- Execution
        protocols.py       Database / Executor / AdapterWithGetter contracts
        adapters/          SQLite and PostgreSQL handles
        connection.py      create_database() from a URL

    Layer 4 -- Adapter
        models.py          Default record types
        adapter.py         AuthAdapter, Tables, create_adapter()

    Ambient
        logging.py         structlog configuration
        settings.py        pydantic-settings (AUTHSTORE_* variables)
"""

__version__ = "0.1.0"

from authstore.adapter import AuthAdapter, Tables, create_adapter
from authstore.connection import create_database
from authstore.dialect import (
    Dialect,
    OracleDialect,
    PostgreSQLDialect,
    SQLiteDialect,
    escape_name,
    get_dialect,
)
from authstore.errors import (
    AttributeCollisionError,
    AuthStoreError,
    ConfigError,
    DatabaseConnectionError,
    EmptyUpdateError,
    SchemaError,
    ValidationError,
)
from authstore.models import KeySchema, SessionSchema, UserJoinSession, UserSchema
from authstore.protocols import AdapterWithGetter, Database
from authstore.schema import IGNORE, attributes, column

__all__ = [
    "__version__",
    # Adapter
    "AuthAdapter",
    "Tables",
    "create_adapter",
    "create_database",
    # Records
    "UserSchema",
    "KeySchema",
    "SessionSchema",
    "UserJoinSession",
    "column",
    "attributes",
    "IGNORE",
    # Dialects
    "Dialect",
    "PostgreSQLDialect",
    "SQLiteDialect",
    "OracleDialect",
    "escape_name",
    "get_dialect",
    # Protocols
    "Database",
    "AdapterWithGetter",
    # Errors
    "AuthStoreError",
    "ValidationError",
    "SchemaError",
    "EmptyUpdateError",
    "AttributeCollisionError",
    "ConfigError",
    "DatabaseConnectionError",
]
