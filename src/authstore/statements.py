"""Statement builder -- SQL text from introspected fragments.

Pure functions composing :class:`~authstore.schema.StatementFragment`
triples into INSERT / UPDATE / SELECT / DELETE text.  Table and column
names passed to the ``*_statement`` / ``select_*`` / ``delete_*``
functions must already be escaped; escaping is a property of names, the
builder only decides statement shape.  The two helpers that accept raw
column names (:func:`merge_attributes`, :func:`fragment_from_mapping`)
escape them through the dialect.

Examples:
    >>> insert_statement('"auth_user"', ['"id"', '"username"'], ["$1", "$2"])
    'INSERT INTO "auth_user" ( "id", "username" ) VALUES ( $1, $2 )'
    >>> update_statement('"auth_user"', ['"username"'], ["$1"], "$2")
    'UPDATE "auth_user" SET "username" = $1 WHERE id = $2'
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from typing import Any

from authstore.dialect import Dialect
from authstore.errors import AttributeCollisionError, EmptyUpdateError
from authstore.schema import StatementFragment


def insert_statement(table: str, columns: Sequence[str], placeholders: Sequence[str]) -> str:
    """``INSERT INTO <table> ( <columns> ) VALUES ( <placeholders> )``."""
    return "INSERT INTO {} ( {} ) VALUES ( {} )".format(
        table,
        ", ".join(columns),
        ", ".join(placeholders),
    )


def set_clause(columns: Sequence[str], placeholders: Sequence[str]) -> str:
    """``col1 = $1, col2 = $2`` for an UPDATE.

    Raises:
        EmptyUpdateError: ``columns`` is empty.
    """
    if not columns:
        raise EmptyUpdateError("UPDATE requires at least one column to set")
    if len(columns) != len(placeholders):
        raise ValueError(
            f"{len(columns)} columns but {len(placeholders)} placeholders in SET clause"
        )
    return ", ".join(f"{c} = {p}" for c, p in zip(columns, placeholders))


def update_statement(
    table: str,
    columns: Sequence[str],
    placeholders: Sequence[str],
    key_placeholder: str,
) -> str:
    """``UPDATE <table> SET <col = placeholder, ...> WHERE id = <key>``.

    ``key_placeholder`` must be the ordinal after the last SET placeholder
    (``$<len(columns) + 1>``).
    """
    return f"UPDATE {table} SET {set_clause(columns, placeholders)} WHERE id = {key_placeholder}"


def select_by_column(table: str, column: str, placeholder: str) -> str:
    """``SELECT * FROM <table> WHERE <column> = <placeholder>``."""
    return f"SELECT * FROM {table} WHERE {column} = {placeholder}"


def delete_by_column(table: str, column: str, placeholder: str) -> str:
    """``DELETE FROM <table> WHERE <column> = <placeholder>``."""
    return f"DELETE FROM {table} WHERE {column} = {placeholder}"


def select_joined(
    primary: str,
    secondary: str,
    foreign_key: str,
    alias: str,
    placeholder: str,
) -> str:
    """Select every primary column for the row a secondary row points at.

    The secondary id is projected under ``alias`` so it cannot shadow the
    primary table's own ``id``.
    """
    return (
        f"SELECT {primary}.*, {secondary}.id AS {alias} "
        f"FROM {secondary} INNER JOIN {primary} ON {primary}.id = {secondary}.{foreign_key} "
        f"WHERE {secondary}.id = {placeholder}"
    )


def merge_attributes(
    fragment: StatementFragment,
    attrs: Mapping[str, Any],
    dialect: Dialect,
    *,
    reserved: Iterable[str] = (),
) -> StatementFragment:
    """Append dynamic attributes after the typed columns of ``fragment``.

    Placeholders continue from the fragment's next free ordinal
    (:attr:`~authstore.schema.StatementFragment.next_index`).  Attribute
    keys are raw column names; they are rejected when they name a column
    in ``reserved`` (the typed schema's columns) or one already present in
    the fragment.

    Raises:
        AttributeCollisionError: On the first colliding key.
    """
    if not attrs:
        return fragment

    taken = {dialect.escape(name) for name in reserved}
    taken.update(fragment.columns)

    columns: list[str] = []
    placeholders: list[str] = []
    args: list[Any] = []
    offset = fragment.next_index
    for key, value in attrs.items():
        escaped = dialect.escape(key)
        if escaped in taken:
            raise AttributeCollisionError(key)
        columns.append(escaped)
        placeholders.append(dialect.placeholder(offset + len(args)))
        args.append(value)

    return fragment.extend(columns, placeholders, args)


def fragment_from_mapping(
    values: Mapping[str, Any],
    dialect: Dialect,
    *,
    start: int = 0,
) -> StatementFragment:
    """Build a fragment from a raw ``column -> value`` mapping, in key order."""
    columns = tuple(dialect.escape(key) for key in values)
    placeholders = tuple(dialect.placeholder(start + i) for i in range(len(columns)))
    return StatementFragment(columns, placeholders, tuple(values.values()), start)


__all__ = [
    "insert_statement",
    "set_clause",
    "update_statement",
    "select_by_column",
    "delete_by_column",
    "select_joined",
    "merge_attributes",
    "fragment_from_mapping",
]
