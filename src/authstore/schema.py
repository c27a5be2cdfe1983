"""Declarative field-to-column mapping for record dataclasses.

Record types are plain dataclasses whose persisted fields are tagged with
:func:`column`.  :func:`schema_for` reads those tags once per type and
memoizes the result; :func:`build_fields` turns a record *value* into the
ordered ``(columns, placeholders, args)`` triple that the statement
builder consumes; :func:`materialize` goes the other way, turning result
rows back into records.

Architecture::

    @dataclass                      schema_for(User)
    class User:                     ┌─────────────────────────────────┐
        id: str = column("id")  ──► │ RecordSchema                    │
        name: str = column("name")  │   fields: (id→id, name→name)    │
        cache: dict = field(...)    │   attributes_attr: "extra"      │
        extra: dict = attributes()  └─────────────────────────────────┘
                                                  │
                    build_fields(user, dialect)   ▼
                    ┌────────────────────────────────────────────────┐
                    │ StatementFragment                              │
                    │   columns      ("id",  "name")                 │
                    │   placeholders ($1,    $2)                     │
                    │   args         ("u1",  "ada")                  │
                    └────────────────────────────────────────────────┘

Untagged fields (``cache`` above) and fields tagged ``column(IGNORE)``
never reach SQL.  The attributes bag is not a column either; its entries
are merged in by :func:`authstore.statements.merge_attributes`.

Tags:
    schema, introspection, dataclasses, mapping, authstore
"""

from __future__ import annotations

import dataclasses
from collections.abc import Iterable, Mapping
from dataclasses import MISSING, dataclass, field
from functools import lru_cache
from typing import Any, TypeVar

from authstore.dialect import Dialect
from authstore.errors import SchemaError

T = TypeVar("T")

COLUMN_KEY = "authstore.column"
ATTRIBUTES_KEY = "authstore.attributes"
IGNORE = "-"


def column(
    name: str,
    *,
    default: Any = MISSING,
    default_factory: Any = MISSING,
    **kwargs: Any,
) -> Any:
    """Declare a dataclass field persisted under column ``name``.

    ``column(IGNORE)`` declares the field explicitly non-persistent.
    Remaining keyword arguments go to :func:`dataclasses.field`.
    """
    return field(
        default=default,
        default_factory=default_factory,
        metadata={COLUMN_KEY: name},
        **kwargs,
    )


def attributes() -> Any:
    """Declare the dynamic attributes bag of a record.

    The bag holds columns the static type does not know about.  On write
    its entries are appended after the typed columns; on read, result
    columns with no typed field land here.
    """
    return field(default_factory=dict, metadata={ATTRIBUTES_KEY: True})


@dataclass(frozen=True)
class SchemaField:
    """One persisted field: its column, attribute name and declared default."""

    column: str
    attr: str
    default: Any
    default_factory: Any

    def is_unset(self, value: Any) -> bool:
        """True when ``value`` carries nothing a partial update should write."""
        if value is None:
            return True
        if self.default is not MISSING:
            return value == self.default
        if self.default_factory is not MISSING:
            return value == self.default_factory()
        return False


@dataclass(frozen=True)
class RecordSchema:
    """Ordered persisted fields of a record type."""

    record_type: type
    fields: tuple[SchemaField, ...]
    attributes_attr: str | None = None

    @property
    def columns(self) -> tuple[str, ...]:
        return tuple(f.column for f in self.fields)

    def field_for_column(self, name: str) -> SchemaField | None:
        for f in self.fields:
            if f.column == name:
                return f
        return None


@dataclass(frozen=True)
class StatementFragment:
    """Columns, placeholders and arguments for one record value.

    Index ``i`` of all three tuples describes the same field.  ``start`` is
    the 0-based index of the first placeholder, so the next free one is
    :attr:`next_index`.
    """

    columns: tuple[str, ...] = ()
    placeholders: tuple[str, ...] = ()
    args: tuple[Any, ...] = ()
    start: int = 0

    def __post_init__(self) -> None:
        if not len(self.columns) == len(self.placeholders) == len(self.args):
            raise ValueError(
                "columns, placeholders and args must have equal lengths "
                f"({len(self.columns)}, {len(self.placeholders)}, {len(self.args)})"
            )

    def __len__(self) -> int:
        return len(self.columns)

    @property
    def next_index(self) -> int:
        return self.start + len(self.columns)

    def extend(
        self,
        columns: Iterable[str],
        placeholders: Iterable[str],
        args: Iterable[Any],
    ) -> StatementFragment:
        """Return a new fragment with the given triples appended."""
        return StatementFragment(
            self.columns + tuple(columns),
            self.placeholders + tuple(placeholders),
            self.args + tuple(args),
            self.start,
        )


@lru_cache(maxsize=None)
def schema_for(record_type: type) -> RecordSchema:
    """Derive the :class:`RecordSchema` of a dataclass type.

    Fields are taken in declaration order (base classes first, as
    :func:`dataclasses.fields` reports them).  The result is cached per
    type; it depends on nothing but the type itself.

    Raises:
        SchemaError: ``record_type`` is not a dataclass, or declares more
            than one attributes bag.
    """
    if not (isinstance(record_type, type) and dataclasses.is_dataclass(record_type)):
        raise SchemaError(f"{record_type!r} is not a dataclass type")

    persisted: list[SchemaField] = []
    attributes_attr: str | None = None
    for f in dataclasses.fields(record_type):
        if f.metadata.get(ATTRIBUTES_KEY):
            if attributes_attr is not None:
                raise SchemaError(
                    f"{record_type.__name__} declares more than one attributes bag "
                    f"({attributes_attr!r}, {f.name!r})"
                )
            attributes_attr = f.name
            continue
        name = f.metadata.get(COLUMN_KEY)
        if not name or name == IGNORE:
            continue
        persisted.append(SchemaField(name, f.name, f.default, f.default_factory))

    return RecordSchema(record_type, tuple(persisted), attributes_attr)


def _schema_of_value(record: Any) -> RecordSchema:
    if isinstance(record, type) or not dataclasses.is_dataclass(record):
        raise SchemaError(f"Expected a dataclass instance, got {type(record).__name__}")
    return schema_for(type(record))


def build_fields(
    record: Any,
    dialect: Dialect,
    *,
    start: int = 0,
    omit_unset: bool = False,
) -> StatementFragment:
    """Introspect ``record`` into a :class:`StatementFragment`.

    Args:
        record: Dataclass instance whose tagged fields are read.
        dialect: Supplies identifier quoting and the placeholder strategy.
        start: 0-based index of the first placeholder.
        omit_unset: Skip fields whose value is ``None`` or equal to the
            field's declared default (partial updates).
    """
    schema = _schema_of_value(record)

    columns: list[str] = []
    placeholders: list[str] = []
    args: list[Any] = []
    for f in schema.fields:
        value = getattr(record, f.attr)
        if omit_unset and f.is_unset(value):
            continue
        columns.append(dialect.escape(f.column))
        placeholders.append(dialect.placeholder(start + len(args)))
        args.append(value)

    return StatementFragment(tuple(columns), tuple(placeholders), tuple(args), start)


def attributes_of(record: Any) -> Mapping[str, Any]:
    """The dynamic attributes bag of ``record`` (empty when it has none)."""
    schema = _schema_of_value(record)
    if schema.attributes_attr is None:
        return {}
    return getattr(record, schema.attributes_attr) or {}


def materialize(rows: Iterable[Mapping[str, Any]], record_type: type[T]) -> list[T]:
    """Build records of ``record_type`` from result rows.

    Columns without a typed field are collected into the attributes bag
    when the type declares one and dropped otherwise, so joined queries
    that return extra columns still materialize.
    """
    schema = schema_for(record_type)
    attr_by_column = {f.column: f.attr for f in schema.fields}

    records: list[T] = []
    for row in rows:
        kwargs: dict[str, Any] = {}
        extra: dict[str, Any] = {}
        for key, value in row.items():
            attr = attr_by_column.get(key)
            if attr is not None:
                kwargs[attr] = value
            else:
                extra[key] = value
        if schema.attributes_attr is not None:
            kwargs[schema.attributes_attr] = extra
        records.append(record_type(**kwargs))
    return records


__all__ = [
    "IGNORE",
    "column",
    "attributes",
    "SchemaField",
    "RecordSchema",
    "StatementFragment",
    "schema_for",
    "build_fields",
    "attributes_of",
    "materialize",
]
