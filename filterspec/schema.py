"""Per-resource column capability declarations.

A :class:`SchemaDescriptor` is the allow-list the compiler checks every client
supplied field against. It is built once per resource at startup, validated
eagerly, and treated as read-only afterwards, so it can be shared by any number of
concurrent requests.
"""

from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import Optional

from filterspec.exceptions import ImproperConfigurationError, SchemaRegistrationError, UnknownResourceError
from filterspec.fields import is_valid_field_name
from filterspec.typing import FieldName
from filterspec.utils.logging import get_logger

__all__ = ("ColumnCapabilities", "SchemaDescriptor", "SchemaRegistry")

logger = get_logger("schema")


@dataclass(frozen=True)
class ColumnCapabilities:
    """What a client may do with a single column."""

    name: FieldName
    filterable: bool = False
    sortable: bool = False
    fulltext: bool = False
    like: bool = False
    enum: bool = False


class SchemaDescriptor:
    """Static registry of the queryable columns of one resource.

    Args:
        resource_name: Name of the resource, used in log records and headers.
        filterable: Columns that may appear as filter keys.
        sortable: Columns that may be used for ``ORDER BY``.
        fulltext: Columns concatenated for free-text search, in order.
        like_filterable: Columns matched by case-insensitive substring instead of equality.
        enum_fields: Columns backed by a database enum type.
        enum_case_sensitive: Compare enum values case-sensitively.
        default_sort_column: Column substituted for unknown sort requests.
        id_column: Identity column targeted by the ``ids`` filter key.

    Raises:
        ImproperConfigurationError: If a column name is invalid or the default sort column
            is not sortable.
    """

    __slots__ = (
        "_columns",
        "_enum_case_sensitive",
        "_fulltext",
        "default_sort_column",
        "id_column",
        "resource_name",
    )

    def __init__(
        self,
        resource_name: str,
        *,
        filterable: Iterable[FieldName] = (),
        sortable: Iterable[FieldName] = (),
        fulltext: Iterable[FieldName] = (),
        like_filterable: Iterable[FieldName] = (),
        enum_fields: Iterable[FieldName] = (),
        enum_case_sensitive: bool = False,
        default_sort_column: FieldName = "id",
        id_column: FieldName = "id",
    ) -> None:
        filterable_set = set(filterable)
        sortable_set = set(sortable)
        like_set = set(like_filterable)
        enum_set = set(enum_fields)
        fulltext_list = _dedupe(fulltext)

        names = filterable_set | sortable_set | like_set | enum_set | set(fulltext_list)
        names |= {default_sort_column, id_column}
        invalid = sorted(name for name in names if not is_valid_field_name(name))
        if invalid:
            msg = f"Resource {resource_name!r} declares invalid column names: {', '.join(map(repr, invalid))}"
            raise ImproperConfigurationError(msg)

        if not sortable_set:
            sortable_set = {default_sort_column}
        if default_sort_column not in sortable_set:
            msg = f"Resource {resource_name!r}: default sort column {default_sort_column!r} is not sortable"
            raise ImproperConfigurationError(msg)

        columns: dict[FieldName, ColumnCapabilities] = {
            name: ColumnCapabilities(
                name=name,
                filterable=name in filterable_set or name in like_set,
                sortable=name in sortable_set,
                fulltext=name in fulltext_list,
                like=name in like_set,
                enum=name in enum_set,
            )
            for name in sorted(names)
        }

        self.resource_name = resource_name
        self.default_sort_column = default_sort_column
        self.id_column = id_column
        self._columns: Mapping[FieldName, ColumnCapabilities] = MappingProxyType(columns)
        self._fulltext: tuple[FieldName, ...] = tuple(fulltext_list)
        self._enum_case_sensitive = enum_case_sensitive

    def __repr__(self) -> str:
        return f"SchemaDescriptor(resource_name={self.resource_name!r}, columns={len(self._columns)})"

    def __iter__(self) -> Iterator[ColumnCapabilities]:
        return iter(self._columns.values())

    def __len__(self) -> int:
        return len(self._columns)

    def capabilities(self, name: FieldName) -> Optional[ColumnCapabilities]:
        """Return the declared capabilities of ``name`` or None if the column is unknown."""
        return self._columns.get(name)

    def filterable_columns(self) -> frozenset[FieldName]:
        return frozenset(name for name, caps in self._columns.items() if caps.filterable)

    def sortable_columns(self) -> frozenset[FieldName]:
        return frozenset(name for name, caps in self._columns.items() if caps.sortable)

    def fulltext_searchable_columns(self) -> tuple[FieldName, ...]:
        return self._fulltext

    def like_filterable_columns(self) -> frozenset[FieldName]:
        return frozenset(name for name, caps in self._columns.items() if caps.like)

    def is_filterable(self, name: FieldName) -> bool:
        caps = self._columns.get(name)
        return caps is not None and caps.filterable

    def is_sortable(self, name: FieldName) -> bool:
        caps = self._columns.get(name)
        return caps is not None and caps.sortable

    def is_like_filterable(self, name: FieldName) -> bool:
        caps = self._columns.get(name)
        return caps is not None and caps.like

    def is_enum_field(self, name: FieldName) -> bool:
        caps = self._columns.get(name)
        return caps is not None and caps.enum

    def enum_case_sensitive(self) -> bool:
        return self._enum_case_sensitive


class SchemaRegistry:
    """Process-lifetime map of resource name to :class:`SchemaDescriptor`.

    Resources register once at startup; lookups afterwards are read-only.
    """

    __slots__ = ("_schemas",)

    def __init__(self, schemas: Iterable[SchemaDescriptor] = ()) -> None:
        self._schemas: dict[str, SchemaDescriptor] = {}
        for schema in schemas:
            self.register(schema)

    def __contains__(self, resource_name: object) -> bool:
        return resource_name in self._schemas

    def __len__(self) -> int:
        return len(self._schemas)

    def __iter__(self) -> Iterator[str]:
        return iter(self._schemas)

    def register(self, schema: SchemaDescriptor) -> SchemaDescriptor:
        """Register ``schema`` under its resource name.

        Raises:
            SchemaRegistrationError: If the resource name is already taken.
        """
        if schema.resource_name in self._schemas:
            raise SchemaRegistrationError(schema.resource_name)
        self._schemas[schema.resource_name] = schema
        logger.debug(
            "Registered schema for %s", schema.resource_name, extra={"extra_fields": {"columns": len(schema)}}
        )
        return schema

    def get(self, resource_name: str) -> SchemaDescriptor:
        """Look up a registered schema.

        Raises:
            UnknownResourceError: If nothing is registered under ``resource_name``.
        """
        try:
            return self._schemas[resource_name]
        except KeyError:
            raise UnknownResourceError(resource_name) from None


def _dedupe(names: Iterable[FieldName]) -> list[FieldName]:
    seen: set[FieldName] = set()
    ordered: list[FieldName] = []
    for name in names:
        if name not in seen:
            seen.add(name)
            ordered.append(name)
    return ordered
