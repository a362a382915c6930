"""Unit tests for filterspec.schema module."""

import pytest

from filterspec.exceptions import ImproperConfigurationError, SchemaRegistrationError, UnknownResourceError
from filterspec.schema import ColumnCapabilities, SchemaDescriptor, SchemaRegistry


def test_descriptor_contract(todo_schema: SchemaDescriptor) -> None:
    assert todo_schema.filterable_columns() == frozenset(
        {"id", "title", "description", "score", "completed", "status", "owner_id", "due_date"}
    )
    assert todo_schema.sortable_columns() == frozenset({"id", "title", "score", "due_date"})
    assert todo_schema.fulltext_searchable_columns() == ("title", "description")
    assert todo_schema.like_filterable_columns() == frozenset({"title"})
    assert todo_schema.is_enum_field("status")
    assert not todo_schema.is_enum_field("title")
    assert not todo_schema.enum_case_sensitive()


def test_capability_map(todo_schema: SchemaDescriptor) -> None:
    assert todo_schema.capabilities("title") == ColumnCapabilities(
        "title", filterable=True, sortable=True, fulltext=True, like=True
    )
    assert todo_schema.capabilities("missing") is None
    assert "status" in {caps.name for caps in todo_schema}
    assert len(todo_schema) == 8


def test_fulltext_order_is_preserved_and_deduplicated() -> None:
    schema = SchemaDescriptor("docs", fulltext=["body", "title", "body"])

    assert schema.fulltext_searchable_columns() == ("body", "title")


def test_like_columns_are_filterable() -> None:
    schema = SchemaDescriptor("docs", like_filterable=["title"])

    assert schema.is_filterable("title")
    assert schema.is_like_filterable("title")


def test_sortable_defaults_to_default_sort_column() -> None:
    schema = SchemaDescriptor("docs", filterable=["title"], default_sort_column="created_at")

    assert schema.sortable_columns() == frozenset({"created_at"})
    assert not schema.is_filterable("created_at")


def test_unknown_columns_have_no_capabilities(todo_schema: SchemaDescriptor) -> None:
    assert not todo_schema.is_filterable("password")
    assert not todo_schema.is_sortable("description")
    assert not todo_schema.is_like_filterable("score")


@pytest.mark.parametrize(
    "kwargs",
    [
        {"filterable": ["bad-name"]},
        {"sortable": ["_private"]},
        {"fulltext": ["1st"]},
        {"id_column": "id; --"},
        {"sortable": ["title"], "default_sort_column": "id"},
    ],
    ids=["invalid_filterable", "invalid_sortable", "invalid_fulltext", "invalid_id_column", "default_not_sortable"],
)
def test_invalid_declarations(kwargs: dict[str, object]) -> None:
    with pytest.raises(ImproperConfigurationError):
        SchemaDescriptor("broken", **kwargs)  # type: ignore[arg-type]


def test_registry(todo_schema: SchemaDescriptor, plain_schema: SchemaDescriptor) -> None:
    registry = SchemaRegistry([todo_schema])
    registry.register(plain_schema)

    assert "todos" in registry
    assert len(registry) == 2
    assert list(registry) == ["todos", "tags"]
    assert registry.get("tags") is plain_schema


def test_registry_rejects_duplicates(todo_schema: SchemaDescriptor) -> None:
    registry = SchemaRegistry([todo_schema])

    with pytest.raises(SchemaRegistrationError, match="already registered"):
        registry.register(todo_schema)


def test_registry_unknown_resource() -> None:
    registry = SchemaRegistry()

    with pytest.raises(UnknownResourceError) as exc_info:
        registry.get("ghosts")

    assert isinstance(exc_info.value, KeyError)
    assert exc_info.value.resource_name == "ghosts"
    assert "ghosts" in str(exc_info.value)
