from __future__ import annotations

from collections.abc import Generator
from pathlib import Path

import pytest

from filterspec import SchemaDescriptor, WarningRegistry

here = Path(__file__).parent
root_path = here.parent


@pytest.fixture
def todo_schema() -> SchemaDescriptor:
    """Schema of a small to-do resource used across the suite."""
    return SchemaDescriptor(
        "todos",
        filterable=["id", "title", "description", "score", "completed", "status", "owner_id", "due_date"],
        sortable=["id", "title", "score", "due_date"],
        fulltext=["title", "description"],
        like_filterable=["title"],
        enum_fields=["status"],
        default_sort_column="id",
        id_column="id",
    )


@pytest.fixture
def plain_schema() -> SchemaDescriptor:
    """Schema without full-text columns, searched through its filterable columns."""
    return SchemaDescriptor(
        "tags",
        filterable=["name", "kind"],
        sortable=["id", "name"],
        enum_fields=["kind"],
    )


@pytest.fixture
def wide_schema() -> SchemaDescriptor:
    """Schema whose full-text search spans more columns than the fallback warning threshold."""
    return SchemaDescriptor(
        "articles",
        filterable=["title"],
        sortable=["id"],
        fulltext=["title", "summary", "body", "author", "tags"],
    )


@pytest.fixture
def warnings_registry() -> Generator[WarningRegistry, None, None]:
    registry = WarningRegistry()
    yield registry
    registry.reset()
