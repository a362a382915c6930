from collections.abc import Mapping, Sequence
from enum import Enum
from typing import Any, Union

from typing_extensions import TypeAlias

__all__ = (
    "FieldName",
    "JSONValue",
    "RawParams",
    "SearchMode",
    "SortDirection",
)

FieldName: TypeAlias = str
"""Name of a column as declared by a resource schema."""
JSONValue: TypeAlias = Union[str, int, float, bool, None, Sequence[Any], Mapping[str, Any]]
"""Any value that can come out of a decoded JSON document."""
RawParams: TypeAlias = Mapping[str, Any]
"""Untyped query-string parameters as received from the transport layer."""


class SortDirection(str, Enum):
    """Direction of an ``ORDER BY`` term."""

    ASC = "ASC"
    DESC = "DESC"

    @property
    def is_descending(self) -> bool:
        return self is SortDirection.DESC


class SearchMode(str, Enum):
    """How the free-text ``q`` key interacts with the other filter keys.

    ``COMBINED`` ANDs the full-text condition with every other clause. ``EXCLUSIVE``
    ignores every other key whenever ``q`` is present.
    """

    COMBINED = "combined"
    EXCLUSIVE = "exclusive"
