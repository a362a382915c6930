"""Classification of decoded JSON filter values into typed literals."""

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Optional, Union
from uuid import UUID

from typing_extensions import TypeAlias

from filterspec.typing import JSONValue

__all__ = (
    "Array",
    "Bool",
    "Float",
    "Integer",
    "Null",
    "Scalar",
    "Text",
    "TypedValue",
    "classify_value",
    "parse_uuid",
)


def parse_uuid(value: str) -> Optional[UUID]:
    """Parse ``value`` as a UUID literal, ignoring surrounding whitespace."""
    try:
        return UUID(value.strip())
    except ValueError:
        return None


@dataclass(frozen=True)
class Text:
    value: str
    uuid: Optional[UUID] = None

    @property
    def trimmed(self) -> str:
        return self.value.strip()


@dataclass(frozen=True)
class Integer:
    value: int


@dataclass(frozen=True)
class Float:
    value: float


@dataclass(frozen=True)
class Bool:
    value: bool


@dataclass(frozen=True)
class Null:
    value: None = None


Scalar: TypeAlias = Union[Text, Integer, Float, Bool]


@dataclass(frozen=True)
class Array:
    """A JSON array, reduced to its scalar elements.

    ``skipped`` counts the elements that were dropped because they were null,
    nested arrays or objects.
    """

    items: tuple[Scalar, ...] = ()
    skipped: int = 0

    @property
    def uuids(self) -> tuple[UUID, ...]:
        return tuple(item.uuid for item in self.items if isinstance(item, Text) and item.uuid is not None)


TypedValue: TypeAlias = Union[Text, Integer, Float, Bool, Null, Array]


def _classify_scalar(value: Any) -> Optional[Scalar]:
    # bool is a subclass of int, so it must be tested first.
    if isinstance(value, bool):
        return Bool(value)
    if isinstance(value, int):
        return Integer(value)
    if isinstance(value, float):
        return Float(value)
    if isinstance(value, str):
        return Text(value, parse_uuid(value))
    return None


def classify_value(value: JSONValue) -> Optional[TypedValue]:
    """Map a decoded JSON value onto a :data:`TypedValue`.

    Strings are tried as UUID literals first, so that an exact id match wins over any
    text or enum handling later on.

    Returns:
        The typed value, or None for JSON objects and other unsupported values.
    """
    if value is None:
        return Null()
    if isinstance(value, (list, tuple)):
        items: list[Scalar] = []
        skipped = 0
        for element in value:
            scalar = _classify_scalar(element)
            if scalar is None:
                skipped += 1
            else:
                items.append(scalar)
        return Array(tuple(items), skipped)
    if isinstance(value, Mapping):
        return None
    return _classify_scalar(value)
