"""Field-name validation and comparison-operator suffix parsing."""

from enum import Enum
from typing import Any, Final, NamedTuple, Optional

from filterspec._serialization import EncodeError, encode_json
from filterspec.config import MAX_FIELD_NAME_LENGTH, MAX_VALUE_LENGTH
from filterspec.typing import JSONValue

__all__ = (
    "EXACT_SUFFIX",
    "OPERATOR_SUFFIXES",
    "FilterKey",
    "Operator",
    "is_valid_field_name",
    "parse_comparison_operator",
    "parse_filter_key",
    "validate_value_length",
    "value_length",
)


class Operator(str, Enum):
    """Comparison applied by a filter clause."""

    EQ = "="
    GTE = ">="
    LTE = "<="
    GT = ">"
    LT = "<"
    NEQ = "!="


# Checked in this order; the first match wins.
OPERATOR_SUFFIXES: Final[tuple[tuple[str, Operator], ...]] = (
    ("_gte", Operator.GTE),
    ("_lte", Operator.LTE),
    ("_gt", Operator.GT),
    ("_lt", Operator.LT),
    ("_neq", Operator.NEQ),
)
EXACT_SUFFIX: Final = "_eq"


class FilterKey(NamedTuple):
    """A raw filter key split into its column and comparison."""

    field: str
    operator: Operator
    has_suffix: bool
    exact: bool = False


def is_valid_field_name(name: Any, max_length: int = MAX_FIELD_NAME_LENGTH) -> bool:
    """Check that ``name`` is a plain ASCII identifier.

    Valid names are 1 to ``max_length`` characters of ASCII letters, digits and
    underscores, and start with neither a digit nor an underscore.
    """
    if not isinstance(name, str) or not 1 <= len(name) <= max_length:
        return False
    if not name.isascii() or name[0].isdigit() or name[0] == "_":
        return False
    return all(char.isalnum() or char == "_" for char in name)


def value_length(value: JSONValue) -> int:
    """Length of a filter value: characters for strings, JSON encoding otherwise."""
    if isinstance(value, str):
        return len(value)
    try:
        return len(encode_json(value))
    except (TypeError, EncodeError):
        return len(str(value))


def validate_value_length(value: JSONValue, max_length: int = MAX_VALUE_LENGTH) -> bool:
    return value_length(value) <= max_length


def parse_comparison_operator(key: str) -> Optional[tuple[str, Operator]]:
    """Strip a trailing comparison suffix from ``key``.

    Matching is purely lexical and only the last suffix is considered, so
    ``"score_gte_lte"`` yields ``("score_gte", Operator.LTE)``.

    Returns:
        ``(base_field, operator)`` or None if ``key`` carries no known suffix.
    """
    for suffix, operator in OPERATOR_SUFFIXES:
        if key.endswith(suffix) and len(key) > len(suffix):
            return key[: -len(suffix)], operator
    return None


def parse_filter_key(key: str) -> FilterKey:
    """Resolve a raw filter key, including the ``_eq`` exact-match convenience suffix."""
    parsed = parse_comparison_operator(key)
    if parsed is not None:
        return FilterKey(parsed[0], parsed[1], has_suffix=True)
    if key.endswith(EXACT_SUFFIX) and len(key) > len(EXACT_SUFFIX):
        return FilterKey(key[: -len(EXACT_SUFFIX)], Operator.EQ, has_suffix=False, exact=True)
    return FilterKey(key, Operator.EQ, has_suffix=False)
