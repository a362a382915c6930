"""Sort parameter resolution.

Accepted wire shapes, in order of precedence:

- ``sort_by=<column>`` with an optional ``order=<ASC|DESC>``
- ``sort=["<column>", "<ASC|DESC>"]`` (JSON pair)
- ``sort=<column>`` with an optional ``order=<ASC|DESC>``

The resolved column is always sortable: unknown columns are replaced by the
default sort column.
"""

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Optional, Union

from sqlglot import exp

from filterspec._serialization import DecodeError, decode_json
from filterspec.config import get_default_config
from filterspec.dialects import Dialect, get_builder
from filterspec.params import FilterOptions
from filterspec.typing import FieldName, RawParams, SortDirection
from filterspec.utils.logging import get_logger

if TYPE_CHECKING:
    from filterspec.config import CompilerConfig
    from filterspec.schema import SchemaDescriptor

__all__ = ("SortDirection", "SortSpec", "parse_sort_direction", "parse_sort_token", "resolve_sort")

logger = get_logger("sorting")


@dataclass(frozen=True)
class SortSpec:
    """Resolved ``ORDER BY`` directive."""

    column: FieldName
    direction: SortDirection = SortDirection.ASC

    def to_expression(self, dialect: Union[Dialect, str] = Dialect.POSTGRES) -> exp.Ordered:
        builder = get_builder(dialect)
        return builder.order(builder.column(self.column), self.direction)


def parse_sort_direction(token: Any, default: Optional[SortDirection] = None) -> SortDirection:
    """Match ``token`` case-insensitively against ``ASC`` / ``DESC``.

    Args:
        token: Raw direction token from the client.
        default: Direction for missing or unrecognized tokens. Defaults to the
            configured default direction.

    Returns:
        The parsed direction.
    """
    if default is None:
        default = get_default_config().default_sort_direction
    if isinstance(token, str):
        normalized = token.strip().upper()
        if normalized in SortDirection.__members__:
            return SortDirection[normalized]
    if token is not None:
        logger.debug("Unrecognized sort direction %.20r, using %s", token, default.value)
    return default


def parse_sort_token(raw_sort: Optional[str]) -> tuple[Optional[str], Optional[str]]:
    """Split a ``sort`` parameter into ``(column, direction)`` tokens.

    A value starting with ``[`` is decoded as a JSON ``[column, direction]`` pair;
    anything else is taken as a bare column name.
    """
    if raw_sort is None:
        return None, None
    text = raw_sort.strip()
    if not text:
        return None, None
    if not text.startswith("["):
        return text, None
    try:
        decoded = decode_json(text)
    except DecodeError:
        logger.warning("Invalid JSON in sort parameter, using default sort")
        return None, None
    if not isinstance(decoded, list) or not decoded:
        return None, None
    column = decoded[0] if isinstance(decoded[0], str) else None
    direction = decoded[1] if len(decoded) > 1 and isinstance(decoded[1], str) else None
    return column, direction


def _sort_tokens(raw_sort: Union[str, RawParams, FilterOptions, None]) -> tuple[Optional[str], Optional[str]]:
    if raw_sort is None or isinstance(raw_sort, str):
        return parse_sort_token(raw_sort)
    options = raw_sort if isinstance(raw_sort, FilterOptions) else FilterOptions.from_mapping(raw_sort)
    if options.sort_by and options.sort_by.strip():
        return options.sort_by.strip(), options.order
    column, direction = parse_sort_token(options.sort)
    return column, direction if direction is not None else options.order


def resolve_sort(
    raw_sort: Union[str, RawParams, FilterOptions, None],
    schema: "SchemaDescriptor",
    default_column: Optional[FieldName] = None,
    *,
    config: "Optional[CompilerConfig]" = None,
) -> SortSpec:
    """Resolve sort parameters against ``schema``.

    Args:
        raw_sort: A raw ``sort`` value, a query-parameter mapping, or parsed
            :class:`FilterOptions`.
        schema: Descriptor of the resource being listed.
        default_column: Column used when the requested one is missing or not
            sortable. Defaults to the schema's default sort column.
        config: Supplies the default direction.

    Returns:
        A :class:`SortSpec` whose column is always sortable.
    """
    config = config or get_default_config()
    fallback = default_column or schema.default_sort_column
    if not schema.is_sortable(fallback):
        logger.debug("Default sort column %s is not sortable, using %s", fallback, schema.default_sort_column)
        fallback = schema.default_sort_column

    column, direction = _sort_tokens(raw_sort)
    if column is None:
        column = fallback
    elif not schema.is_sortable(column):
        logger.debug(
            "Ignoring sort on non-sortable column %.100r",
            column,
            extra={"extra_fields": {"resource": schema.resource_name}},
        )
        column = fallback
    return SortSpec(column=column, direction=parse_sort_direction(direction, config.default_sort_direction))
