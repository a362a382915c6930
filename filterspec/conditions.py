"""Compilation of flat JSON filter objects into boolean conditions.

A filter object such as ``{"title": "foo", "score_gte": 50, "ids": [...]}`` is first
reduced to a list of validated :class:`Clause` objects by :func:`parse_clauses`;
anything that is not safe or not allow-listed is dropped and logged rather than
raised. :func:`build_condition` then lowers the clauses into a single conjunction.
"""

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING, Final, Optional, Union

from sqlglot import exp

from filterspec._serialization import DecodeError, decode_json
from filterspec.config import get_default_config
from filterspec.dialects import Dialect, ExpressionBuilder, get_builder
from filterspec.fields import Operator, is_valid_field_name, parse_filter_key, value_length
from filterspec.typing import FieldName, JSONValue
from filterspec.utils.logging import get_logger
from filterspec.values import Array, Bool, Float, Integer, Null, Text, TypedValue, classify_value

if TYPE_CHECKING:
    from filterspec.config import CompilerConfig
    from filterspec.schema import SchemaDescriptor

__all__ = (
    "IDS_KEY",
    "SEARCH_KEY",
    "Clause",
    "Condition",
    "build_clause_expression",
    "build_condition",
    "parse_clauses",
    "parse_filter_json",
)

logger = get_logger("conditions")

SEARCH_KEY: Final = "q"
IDS_KEY: Final = "ids"


@dataclass(frozen=True)
class Clause:
    """One validated ``(field, operator, value)`` unit of a filter object."""

    key: str
    field: FieldName
    operator: Operator
    value: TypedValue
    has_suffix: bool = False
    exact: bool = False

    @property
    def is_ids(self) -> bool:
        return self.key == IDS_KEY


class Condition:
    """A compiled filter condition.

    Wraps a sqlglot expression tree; an empty condition (no expression) matches
    every row.
    """

    __slots__ = ("dialect", "expression")

    def __init__(self, expression: Optional[exp.Expression] = None, dialect: Dialect = Dialect.POSTGRES) -> None:
        self.expression = expression
        self.dialect = dialect

    def __repr__(self) -> str:
        return f"Condition({self.sql()!r}, dialect={self.dialect.value!r})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Condition):
            return NotImplemented
        return self.dialect is other.dialect and self.expression == other.expression

    def __hash__(self) -> int:
        return hash((self.dialect, self.expression))

    @property
    def is_empty(self) -> bool:
        return self.expression is None

    def sql(self, dialect: Optional[Union[Dialect, str]] = None) -> str:
        """Render the condition; an empty condition renders as an empty string."""
        if self.expression is None:
            return ""
        target = Dialect.from_name(dialect) if dialect is not None else self.dialect
        return get_builder(target).render(self.expression)

    def and_(self, other: "Condition") -> "Condition":
        """Conjunction of this condition and ``other``."""
        parts = [cond for cond in (self.expression, other.expression) if cond is not None]
        return Condition(get_builder(self.dialect).and_(parts), self.dialect)

    def apply(self, select: exp.Select) -> exp.Select:
        """Return a copy of ``select`` with this condition added to its WHERE clause."""
        if self.expression is None:
            return select
        return select.where(self.expression.copy(), copy=True)


def parse_filter_json(raw_filter: Union[str, bytes, Mapping[str, JSONValue], None]) -> dict[str, JSONValue]:
    """Decode the ``filter`` query parameter into a flat mapping.

    Malformed JSON and JSON that is not an object both decode to an empty mapping,
    which matches every row.
    """
    if raw_filter is None:
        return {}
    if isinstance(raw_filter, Mapping):
        return dict(raw_filter)
    if not raw_filter.strip():
        return {}
    try:
        decoded = decode_json(raw_filter)
    except DecodeError as exc:
        logger.warning("Invalid JSON in filter parameter, ignoring filter: %s", exc)
        return {}
    if not isinstance(decoded, dict):
        logger.warning("Filter parameter must be a JSON object, got %s", type(decoded).__name__)
        return {}
    return decoded


def parse_clauses(
    filters: Mapping[str, JSONValue], schema: "SchemaDescriptor", config: "Optional[CompilerConfig]" = None
) -> list[Clause]:
    """Validate a decoded filter object against ``schema``.

    The free-text key is skipped here; it is handled by the search strategies.
    Invalid names, over-long values, fields missing from the schema and unsupported
    value shapes are dropped one by one.
    """
    config = config or get_default_config()
    log_extra = {"extra_fields": {"resource": schema.resource_name}}
    clauses: list[Clause] = []
    for key, raw_value in filters.items():
        if key == SEARCH_KEY:
            continue
        if not is_valid_field_name(key, config.max_field_name_length):
            logger.warning("Invalid field name rejected: %.100r", key, extra=log_extra)
            continue
        length = value_length(raw_value)
        if length > config.max_value_length:
            logger.warning(
                "Field value too long, rejected: %s (%d chars)",
                key,
                length,
                extra={"extra_fields": {"resource": schema.resource_name, "length": length}},
            )
            continue

        value = classify_value(raw_value)
        if value is None:
            logger.debug("Unsupported value type for filter %s: %s", key, type(raw_value).__name__)
            continue

        if key == IDS_KEY:
            if not isinstance(value, Array):
                logger.debug("Ignoring non-array value for %s", IDS_KEY)
                continue
            clauses.append(Clause(key, schema.id_column, Operator.EQ, value))
            continue

        parsed = parse_filter_key(key)
        if not schema.is_filterable(parsed.field):
            logger.debug("Ignoring filter on unknown field: %s", key, extra=log_extra)
            continue
        if parsed.has_suffix and isinstance(value, (Null, Array)):
            logger.debug(
                "Comparison operator %s not supported for %s values", parsed.operator.value, type(value).__name__
            )
            continue
        clauses.append(Clause(key, parsed.field, parsed.operator, value, parsed.has_suffix, parsed.exact))
    return clauses


def _text_expression(
    clause: Clause, value: Text, schema: "SchemaDescriptor", builder: ExpressionBuilder
) -> exp.Expression:
    column = builder.column(clause.field)
    trimmed = value.trimmed
    if clause.exact:
        return builder.equals(column, builder.literal(trimmed))
    if clause.has_suffix:
        return builder.compare(column, clause.operator, builder.literal(trimmed))
    if not trimmed:
        return builder.equals(column, builder.literal(""))
    if value.uuid is not None:
        return builder.equals(column, builder.literal(value.uuid))
    if schema.is_like_filterable(clause.field):
        target = builder.enum_text(column) if schema.is_enum_field(clause.field) else column
        return builder.contains(target, trimmed)
    if schema.is_enum_field(clause.field):
        return builder.enum_equals(column, trimmed, case_sensitive=schema.enum_case_sensitive())
    return builder.iequals(column, trimmed)


def _array_expression(clause: Clause, value: Array, builder: ExpressionBuilder) -> Optional[exp.Expression]:
    column = builder.column(clause.field)
    if clause.is_ids:
        literals = [builder.literal(uuid) for uuid in value.uuids]
        dropped = len(value.items) - len(literals) + value.skipped
    else:
        literals = [
            builder.literal(item.uuid if isinstance(item, Text) and item.uuid is not None else item.value)
            for item in value.items
        ]
        dropped = value.skipped
    if dropped:
        logger.debug("Skipped %d malformed elements in %s", dropped, clause.key)
    if not literals:
        return None
    return builder.in_list(column, literals)


def build_clause_expression(
    clause: Clause, schema: "SchemaDescriptor", builder: ExpressionBuilder
) -> Optional[exp.Expression]:
    """Lower a single clause, or return None if nothing is left of it."""
    value = clause.value
    column = builder.column(clause.field)
    if isinstance(value, Text):
        return _text_expression(clause, value, schema, builder)
    if isinstance(value, (Integer, Float)):
        return builder.compare(column, clause.operator, builder.literal(value.value))
    if isinstance(value, Bool):
        # Only _neq means anything for booleans; other suffixes degrade to equality.
        operator = Operator.NEQ if clause.operator is Operator.NEQ else Operator.EQ
        return builder.compare(column, operator, builder.literal(value.value))
    if isinstance(value, Null):
        return builder.is_null(column)
    return _array_expression(clause, value, builder)


def build_condition(
    clauses: Sequence[Clause], schema: "SchemaDescriptor", builder: ExpressionBuilder
) -> Optional[exp.Expression]:
    """AND together the expressions of every clause."""
    expressions = (build_clause_expression(clause, schema, builder) for clause in clauses)
    return builder.and_([expression for expression in expressions if expression is not None])
