"""Per-dialect construction of filter expressions.

Every expression the compiler produces is a :mod:`sqlglot` tree built here. Client
text only ever enters a tree as a literal node, and quoting of identifiers and
literals is left to the sqlglot generator of the target dialect. LIKE wildcard
escaping is done by :func:`escape_like`, the only place that rewrites client text.
"""

from collections.abc import Sequence
from decimal import Decimal
from enum import Enum
from functools import reduce
from typing import Any, Final, Optional, Union

from sqlglot import exp

from filterspec.fields import Operator
from filterspec.typing import SortDirection

__all__ = ("LIKE_ESCAPE", "Dialect", "ExpressionBuilder", "escape_like", "get_builder")

LIKE_ESCAPE: Final = "!"

_DIALECT_ALIASES: Final = {
    "postgres": "postgres",
    "postgresql": "postgres",
    "pg": "postgres",
    "psycopg": "postgres",
    "asyncpg": "postgres",
    "sqlite": "sqlite",
    "sqlite3": "sqlite",
    "aiosqlite": "sqlite",
    "mysql": "mysql",
    "mariadb": "mysql",
    "asyncmy": "mysql",
}

_COMPARISONS: Final[dict[Operator, type[exp.Binary]]] = {
    Operator.EQ: exp.EQ,
    Operator.NEQ: exp.NEQ,
    Operator.GT: exp.GT,
    Operator.GTE: exp.GTE,
    Operator.LT: exp.LT,
    Operator.LTE: exp.LTE,
}


class Dialect(str, Enum):
    """Relational backend a condition is compiled for.

    The value is the sqlglot dialect name used for rendering.
    """

    POSTGRES = "postgres"
    SQLITE = "sqlite"
    MYSQL = "mysql"

    @property
    def supports_similarity(self) -> bool:
        """Whether trigram ``SIMILARITY()`` is available (``pg_trgm``)."""
        return self is Dialect.POSTGRES

    @property
    def casts_enums(self) -> bool:
        """Whether enum columns must be cast to text before string functions apply."""
        return self is Dialect.POSTGRES

    @classmethod
    def from_name(cls, name: "Union[str, Dialect]") -> "Dialect":
        """Resolve a dialect or driver name such as ``"postgresql"`` or ``"aiosqlite"``.

        Raises:
            ValueError: If the name is not a supported dialect.
        """
        if isinstance(name, Dialect):
            return name
        try:
            return cls(_DIALECT_ALIASES[name.strip().lower()])
        except KeyError:
            msg = f"Unsupported dialect: {name!r}"
            raise ValueError(msg) from None


def escape_like(value: str) -> str:
    """Escape LIKE wildcards so ``value`` only ever matches itself.

    The result must be used with ``ESCAPE '!'``.
    """
    return (
        value.replace(LIKE_ESCAPE, LIKE_ESCAPE * 2)
        .replace("%", f"{LIKE_ESCAPE}%")
        .replace("_", f"{LIKE_ESCAPE}_")
    )


class ExpressionBuilder:
    """Typed expression factory bound to one :class:`Dialect`."""

    __slots__ = ("dialect",)

    def __init__(self, dialect: Dialect) -> None:
        self.dialect = dialect

    def __repr__(self) -> str:
        return f"ExpressionBuilder(dialect={self.dialect.value!r})"

    # -- leaves --------------------------------------------------------------

    def column(self, name: str) -> exp.Column:
        return exp.column(name, quoted=True)

    def literal(self, value: Any) -> exp.Expression:
        """Wrap a Python value as a literal node."""
        if value is None:
            return exp.Null()
        if isinstance(value, bool):
            return exp.Boolean(this=value)
        if isinstance(value, (int, float, Decimal)):
            return exp.Literal.number(value)
        return exp.Literal.string(str(value))

    # -- functions -----------------------------------------------------------

    def upper(self, expression: exp.Expression) -> exp.Upper:
        return exp.Upper(this=expression)

    def cast_text(self, expression: exp.Expression) -> exp.Cast:
        return exp.Cast(this=expression, to=exp.DataType.build("TEXT"))

    def coalesce_text(self, expression: exp.Expression) -> exp.Coalesce:
        return exp.Coalesce(this=self.cast_text(expression), expressions=[exp.Literal.string("")])

    def enum_text(self, column: exp.Expression) -> exp.Expression:
        """Text view of an enum column for the current dialect."""
        if self.dialect.casts_enums:
            return self.cast_text(column)
        return column

    def concat_text(self, parts: Sequence[exp.Expression], separator: str = " ") -> exp.Expression:
        """Concatenate ``parts`` with ``separator`` between them."""
        if len(parts) == 1:
            return parts[0]
        pieces: list[exp.Expression] = []
        for index, part in enumerate(parts):
            if index:
                pieces.append(exp.Literal.string(separator))
            pieces.append(part)
        if self.dialect is Dialect.MYSQL:
            # ``||`` is logical OR in MySQL.
            return exp.Concat(expressions=pieces)
        return reduce(lambda left, right: exp.DPipe(this=left, expression=right), pieces)

    def similarity(self, left: exp.Expression, right: exp.Expression) -> exp.Anonymous:
        return exp.Anonymous(this="SIMILARITY", expressions=[left, right])

    # -- predicates ----------------------------------------------------------

    def compare(self, left: exp.Expression, operator: Operator, right: exp.Expression) -> exp.Binary:
        comparison = _COMPARISONS.get(operator, exp.EQ)
        return comparison(this=left, expression=right)

    def equals(self, left: exp.Expression, right: exp.Expression) -> exp.EQ:
        return exp.EQ(this=left, expression=right)

    def is_null(self, expression: exp.Expression) -> exp.Is:
        return exp.Is(this=expression, expression=exp.Null())

    def in_list(self, expression: exp.Expression, values: Sequence[exp.Expression]) -> exp.Expression:
        if len(values) == 1:
            return self.equals(expression, values[0])
        return exp.In(this=expression, expressions=list(values))

    def contains(self, expression: exp.Expression, value: str) -> exp.Escape:
        """Case-insensitive substring match: ``UPPER(expr) LIKE UPPER('%value%') ESCAPE '!'``."""
        pattern = exp.Literal.string(f"%{escape_like(value)}%")
        like = exp.Like(this=self.upper(expression), expression=self.upper(pattern))
        return exp.Escape(this=like, expression=exp.Literal.string(LIKE_ESCAPE))

    def iequals(self, expression: exp.Expression, value: str) -> exp.EQ:
        """Case-insensitive equality: ``UPPER(expr) = UPPER('value')``."""
        return self.equals(self.upper(expression), self.upper(exp.Literal.string(value)))

    def enum_equals(self, column: exp.Expression, value: str, *, case_sensitive: bool) -> exp.EQ:
        """Compare an enum column with a text value."""
        literal = exp.Literal.string(value)
        if not case_sensitive:
            return self.equals(self.upper(self.enum_text(column)), self.upper(literal))
        if self.dialect is Dialect.MYSQL:
            # MySQL collations are case-insensitive; compare bytes instead.
            return self.equals(exp.Cast(this=column, to=exp.DataType.build("BINARY")), literal)
        return self.equals(self.enum_text(column), literal)

    # -- connectives ---------------------------------------------------------

    def and_(self, conditions: Sequence[exp.Expression]) -> Optional[exp.Expression]:
        """AND ``conditions`` together, or None when there are none."""
        return _connect(exp.And, conditions)

    def or_(self, conditions: Sequence[exp.Expression]) -> Optional[exp.Expression]:
        """OR ``conditions`` together, or None when there are none."""
        return _connect(exp.Or, conditions)

    def order(self, column: exp.Expression, direction: SortDirection) -> exp.Ordered:
        return column.desc() if direction.is_descending else column.asc()

    # -- rendering -----------------------------------------------------------

    def render(self, expression: exp.Expression) -> str:
        return expression.sql(dialect=self.dialect.value)


def _connect(connector: "type[exp.Connector]", conditions: Sequence[exp.Expression]) -> Optional[exp.Expression]:
    if not conditions:
        return None
    if len(conditions) == 1:
        return conditions[0]
    wrapped = [exp.Paren(this=cond) if isinstance(cond, exp.Connector) else cond for cond in conditions]
    result = reduce(lambda left, right: connector(this=left, expression=right), wrapped)
    return exp.Paren(this=result) if connector is exp.Or else result


_BUILDERS: Final = {dialect: ExpressionBuilder(dialect) for dialect in Dialect}


def get_builder(dialect: "Union[Dialect, str]") -> ExpressionBuilder:
    """Return the shared builder for ``dialect``."""
    return _BUILDERS[Dialect.from_name(dialect)]
