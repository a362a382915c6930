"""Compiler facade.

:class:`FilterCompiler` binds a resource schema, a dialect, the configured limits and
a warning registry, and turns raw list-endpoint parameters into a
:class:`CompiledQuery`. Compilation is pure and never raises for client input.
"""

from collections.abc import Mapping, Sequence
from typing import TYPE_CHECKING, Any, Optional, Union

from sqlglot import exp

from filterspec.conditions import SEARCH_KEY, Condition, build_condition, parse_clauses, parse_filter_json
from filterspec.config import get_default_config
from filterspec.dialects import Dialect, get_builder
from filterspec.pagination import PageSpec, resolve_pagination
from filterspec.params import FilterOptions
from filterspec.search import build_search_condition
from filterspec.sorting import SortSpec, resolve_sort
from filterspec.typing import FieldName, JSONValue, RawParams, SearchMode
from filterspec.utils.logging import get_default_warning_registry, get_logger

if TYPE_CHECKING:
    from filterspec.config import CompilerConfig
    from filterspec.schema import SchemaDescriptor, SchemaRegistry
    from filterspec.utils.logging import WarningRegistry

__all__ = ("CompiledQuery", "FilterCompiler", "compile_filter", "compile_query")

logger = get_logger("compiler")

RawFilter = Union[str, bytes, Mapping[str, JSONValue], None]


class CompiledQuery:
    """Condition, sort and page of one list request."""

    __slots__ = ("condition", "page", "sort")

    condition: Condition
    sort: SortSpec
    page: PageSpec

    def __init__(self, condition: Condition, sort: SortSpec, page: PageSpec) -> None:
        self.condition = condition
        self.sort = sort
        self.page = page

    def __repr__(self) -> str:
        return f"CompiledQuery(condition={self.condition!r}, sort={self.sort!r}, page={self.page!r})"

    @property
    def dialect(self) -> Dialect:
        return self.condition.dialect

    def to_select(self, table: str, columns: Optional[Sequence[FieldName]] = None) -> exp.Select:
        """Build ``SELECT ... FROM table WHERE ... ORDER BY ... LIMIT ... OFFSET ...``.

        Args:
            table: Table to select from.
            columns: Columns to project. Defaults to ``*``.

        Returns:
            A new sqlglot ``Select``.
        """
        projection = [exp.column(name, quoted=True) for name in columns] if columns else [exp.Star()]
        select = exp.select(*projection).from_(exp.table_(table, quoted=True))
        select = self.condition.apply(select)
        return (
            select.order_by(self.sort.to_expression(self.dialect))
            .limit(self.page.limit)
            .offset(self.page.offset)
        )

    def to_sql(self, table: str, columns: Optional[Sequence[FieldName]] = None) -> str:
        return self.to_select(table, columns).sql(dialect=self.dialect.value)

    def count_select(self, table: str) -> exp.Select:
        """Build the ``COUNT(*)`` query for the total number of matching rows."""
        select = exp.select(exp.Count(this=exp.Star()).as_("total")).from_(exp.table_(table, quoted=True))
        return self.condition.apply(select)


class FilterCompiler:
    """Compile list-endpoint parameters for one resource and dialect.

    Args:
        schema: Descriptor of the resource being listed.
        dialect: Target dialect, or a dialect/driver name.
        config: Limits and defaults. Defaults to the shared default configuration.
        warnings: Registry used for one-time warnings. Defaults to the process-wide
            registry.
    """

    __slots__ = ("builder", "config", "schema", "warnings")

    def __init__(
        self,
        schema: "SchemaDescriptor",
        dialect: Union[Dialect, str] = Dialect.POSTGRES,
        *,
        config: "Optional[CompilerConfig]" = None,
        warnings: "Optional[WarningRegistry]" = None,
    ) -> None:
        self.schema = schema
        self.builder = get_builder(dialect)
        self.config = config or get_default_config()
        self.warnings = warnings if warnings is not None else get_default_warning_registry()

    def __repr__(self) -> str:
        return f"FilterCompiler(resource={self.schema.resource_name!r}, dialect={self.dialect.value!r})"

    @classmethod
    def for_resource(
        cls,
        registry: "SchemaRegistry",
        resource_name: str,
        dialect: Union[Dialect, str] = Dialect.POSTGRES,
        *,
        config: "Optional[CompilerConfig]" = None,
        warnings: "Optional[WarningRegistry]" = None,
    ) -> "FilterCompiler":
        """Build a compiler for a registered resource.

        Raises:
            UnknownResourceError: If ``resource_name`` is not registered.
        """
        return cls(registry.get(resource_name), dialect, config=config, warnings=warnings)

    @property
    def dialect(self) -> Dialect:
        return self.builder.dialect

    def compile_filter(self, raw_filter: RawFilter) -> Condition:
        """Compile the ``filter`` parameter into a :class:`Condition`.

        Malformed input compiles to an empty condition, which matches every row.
        """
        filters = parse_filter_json(raw_filter)
        if not filters:
            return Condition(dialect=self.dialect)

        search = self._compile_search(filters.get(SEARCH_KEY))
        if search is not None and self.config.search_mode is SearchMode.EXCLUSIVE:
            ignored = len(filters) - 1
            if ignored:
                logger.debug("Search-only mode: ignoring %d other filter keys", ignored)
            return Condition(search, self.dialect)

        clauses = parse_clauses(filters, self.schema, self.config)
        expression = build_condition(clauses, self.schema, self.builder)
        parts = [part for part in (expression, search) if part is not None]
        logger.debug(
            "Compiled filter for %s: %d clauses%s",
            self.schema.resource_name,
            len(clauses),
            " with search" if search is not None else "",
            extra={"extra_fields": {"resource": self.schema.resource_name, "dialect": self.dialect.value}},
        )
        return Condition(self.builder.and_(parts), self.dialect)

    def _compile_search(self, query: Any) -> "Optional[exp.Expression]":
        if query is None:
            return None
        if not isinstance(query, str):
            logger.debug("Ignoring non-string search query of type %s", type(query).__name__)
            return None
        return build_search_condition(query, self.schema, self.builder, config=self.config, warnings=self.warnings)

    def resolve_pagination(self, raw_params: Union[FilterOptions, RawParams, None]) -> PageSpec:
        return resolve_pagination(raw_params, self.config)

    def resolve_sort(
        self,
        raw_sort: Union[str, RawParams, FilterOptions, None],
        default_column: Optional[FieldName] = None,
    ) -> SortSpec:
        return resolve_sort(raw_sort, self.schema, default_column, config=self.config)

    def compile(self, params: Union[FilterOptions, RawParams, None]) -> CompiledQuery:
        """Compile every list parameter of a request.

        Args:
            params: Parsed :class:`FilterOptions` or a raw query-parameter mapping.

        Returns:
            The compiled condition, sort and page.
        """
        options = params if isinstance(params, FilterOptions) else FilterOptions.from_mapping(params or {})
        return CompiledQuery(
            condition=self.compile_filter(options.filter),
            sort=self.resolve_sort(options),
            page=self.resolve_pagination(options),
        )


def compile_filter(
    raw_filter: RawFilter,
    schema: "SchemaDescriptor",
    dialect: Union[Dialect, str] = Dialect.POSTGRES,
    *,
    config: "Optional[CompilerConfig]" = None,
    warnings: "Optional[WarningRegistry]" = None,
) -> Condition:
    """Compile a raw ``filter`` parameter for ``schema`` and ``dialect``."""
    return FilterCompiler(schema, dialect, config=config, warnings=warnings).compile_filter(raw_filter)


def compile_query(
    params: Union[FilterOptions, RawParams, None],
    schema: "SchemaDescriptor",
    dialect: Union[Dialect, str] = Dialect.POSTGRES,
    *,
    config: "Optional[CompilerConfig]" = None,
    warnings: "Optional[WarningRegistry]" = None,
) -> CompiledQuery:
    """Compile the filter, sort and pagination parameters of one request."""
    return FilterCompiler(schema, dialect, config=config, warnings=warnings).compile(params)
