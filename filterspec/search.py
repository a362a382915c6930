"""Free-text search strategies.

Dialects with trigram support (PostgreSQL with ``pg_trgm``) get a hybrid of substring
and fuzzy matching over the concatenated full-text columns. Other dialects fall back
to a single LIKE over the same concatenation. Resources without full-text columns are
searched by OR-ing substring matches over their filterable columns.
"""

from collections.abc import Iterable
from typing import TYPE_CHECKING, Final, Optional

from filterspec.config import get_default_config
from filterspec.fields import Operator
from filterspec.utils.logging import get_default_warning_registry, get_logger

if TYPE_CHECKING:
    from sqlglot import exp

    from filterspec.config import CompilerConfig
    from filterspec.dialects import ExpressionBuilder
    from filterspec.schema import SchemaDescriptor
    from filterspec.utils.logging import WarningRegistry

__all__ = (
    "FULLTEXT_FALLBACK_WARNING",
    "build_fulltext_condition",
    "build_search_condition",
    "build_searchable_fallback",
    "sanitize_search_query",
)

logger = get_logger("search")

FULLTEXT_FALLBACK_WARNING: Final = "fulltext-like-fallback"


def sanitize_search_query(query: str, max_length: Optional[int] = None) -> str:
    """Trim ``query`` and cut it down to ``max_length`` characters."""
    if max_length is None:
        max_length = get_default_config().max_search_query_length
    return query.strip()[:max_length].strip()


def build_fulltext_condition(
    query: str,
    schema: "SchemaDescriptor",
    builder: "ExpressionBuilder",
    *,
    config: "Optional[CompilerConfig]" = None,
    warnings: "Optional[WarningRegistry]" = None,
) -> "Optional[exp.Expression]":
    """Search the schema's full-text columns for ``query``.

    Returns:
        The search predicate, or None when the resource declares no full-text columns
        or the sanitized query is empty.
    """
    config = config or get_default_config()
    columns = schema.fulltext_searchable_columns()
    if not columns:
        return None
    query = sanitize_search_query(query, config.max_search_query_length)
    if not query:
        return None

    document = builder.concat_text([builder.coalesce_text(builder.column(name)) for name in columns])
    substring = builder.contains(document, query)

    if builder.dialect.supports_similarity:
        fuzzy = builder.compare(
            builder.similarity(document.copy(), builder.literal(query)),
            Operator.GT,
            builder.literal(config.similarity_threshold),
        )
        return builder.or_([substring, fuzzy])

    if len(columns) > config.fulltext_warning_column_threshold:
        (warnings or get_default_warning_registry()).warn_once(
            logger,
            FULLTEXT_FALLBACK_WARNING,
            "Using LIKE fallback for full-text search over %d columns on %s; consider a dedicated search engine "
            "or PostgreSQL with pg_trgm for better performance.",
            len(columns),
            builder.dialect.value,
            extra={"extra_fields": {"resource": schema.resource_name, "columns": len(columns)}},
        )
    return substring


def build_searchable_fallback(
    query: str,
    columns: Iterable[str],
    builder: "ExpressionBuilder",
    *,
    config: "Optional[CompilerConfig]" = None,
) -> "Optional[exp.Expression]":
    """OR together a substring match for each of ``columns``.

    Columns are cast to text first so that enum and non-text columns can be searched
    on every dialect.
    """
    config = config or get_default_config()
    query = sanitize_search_query(query, config.max_search_query_length)
    if not query:
        return None
    return builder.or_([builder.contains(builder.cast_text(builder.column(name)), query) for name in sorted(columns)])


def build_search_condition(
    query: str,
    schema: "SchemaDescriptor",
    builder: "ExpressionBuilder",
    *,
    config: "Optional[CompilerConfig]" = None,
    warnings: "Optional[WarningRegistry]" = None,
) -> "Optional[exp.Expression]":
    """Pick the search strategy for ``schema`` and build its predicate."""
    if schema.fulltext_searchable_columns():
        return build_fulltext_condition(query, schema, builder, config=config, warnings=warnings)
    return build_searchable_fallback(query, schema.filterable_columns(), builder, config=config)

