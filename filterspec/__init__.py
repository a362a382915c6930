"""filterspec: compile untyped list-endpoint parameters into safe, dialect-aware queries."""

from filterspec import exceptions, typing, utils
from filterspec.__metadata__ import __version__
from filterspec.compiler import CompiledQuery, FilterCompiler, compile_filter, compile_query
from filterspec.conditions import Clause, Condition, parse_clauses, parse_filter_json
from filterspec.config import CompilerConfig
from filterspec.dialects import Dialect, ExpressionBuilder, escape_like, get_builder
from filterspec.exceptions import (
    FilterSpecError,
    ImproperConfigurationError,
    SchemaRegistrationError,
    UnknownResourceError,
)
from filterspec.fields import Operator, is_valid_field_name, parse_comparison_operator, validate_value_length
from filterspec.pagination import (
    OffsetPagination,
    PageSpec,
    calculate_content_range,
    parse_range,
    resolve_pagination,
)
from filterspec.params import FilterOptions
from filterspec.schema import ColumnCapabilities, SchemaDescriptor, SchemaRegistry
from filterspec.sorting import SortSpec, parse_sort_direction, resolve_sort
from filterspec.typing import SearchMode, SortDirection
from filterspec.utils.logging import WarningRegistry, configure_logging, get_logger
from filterspec.values import classify_value

__all__ = (
    "Clause",
    "ColumnCapabilities",
    "CompiledQuery",
    "CompilerConfig",
    "Condition",
    "Dialect",
    "ExpressionBuilder",
    "FilterCompiler",
    "FilterOptions",
    "FilterSpecError",
    "ImproperConfigurationError",
    "OffsetPagination",
    "Operator",
    "PageSpec",
    "SchemaDescriptor",
    "SchemaRegistrationError",
    "SchemaRegistry",
    "SearchMode",
    "SortDirection",
    "SortSpec",
    "UnknownResourceError",
    "WarningRegistry",
    "__version__",
    "calculate_content_range",
    "classify_value",
    "compile_filter",
    "compile_query",
    "configure_logging",
    "escape_like",
    "exceptions",
    "get_builder",
    "get_logger",
    "is_valid_field_name",
    "parse_clauses",
    "parse_comparison_operator",
    "parse_filter_json",
    "parse_range",
    "parse_sort_direction",
    "resolve_pagination",
    "resolve_sort",
    "typing",
    "utils",
    "validate_value_length",
)
