"""Compiler configuration.

All hard caps applied to client input live here so that a deployment can tighten
them without touching the compiler. Values are validated once, when the config is
built.
"""

from dataclasses import dataclass
from typing import Final

from filterspec.exceptions import ImproperConfigurationError
from filterspec.typing import SearchMode, SortDirection

__all__ = (
    "DEFAULT_LIMIT",
    "MAX_FIELD_NAME_LENGTH",
    "MAX_OFFSET",
    "MAX_PAGE_SIZE",
    "MAX_SEARCH_QUERY_LENGTH",
    "MAX_VALUE_LENGTH",
    "CompilerConfig",
    "get_default_config",
)

MAX_PAGE_SIZE: Final = 1000
MAX_OFFSET: Final = 1_000_000
DEFAULT_LIMIT: Final = 10
MAX_FIELD_NAME_LENGTH: Final = 100
MAX_VALUE_LENGTH: Final = 10_000
MAX_SEARCH_QUERY_LENGTH: Final = 10_000
SIMILARITY_THRESHOLD: Final = 0.1
FULLTEXT_WARNING_COLUMN_THRESHOLD: Final = 3


@dataclass(frozen=True)
class CompilerConfig:
    """Limits and defaults for filter, sort and pagination compilation."""

    # Pagination caps
    max_page_size: int = MAX_PAGE_SIZE
    max_offset: int = MAX_OFFSET
    default_limit: int = DEFAULT_LIMIT

    # Input validation caps
    max_field_name_length: int = MAX_FIELD_NAME_LENGTH
    max_value_length: int = MAX_VALUE_LENGTH
    max_search_query_length: int = MAX_SEARCH_QUERY_LENGTH

    # Full-text search
    similarity_threshold: float = SIMILARITY_THRESHOLD
    fulltext_warning_column_threshold: int = FULLTEXT_WARNING_COLUMN_THRESHOLD
    search_mode: SearchMode = SearchMode.COMBINED

    # Defaults
    default_sort_direction: SortDirection = SortDirection.ASC

    def __post_init__(self) -> None:
        """Validate configuration values."""
        if self.max_page_size < 1:
            msg = "max_page_size must be at least 1"
            raise ImproperConfigurationError(msg)
        if self.max_offset < 0:
            msg = "max_offset must be non-negative"
            raise ImproperConfigurationError(msg)
        if not 0 <= self.default_limit <= self.max_page_size:
            msg = f"default_limit must be between 0 and max_page_size ({self.max_page_size})"
            raise ImproperConfigurationError(msg)
        if self.max_field_name_length < 1:
            msg = "max_field_name_length must be at least 1"
            raise ImproperConfigurationError(msg)
        if self.max_value_length < 0:
            msg = "max_value_length must be non-negative"
            raise ImproperConfigurationError(msg)
        if self.max_search_query_length < 0:
            msg = "max_search_query_length must be non-negative"
            raise ImproperConfigurationError(msg)
        if not 0.0 <= self.similarity_threshold <= 1.0:
            msg = "similarity_threshold must be between 0 and 1"
            raise ImproperConfigurationError(msg)
        if self.fulltext_warning_column_threshold < 0:
            msg = "fulltext_warning_column_threshold must be non-negative"
            raise ImproperConfigurationError(msg)
        if not isinstance(self.search_mode, SearchMode):
            object.__setattr__(self, "search_mode", _coerce_enum(SearchMode, self.search_mode, "search_mode"))
        if not isinstance(self.default_sort_direction, SortDirection):
            object.__setattr__(
                self,
                "default_sort_direction",
                _coerce_enum(SortDirection, str(self.default_sort_direction).upper(), "default_sort_direction"),
            )


def _coerce_enum(
    enum_type: "type[SearchMode] | type[SortDirection]", value: object, name: str
) -> "SearchMode | SortDirection":
    try:
        return enum_type(value)
    except ValueError as exc:
        msg = f"Invalid {name}: {value!r}"
        raise ImproperConfigurationError(msg) from exc


_DEFAULT_CONFIG = CompilerConfig()


def get_default_config() -> CompilerConfig:
    """Return the shared default configuration."""
    return _DEFAULT_CONFIG
