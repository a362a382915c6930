"""Pagination parameter resolution.

Two wire shapes are accepted: ``page``/``per_page`` (1-based pages) and a React
Admin style inclusive ``range=[start, end]``. A complete ``page``/``per_page`` pair wins
over ``range``; half a pair is only used when no ``range`` is sent. Every result is
capped by the configured page size and offset limits.
"""

import re
from collections.abc import Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING, Final, Generic, Optional, Union

from typing_extensions import TypeVar

from filterspec._serialization import DecodeError, decode_json
from filterspec.config import get_default_config
from filterspec.params import FilterOptions, coerce_int
from filterspec.typing import RawParams
from filterspec.utils.logging import get_logger

if TYPE_CHECKING:
    from filterspec.config import CompilerConfig

__all__ = (
    "OffsetPagination",
    "PageSpec",
    "calculate_content_range",
    "parse_range",
    "resolve_pagination",
)

T = TypeVar("T")

logger = get_logger("pagination")

_RESOURCE_NAME_RE: Final = re.compile(r"[A-Za-z0-9_.\-]+")
_DEFAULT_RESOURCE_NAME: Final = "items"


@dataclass(frozen=True)
class PageSpec:
    """Resolved ``OFFSET`` / ``LIMIT`` pair."""

    offset: int
    limit: int

    @property
    def page(self) -> int:
        """1-based page number the offset falls on."""
        if self.limit <= 0:
            return 1
        return self.offset // self.limit + 1

    @property
    def end(self) -> int:
        """Inclusive index of the last row requested."""
        return self.offset + max(self.limit, 1) - 1


def _saturate(value: int, floor: int, ceiling: int) -> int:
    return max(floor, min(value, ceiling))


def parse_range(raw_range: Optional[str], default_limit: Optional[int] = None) -> tuple[int, int]:
    """Parse an inclusive ``[start, end]`` JSON pair into ``(offset, limit)``.

    ``limit`` is ``end - start + 1`` and is not capped here. Missing or malformed
    input yields ``(0, default_limit)``.
    """
    if default_limit is None:
        default_limit = get_default_config().default_limit
    if not raw_range:
        return 0, default_limit
    try:
        decoded = decode_json(raw_range)
    except DecodeError:
        logger.warning("Invalid JSON in range parameter, using default page")
        return 0, default_limit
    if not isinstance(decoded, list) or len(decoded) < 2:
        logger.warning("Range parameter must be a [start, end] pair, using default page")
        return 0, default_limit
    start, end = coerce_int(decoded[0]), coerce_int(decoded[1])
    if start is None or end is None:
        logger.warning("Range bounds must be integers, using default page")
        return 0, default_limit
    start = max(start, 0)
    return start, max(end - start, 0) + 1


def resolve_pagination(
    raw_params: Union[FilterOptions, RawParams, None] = None, config: "Optional[CompilerConfig]" = None
) -> PageSpec:
    """Resolve list parameters into a capped :class:`PageSpec`.

    Args:
        raw_params: Parsed :class:`FilterOptions` or a raw query-parameter mapping.
        config: Limits to apply. Defaults to the shared default configuration.

    Returns:
        The page to fetch; ``limit`` never exceeds ``max_page_size`` and ``offset`` never
        exceeds ``max_offset``.
    """
    config = config or get_default_config()
    options = raw_params if isinstance(raw_params, FilterOptions) else FilterOptions.from_mapping(raw_params or {})

    halves = (options.page is not None, options.per_page is not None)
    has_page_shape = all(halves) or (any(halves) and options.range is None)

    if has_page_shape:
        # Both factors are saturated first; anything past max_offset clamps the same way.
        ceiling = config.max_offset + 1
        page = _saturate(options.page if options.page is not None else 1, 1, ceiling + 1)
        per_page = _saturate(options.per_page if options.per_page is not None else config.default_limit, 0, ceiling)
        offset, limit = (page - 1) * per_page, per_page
    elif options.range is not None:
        offset, limit = parse_range(options.range, config.default_limit)
    else:
        offset, limit = 0, config.default_limit

    return PageSpec(offset=min(offset, config.max_offset), limit=min(limit, config.max_page_size))


def calculate_content_range(offset: int, limit: int, total_count: int, resource_name: str) -> str:
    """Build a ``Content-Range`` header value such as ``"users 0-9/100"``.

    The resource name is cut at the first character that is not safe in a header
    token, so header injection through it is impossible.
    """
    match = _RESOURCE_NAME_RE.match(resource_name)
    name = match.group(0) if match else _DEFAULT_RESOURCE_NAME
    offset = max(offset, 0)
    total_count = max(total_count, 0)
    last = max(min(offset + max(limit, 1), total_count) - 1, offset)
    return f"{name} {offset}-{last}/{total_count}"


class OffsetPagination(Generic[T]):
    """Container for data returned using limit/offset pagination."""

    __slots__ = ("items", "limit", "offset", "total")

    items: Sequence[T]
    limit: int
    offset: int
    total: int

    def __init__(self, items: Sequence[T], limit: int, offset: int, total: int) -> None:
        """Initialize OffsetPagination.

        Args:
            items: List of data being sent as part of the response.
            limit: Maximal number of items to send.
            offset: Offset from the beginning of the query. Identical to an index.
            total: Total number of items.
        """
        self.items = items
        self.limit = limit
        self.offset = offset
        self.total = total

    @classmethod
    def from_page(cls, items: Sequence[T], page: PageSpec, total: int) -> "OffsetPagination[T]":
        return cls(items=items, limit=page.limit, offset=page.offset, total=total)

    def content_range(self, resource_name: str) -> str:
        return calculate_content_range(self.offset, self.limit, self.total, resource_name)
