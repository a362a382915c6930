"""Wire-level list parameters.

Two client conventions are accepted side by side: the React Admin style
(``filter``, ``range=[start, end]``, ``sort=["column", "ASC"]``) and plain REST
(``page``, ``per_page``, ``sort_by``, ``order``).
"""

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Optional

from filterspec._serialization import EncodeError, encode_json
from filterspec.typing import RawParams

__all__ = ("FilterOptions", "coerce_int")


def coerce_int(value: Any) -> Optional[int]:
    """Read an integer query parameter, returning None for anything unusable."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if value.is_integer() else None
    if isinstance(value, (str, bytes)):
        text = value.decode() if isinstance(value, bytes) else value
        text = text.strip()
        if not text or len(text) > 40:
            return None
        try:
            return int(text)
        except ValueError:
            return None
    return None


def _last(value: Any) -> Any:
    # Repeated query parameters arrive as lists; the last occurrence wins.
    if isinstance(value, (list, tuple)):
        return value[-1] if value else None
    return value


def _coerce_json(value: Any) -> Optional[str]:
    # Structured values passed in-process are re-encoded to their wire form.
    if isinstance(value, (list, tuple, Mapping)):
        try:
            return encode_json(value)
        except (TypeError, EncodeError):
            return None
    return _coerce_str(value)


def _coerce_str(value: Any) -> Optional[str]:
    value = _last(value)
    if value is None:
        return None
    if isinstance(value, bytes):
        return value.decode(errors="replace")
    return str(value)


@dataclass(frozen=True)
class FilterOptions:
    """Raw list-endpoint parameters, before any validation."""

    filter: Optional[str] = None
    range: Optional[str] = None
    page: Optional[int] = None
    per_page: Optional[int] = None
    sort: Optional[str] = None
    sort_by: Optional[str] = None
    order: Optional[str] = None

    @classmethod
    def from_mapping(cls, params: RawParams) -> "FilterOptions":
        """Build options from a query-parameter mapping.

        Numbers that do not parse are treated as absent.
        """
        return cls(
            filter=_coerce_json(params.get("filter")),
            range=_coerce_json(params.get("range")),
            page=coerce_int(_last(params.get("page"))),
            per_page=coerce_int(_last(params.get("per_page"))),
            sort=_coerce_json(params.get("sort")),
            sort_by=_coerce_str(params.get("sort_by")),
            order=_coerce_str(params.get("order")),
        )

    def to_dict(self) -> dict[str, Any]:
        return {key: value for key, value in self.__dict__.items() if value is not None}
