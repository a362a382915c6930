"""Centralized logging configuration for filterspec.

Every logger lives under the ``filterspec`` namespace and carries the request
correlation id when one is set. Compilation is fail-soft, so log records are the
only trace of dropped filter clauses; :class:`WarningRegistry` keeps
once-per-process advisories from repeating on every request.
"""

from __future__ import annotations

import logging
import sys
import threading
from contextvars import ContextVar
from typing import TYPE_CHECKING, Any, Final

from filterspec._serialization import encode_json

if TYPE_CHECKING:
    from collections.abc import Hashable
    from logging import LogRecord

__all__ = (
    "CorrelationIDFilter",
    "StructuredFormatter",
    "WarningRegistry",
    "configure_logging",
    "correlation_id_var",
    "get_correlation_id",
    "get_default_warning_registry",
    "get_logger",
    "set_correlation_id",
)

ROOT_LOGGER_NAME: Final = "filterspec"
TEXT_FORMAT: Final = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

correlation_id_var: ContextVar[str | None] = ContextVar("correlation_id", default=None)


def set_correlation_id(correlation_id: str | None) -> None:
    """Tag log records emitted by the current request with ``correlation_id``.

    Pass None to clear it once the request is done.
    """
    correlation_id_var.set(correlation_id)


def get_correlation_id() -> str | None:
    return correlation_id_var.get()


class StructuredFormatter(logging.Formatter):
    """Render each record as one JSON object per line.

    Structured ``extra_fields`` (clause keys, resource names, value lengths) are
    merged into the top level of the object.
    """

    def format(self, record: LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if correlation_id := get_correlation_id():
            entry["correlation_id"] = correlation_id
        entry.update(getattr(record, "extra_fields", None) or {})
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return encode_json(entry)


class CorrelationIDFilter(logging.Filter):
    """Copy the current correlation id onto records as ``correlation_id``."""

    def filter(self, record: LogRecord) -> bool:
        if correlation_id := get_correlation_id():
            record.correlation_id = correlation_id  # type: ignore[attr-defined]
        return True


def get_logger(name: str | None = None) -> logging.Logger:
    """Return a logger inside the ``filterspec`` namespace.

    Args:
        name: Module name, with or without the ``filterspec.`` prefix. None
            returns the package root logger.

    Returns:
        The logger, with a single :class:`CorrelationIDFilter` attached.
    """
    if name is None:
        return logging.getLogger(ROOT_LOGGER_NAME)
    if not name.startswith(ROOT_LOGGER_NAME):
        name = f"{ROOT_LOGGER_NAME}.{name}"

    logger = logging.getLogger(name)
    if not any(isinstance(f, CorrelationIDFilter) for f in logger.filters):
        logger.addFilter(CorrelationIDFilter())
    return logger


def configure_logging(
    level: str | int = logging.WARNING,
    structured: bool = True,
    handler: logging.Handler | None = None,
) -> logging.Handler:
    """Route ``filterspec`` records to a single handler.

    Dropped-clause diagnostics are emitted at DEBUG and WARNING, so the default
    level shows only the ones that point at a misbehaving client.

    Args:
        level: Level name or number for the package root logger.
        structured: Emit JSON lines instead of plain text.
        handler: Handler to install. Defaults to a stream handler on stderr.

    Returns:
        The installed handler, which replaces any installed earlier.
    """
    package_logger = logging.getLogger(ROOT_LOGGER_NAME)
    package_logger.setLevel(level.upper() if isinstance(level, str) else level)

    if handler is None:
        handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(StructuredFormatter() if structured else logging.Formatter(TEXT_FORMAT))

    package_logger.handlers[:] = [handler]
    package_logger.propagate = False
    return handler


class WarningRegistry:
    """Remembers which one-time advisories have already been logged.

    Instances are handed to the compiler so the "already shown" state is explicit
    rather than a module global. Lookups of keys already seen never take the lock.
    """

    __slots__ = ("_lock", "_seen")

    def __init__(self) -> None:
        self._seen: set[Hashable] = set()
        self._lock = threading.Lock()

    def __contains__(self, key: Hashable) -> bool:
        return key in self._seen

    def mark(self, key: Hashable) -> bool:
        """Record ``key`` as seen.

        Returns:
            True only for the first caller to mark ``key``.
        """
        if key in self._seen:
            return False
        with self._lock:
            if key in self._seen:
                return False
            self._seen.add(key)
            return True

    def warn_once(self, logger: logging.Logger, key: Hashable, message: str, *args: Any, **kwargs: Any) -> bool:
        """Log ``message`` at WARNING level the first time ``key`` is seen.

        Returns:
            True if the warning was emitted by this call.
        """
        if not self.mark(key):
            return False
        logger.warning(message, *args, **kwargs)
        return True

    def reset(self) -> None:
        with self._lock:
            self._seen.clear()


_default_warning_registry = WarningRegistry()


def get_default_warning_registry() -> WarningRegistry:
    """Return the registry used when a compiler is built without one."""
    return _default_warning_registry
