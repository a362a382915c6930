from typing import Any, Optional

__all__ = (
    "FilterSpecError",
    "ImproperConfigurationError",
    "SchemaRegistrationError",
    "UnknownResourceError",
)


class FilterSpecError(Exception):
    """Base exception class from which all filterspec exceptions inherit."""

    detail: str

    def __init__(self, *args: Any, detail: str = "") -> None:
        """Initialize ``FilterSpecError``.

        Args:
            *args: args are converted to :class:`str` before passing to :class:`Exception`
            detail: detail of the exception.
        """
        str_args = [str(arg) for arg in args if arg]
        if not detail:
            if str_args:
                detail, *str_args = str_args
            elif hasattr(self, "detail"):
                detail = self.detail
        self.detail = detail
        super().__init__(*str_args)

    def __repr__(self) -> str:
        if self.detail:
            return f"{self.__class__.__name__} - {self.detail}"
        return self.__class__.__name__

    def __str__(self) -> str:
        return " ".join((*self.args, self.detail)).strip()


class ImproperConfigurationError(FilterSpecError):
    """Improper configuration.

    Raised when a compiler configuration or a resource schema declaration is invalid.
    This only ever happens at startup, never while compiling a request.
    """

    def __init__(self, message: Optional[str] = None) -> None:
        if message is None:
            message = "Improper filter configuration."
        super().__init__(message)


class SchemaRegistrationError(ImproperConfigurationError):
    """A resource schema was registered more than once."""

    def __init__(self, resource_name: str) -> None:
        super().__init__(f"Resource {resource_name!r} is already registered.")
        self.resource_name = resource_name


class UnknownResourceError(FilterSpecError, KeyError):
    """No schema is registered under the requested resource name."""

    def __init__(self, resource_name: str) -> None:
        super().__init__(f"No schema registered for resource {resource_name!r}.")
        self.resource_name = resource_name

    def __str__(self) -> str:
        return FilterSpecError.__str__(self)
