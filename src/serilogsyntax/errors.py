"""Error types raised at the library boundary."""

from __future__ import annotations

from pathlib import Path


class SerilogSyntaxError(Exception):
    """Base class for every error raised by serilogsyntax."""


class InvalidArgumentError(SerilogSyntaxError, ValueError):
    """Raised when a required text argument is missing (``None``) or not a str."""

    def __init__(self, argument: str, message: str) -> None:
        self.argument = argument
        self.message = message
        super().__init__(self.format())

    def format(self) -> str:
        return f"invalid argument '{self.argument}': {self.message}"


class ConfigError(SerilogSyntaxError):
    """Raised when a config file is unreadable or holds a value of the wrong type."""

    def __init__(self, message: str, path: Path | None = None, key: str | None = None) -> None:
        self.message = message
        self.path = path
        self.key = key
        super().__init__(self.format())

    def format(self) -> str:
        location = str(self.path) if self.path is not None else "<config>"
        if self.key:
            return f"error: {location}: {self.key}: {self.message}"
        return f"error: {location}: {self.message}"


def require_text(value: object, argument: str = "text") -> str:
    """Return *value* unchanged if it is a str, otherwise raise InvalidArgumentError.

    Empty and whitespace-only strings are valid; callers decide what they mean.
    """
    if value is None:
        raise InvalidArgumentError(argument, "must not be None")
    if not isinstance(value, str):
        raise InvalidArgumentError(argument, f"expected str, got {type(value).__name__}")
    return value
