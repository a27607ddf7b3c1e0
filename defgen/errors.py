"""Exception types raised while loading and parsing definitions."""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:  # pragma: no cover - import for typing only
    from .loader.declarations import Position


class DefgenError(RuntimeError):
    """Base class for failures reported to the user verbatim."""


class LoadError(DefgenError):
    """Raised when definition modules cannot be located or read."""


class ParseError(DefgenError):
    """Raised when a declaration breaks the definition contract."""

    def __init__(self, message: str, position: Optional["Position"] = None) -> None:
        self.message = message
        self.position = position
        super().__init__(f"{position}: {message}" if position is not None else message)


class InvalidSignatureError(ParseError):
    """A service method does not take one request and return one response."""


class UnexportedFieldError(ParseError):
    """A record declares a field whose name starts with an underscore."""


class NotARecordError(ParseError):
    """A declaration used as an object is not shaped like a record."""


class FieldDecodeError(ParseError):
    """A field's tag or example could not be decoded."""


class TagSyntaxError(DefgenError):
    """Raised when a field tag string is malformed."""


class ExampleDecodeError(DefgenError):
    """Raised when an ``example:`` line does not hold a valid JSON literal."""


class RenderError(DefgenError):
    """Raised when a template cannot be found or rendered."""


__all__ = [
    "DefgenError",
    "ExampleDecodeError",
    "FieldDecodeError",
    "InvalidSignatureError",
    "LoadError",
    "NotARecordError",
    "ParseError",
    "RenderError",
    "TagSyntaxError",
    "UnexportedFieldError",
]
