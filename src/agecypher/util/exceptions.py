"""Custom exceptions for the agecypher package.

Decoding failures, envelope problems and values that cannot be written as
agtype each have their own exception class. Errors coming back from the
database are never wrapped here; they reach the caller unchanged.
"""

from __future__ import annotations

from typing import Any, Optional


class AgeError(Exception):
    """Base class for every error raised by agecypher.

    Attributes:
        message: Human-readable error message.
    """

    def __init__(self, message: str):
        self.message = message
        super().__init__(self.message)


class MalformedValue(AgeError, ValueError):
    """Raised when a payload does not match the agtype literal grammar.

    Also raised when a ``::vertex``, ``::edge`` or ``::path`` literal is
    missing a required field or has the wrong shape.

    Attributes:
        message: Description of the problem.
        text: The complete text that was being decoded.
        start: Offset of the first offending character in ``text``.
        end: Offset one past the last offending character in ``text``.
    """

    def __init__(
        self,
        message: str,
        text: str = "",
        start: Optional[int] = None,
        end: Optional[int] = None,
    ):
        self.text = text
        self.start = start
        self.end = end
        if start is not None:
            message = f"{message} (at {start}..{end})"
        super().__init__(message)

    @property
    def span(self) -> str:
        """The offending slice of the decoded text."""
        if self.start is None:
            return self.text
        return self.text[self.start : self.end]


class UnsupportedEnvelope(AgeError):
    """Raised when a versioned payload carries an unknown version byte.

    Attributes:
        version: The version byte found, or ``None`` for an empty payload.
    """

    def __init__(self, version: Optional[int]):
        self.version = version
        if version is None:
            message = "Empty agtype payload has no version byte"
        else:
            message = f"Unsupported agtype version number {version}"
        super().__init__(message)


class UnencodableValue(AgeError, TypeError):
    """Raised when a Python value has no agtype representation.

    Attributes:
        value: The offending value.
    """

    def __init__(self, value: Any, reason: Optional[str] = None):
        self.value = value
        message = reason or f"Cannot encode {type(value).__name__} as agtype"
        super().__init__(message)
