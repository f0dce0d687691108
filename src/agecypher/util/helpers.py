"""Small conversions shared by the codec and the session helpers."""

from __future__ import annotations

from typing import Any

from agecypher.util.exceptions import MalformedValue


def ensure_bytes(input_value: Any, **encoding_kwargs) -> bytes:
    """Ensure the input value is converted to bytes."""
    if isinstance(input_value, bytes):
        return input_value
    if isinstance(input_value, (bytearray, memoryview)):
        return bytes(input_value)
    return input_value.encode(**encoding_kwargs)


def ensure_text(input_value: str | bytes | bytearray | memoryview) -> str:
    """Return ``input_value`` as text, decoding bytes as UTF-8.

    Raises:
        MalformedValue: If the bytes are not valid UTF-8. The span covers
            the undecodable bytes.
    """
    if isinstance(input_value, str):
        return input_value
    raw = ensure_bytes(input_value)
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError as e:
        raise MalformedValue(
            f"agtype payload is not valid UTF-8: {e.reason}",
            raw.decode("latin-1"),
            e.start,
            e.end,
        ) from e
