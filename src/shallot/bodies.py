"""Closed set of response body kinds."""

from __future__ import annotations

from collections.abc import AsyncIterable
from enum import Enum
from typing import Any


class BodyKind(Enum):
    ABSENT = "absent"
    EMPTY = "empty"
    BINARY = "binary"
    TEXT = "text"
    STREAM = "stream"
    STRUCTURED = "structured"


def is_binary(value: Any) -> bool:
    return isinstance(value, (bytes, bytearray, memoryview))


def is_stream(value: Any) -> bool:
    return isinstance(value, AsyncIterable) and not isinstance(value, (str, bytes, bytearray))


def classify_body(body: Any, explicit_null: bool = False) -> BodyKind:
    """Return the :class:`BodyKind` of ``body``.

    ``explicit_null`` separates a body that was deliberately emptied from one
    that was never assigned; it only matters when ``body`` is ``None``.
    """

    if body is None:
        return BodyKind.EMPTY if explicit_null else BodyKind.ABSENT
    if is_binary(body):
        return BodyKind.BINARY
    if isinstance(body, str):
        return BodyKind.TEXT
    if is_stream(body):
        return BodyKind.STREAM
    return BodyKind.STRUCTURED


__all__ = ["BodyKind", "classify_body", "is_binary", "is_stream"]
