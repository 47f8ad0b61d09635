from __future__ import annotations

from typing import Any, Callable, Protocol, cast

import msgspec


class _JSONModule(Protocol):
    def encode(self, obj: Any, *, enc_hook: Callable[[Any], Any] | None = None) -> bytes: ...

    def decode(self, data: bytes) -> Any: ...


_json = cast(_JSONModule, getattr(msgspec, "json"))


def _encode_fallback(value: Any) -> Any:
    # Arbitrary objects serialize as their instance attributes, or as text.
    try:
        return dict(vars(value))
    except TypeError:
        return str(value)


def json_encode(value: Any) -> bytes:
    """Serialize ``value`` to JSON bytes using msgspec."""

    return _json.encode(value, enc_hook=_encode_fallback)


def json_decode(data: bytes) -> Any:
    """Deserialize JSON ``data`` into native Python values."""

    return _json.decode(data)


def describe(value: Any) -> str:
    """Render ``value`` as JSON text, falling back to ``repr`` for unsupported types."""

    try:
        return json_encode(value).decode()
    except (TypeError, msgspec.EncodeError):
        return repr(value)
