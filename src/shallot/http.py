"""HTTP utilities and status code helpers."""

from __future__ import annotations

from enum import IntEnum
from http import HTTPStatus as _HTTPStatus


class Status(IntEnum):
    """Enumeration of the HTTP status codes used within the framework."""

    CONTINUE = 100
    OK = 200
    NO_CONTENT = 204
    RESET_CONTENT = 205
    NOT_MODIFIED = 304
    BAD_REQUEST = 400
    NOT_FOUND = 404
    INTERNAL_SERVER_ERROR = 500


_EMPTY_STATUSES: frozenset[int] = frozenset(
    {int(Status.NO_CONTENT), int(Status.RESET_CONTENT), int(Status.NOT_MODIFIED)}
)


def ensure_status(status: int | Status) -> int:
    """Normalize ``status`` to an ``int`` and ensure it is a three digit code."""

    if isinstance(status, bool) or not isinstance(status, int):
        raise TypeError(f"status code must be a number, got {status!r}")
    code = int(status)
    if code < 100 or code > 999:
        raise ValueError(f"Invalid HTTP status code: {status}")
    return code


def status_message(status: int | Status) -> str | None:
    """Return the reason phrase for ``status`` or ``None`` when it is not registered."""

    try:
        return _HTTPStatus(int(status)).phrase
    except ValueError:
        return None


def reason_phrase(status: int | Status) -> str:
    """Return the HTTP reason phrase for ``status`` if known."""

    return status_message(status) or "Unknown Status"


def is_informational(status: int | Status) -> bool:
    """Return ``True`` if ``status`` is a 1xx code."""

    code = ensure_status(status)
    return 100 <= code < 200


def is_empty_status(status: int | Status) -> bool:
    """Return ``True`` if a response with ``status`` must never carry a body."""

    code = ensure_status(status)
    return code in _EMPTY_STATUSES or is_informational(code)


def is_error(status: int | Status) -> bool:
    """Return ``True`` if ``status`` is either a client or server error."""

    code = ensure_status(status)
    return 400 <= code < 600


__all__ = [
    "Status",
    "ensure_status",
    "is_empty_status",
    "is_error",
    "is_informational",
    "reason_phrase",
    "status_message",
]
