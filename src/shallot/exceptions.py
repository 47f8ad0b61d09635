"""Framework exception types."""

from __future__ import annotations

from typing import Any, Mapping

from .http import ensure_status, status_message
from .serialization import json_encode


class ShallotError(Exception):
    """Base error type."""


class HTTPError(ShallotError):
    """Status-coded error that middleware can raise to shape the error response.

    ``expose`` marks the message as safe to send to clients; it defaults to
    ``True`` for client errors and ``False`` for server errors.
    """

    def __init__(
        self,
        status: int = 500,
        detail: Any = None,
        *,
        expose: bool | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> None:
        status = ensure_status(status)
        if status < 400:
            raise ValueError(f"HTTPError status must be a 4xx or 5xx code, got {status}")
        message = detail if isinstance(detail, str) else status_message(status) or str(status)
        super().__init__(message)
        self.status = status
        self.detail = detail
        self.message = message
        self.expose = status < 500 if expose is None else expose
        self.headers = dict(headers or {})

    def to_response_body(self) -> bytes:
        return json_encode({"error": {"status": self.status, "detail": self.detail}})


def create_error(status: int = 500, detail: Any = None, **props: Any) -> HTTPError:
    """Build an :class:`HTTPError` and attach any extra ``props`` as attributes."""

    expose = props.pop("expose", None)
    headers = props.pop("headers", None)
    error = HTTPError(status, detail, expose=expose, headers=headers)
    for key, value in props.items():
        setattr(error, key, value)
    return error


__all__ = ["HTTPError", "ShallotError", "create_error"]
