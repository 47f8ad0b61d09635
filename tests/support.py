"""Test support utilities for building contexts without a server."""

from __future__ import annotations

import asyncio
from typing import Any, Mapping

from shallot.application import Shallot
from shallot.connection import RawRequest, RawResponse
from shallot.context import Context


class RecordingSend:
    """ASGI ``send`` callable that keeps every message."""

    def __init__(self) -> None:
        self.messages: list[dict[str, Any]] = []

    async def __call__(self, message: Mapping[str, Any]) -> None:
        self.messages.append(dict(message))

    @property
    def status(self) -> int | None:
        for message in self.messages:
            if message["type"] == "http.response.start":
                return message["status"]
        return None

    @property
    def headers(self) -> dict[str, str]:
        for message in self.messages:
            if message["type"] == "http.response.start":
                return {key.decode("latin-1"): value.decode("latin-1") for key, value in message["headers"]}
        return {}

    @property
    def body(self) -> bytes:
        return b"".join(message.get("body", b"") for message in self.messages if message["type"] == "http.response.body")

    @property
    def ended(self) -> bool:
        return any(
            message["type"] == "http.response.body" and not message.get("more_body", False)
            for message in self.messages
        )


async def _idle_receive() -> Mapping[str, Any]:
    await asyncio.Event().wait()
    return {"type": "http.disconnect"}


def make_scope(
    *,
    method: str = "GET",
    path: str = "/",
    query: str = "",
    headers: Mapping[str, str] | None = None,
    http_version: str = "1.1",
    scheme: str = "http",
    client: tuple[str, int] | None = ("127.0.0.1", 50000),
) -> dict[str, Any]:
    return {
        "type": "http",
        "http_version": http_version,
        "method": method,
        "scheme": scheme,
        "path": path,
        "query_string": query.encode("latin-1"),
        "headers": [(key.lower().encode("latin-1"), value.encode("latin-1")) for key, value in (headers or {}).items()],
        "client": client,
    }


def make_context(app: Shallot | None = None, **scope: Any) -> tuple[Context, RecordingSend]:
    application = app or Shallot()
    send = RecordingSend()
    req = RawRequest(make_scope(**scope), _idle_receive)
    res = RawResponse(send)
    return application.create_context(req, res), send


__all__ = ["RecordingSend", "make_context", "make_scope"]
