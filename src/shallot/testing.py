"""Testing helpers."""

from __future__ import annotations

import asyncio
from typing import Any, ClassVar, Mapping
from urllib.parse import urlencode

import msgspec

from .application import Shallot
from .serialization import json_decode, json_encode


class TestResponse(msgspec.Struct):
    """Response captured from the ASGI ``send`` channel."""

    __test__: ClassVar[bool] = False

    status: int | None = None
    headers: tuple[tuple[str, str], ...] = ()
    chunks: list[bytes] = msgspec.field(default_factory=list)
    complete: bool = False

    @property
    def body(self) -> bytes:
        return b"".join(self.chunks)

    @property
    def text(self) -> str:
        return self.body.decode()

    def json(self) -> Any:
        return json_decode(self.body)

    def header(self, name: str, default: str | None = None) -> str | None:
        field = name.lower()
        for key, value in self.headers:
            if key == field:
                return value
        return default


class TestClient:
    """Async test client that executes requests in-process."""

    __test__ = False

    def __init__(self, app: Shallot, *, client: tuple[str, int] = ("127.0.0.1", 50000)) -> None:
        self.app = app
        self.client = client

    async def request(
        self,
        method: str,
        path: str,
        *,
        json: Any | None = None,
        body: bytes | None = None,
        query: Mapping[str, Any] | None = None,
        headers: Mapping[str, str] | None = None,
        http_version: str = "1.1",
        scheme: str = "http",
        disconnect: asyncio.Event | None = None,
    ) -> TestResponse:
        """Run one request through the application.

        When ``disconnect`` is given, the client goes away as soon as the event
        is set instead of waiting for the response to complete.
        """

        payload = body or b""
        request_headers = {"host": "testserver"}
        request_headers.update({key.lower(): value for key, value in (headers or {}).items()})
        if json is not None:
            payload = json_encode(json)
            request_headers.setdefault("content-type", "application/json")
        query_string = urlencode(query or {}, doseq=True)
        scope = {
            "type": "http",
            "asgi": {"version": "3.0"},
            "http_version": http_version,
            "method": method.upper(),
            "scheme": scheme,
            "path": path,
            "raw_path": path.encode("latin-1"),
            "query_string": query_string.encode("latin-1"),
            "headers": [(key.encode("latin-1"), value.encode("latin-1")) for key, value in request_headers.items()],
            "client": self.client,
            "server": ("testserver", 80),
        }
        response = TestResponse()
        finished = asyncio.Event()
        hangup = disconnect or finished
        sent_body = False

        async def receive() -> Mapping[str, Any]:
            nonlocal sent_body
            if not sent_body:
                sent_body = True
                return {"type": "http.request", "body": payload, "more_body": False}
            await hangup.wait()
            return {"type": "http.disconnect"}

        async def send(message: Mapping[str, Any]) -> None:
            if message["type"] == "http.response.start":
                response.status = message["status"]
                response.headers = tuple(
                    (key.decode("latin-1"), value.decode("latin-1")) for key, value in message.get("headers", [])
                )
                return
            if message["type"] == "http.response.body":
                response.chunks.append(message.get("body", b""))
                if not message.get("more_body", False):
                    response.complete = True
                    finished.set()

        await self.app(scope, receive, send)
        return response

    async def get(self, path: str, **kwargs: Any) -> TestResponse:
        return await self.request("GET", path, **kwargs)

    async def head(self, path: str, **kwargs: Any) -> TestResponse:
        return await self.request("HEAD", path, **kwargs)

    async def post(self, path: str, **kwargs: Any) -> TestResponse:
        return await self.request("POST", path, **kwargs)
