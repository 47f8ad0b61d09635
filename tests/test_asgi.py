from __future__ import annotations

import asyncio
from typing import Mapping

import pytest

from shallot.application import Shallot
from shallot.testing import TestClient


@pytest.mark.asyncio
async def test_asgi_interface_handles_request() -> None:
    app = Shallot()

    async def ping(ctx, next):
        ctx.body = "pong"

    app.use(ping)
    messages: list[dict[str, object]] = []
    incoming = [{"type": "http.request", "body": b"", "more_body": False}]

    async def receive() -> Mapping[str, object]:
        if incoming:
            return incoming.pop(0)
        await asyncio.Event().wait()
        return {"type": "http.disconnect"}

    async def send(message: Mapping[str, object]) -> None:
        messages.append(dict(message))

    await app(
        {
            "type": "http",
            "method": "GET",
            "path": "/ping",
            "query_string": b"",
            "headers": [(b"host", b"example.com")],
        },
        receive,
        send,
    )
    assert messages[0]["status"] == 200
    assert messages[1]["body"] == b"pong"


@pytest.mark.asyncio
async def test_request_body_arrives_in_chunks() -> None:
    app = Shallot()

    async def echo(ctx, next):
        ctx.body = await ctx.request.body()

    app.use(echo)
    messages: list[dict[str, object]] = []
    incoming = [
        {"type": "http.request", "body": b"hello ", "more_body": True},
        {"type": "http.request", "body": b"world", "more_body": False},
    ]

    async def receive() -> Mapping[str, object]:
        if incoming:
            return incoming.pop(0)
        await asyncio.Event().wait()
        return {"type": "http.disconnect"}

    async def send(message: Mapping[str, object]) -> None:
        messages.append(dict(message))

    await app({"type": "http", "method": "POST", "path": "/", "headers": []}, receive, send)
    assert messages[1]["body"] == b"hello world"


@pytest.mark.asyncio
async def test_head_through_the_client_has_no_body() -> None:
    app = Shallot()

    async def page(ctx, next):
        ctx.body = "hello"

    app.use(page)
    response = await TestClient(app).head("/")
    assert response.status == 200
    assert response.body == b""
    assert response.header("content-length") == "5"


@pytest.mark.asyncio
async def test_http2_fallback_body_is_the_status_code() -> None:
    response = await TestClient(Shallot()).get("/", http_version="2")
    assert response.status == 404
    assert response.text == "404"


@pytest.mark.asyncio
async def test_streamed_response_through_the_client() -> None:
    app = Shallot()

    async def numbers():
        for value in range(3):
            yield f"{value};"

    async def stream(ctx, next):
        ctx.type = "text"
        ctx.body = numbers()

    app.use(stream)
    response = await TestClient(app).get("/")
    assert response.complete is True
    assert response.chunks == [b"0;", b"1;", b"2;", b""]
    assert response.text == "0;1;2;"
    assert response.header("content-type") == "text/plain; charset=utf-8"


@pytest.mark.asyncio
async def test_respond_bypass_lets_middleware_write() -> None:
    app = Shallot()

    async def manual(ctx, next):
        ctx.respond = False
        ctx.res.status_code = 202
        ctx.res.headers["x-manual"] = "1"
        await ctx.res.end("accepted")

    app.use(manual)
    response = await TestClient(app).get("/")
    assert response.status == 202
    assert response.text == "accepted"
    assert response.header("x-manual") == "1"
