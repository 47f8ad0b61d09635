"""Terminal write of a response described by a context."""

from __future__ import annotations

from typing import TYPE_CHECKING

from .bodies import BodyKind, classify_body
from .http import is_empty_status
from .serialization import json_encode

if TYPE_CHECKING:
    from .context import Context


async def respond(ctx: "Context") -> None:
    """Write ``ctx``'s response to the connection; the first matching branch wins."""

    if ctx.respond is False:
        return

    if not ctx.writable:
        return

    res = ctx.res
    response = ctx.response
    code = ctx.status

    if is_empty_status(code):
        ctx.body = None
        await res.end()
        return

    if ctx.method == "HEAD":
        if not res.headers_sent and not response.has("Content-Length"):
            length = response.length
            if isinstance(length, int):
                ctx.length = length
        await res.end()
        return

    body = response.body
    kind = classify_body(body, response._explicit_null_body)

    if kind is BodyKind.EMPTY:
        response.remove("Content-Type")
        response.remove("Transfer-Encoding")
        ctx.length = 0
        await res.end()
        return

    if kind is BodyKind.ABSENT:
        if ctx.req.http_version_major >= 2:
            fallback = str(code)
        else:
            fallback = ctx.message or str(code)
        payload = fallback.encode("utf-8")
        if not res.headers_sent:
            ctx.type = "text"
            ctx.length = len(payload)
        await res.end(payload)
        return

    if kind is BodyKind.BINARY:
        await res.end(bytes(body))
        return

    if kind is BodyKind.TEXT:
        await res.end(body)
        return

    if kind is BodyKind.STREAM:
        await res.pipe(body)
        return

    payload = json_encode(body)
    if not res.headers_sent:
        ctx.length = len(payload)
    await res.end(payload)


__all__ = ["respond"]
