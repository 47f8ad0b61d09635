"""Raw connection objects wrapping an ASGI HTTP exchange."""

from __future__ import annotations

import asyncio
import inspect
import logging
from collections.abc import AsyncIterable, AsyncIterator
from typing import Any, Awaitable, Callable, Mapping

from .exceptions import ShallotError

logger = logging.getLogger(__name__)

Receive = Callable[[], Awaitable[Mapping[str, Any]]]
Send = Callable[[Mapping[str, Any]], Awaitable[None]]
FinishedObserver = Callable[[BaseException | None], Awaitable[None] | None]
HeaderValue = str | list[str]


class ConnectionAborted(ShallotError):
    """The client went away before the response was finished."""

    code = "ECONNRESET"

    def __init__(self, message: str = "request aborted") -> None:
        super().__init__(message)


def _http_version_major(raw: str | None) -> int:
    if not raw:
        return 1
    head = raw.split(".", 1)[0]
    try:
        return int(head)
    except ValueError:
        return 1


class RawRequest:
    """Inbound side of a connection: request line, headers and the body channel."""

    def __init__(self, scope: Mapping[str, Any], receive: Receive) -> None:
        self.scope = scope
        self.method: str = str(scope.get("method", "GET")).upper()
        path = scope.get("raw_path")
        if isinstance(path, bytes):
            path = path.decode("latin-1")
        if not path:
            path = scope.get("path") or "/"
        query = (scope.get("query_string") or b"").decode("latin-1")
        self.url: str = f"{path}?{query}" if query else path
        self.http_version: str = str(scope.get("http_version") or "1.1")
        self.http_version_major = _http_version_major(self.http_version)
        headers: dict[str, str] = {}
        for key, value in scope.get("headers", []):
            name = key.decode("latin-1").lower()
            text = value.decode("latin-1")
            headers[name] = f"{headers[name]}, {text}" if name in headers else text
        self.headers = headers
        client = scope.get("client")
        self.remote_address: str | None = client[0] if client else None
        self.encrypted = scope.get("scheme") in ("https", "wss")
        self._receive = receive
        self._buffer = bytearray()
        self._body_complete = asyncio.Event()
        self._disconnected = asyncio.Event()

    @property
    def disconnected(self) -> bool:
        return self._disconnected.is_set()

    async def pump(self) -> None:
        """Drain ``receive`` into the body buffer until the client disconnects."""

        while not self._disconnected.is_set():
            message = await self._receive()
            message_type = message.get("type")
            if message_type == "http.request":
                chunk = message.get("body", b"")
                if chunk:
                    self._buffer.extend(chunk)
                if not message.get("more_body", False):
                    self._body_complete.set()
            elif message_type == "http.disconnect":
                self._disconnected.set()
                self._body_complete.set()

    async def body(self) -> bytes:
        await self._body_complete.wait()
        return bytes(self._buffer)


class RawResponse:
    """Outbound side of a connection.

    Headers accumulate locally until the first write; ``end`` and ``pipe`` are
    the only operations that put bytes on the wire. Observers registered with
    :meth:`on_finished` fire exactly once, with ``None`` when the response was
    written completely and with :class:`ConnectionAborted` when the client left
    first.
    """

    def __init__(self, send: Send) -> None:
        self.status_code = 200
        self.status_message: str | None = None
        self.headers: dict[str, HeaderValue] = {}
        self.headers_sent = False
        self.finished = False
        self.aborted = False
        self._send = send
        self._observers: list[FinishedObserver] = []
        self._late_notifications: set[asyncio.Task[None]] = set()
        self._settled = False

    @property
    def writable(self) -> bool:
        return not (self.finished or self.aborted)

    def on_finished(self, observer: FinishedObserver) -> None:
        if self._settled:
            error = ConnectionAborted() if self.aborted else None
            task = asyncio.get_running_loop().create_task(_notify(observer, error))
            self._late_notifications.add(task)
            task.add_done_callback(self._late_notifications.discard)
            task.add_done_callback(_log_observer_error)
            return
        self._observers.append(observer)

    def header_items(self) -> list[tuple[bytes, bytes]]:
        items: list[tuple[bytes, bytes]] = []
        for name, value in self.headers.items():
            values = value if isinstance(value, list) else [value]
            for entry in values:
                items.append((name.encode("latin-1"), str(entry).encode("latin-1")))
        return items

    async def write_head(self) -> None:
        if self.headers_sent:
            return
        self.headers_sent = True
        await self._send(
            {
                "type": "http.response.start",
                "status": self.status_code,
                "headers": self.header_items(),
            }
        )

    async def end(self, body: bytes | str | None = None) -> None:
        if not self.writable:
            return
        if isinstance(body, str):
            body = body.encode("utf-8")
        await self.write_head()
        await self._send({"type": "http.response.body", "body": bytes(body or b""), "more_body": False})
        self.finished = True
        await self._settle(None)

    async def pipe(self, stream: AsyncIterable[bytes | str]) -> None:
        iterator = _ensure_async_iterator(stream)
        await self.write_head()
        async for chunk in iterator:
            if self.aborted:
                break
            if isinstance(chunk, str):
                chunk = chunk.encode("utf-8")
            await self._send({"type": "http.response.body", "body": bytes(chunk), "more_body": True})
        await self.end()

    async def abort(self) -> None:
        """Mark the connection as torn down by the client."""

        if self.finished or self.aborted:
            return
        self.aborted = True
        await self._settle(ConnectionAborted())

    async def _settle(self, error: BaseException | None) -> None:
        if self._settled:
            return
        self._settled = True
        observers, self._observers = self._observers, []
        for observer in observers:
            await _notify(observer, error)


async def _notify(observer: FinishedObserver, error: BaseException | None) -> None:
    result = observer(error)
    if inspect.isawaitable(result):
        await result


def _log_observer_error(task: asyncio.Task[None]) -> None:
    if task.cancelled():
        return
    error = task.exception()
    if error is not None:
        logger.error("finished observer failed", exc_info=error)


def _ensure_async_iterator(stream: AsyncIterable[bytes | str]) -> AsyncIterator[bytes | str]:
    if isinstance(stream, AsyncIterator):
        return stream
    return stream.__aiter__()


__all__ = ["ConnectionAborted", "RawRequest", "RawResponse"]
