"""Application core."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from typing import Any, Awaitable, Callable, Mapping, TextIO

import msgspec
from msgspec import structs

from .config import AppConfig, AppSummary
from .connection import RawRequest, RawResponse
from .context import Context
from .exceptions import HTTPError
from .finalize import respond
from .middleware import Dispatch, MiddlewareCallable, compose
from .reporting import DefaultErrorHandler, ErrorHandler
from .requests import Request
from .responses import Response
from .server import ServerConfig, run
from .templates import Template

logger = logging.getLogger(__name__)

RequestCallback = Callable[[RawRequest, RawResponse], Awaitable[None]]


class Shallot:
    """Central application object.

    Holds the middleware sequence and the three templates that every
    per-request :class:`~shallot.context.Context`,
    :class:`~shallot.requests.Request` and :class:`~shallot.responses.Response`
    delegate to. Instances are ASGI applications.
    """

    HTTPError = HTTPError

    def __init__(
        self,
        config: AppConfig | None = None,
        *,
        error_handler: ErrorHandler | None = None,
        error_stream: TextIO | None = None,
    ) -> None:
        self.config = config or AppConfig()
        self.silent = self.config.silent
        self.middleware: list[MiddlewareCallable] = []
        self.context = Template()
        self.request = Template()
        self.response = Template()
        self.error_stream = error_stream
        self._error_handler = error_handler
        self._callback: RequestCallback | None = None

    @classmethod
    def from_config(cls, config: AppConfig | Mapping[str, Any], **kwargs: Any) -> "Shallot":
        if isinstance(config, AppConfig):
            return cls(config=config, **kwargs)
        return cls(config=msgspec.convert(config, type=AppConfig), **kwargs)

    # ------------------------------------------------------------------ settings
    @property
    def env(self) -> str:
        return self.config.env

    @property
    def proxy(self) -> bool:
        return self.config.proxy

    @property
    def subdomain_offset(self) -> int:
        return self.config.subdomain_offset

    @property
    def keys(self) -> tuple[str, ...]:
        return self.config.keys

    def summary(self) -> AppSummary:
        return AppSummary(subdomain_offset=self.subdomain_offset, proxy=self.proxy, env=self.env)

    def to_json(self) -> dict[str, Any]:
        return structs.asdict(self.summary())

    def __repr__(self) -> str:
        return f"<Shallot {self.to_json()!r}>"

    # ------------------------------------------------------------------ middleware
    def use(self, middleware: MiddlewareCallable) -> "Shallot":
        """Append ``middleware`` to the pipeline and return the application."""

        if not callable(middleware):
            raise TypeError("middleware must be callable!")
        logger.debug("use %s", getattr(middleware, "__name__", None) or "-")
        if self._callback is not None:
            logger.warning(
                "middleware %r registered after the request callback was built; "
                "it only applies to callbacks built from now on",
                middleware,
            )
        self.middleware.append(middleware)
        return self

    # ------------------------------------------------------------------ errors
    def on_error(self, handler: ErrorHandler) -> ErrorHandler:
        """Replace the default error reporter with ``handler``."""

        self._error_handler = handler
        return handler

    @property
    def error_handler(self) -> ErrorHandler:
        return self._error_handler or self.onerror

    def report_error(self, err: Any, ctx: Context | None = None) -> None:
        self.error_handler(err, ctx)

    def onerror(self, err: Any, ctx: Context | None = None) -> None:
        """Default error handler."""

        DefaultErrorHandler(silent=self.silent, stream=self.error_stream)(err, ctx)

    # ------------------------------------------------------------------ request handling
    def callback(self) -> RequestCallback:
        """Return a request callback bound to a snapshot of the middleware sequence."""

        fn = compose(self.middleware)

        async def handle(req: RawRequest, res: RawResponse) -> None:
            ctx = self.create_context(req, res)
            await self.handle_request(ctx, fn)

        return handle

    async def handle_request(self, ctx: Context, fn: Dispatch) -> None:
        res = ctx.res
        res.status_code = 404
        res.on_finished(ctx.onerror)
        watcher = asyncio.create_task(_watch_connection(ctx.req, res))
        try:
            await fn(ctx)
            await respond(ctx)
        except Exception as exc:
            await ctx.onerror(exc)
        finally:
            watcher.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await watcher

    def create_context(self, req: RawRequest, res: RawResponse) -> Context:
        context = Context(self.context)
        request = context.request = Request(self.request)
        response = context.response = Response(self.response)
        context.app = request.app = response.app = self
        context.req = request.req = response.req = req
        context.res = request.res = response.res = res
        request.ctx = response.ctx = context
        request.response = response
        response.request = request
        context.original_url = request.original_url = req.url
        context.state = {}
        return context

    def listen(self, *args: Any, **kwargs: Any) -> Any:
        """Serve the application with granian; arguments build a :class:`ServerConfig`."""

        config = ServerConfig(*args, **kwargs)
        logger.debug("listen %s:%s", config.host, config.port)
        return run(self, config)

    # ------------------------------------------------------------------ interface adapters
    async def __call__(
        self,
        scope: Mapping[str, Any],
        receive: Callable[[], Awaitable[Mapping[str, Any]]],
        send: Callable[[Mapping[str, Any]], Awaitable[None]],
    ) -> None:
        scope_type = scope.get("type")
        if scope_type == "http":
            await self._handle_http(scope, receive, send)
            return
        if scope_type == "lifespan":
            await self._handle_lifespan(receive, send)
            return
        raise RuntimeError("Shallot only supports HTTP and lifespan scopes")

    async def _handle_http(
        self,
        scope: Mapping[str, Any],
        receive: Callable[[], Awaitable[Mapping[str, Any]]],
        send: Callable[[Mapping[str, Any]], Awaitable[None]],
    ) -> None:
        if self._callback is None:
            self._callback = self.callback()
        await self._callback(RawRequest(scope, receive), RawResponse(send))

    async def _handle_lifespan(
        self,
        receive: Callable[[], Awaitable[Mapping[str, Any]]],
        send: Callable[[Mapping[str, Any]], Awaitable[None]],
    ) -> None:
        while True:
            message = await receive()
            message_type = message.get("type")
            if message_type == "lifespan.startup":
                await send({"type": "lifespan.startup.complete"})
            elif message_type == "lifespan.shutdown":
                await send({"type": "lifespan.shutdown.complete"})
                return


async def _watch_connection(req: RawRequest, res: RawResponse) -> None:
    await req.pump()
    await res.abort()
