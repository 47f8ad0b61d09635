"""Middleware composition primitives."""

from __future__ import annotations

import inspect
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Coroutine, Iterable, Protocol

if TYPE_CHECKING:  # pragma: no cover - typing only
    from .context import Context

Next = Callable[[], Awaitable[Any]]


class Middleware(Protocol):
    async def __call__(self, ctx: "Context", next: Next) -> Any:  # pragma: no cover - protocol
        ...


MiddlewareCallable = Callable[["Context", Next], Awaitable[Any] | Any]
Dispatch = Callable[..., Awaitable[Any]]


def compose(middlewares: Iterable[MiddlewareCallable]) -> Dispatch:
    """Compose ``middlewares`` into a single ``dispatch(ctx, index=0)`` coroutine function.

    Each layer receives the context and a ``next`` continuation running the
    remaining layers. The sequence is captured when ``compose`` is called, so
    later additions to the source list are not observed. Synchronous layers
    should return ``next()``; a continuation that a layer calls but never awaits
    is awaited once the layer returns.
    """

    pipeline = _MiddlewarePipeline(tuple(middlewares))

    async def dispatch(ctx: "Context", index: int = 0) -> Any:
        return await pipeline.run(ctx, index)

    return dispatch


class _MiddlewarePipeline:
    __slots__ = ("_middlewares",)

    def __init__(self, middlewares: tuple[MiddlewareCallable, ...]) -> None:
        self._middlewares = middlewares

    def __len__(self) -> int:
        return len(self._middlewares)

    async def run(self, ctx: "Context", index: int) -> Any:
        return await self._invoke(_Run(index - 1), ctx, index)

    async def _invoke(self, run: "_Run", ctx: "Context", index: int) -> Any:
        if index <= run.index:
            raise RuntimeError("next() called multiple times")
        run.index = index
        if index >= len(self._middlewares):
            return None
        middleware = self._middlewares[index]
        handler = _NextHandler(self, run, ctx, index + 1)
        result = middleware(ctx, handler)
        if inspect.isawaitable(result):
            result = await result
        pending = handler.unawaited()
        if pending is not None:
            # next() was called but its continuation never awaited.
            await pending
        return result


class _Run:
    """Highest layer index entered during one pipeline run."""

    __slots__ = ("index",)

    def __init__(self, index: int) -> None:
        self.index = index


class _NextHandler:
    __slots__ = ("_call", "_ctx", "_index", "_pipeline", "_run")

    def __init__(self, pipeline: _MiddlewarePipeline, run: _Run, ctx: "Context", index: int) -> None:
        self._pipeline = pipeline
        self._run = run
        self._ctx = ctx
        self._index = index
        self._call: Coroutine[Any, Any, Any] | None = None

    def __call__(self) -> Coroutine[Any, Any, Any]:
        self._call = self._pipeline._invoke(self._run, self._ctx, self._index)
        return self._call

    def unawaited(self) -> Coroutine[Any, Any, Any] | None:
        call = self._call
        if call is not None and inspect.getcoroutinestate(call) == inspect.CORO_CREATED:
            return call
        return None


__all__ = ["Middleware", "MiddlewareCallable", "Next", "compose"]
