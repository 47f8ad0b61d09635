"""Error reporting strategies."""

from __future__ import annotations

import sys
import traceback
from typing import TYPE_CHECKING, Any, Callable, TextIO

from .serialization import describe

if TYPE_CHECKING:
    from .context import Context

ErrorHandler = Callable[[Any, "Context | None"], None]


def format_error(err: BaseException) -> str:
    """Render ``err`` with its traceback, every line indented by two spaces."""

    if err.__traceback__ is not None:
        text = "".join(traceback.format_exception(type(err), err, err.__traceback__)).rstrip("\n")
    else:
        text = f"{type(err).__name__}: {err}" if str(err) else type(err).__name__
    indented = "\n".join(f"  {line}" for line in text.split("\n"))
    return f"\n{indented}\n"


class DefaultErrorHandler:
    """Fallback reporter used when the application was not given its own handler.

    Errors that are expected to reach clients (404s and errors flagged with
    ``expose``) are not printed, nor is anything in silent mode.
    """

    def __init__(self, *, silent: bool = False, stream: TextIO | None = None) -> None:
        self.silent = silent
        self._stream = stream

    @property
    def stream(self) -> TextIO:
        return self._stream if self._stream is not None else sys.stderr

    def __call__(self, err: Any, ctx: "Context | None" = None) -> None:
        if not isinstance(err, BaseException):
            raise TypeError(f"non-error thrown: {describe(err)}")

        if getattr(err, "status", None) == 404 or getattr(err, "expose", False):
            return
        if self.silent:
            return

        self.stream.write(format_error(err) + "\n")
        self.stream.flush()


__all__ = ["DefaultErrorHandler", "ErrorHandler", "format_error"]
