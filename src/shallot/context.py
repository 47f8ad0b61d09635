"""Per-request context joining the raw connection with both facades."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Mapping, NoReturn

from .exceptions import create_error
from .http import reason_phrase
from .templates import Delegating

if TYPE_CHECKING:
    from .application import Shallot
    from .connection import RawRequest, RawResponse
    from .requests import Request
    from .responses import Response


def _delegate(target: str, name: str, *, writable: bool = True) -> property:
    def getter(self: "Context") -> Any:
        return getattr(getattr(self, target), name)

    if not writable:
        return property(getter, doc=f"Read-only alias for ``{target}.{name}``.")

    def setter(self: "Context", value: Any) -> None:
        setattr(getattr(self, target), name, value)

    return property(getter, setter, doc=f"Alias for ``{target}.{name}``.")


def _delegate_method(target: str, name: str) -> Any:
    def method(self: "Context", *args: Any, **kwargs: Any) -> Any:
        return getattr(getattr(self, target), name)(*args, **kwargs)

    method.__name__ = name
    method.__doc__ = f"Call ``{target}.{name}``."
    return method


def _error_status(err: Any) -> int:
    status = getattr(err, "status", None)
    if isinstance(status, int) and not isinstance(status, bool) and 400 <= status < 600:
        return status
    return 500


class Context(Delegating):
    """Unifying handle passed to every middleware."""

    app: "Shallot"
    req: "RawRequest"
    res: "RawResponse"
    request: "Request"
    response: "Response"
    original_url: str
    state: dict[str, Any]

    respond = True

    # response aliases
    status = _delegate("response", "status")
    message = _delegate("response", "message")
    body = _delegate("response", "body")
    length = _delegate("response", "length")
    type = _delegate("response", "type")
    headers_sent = _delegate("response", "headers_sent", writable=False)
    writable = _delegate("response", "writable", writable=False)
    set = _delegate_method("response", "set")
    append = _delegate_method("response", "append")
    remove = _delegate_method("response", "remove")
    has = _delegate_method("response", "has")

    # request aliases
    method = _delegate("request", "method")
    url = _delegate("request", "url")
    path = _delegate("request", "path")
    query_string = _delegate("request", "query_string")
    query = _delegate("request", "query", writable=False)
    headers = _delegate("request", "headers", writable=False)
    protocol = _delegate("request", "protocol", writable=False)
    secure = _delegate("request", "secure", writable=False)
    host = _delegate("request", "host", writable=False)
    hostname = _delegate("request", "hostname", writable=False)
    ip = _delegate("request", "ip", writable=False)
    ips = _delegate("request", "ips", writable=False)
    subdomains = _delegate("request", "subdomains", writable=False)
    get = _delegate_method("request", "get")

    def throw(self, status: int = 500, detail: Any = None, **props: Any) -> NoReturn:
        """Raise an :class:`~shallot.exceptions.HTTPError` for ``status``."""

        raise create_error(status, detail, **props)

    async def onerror(self, err: Any) -> None:
        """Report ``err`` and, while the connection allows it, answer with an error response."""

        if err is None:
            return

        headers_sent = self.headers_sent or not self.writable
        if headers_sent and isinstance(err, BaseException):
            err.headers_sent = True  # type: ignore[attr-defined]

        self.app.report_error(err, self)

        if headers_sent:
            return

        res = self.res
        res.headers.clear()
        extra = getattr(err, "headers", None)
        if isinstance(extra, Mapping):
            self.set(extra)
        self.type = "text"
        status = _error_status(err)
        text = str(err) if getattr(err, "expose", False) else reason_phrase(status)
        self.status = status
        payload = text.encode("utf-8")
        self.length = len(payload)
        await res.end(payload)

    def to_json(self) -> Mapping[str, Any]:
        return {
            "request": self.request.to_json(),
            "response": self.response.to_json(),
            "app": self.app.to_json(),
            "original_url": self.original_url,
            "req": "<original asgi request>",
            "res": "<original asgi response>",
        }

    def __repr__(self) -> str:
        return f"<Context {self.method} {self.original_url}>"


__all__ = ["Context"]
