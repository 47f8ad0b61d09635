"""Response facade."""

from __future__ import annotations

import mimetypes
import re
from typing import TYPE_CHECKING, Any, Iterable, Mapping

from .bodies import is_binary, is_stream
from .http import ensure_status, is_empty_status, status_message
from .serialization import json_encode
from .templates import Delegating

if TYPE_CHECKING:
    from .application import Shallot
    from .connection import HeaderValue, RawRequest, RawResponse
    from .context import Context
    from .requests import Request

_TYPE_ALIASES: dict[str, str] = {
    "text": "text/plain",
    "txt": "text/plain",
    "html": "text/html",
    "json": "application/json",
    "bin": "application/octet-stream",
}

_HTML_PREFIX = re.compile(r"^\s*<")


def content_type_for(value: str) -> str | None:
    """Expand a short type name or extension into a full content-type header."""

    if "/" in value:
        mime = value
    else:
        short = value.lstrip(".").lower()
        mime = _TYPE_ALIASES.get(short) or mimetypes.types_map.get(f".{short}")
        if mime is None:
            return None
    if "charset" not in mime and (mime.startswith("text/") or mime == "application/json"):
        mime = f"{mime}; charset=utf-8"
    return mime


class Response(Delegating):
    """Per-request view over a :class:`~shallot.connection.RawResponse`."""

    app: "Shallot"
    req: "RawRequest"
    res: "RawResponse"
    ctx: "Context"
    request: "Request"

    _body: Any = None
    _explicit_status = False
    _explicit_null_body = False

    # ------------------------------------------------------------------ status
    @property
    def status(self) -> int:
        return self.res.status_code

    @status.setter
    def status(self, value: int) -> None:
        if self.headers_sent:
            return
        code = ensure_status(value)
        self._explicit_status = True
        self.res.status_code = code
        if self.req.http_version_major < 2:
            self.res.status_message = status_message(code)
        if self._body is not None and is_empty_status(code):
            self.body = None

    @property
    def message(self) -> str:
        return self.res.status_message or status_message(self.status) or ""

    @message.setter
    def message(self, value: str) -> None:
        self.res.status_message = value

    # ------------------------------------------------------------------ body
    @property
    def body(self) -> Any:
        return self._body

    @body.setter
    def body(self, value: Any) -> None:
        original = self._body
        self._body = value

        if value is None:
            if not is_empty_status(self.status):
                if self.type == "application/json":
                    self._body = "null"
                    return
                self.status = 204
            self._explicit_null_body = True
            self.remove("Content-Type")
            self.remove("Content-Length")
            self.remove("Transfer-Encoding")
            return

        if not self._explicit_status:
            self.status = 200

        set_type = not self.has("Content-Type")

        if isinstance(value, str):
            if set_type:
                self.type = "html" if _HTML_PREFIX.match(value) else "text"
            self.length = len(value.encode("utf-8"))
            return

        if is_binary(value):
            if set_type:
                self.type = "bin"
            self.length = len(value)
            return

        if is_stream(value):
            if original is not None and original is not value:
                self.remove("Content-Length")
            if set_type:
                self.type = "bin"
            return

        self.remove("Content-Length")
        self.type = "json"

    @property
    def length(self) -> int | None:
        """Content length from the header, or computed from the current body."""

        if self.has("Content-Length"):
            try:
                return int(self.get("Content-Length"))
            except ValueError:
                return None
        body = self._body
        if body is None or is_stream(body):
            return None
        if isinstance(body, str):
            return len(body.encode("utf-8"))
        if is_binary(body):
            return len(body)
        return len(json_encode(body))

    @length.setter
    def length(self, value: int) -> None:
        if not self.has("Transfer-Encoding"):
            self.set("Content-Length", str(value))

    @property
    def type(self) -> str:
        value = self.get("Content-Type")
        return value.split(";", 1)[0].strip() if value else ""

    @type.setter
    def type(self, value: str | None) -> None:
        mime = content_type_for(value) if value else None
        if mime:
            self.set("Content-Type", mime)
        else:
            self.remove("Content-Type")

    # ------------------------------------------------------------------ headers
    @property
    def headers(self) -> dict[str, "HeaderValue"]:
        return self.res.headers

    @property
    def headers_sent(self) -> bool:
        return self.res.headers_sent

    @property
    def writable(self) -> bool:
        return self.res.writable

    def has(self, field: str) -> bool:
        return field.lower() in self.res.headers

    def get(self, field: str) -> "HeaderValue":
        return self.res.headers.get(field.lower(), "")

    def set(self, field: str | Mapping[str, Any], value: Any = None) -> None:
        if self.headers_sent:
            return
        if isinstance(field, Mapping):
            for key, item in field.items():
                self.set(key, item)
            return
        if isinstance(value, (list, tuple)):
            self.res.headers[field.lower()] = [str(item) for item in value]
        else:
            self.res.headers[field.lower()] = str(value)

    def append(self, field: str, value: str | Iterable[str]) -> None:
        existing = self.get(field)
        additions = [value] if isinstance(value, str) else list(value)
        if not existing:
            self.set(field, additions if len(additions) > 1 else additions[0])
            return
        current = existing if isinstance(existing, list) else [existing]
        self.set(field, current + additions)

    def remove(self, field: str) -> None:
        if self.headers_sent:
            return
        self.res.headers.pop(field.lower(), None)

    def to_json(self) -> Mapping[str, Any]:
        return {"status": self.status, "message": self.message, "headers": dict(self.headers)}


__all__ = ["Response", "content_type_for"]
