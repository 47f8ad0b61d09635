"""Request facade."""

from __future__ import annotations

import ipaddress
from typing import TYPE_CHECKING, Any, Mapping, TypeVar
from urllib.parse import parse_qsl, urlsplit

import msgspec

from .serialization import json_decode
from .templates import Delegating

if TYPE_CHECKING:
    from .application import Shallot
    from .connection import RawRequest, RawResponse
    from .context import Context
    from .responses import Response

T = TypeVar("T")


def _is_ip(hostname: str) -> bool:
    try:
        ipaddress.ip_address(hostname)
    except ValueError:
        return False
    return True


class Request(Delegating):
    """Per-request view over a :class:`~shallot.connection.RawRequest`."""

    app: "Shallot"
    req: "RawRequest"
    res: "RawResponse"
    ctx: "Context"
    response: "Response"
    original_url: str

    # ------------------------------------------------------------------ request line
    @property
    def method(self) -> str:
        return self.req.method

    @method.setter
    def method(self, value: str) -> None:
        self.req.method = value.upper()

    @property
    def url(self) -> str:
        return self.req.url

    @url.setter
    def url(self, value: str) -> None:
        self.req.url = value

    @property
    def path(self) -> str:
        return urlsplit(self.url).path

    @path.setter
    def path(self, value: str) -> None:
        query = self.query_string
        self.url = f"{value}?{query}" if query else value

    @property
    def query_string(self) -> str:
        return urlsplit(self.url).query

    @query_string.setter
    def query_string(self, value: str) -> None:
        value = value.lstrip("?")
        self.url = f"{self.path}?{value}" if value else self.path

    @property
    def query(self) -> dict[str, str | list[str]]:
        """Parsed query string; repeated keys collect into lists."""

        parsed: dict[str, str | list[str]] = {}
        for key, value in parse_qsl(self.query_string, keep_blank_values=True):
            existing = parsed.get(key)
            if existing is None:
                parsed[key] = value
            elif isinstance(existing, list):
                existing.append(value)
            else:
                parsed[key] = [existing, value]
        return parsed

    @property
    def http_version_major(self) -> int:
        return self.req.http_version_major

    # ------------------------------------------------------------------ headers
    @property
    def headers(self) -> dict[str, str]:
        return self.req.headers

    def get(self, name: str) -> str:
        """Return the header ``name`` or an empty string."""

        field = name.lower()
        if field in ("referer", "referrer"):
            return self.headers.get("referrer") or self.headers.get("referer") or ""
        return self.headers.get(field, "")

    # ------------------------------------------------------------------ addressing
    @property
    def protocol(self) -> str:
        if self.req.encrypted:
            return "https"
        if not self.app.config.proxy:
            return "http"
        forwarded = self.get("X-Forwarded-Proto")
        return forwarded.split(",", 1)[0].strip() if forwarded else "http"

    @property
    def secure(self) -> bool:
        return self.protocol == "https"

    @property
    def host(self) -> str:
        host = ""
        if self.app.config.proxy:
            host = self.get("X-Forwarded-Host")
        if not host:
            host = self.get(":authority") if self.http_version_major >= 2 else ""
        if not host:
            host = self.get("Host")
        return host.split(",", 1)[0].strip()

    @property
    def hostname(self) -> str:
        host = self.host
        if not host:
            return ""
        if host.startswith("["):
            return host[1 : host.find("]")] if "]" in host else host
        return host.split(":", 1)[0]

    @property
    def ips(self) -> list[str]:
        config = self.app.config
        if not config.proxy:
            return []
        raw = self.get(config.proxy_ip_header)
        ips = [entry.strip() for entry in raw.split(",") if entry.strip()]
        if config.max_ips_count > 0:
            ips = ips[-config.max_ips_count :]
        return ips

    @property
    def ip(self) -> str:
        ips = self.ips
        if ips:
            return ips[0]
        return self.req.remote_address or ""

    @property
    def subdomains(self) -> list[str]:
        hostname = self.hostname
        if not hostname or _is_ip(hostname):
            return []
        labels = hostname.split(".")
        labels.reverse()
        return labels[self.app.config.subdomain_offset :]

    # ------------------------------------------------------------------ body
    async def body(self) -> bytes:
        return await self.req.body()

    async def text(self) -> str:
        return (await self.body()).decode()

    async def json(self, model: type[T] | None = None) -> T | Any:
        """Decode the JSON body using :mod:`msgspec`."""

        cache = self.__dict__.get("_json_cache", msgspec.UNSET)
        if cache is msgspec.UNSET:
            payload = await self.body()
            cache = json_decode(payload) if payload else None
            self.__dict__["_json_cache"] = cache
        if model is None:
            return cache
        return msgspec.convert(cache, type=model)

    def to_json(self) -> Mapping[str, Any]:
        return {"method": self.method, "url": self.url, "headers": dict(self.headers)}
