from __future__ import annotations

import msgspec
import pytest

from shallot.application import Shallot
from shallot.config import AppConfig
from shallot.testing import TestClient
from tests.support import make_context


def test_query_collects_repeated_keys() -> None:
    ctx, _ = make_context(path="/search", query="q=shallot&tag=a&tag=b&empty=")
    assert ctx.request.query == {"q": "shallot", "tag": ["a", "b"], "empty": ""}
    assert ctx.query_string == "q=shallot&tag=a&tag=b&empty="


def test_path_and_query_setters_rewrite_the_url() -> None:
    ctx, _ = make_context(path="/old", query="a=1")
    ctx.path = "/new"
    assert ctx.url == "/new?a=1"
    ctx.query_string = "?b=2"
    assert ctx.url == "/new?b=2"
    ctx.query_string = ""
    assert ctx.url == "/new"


def test_method_setter_normalizes_case() -> None:
    ctx, _ = make_context()
    ctx.method = "patch"
    assert ctx.req.method == "PATCH"


def test_get_reads_headers_case_insensitively() -> None:
    ctx, _ = make_context(headers={"Referer": "https://example.com", "Accept": "text/html"})
    assert ctx.get("ACCEPT") == "text/html"
    assert ctx.get("Referrer") == "https://example.com"
    assert ctx.get("X-Missing") == ""


def test_forwarded_headers_ignored_without_proxy_trust() -> None:
    ctx, _ = make_context(
        headers={"Host": "app.test", "X-Forwarded-Host": "public.test", "X-Forwarded-Proto": "https"}
    )
    assert ctx.host == "app.test"
    assert ctx.protocol == "http"
    assert ctx.secure is False
    assert ctx.ips == []
    assert ctx.ip == "127.0.0.1"


def test_forwarded_headers_used_when_proxy_trusted() -> None:
    app = Shallot(AppConfig(proxy=True))
    ctx, _ = make_context(
        app,
        headers={
            "Host": "app.test",
            "X-Forwarded-Host": "public.test:8443, inner.test",
            "X-Forwarded-Proto": "https, http",
            "X-Forwarded-For": "10.0.0.1, 10.0.0.2",
        },
    )
    assert ctx.host == "public.test:8443"
    assert ctx.hostname == "public.test"
    assert ctx.protocol == "https"
    assert ctx.secure is True
    assert ctx.ips == ["10.0.0.1", "10.0.0.2"]
    assert ctx.ip == "10.0.0.1"


def test_ips_respect_custom_header_and_limit() -> None:
    app = Shallot(AppConfig(proxy=True, proxy_ip_header="X-Client-IPs", max_ips_count=2))
    ctx, _ = make_context(app, headers={"X-Client-IPs": "1.1.1.1, 2.2.2.2, 3.3.3.3"})
    assert ctx.ips == ["2.2.2.2", "3.3.3.3"]
    assert ctx.ip == "2.2.2.2"


def test_encrypted_scheme_is_https() -> None:
    ctx, _ = make_context(scheme="https")
    assert ctx.protocol == "https"


def test_hostname_handles_ipv6_hosts() -> None:
    ctx, _ = make_context(headers={"Host": "[::1]:3000"})
    assert ctx.hostname == "::1"
    assert ctx.subdomains == []


def test_subdomains_honour_offset() -> None:
    ctx, _ = make_context(headers={"Host": "tobi.ferrets.example.com"})
    assert ctx.subdomains == ["ferrets", "tobi"]
    app = Shallot(AppConfig(subdomain_offset=3))
    ctx, _ = make_context(app, headers={"Host": "tobi.ferrets.example.com"})
    assert ctx.subdomains == ["tobi"]


def test_subdomains_empty_for_ip_hosts() -> None:
    ctx, _ = make_context(headers={"Host": "192.168.0.1:8080"})
    assert ctx.subdomains == []


def test_http2_authority_header_supplies_host() -> None:
    ctx, _ = make_context(http_version="2", headers={":authority": "h2.test"})
    assert ctx.host == "h2.test"
    assert ctx.request.http_version_major == 2


class Greeting(msgspec.Struct):
    name: str
    excited: bool = False


@pytest.mark.asyncio
async def test_request_body_helpers() -> None:
    app = Shallot()
    seen: dict[str, object] = {}

    async def read(ctx, next):
        seen["text"] = await ctx.request.text()
        seen["model"] = await ctx.request.json(Greeting)
        seen["raw"] = await ctx.request.json()
        ctx.status = 204

    app.use(read)
    response = await TestClient(app).post("/", json={"name": "ada", "excited": True})
    assert response.status == 204
    assert seen["text"] == '{"name":"ada","excited":true}'
    assert seen["model"] == Greeting(name="ada", excited=True)
    assert seen["raw"] == {"name": "ada", "excited": True}


@pytest.mark.asyncio
async def test_empty_body_decodes_to_none() -> None:
    app = Shallot()
    seen: list[object] = []

    async def read(ctx, next):
        seen.append(await ctx.request.json())
        ctx.body = "ok"

    app.use(read)
    await TestClient(app).post("/")
    assert seen == [None]
