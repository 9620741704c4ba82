# File: tests/test_fetcher.py
from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator

import pytest
import pytest_asyncio
from aiohttp import web

from site_audit.crawler.fetcher import (
    USER_AGENTS,
    Fetcher,
    get_charset,
    resolve_user_agent,
)

from conftest import serve_app


@pytest_asyncio.fixture
async def server(unused_tcp_port: int) -> AsyncIterator[str]:
    app = web.Application()
    flaky_calls = {"n": 0}

    async def page(request):
        return web.Response(
            text=f"<h1>Hello</h1><p>{request.headers.get('User-Agent')}</p>",
            content_type="text/html",
        )

    async def big(_):
        return web.Response(text="x" * 5000, content_type="text/plain")

    async def streamed(request):
        resp = web.StreamResponse()
        resp.content_type = "text/plain"
        await resp.prepare(request)
        for _ in range(10):
            await resp.write(b"y" * 1000)
        await resp.write_eof()
        return resp

    async def slow(_):
        await asyncio.sleep(2)
        return web.Response(text="late")

    async def missing(_):
        return web.Response(status=404, text="nope")

    async def flaky(_):
        flaky_calls["n"] += 1
        if flaky_calls["n"] <= 1:
            return web.Response(status=503)
        return web.Response(text="recovered")

    async def redirect(_):
        raise web.HTTPFound("/page")

    app.router.add_get("/page", page)
    app.router.add_get("/big", big)
    app.router.add_get("/streamed", streamed)
    app.router.add_get("/slow", slow)
    app.router.add_get("/missing", missing)
    app.router.add_get("/flaky", flaky)
    app.router.add_get("/redirect", redirect)

    async for url in serve_app(app, unused_tcp_port):
        yield url


@pytest.mark.asyncio()
async def test_fetch_success(server: str):
    async with Fetcher() as fetcher:
        result = await fetcher.fetch(f"{server}/page")
    assert result.success
    assert result.status_code == 200
    assert result.headers["content-type"].startswith("text/html")
    assert "<h1>Hello</h1>" in result.data
    assert USER_AGENTS["default"] in result.data
    assert result.response_time_ms >= 0
    assert result.error is None


@pytest.mark.asyncio()
async def test_named_user_agent(server: str):
    async with Fetcher("google") as fetcher:
        result = await fetcher.fetch(f"{server}/page")
    assert "Googlebot/2.1" in result.data


@pytest.mark.asyncio()
async def test_non_2xx_is_still_a_fetch(server: str):
    async with Fetcher() as fetcher:
        result = await fetcher.fetch(f"{server}/missing")
    assert result.success
    assert result.status_code == 404
    assert result.data == "nope"


@pytest.mark.asyncio()
async def test_too_large_by_content_length(server: str):
    async with Fetcher() as fetcher:
        result = await fetcher.fetch(f"{server}/big", max_size=1000)
    assert not result.success
    assert result.error == "Response too large"


@pytest.mark.asyncio()
async def test_too_large_while_streaming(server: str):
    async with Fetcher() as fetcher:
        result = await fetcher.fetch(f"{server}/streamed", max_size=4000)
    assert not result.success
    assert result.error == "Response too large"


@pytest.mark.asyncio()
async def test_timeout(server: str):
    async with Fetcher() as fetcher:
        result = await fetcher.fetch(f"{server}/slow", timeout=0.3)
    assert not result.success
    assert result.error == "Request timeout"


@pytest.mark.asyncio()
async def test_connection_error(unused_tcp_port: int):
    async with Fetcher() as fetcher:
        result = await fetcher.fetch(f"http://localhost:{unused_tcp_port}/", timeout=2.0)
    assert not result.success
    assert result.error


@pytest.mark.asyncio()
async def test_malformed_host_is_a_failed_fetch():
    async with Fetcher() as fetcher:
        result = await fetcher.fetch("http://a..b/x", timeout=2.0)
    assert not result.success
    assert result.error


@pytest.mark.asyncio()
async def test_head_request_has_no_body(server: str):
    async with Fetcher() as fetcher:
        result = await fetcher.fetch(f"{server}/page", method="HEAD")
    assert result.success
    assert result.data == ""


@pytest.mark.asyncio()
async def test_redirect_followed(server: str):
    async with Fetcher() as fetcher:
        result = await fetcher.fetch(f"{server}/redirect")
    assert result.status_code == 200
    assert result.final_url == f"{server}/page"


@pytest.mark.asyncio()
async def test_retry_on_server_error(server: str):
    async with Fetcher(retry_times=1) as fetcher:
        result = await fetcher.fetch(f"{server}/flaky")
    assert result.status_code == 200
    assert result.data == "recovered"


@pytest.mark.asyncio()
async def test_fetch_without_session():
    with pytest.raises(RuntimeError):
        await Fetcher().fetch("http://example.com/")


def test_header_helpers():
    headers = {"content-type": 'text/HTML; charset="ISO-8859-1"'}
    assert get_charset(headers) == "ISO-8859-1"
    assert get_charset({}) == "utf-8"
    assert resolve_user_agent("twitter") == "Twitterbot/1.0"
    assert resolve_user_agent("MyBot/3.0") == "MyBot/3.0"
