# File: tests/conftest.py
from __future__ import annotations

from collections.abc import AsyncIterator
from typing import Dict, List, Optional

import pytest
from aiohttp import web

from site_audit.config import CrawlOptions
from site_audit.crawler.models import FetchResult


def html_page(
    *,
    title: Optional[str] = "Page",
    description: Optional[str] = "A page description",
    h1: Optional[str] = "Heading",
    h2s: tuple = ("Section",),
    links: tuple = (),
    body: str = "",
) -> str:
    """Build a small HTML document with only the requested elements."""
    head = ""
    if title is not None:
        head += f"<title>{title}</title>"
    if description is not None:
        head += f'<meta name="description" content="{description}">'
    parts = []
    if h1 is not None:
        parts.append(f"<h1>{h1}</h1>")
    parts.extend(f"<h2>{h2}</h2>" for h2 in h2s)
    parts.extend(f'<a href="{href}">{href}</a>' for href in links)
    parts.append(body)
    return f"<html><head>{head}</head><body>{''.join(parts)}</body></html>"


def ok(html: str, status: int = 200) -> FetchResult:
    return FetchResult(
        success=True,
        status_code=status,
        headers={"content-type": "text/html; charset=utf-8"},
        data=html,
        response_time_ms=5.0,
    )


def text(body: str, status: int = 200) -> FetchResult:
    return FetchResult(
        success=True,
        status_code=status,
        headers={"content-type": "text/plain"},
        data=body,
        response_time_ms=1.0,
    )


def failed(error: str = "Request timeout") -> FetchResult:
    return FetchResult(success=False, error=error)


class FakeFetcher:
    """In-memory stand-in for :class:`site_audit.crawler.fetcher.Fetcher`.

    ``routes`` maps absolute URLs to prepared results; unknown URLs answer 404.
    Every requested URL is recorded in ``calls`` in request order.
    """

    def __init__(self, routes: Dict[str, FetchResult]):
        self.routes = routes
        self.calls: List[str] = []

    async def fetch(self, url, *, timeout=10.0, max_size=0, user_agent=None, method="GET"):
        self.calls.append(url)
        return self.routes.get(url, text("Not Found", status=404))

    @property
    def page_calls(self) -> List[str]:
        return [u for u in self.calls if not u.endswith(("/robots.txt", "/sitemap.xml"))]


async def serve_app(app: web.Application, port: int) -> AsyncIterator[str]:
    """Start *app* on *port*, yield base URL, ensure cleanup."""
    runner = web.AppRunner(app)
    await runner.setup()
    site = web.TCPSite(runner, "localhost", port)
    await site.start()
    try:
        yield f"http://localhost:{port}"
    finally:
        await runner.cleanup()


@pytest.fixture()
def options() -> CrawlOptions:
    """Crawl options for tests: no politeness delay, loopback hosts allowed."""
    return CrawlOptions(delay=0, timeout=2.0, allow_private_networks=True)
