# site_audit/crawler/fetcher.py
"""
Fetcher module: HTTP GET/HEAD requests with a timeout, a body size limit and
optional retry/backoff. Failures are returned as data, never raised.
"""
from __future__ import annotations

import asyncio
import time
from typing import Dict, Literal, Mapping, Optional, Sequence

from aiohttp import ClientError, ClientSession, ClientTimeout

from site_audit.config import DEFAULT_MAX_PAGE_SIZE
from site_audit.crawler.models import FetchResult
from site_audit.logger import get_logger

__all__ = (
    "USER_AGENTS",
    "Fetcher",
    "get_charset",
    "resolve_user_agent",
)

USER_AGENTS: Mapping[str, str] = {
    "facebook": "facebookexternalhit/1.1 (+http://www.facebook.com/externalhit_uatext.php)",
    "twitter": "Twitterbot/1.0",
    "linkedin": "LinkedInBot/1.0 (compatible; Mozilla/5.0; Apache-HttpClient +http://www.linkedin.com)",
    "google": "Googlebot/2.1 (+http://www.google.com/bot.html)",
    "mobile-bot": (
        "Mozilla/5.0 (iPhone; CPU iPhone OS 14_7_1 like Mac OS X) AppleWebKit/605.1.15 "
        "(KHTML, like Gecko) Version/14.1.2 Mobile/15E148 Safari/604.1"
    ),
    "default": "Mozilla/5.0 (compatible; SiteAuditBot/1.0)",
}

_DEFAULT_HEADERS: Mapping[str, str] = {
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.5",
    "Accept-Encoding": "gzip, deflate",
}

_CHUNK_SIZE = 64 * 1024

Method = Literal["GET", "HEAD"]


def resolve_user_agent(name: str) -> str:
    """Map a named agent (``google``, ``default`` …) to its header value; raw strings pass through."""
    return USER_AGENTS.get(name, name)


def get_charset(headers: Mapping[str, str]) -> str:
    for part in headers.get("content-type", "").split(";")[1:]:
        key, _, value = part.partition("=")
        if key.strip().lower() == "charset" and value.strip():
            return value.strip().strip('"')
    return "utf-8"


class Fetcher:
    """Handles HTTP fetching with size limit, retries/backoff and timeout.

    Use as an async context manager when the fetcher should own its
    :class:`aiohttp.ClientSession`; an externally created session is left open.
    """

    _RETRY_STATUS: Sequence[int] = tuple(range(500, 600)) + (429,)

    def __init__(
        self,
        user_agent: str = "default",
        *,
        session: Optional[ClientSession] = None,
        retry_times: int = 0,
    ) -> None:
        self.user_agent = user_agent
        self.retry_times = retry_times
        self.session = session
        self._owns_session = session is None
        self.logger = get_logger("fetcher")

    async def __aenter__(self) -> Fetcher:
        if self.session is None or self.session.closed:
            self.session = ClientSession(raise_for_status=False)
            self._owns_session = True
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def close(self) -> None:
        if self._owns_session and self.session and not self.session.closed:
            await self.session.close()

    async def fetch(
        self,
        url: str,
        *,
        timeout: float = 10.0,
        max_size: int = DEFAULT_MAX_PAGE_SIZE,
        user_agent: Optional[str] = None,
        method: Method = "GET",
    ) -> FetchResult:
        """
        Fetch *url* and return a :class:`FetchResult`.

        Any HTTP status counts as success; network errors, timeouts and bodies
        larger than *max_size* produce ``success=False`` with an error message.
        """
        if self.session is None:
            raise RuntimeError("Session not initialized")

        headers = dict(_DEFAULT_HEADERS)
        headers["User-Agent"] = resolve_user_agent(user_agent or self.user_agent)
        attempts = 0
        while True:
            result = await self._request(url, method, headers, timeout, max_size)
            retryable = (not result.success and result.error != "Response too large") or (
                result.status_code in self._RETRY_STATUS
            )
            if not retryable or attempts >= self.retry_times:
                return result
            attempts += 1
            backoff = min(2 ** attempts, 60)
            self.logger.debug(
                "Retry %d/%d for %s after %.1f s (%s)",
                attempts, self.retry_times, url, backoff, result.error or result.status_code,
            )
            await asyncio.sleep(backoff)

    async def _request(
        self,
        url: str,
        method: Method,
        headers: Dict[str, str],
        timeout: float,
        max_size: int,
    ) -> FetchResult:
        started = time.monotonic()

        def elapsed() -> float:
            return round((time.monotonic() - started) * 1000, 2)

        try:
            async with self.session.request(
                method,
                url,
                headers=headers,
                timeout=ClientTimeout(total=timeout),
                allow_redirects=True,
            ) as resp:
                resp_headers = {k.lower(): v for k, v in resp.headers.items()}
                declared = resp.content_length
                if declared is not None and declared > max_size:
                    return FetchResult(
                        success=False,
                        status_code=resp.status,
                        headers=resp_headers,
                        error="Response too large",
                        response_time_ms=elapsed(),
                    )
                data = ""
                if method != "HEAD":
                    body = bytearray()
                    async for chunk in resp.content.iter_chunked(_CHUNK_SIZE):
                        body.extend(chunk)
                        if len(body) > max_size:
                            return FetchResult(
                                success=False,
                                status_code=resp.status,
                                headers=resp_headers,
                                error="Response too large",
                                response_time_ms=elapsed(),
                            )
                    data = self._decode(bytes(body), resp_headers)
                return FetchResult(
                    success=True,
                    status_code=resp.status,
                    headers=resp_headers,
                    data=data,
                    response_time_ms=elapsed(),
                    final_url=str(resp.url),
                )
        except asyncio.TimeoutError:
            return FetchResult(success=False, error="Request timeout", response_time_ms=elapsed())
        except (ClientError, ValueError) as exc:
            # ValueError covers hosts the IDNA codec rejects (e.g. "a..b")
            return FetchResult(
                success=False,
                error=str(exc) or exc.__class__.__name__,
                response_time_ms=elapsed(),
            )

    @staticmethod
    def _decode(body: bytes, headers: Mapping[str, str]) -> str:
        charset = get_charset(headers)
        try:
            return body.decode(charset, errors="replace")
        except LookupError:
            return body.decode("utf-8", errors="replace")
