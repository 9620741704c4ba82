# === FILE: site_audit/crawler/crawler.py ===
"""
Sequential breadth-first site crawler.

One page is in flight at a time and a politeness delay separates fetches. The
scheduler owns the frontier, the visited set and the page list; it drives the
fetcher, the robots policy and the page analyzer, then hands the collected
pages to the aggregator.
"""
from __future__ import annotations

import asyncio
import logging
import time
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, Dict, List, Optional, Set

from site_audit.aggregator import analyze_for_issues, generate_crawl_summary
from site_audit.analyzer import analyze_page
from site_audit.config import CrawlOptions
from site_audit.crawler.fetcher import Fetcher
from site_audit.crawler.frontier import Frontier
from site_audit.crawler.models import (
    CrawlIssue,
    CrawlPage,
    CrawlProgress,
    CrawlResult,
    CrawlSettings,
    CrawlStats,
    FrontierEntry,
    RobotsRuleSet,
)
from site_audit.crawler.robots import fetch_robots_rules, is_blocked_by_robots
from site_audit.crawler.sitemap import fetch_sitemap_urls
from site_audit.logger import get_logger
from site_audit.utils import extract_domain, get_origin, normalize_url, validate_url

__all__ = ("CrawlScheduler", "CrawlState", "ProgressCallback", "crawl_website")

ProgressCallback = Callable[[CrawlProgress], None]


class CrawlState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    COMPLETED = "completed"


def _utcnow() -> str:
    return datetime.now(timezone.utc).isoformat()


class CrawlScheduler:
    """Breadth-first crawl of one site, bounded by page count and depth.

    The start URL is validated on construction, so an unusable URL fails
    before any request is made. :meth:`run` may be awaited once; :meth:`cancel`
    stops the loop at the next iteration and interrupts the politeness delay.
    """

    def __init__(
        self,
        start_url: str,
        options: Optional[CrawlOptions] = None,
        *,
        fetcher: Optional[Fetcher] = None,
        logger: Optional[logging.Logger] = None,
        on_progress: Optional[ProgressCallback] = None,
    ) -> None:
        self.options = options or CrawlOptions()
        validated = validate_url(start_url, allow_private=self.options.allow_private_networks)
        self.start_url = normalize_url(validated)
        self.start_host = extract_domain(self.start_url)
        self.fetcher = fetcher
        self.logger = logger or get_logger("crawler")
        self.on_progress = on_progress

        self.state = CrawlState.IDLE
        self.frontier = Frontier()
        self.visited: Set[str] = set()
        self.pages: List[CrawlPage] = []
        self.issues: List[CrawlIssue] = []
        self.blocked_urls: List[str] = []
        self._robots: Dict[str, RobotsRuleSet] = {}
        self._fetch_failures = 0
        self._cancel = asyncio.Event()

    # ------------------------------------------------------------------ #
    # Public API
    # ------------------------------------------------------------------ #

    def cancel(self) -> None:
        """Ask a running crawl to stop; pages collected so far are kept."""
        if not self._cancel.is_set():
            self.logger.info("Cancellation requested", extra={"event": "crawl_cancel"})
        self._cancel.set()

    @property
    def cancelled(self) -> bool:
        return self._cancel.is_set()

    async def run(self) -> CrawlResult:
        if self.state is not CrawlState.IDLE:
            raise RuntimeError(f"Crawl already {self.state.value}")
        self.state = CrawlState.RUNNING
        start_time = _utcnow()
        started = time.monotonic()
        opts = self.options
        self.logger.info(
            "Starting crawl of %s (max_pages=%d, max_depth=%d, respect_robots=%s)",
            self.start_url, opts.max_pages, opts.max_depth, opts.respect_robots,
            extra={"event": "crawl_start", "url": self.start_url},
        )

        owns_fetcher = self.fetcher is None
        if owns_fetcher:
            self.fetcher = Fetcher(opts.user_agent, retry_times=opts.retry_times)
            await self.fetcher.__aenter__()
        try:
            await self._prepare()
            await self._loop()
        finally:
            if owns_fetcher:
                await self.fetcher.close()

        self.state = CrawlState.COMPLETED
        duration = (time.monotonic() - started) * 1000
        self.logger.info(
            "Crawl completed: %d pages in %.0f ms (%d blocked, %d failed)",
            len(self.pages), duration, len(self.blocked_urls), self._fetch_failures,
            extra={"event": "crawl_end", "url": self.start_url},
        )
        return self._build_result(start_time, duration)

    # ------------------------------------------------------------------ #
    # Crawl loop
    # ------------------------------------------------------------------ #

    async def _prepare(self) -> None:
        rules = RobotsRuleSet()
        if self.options.respect_robots:
            rules = await self._robots_for(self.start_url)
        self.frontier.push(self.start_url, 0)
        if self.options.seed_sitemap and self.options.max_depth >= 1:
            await self._seed_from_sitemap(rules)

    async def _seed_from_sitemap(self, rules: RobotsRuleSet) -> None:
        urls = await fetch_sitemap_urls(
            self.fetcher,
            get_origin(self.start_url),
            self.options.user_agent,
            declared=rules.sitemaps,
            timeout=self.options.timeout,
        )
        added = 0
        for url in urls:
            if extract_domain(url) != self.start_host:
                continue
            if self.frontier.push(normalize_url(url), 1):
                added += 1
        self.logger.info("Seeded %d URL(s) from sitemap", added, extra={"event": "sitemap_seed"})

    def _has_capacity(self) -> bool:
        return len(self.pages) < self.options.max_pages

    async def _loop(self) -> None:
        while self.frontier and self._has_capacity():
            if self._cancel.is_set():
                self.logger.info("Crawl cancelled", extra={"event": "crawl_cancelled"})
                break
            entry = self.frontier.pop()
            try:
                if not await self._should_fetch(entry):
                    continue
                await self._process(entry)
            except Exception as exc:
                self.visited.add(entry.url)
                self._record_crawl_error(entry.url, exc)
            if self.frontier and self._has_capacity():
                await self._pause(entry.url)

    async def _should_fetch(self, entry: FrontierEntry) -> bool:
        if entry.url in self.visited:
            self._skip(entry, "already visited")
            return False
        if entry.depth > self.options.max_depth:
            self._skip(entry, "depth limit")
            return False
        if self.options.respect_robots:
            rules = await self._robots_for(entry.url)
            if is_blocked_by_robots(entry.url, rules):
                self.blocked_urls.append(entry.url)
                self._skip(entry, "blocked by robots.txt", level=logging.INFO)
                return False
        return True

    def _skip(self, entry: FrontierEntry, reason: str, level: int = logging.DEBUG) -> None:
        self.logger.log(
            level, "Skipping %s - %s", entry.url, reason,
            extra={"event": "page_skipped", "url": entry.url, "reason": reason},
        )

    async def _process(self, entry: FrontierEntry) -> None:
        self._report_progress(entry.url)
        self.visited.add(entry.url)
        self.logger.debug("Crawling [%d] %s", entry.depth, entry.url)

        result = await self.fetcher.fetch(
            entry.url,
            timeout=self.options.timeout,
            max_size=self.options.max_page_size,
            user_agent=self.options.user_agent,
        )
        if not result.success:
            self._record_fetch_failure(entry.url, result.error or "Unknown error")
            return

        page = analyze_page(
            entry.url,
            result.data or "",
            result.headers,
            result.status_code or 200,
            entry.depth,
            response_time_ms=result.response_time_ms,
            crawled_at=_utcnow(),
            base_url=result.final_url,
        )

        self.pages.append(page)
        self.logger.info(
            "Fetched [%d] %s -> %d (%.0f ms)",
            entry.depth, entry.url, page.status_code, page.response_time_ms,
            extra={"event": "page_fetched", "url": entry.url},
        )
        if entry.depth < self.options.max_depth:
            self._enqueue_links(page, entry.depth + 1)

    def _enqueue_links(self, page: CrawlPage, depth: int) -> None:
        links = page.internal_links
        if self.options.follow_external_links:
            links = links + page.external_links
        for link in links:
            url = normalize_url(link)
            if url in self.visited:
                continue
            if not self.options.follow_external_links and extract_domain(url) != self.start_host:
                continue
            self.frontier.push(url, depth)

    def _record_fetch_failure(self, url: str, error: str) -> None:
        self._fetch_failures += 1
        self.logger.warning(
            "Failed to fetch %s: %s", url, error,
            extra={"event": "fetch_failed", "url": url},
        )
        self.issues.append(
            CrawlIssue(
                type="error",
                category="technical",
                page=url,
                issue="Page fetch failed",
                description=f"Failed to fetch page: {error}",
                recommendation=(
                    "Check if the URL is accessible and the server is responding correctly."
                ),
                severity="high",
            )
        )

    def _record_crawl_error(self, url: str, exc: Exception) -> None:
        self.logger.error(
            "Error crawling %s: %s", url, exc,
            exc_info=True, extra={"event": "crawl_error", "url": url},
        )
        self.issues.append(
            CrawlIssue(
                type="error",
                category="technical",
                page=url,
                issue="Crawl error",
                description=f"Error occurred while crawling: {exc}",
                recommendation="Check the URL and try again.",
                severity="medium",
            )
        )

    def _report_progress(self, url: str) -> None:
        if self.on_progress is None:
            return
        progress = CrawlProgress(
            current=len(self.pages) + 1,
            total=min(len(self.frontier) + len(self.pages) + 1, self.options.max_pages),
            current_url=url,
        )
        try:
            self.on_progress(progress)
        except Exception:
            self.logger.exception("Progress callback failed for %s", url)

    async def _pause(self, url: str) -> None:
        delay = self.options.delay
        if self.options.respect_robots:
            crawl_delay = (await self._robots_for(url)).crawl_delay
            if crawl_delay:
                delay = max(delay, crawl_delay)
        if delay <= 0:
            return
        try:
            await asyncio.wait_for(self._cancel.wait(), timeout=delay)
        except asyncio.TimeoutError:
            pass

    async def _robots_for(self, url: str) -> RobotsRuleSet:
        origin = get_origin(url)
        if origin not in self._robots:
            try:
                self._robots[origin] = await fetch_robots_rules(
                    self.fetcher,
                    origin,
                    self.options.user_agent,
                    timeout=self.options.robots_timeout,
                    max_size=self.options.robots_max_size,
                )
            except Exception as exc:
                self.logger.warning(
                    "robots.txt check failed for %s, allowing all: %s", origin, exc,
                    extra={"event": "robots_failed", "url": origin},
                )
                self._robots[origin] = RobotsRuleSet()
        return self._robots[origin]

    # ------------------------------------------------------------------ #
    # Result
    # ------------------------------------------------------------------ #

    def _build_result(self, start_time: str, duration: float) -> CrawlResult:
        pages = tuple(self.pages)
        issues = list(self.issues)
        issues.extend(analyze_for_issues(pages))
        summary = generate_crawl_summary(pages, issues)
        opts = self.options
        return CrawlResult(
            start_url=self.start_url,
            pages=pages,
            issues=tuple(issues),
            summary=summary,
            crawl_settings=CrawlSettings(
                max_pages=opts.max_pages,
                max_depth=opts.max_depth,
                respect_robots=opts.respect_robots,
                follow_external_links=opts.follow_external_links,
            ),
            crawl_stats=CrawlStats(
                start_time=start_time,
                end_time=_utcnow(),
                duration=round(duration, 2),
                pages_per_second=round(len(pages) / (duration / 1000), 3) if duration else 0.0,
                urls_blocked=len(self.blocked_urls),
                fetch_failures=self._fetch_failures,
                cancelled=self.cancelled,
            ),
        )


async def crawl_website(
    start_url: str,
    options: Optional[CrawlOptions] = None,
    *,
    fetcher: Optional[Fetcher] = None,
    on_progress: Optional[ProgressCallback] = None,
    logger: Optional[logging.Logger] = None,
) -> CrawlResult:
    """Crawl *start_url* breadth-first and return the aggregated report.

    Raises :class:`~site_audit.utils.InvalidUrlError` if the start URL cannot
    be crawled; every per-page problem is reported in ``result.issues``.
    """
    scheduler = CrawlScheduler(
        start_url, options, fetcher=fetcher, logger=logger, on_progress=on_progress
    )
    return await scheduler.run()
