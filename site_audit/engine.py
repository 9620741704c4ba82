# File: site_audit/engine.py
"""site_audit.engine: orchestration layer used by the CLI to run a crawl with an overall timeout."""

from __future__ import annotations

import asyncio
from typing import Optional

from site_audit.config import CrawlOptions, load_config
from site_audit.crawler.crawler import CrawlScheduler, ProgressCallback
from site_audit.crawler.models import CrawlResult
from site_audit.logger import logger

__all__ = ["Engine", "start_crawl"]


async def start_crawl(
    start_url: str,
    options: CrawlOptions,
    *,
    on_progress: Optional[ProgressCallback] = None,
    timeout: Optional[float] = None,
) -> CrawlResult:
    """
    Run a crawl and return its result.

    With *timeout* the crawl is cancelled once the limit is reached and the
    pages collected so far are still returned.
    """
    scheduler = CrawlScheduler(start_url, options, on_progress=on_progress)
    if timeout is None:
        return await scheduler.run()

    task = asyncio.ensure_future(scheduler.run())
    done, _ = await asyncio.wait({task}, timeout=timeout)
    if not done:
        logger.warning("Crawl did not finish within %s seconds, stopping", timeout)
        scheduler.cancel()
    return await task


class Engine:
    """Facade for the CLI and tests: load options, run the crawl synchronously."""

    @staticmethod
    def load_config(path: Optional[str]) -> CrawlOptions:
        """Load options from YAML/JSON."""
        return load_config(path)

    def __init__(self, options: Optional[CrawlOptions] = None) -> None:
        self.options = options or CrawlOptions()

    def crawl(
        self,
        start_url: str,
        *,
        timeout: Optional[float] = None,
        on_progress: Optional[ProgressCallback] = None,
    ) -> CrawlResult:
        """Run the crawl in a fresh event loop and return the report."""
        logger.info("Starting crawl of %s", start_url)
        try:
            return asyncio.run(
                start_crawl(start_url, self.options, on_progress=on_progress, timeout=timeout)
            )
        except Exception as exc:
            logger.error("Crawl failed: %s", exc)
            raise
