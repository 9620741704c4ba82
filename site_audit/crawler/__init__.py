# site_audit/crawler/__init__.py
"""site_audit.crawler: fetching, robots policy, frontier and the crawl scheduler."""

from site_audit.crawler.crawler import CrawlScheduler, CrawlState, crawl_website
from site_audit.crawler.fetcher import Fetcher
from site_audit.crawler.frontier import Frontier
from site_audit.crawler.robots import fetch_robots_rules, is_blocked_by_robots, parse_robots_rules

__all__ = [
    "CrawlScheduler",
    "CrawlState",
    "Fetcher",
    "Frontier",
    "crawl_website",
    "fetch_robots_rules",
    "is_blocked_by_robots",
    "parse_robots_rules",
]
