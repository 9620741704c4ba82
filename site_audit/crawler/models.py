# site_audit/crawler/models.py
"""
Data models for the SiteAudit crawler.
"""
from __future__ import annotations

import json
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, Literal, Optional, Tuple

IssueType = Literal["error", "warning", "info"]
IssueCategory = Literal["seo", "technical", "content", "performance", "accessibility"]
Severity = Literal["high", "medium", "low"]


@dataclass(slots=True)
class FetchResult:
    """Outcome of a single HTTP request made by the fetcher."""

    success: bool
    status_code: Optional[int] = None
    headers: Dict[str, str] = field(default_factory=dict)
    data: Optional[str] = None
    error: Optional[str] = None
    response_time_ms: float = 0.0
    final_url: Optional[str] = None


@dataclass(slots=True, frozen=True)
class FrontierEntry:
    """A URL waiting in the crawl queue together with its link depth."""

    url: str
    depth: int


@dataclass(slots=True, frozen=True)
class ImageInfo:
    src: str
    alt: Optional[str] = None
    title: Optional[str] = None


@dataclass(slots=True, frozen=True)
class CrawlPage:
    """Structural snapshot of one fetched page."""

    url: str
    status_code: int
    depth: int
    crawled_at: str
    title: Optional[str] = None
    meta_description: Optional[str] = None
    h1: Optional[str] = None
    h2s: Tuple[str, ...] = ()
    h3s: Tuple[str, ...] = ()
    response_time_ms: float = 0.0
    content_length: int = 0
    content_type: Optional[str] = None
    canonical_url: Optional[str] = None
    meta_robots: Optional[str] = None
    internal_links: Tuple[str, ...] = ()
    external_links: Tuple[str, ...] = ()
    images: Tuple[ImageInfo, ...] = ()
    issues: Tuple[str, ...] = ()


@dataclass(slots=True, frozen=True)
class CrawlIssue:
    type: IssueType
    category: IssueCategory
    page: str
    issue: str
    description: str
    recommendation: str
    severity: Severity


@dataclass(slots=True, frozen=True)
class RobotsRuleSet:
    """Disallow prefixes that apply to one user agent.

    An empty rule set allows everything, which is also what a missing or
    unreachable robots.txt produces.
    """

    disallow: Tuple[str, ...] = ()
    crawl_delay: Optional[float] = None
    sitemaps: Tuple[str, ...] = ()


@dataclass(slots=True, frozen=True)
class CrawlProgress:
    current: int
    total: int
    current_url: str


@dataclass(slots=True, frozen=True)
class CrawlSummary:
    """Plain aggregates over the crawled pages and the issues found."""

    total_pages: int = 0
    total_issues: int = 0
    issues_by_type: Dict[str, int] = field(default_factory=dict)
    issues_by_category: Dict[str, int] = field(default_factory=dict)
    average_response_time: float = 0.0
    largest_pages: Tuple[Dict[str, Any], ...] = ()
    slowest_pages: Tuple[Dict[str, Any], ...] = ()
    duplicate_titles: Tuple[Dict[str, Any], ...] = ()
    duplicate_descriptions: Tuple[Dict[str, Any], ...] = ()
    missing_titles: Tuple[str, ...] = ()
    missing_descriptions: Tuple[str, ...] = ()
    broken_links: Tuple[Dict[str, Any], ...] = ()


@dataclass(slots=True, frozen=True)
class CrawlSettings:
    max_pages: int
    max_depth: int
    respect_robots: bool
    follow_external_links: bool


@dataclass(slots=True, frozen=True)
class CrawlStats:
    start_time: str
    end_time: str
    duration: float
    pages_per_second: float
    urls_blocked: int = 0
    fetch_failures: int = 0
    cancelled: bool = False


@dataclass(slots=True, frozen=True)
class CrawlResult:
    """Final report of one crawl, handed over to storage or rendering."""

    start_url: str
    pages: Tuple[CrawlPage, ...]
    issues: Tuple[CrawlIssue, ...]
    summary: CrawlSummary
    crawl_settings: CrawlSettings
    crawl_stats: CrawlStats

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    def json(self, *, pretty: bool = False) -> str:
        """Return the JSON representation of the whole result."""
        return json.dumps(self.to_dict(), ensure_ascii=False, indent=2 if pretty else None)


__all__ = [
    "CrawlIssue",
    "CrawlPage",
    "CrawlProgress",
    "CrawlResult",
    "CrawlSettings",
    "CrawlStats",
    "CrawlSummary",
    "FetchResult",
    "FrontierEntry",
    "ImageInfo",
    "IssueCategory",
    "IssueType",
    "RobotsRuleSet",
    "Severity",
]
