# File: site_audit/aggregator.py
"""site_audit.aggregator: cross-page issue detection and crawl summary statistics."""

from __future__ import annotations

from collections import Counter
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Tuple

from site_audit.crawler.models import CrawlIssue, CrawlPage, CrawlSummary, IssueCategory, Severity
from site_audit.utils import normalize_url

__all__ = [
    "LARGE_PAGE_BYTES",
    "SLOW_PAGE_MS",
    "TOP_N",
    "analyze_for_issues",
    "generate_crawl_summary",
    "get_recommendation_for_issue",
    "get_severity_for_issue",
]

TOP_N = 10
SLOW_PAGE_MS = 3000
LARGE_PAGE_BYTES = 1024 * 1024

_RECOMMENDATIONS: Dict[str, str] = {
    "Missing title tag": (
        "Add a unique, descriptive title tag (50-60 characters) to help search engines "
        "understand the page content."
    ),
    "Title tag too long": (
        "Shorten the title tag to 50-60 characters to prevent truncation in search results."
    ),
    "Missing meta description": (
        "Add a compelling meta description (150-160 characters) to improve click-through "
        "rates from search results."
    ),
    "Meta description too long": (
        "Shorten the meta description to 150-160 characters to prevent truncation."
    ),
    "Missing H1 tag": "Add an H1 tag that clearly describes the main topic of the page.",
    "No H2 tags found": "Use H2 tags to structure your content and improve readability.",
    "Non-200 status code": (
        "Fix or redirect the URL, and update internal links that point to it."
    ),
    "images missing alt text": (
        "Add descriptive alt text to every meaningful image for screen readers and image search."
    ),
}
_DEFAULT_RECOMMENDATION = "Review and fix this issue to improve SEO performance."

_HIGH_SEVERITY = ("Missing title tag", "Missing H1 tag")
_MEDIUM_SEVERITY = ("Missing meta description", "Title tag too long", "Meta description too long")


def get_recommendation_for_issue(issue: str) -> str:
    for key, text in _RECOMMENDATIONS.items():
        if key in issue:
            return text
    return _DEFAULT_RECOMMENDATION


def get_severity_for_issue(issue: str) -> Severity:
    """Severity of a page-level issue label produced by the analyzer."""
    if any(label in issue for label in _HIGH_SEVERITY):
        return "high"
    if any(label in issue for label in _MEDIUM_SEVERITY):
        return "medium"
    return "low"


def _category_for_issue(issue: str) -> IssueCategory:
    if "alt text" in issue:
        return "accessibility"
    if issue.startswith("Non-200 status code"):
        return "technical"
    return "seo"


def _group_by(
    pages: Iterable[CrawlPage], key: Callable[[CrawlPage], Optional[str]]
) -> Dict[str, List[CrawlPage]]:
    """Group pages by a non-empty string key, keeping first-seen order."""
    groups: Dict[str, List[CrawlPage]] = {}
    for page in pages:
        value = key(page)
        if value:
            groups.setdefault(value, []).append(page)
    return groups


def _duplicates(
    pages: Sequence[CrawlPage], key: Callable[[CrawlPage], Optional[str]]
) -> Dict[str, Tuple[str, ...]]:
    return {
        value: tuple(p.url for p in group)
        for value, group in _group_by(pages, key).items()
        if len(group) > 1
    }


def analyze_for_issues(pages: Sequence[CrawlPage]) -> List[CrawlIssue]:
    """Scan the completed page list for cross-page problems.

    Emits one issue per group of pages sharing a title or a meta description,
    re-emits every page-level issue found by the analyzer, and adds
    performance warnings for slow and oversized pages.
    """
    issues: List[CrawlIssue] = []

    for title, urls in _duplicates(pages, lambda p: p.title).items():
        issues.append(
            CrawlIssue(
                type="warning",
                category="seo",
                page=", ".join(urls),
                issue="Duplicate title tags",
                description=f'{len(urls)} pages share the same title: "{title}"',
                recommendation="Each page should have a unique, descriptive title tag.",
                severity="medium",
            )
        )

    for description, urls in _duplicates(pages, lambda p: p.meta_description).items():
        issues.append(
            CrawlIssue(
                type="warning",
                category="seo",
                page=", ".join(urls),
                issue="Duplicate meta descriptions",
                description=f'{len(urls)} pages share the same meta description: "{description}"',
                recommendation="Each page should have a unique, compelling meta description.",
                severity="medium",
            )
        )

    for page in pages:
        for label in page.issues:
            issues.append(
                CrawlIssue(
                    type="warning",
                    category=_category_for_issue(label),
                    page=page.url,
                    issue=label,
                    description=label,
                    recommendation=get_recommendation_for_issue(label),
                    severity=get_severity_for_issue(label),
                )
            )
        if page.response_time_ms > SLOW_PAGE_MS:
            issues.append(
                CrawlIssue(
                    type="warning",
                    category="performance",
                    page=page.url,
                    issue="Slow page response",
                    description=(
                        f"Page responded in {page.response_time_ms:.0f} ms "
                        f"(threshold {SLOW_PAGE_MS} ms)"
                    ),
                    recommendation=(
                        "Reduce server processing time, enable caching and compress responses."
                    ),
                    severity="medium",
                )
            )
        if page.content_length > LARGE_PAGE_BYTES:
            issues.append(
                CrawlIssue(
                    type="info",
                    category="performance",
                    page=page.url,
                    issue="Large page size",
                    description=f"HTML document is {page.content_length} characters long",
                    recommendation="Trim inline scripts, styles and markup to reduce page weight.",
                    severity="low",
                )
            )

    return issues


def _broken_links(pages: Sequence[CrawlPage]) -> Tuple[Dict[str, object], ...]:
    status_by_url = {normalize_url(p.url): p.status_code for p in pages}
    broken: List[Dict[str, object]] = []
    for page in pages:
        for link in page.internal_links:
            status = status_by_url.get(normalize_url(link))
            if status is not None and status >= 400:
                broken.append({"page": page.url, "link": link, "status": status})
    return tuple(broken)


def generate_crawl_summary(
    pages: Sequence[CrawlPage], issues: Sequence[CrawlIssue]
) -> CrawlSummary:
    """Plain aggregates over *pages* and *issues*; the input order is not modified."""
    average = sum(p.response_time_ms for p in pages) / len(pages) if pages else 0.0
    largest = sorted(pages, key=lambda p: p.content_length, reverse=True)[:TOP_N]
    slowest = sorted(pages, key=lambda p: p.response_time_ms, reverse=True)[:TOP_N]

    return CrawlSummary(
        total_pages=len(pages),
        total_issues=len(issues),
        issues_by_type=dict(Counter(i.type for i in issues)),
        issues_by_category=dict(Counter(i.category for i in issues)),
        average_response_time=round(average, 2),
        largest_pages=tuple({"url": p.url, "size": p.content_length} for p in largest),
        slowest_pages=tuple({"url": p.url, "time": p.response_time_ms} for p in slowest),
        duplicate_titles=tuple(
            {"title": title, "pages": urls}
            for title, urls in _duplicates(pages, lambda p: p.title).items()
        ),
        duplicate_descriptions=tuple(
            {"description": desc, "pages": urls}
            for desc, urls in _duplicates(pages, lambda p: p.meta_description).items()
        ),
        missing_titles=tuple(p.url for p in pages if not p.title),
        missing_descriptions=tuple(p.url for p in pages if not p.meta_description),
        broken_links=_broken_links(pages),
    )
