# === FILE: site_audit/analyzer.py ===
"""Structural analysis of a single fetched page.

:func:`analyze_page` is a pure function: it turns the HTML, headers and status
code of one response into a :class:`~site_audit.crawler.models.CrawlPage` and
flags page-local problems. The markup goes through BeautifulSoup, so broken
HTML degrades field by field to "not found" instead of raising:

* title: text of the first ``<title>``;
* meta description / meta robots: ``content`` of the named ``<meta>``;
* h1: text of the first ``<h1>``; h2s and h3s: all non-empty ones;
* canonical: ``href`` of ``<link rel="canonical">``;
* links: absolute ``<a href>`` targets split into internal (same hostname)
  and external, resolved against the address the page was finally served from;
* images: absolute ``<img src>`` with alt/title attributes.
"""
from __future__ import annotations

from collections.abc import Mapping, Sequence
from datetime import datetime, timezone
from typing import List, Optional

from bs4 import BeautifulSoup, ParserRejectedMarkup
from bs4.element import Tag

from site_audit.crawler.models import CrawlPage, ImageInfo
from site_audit.utils import extract_domain, remove_duplicates, resolve_url

__all__: Sequence[str] = (
    "DESCRIPTION_MAX_LENGTH",
    "TITLE_MAX_LENGTH",
    "analyze_page",
    "find_page_issues",
)

TITLE_MAX_LENGTH = 60
DESCRIPTION_MAX_LENGTH = 160


def _text(tag: Optional[Tag]) -> Optional[str]:
    if tag is None:
        return None
    text = " ".join(tag.get_text(" ", strip=True).split())
    return text or None


def _attr(tag: Tag, name: str) -> Optional[str]:
    value = tag.get(name)
    if isinstance(value, list):
        value = " ".join(value)
    if value is None:
        return None
    value = value.strip()
    return value or None


def _meta_content(soup: BeautifulSoup, name: str) -> Optional[str]:
    for meta in soup.find_all("meta"):
        if (_attr(meta, "name") or "").lower() == name:
            return _attr(meta, "content")
    return None


def _canonical(soup: BeautifulSoup) -> Optional[str]:
    for link in soup.find_all("link"):
        rel = link.get("rel") or []
        if isinstance(rel, str):
            rel = rel.split()
        if "canonical" in (r.lower() for r in rel):
            return _attr(link, "href")
    return None


def _headings(soup: BeautifulSoup, name: str) -> List[str]:
    return [text for text in (_text(tag) for tag in soup.find_all(name)) if text]


def _parse(html: str) -> BeautifulSoup:
    try:
        return BeautifulSoup(html, "html.parser")
    except ParserRejectedMarkup:
        return BeautifulSoup("", "html.parser")


def find_page_issues(
    *,
    title: Optional[str],
    meta_description: Optional[str],
    h1: Optional[str],
    h2_count: int,
    status_code: int,
    images: Sequence[ImageInfo],
) -> List[str]:
    """Threshold checks for one page; returns human-readable issue labels."""
    issues: List[str] = []
    if not title:
        issues.append("Missing title tag")
    elif len(title) > TITLE_MAX_LENGTH:
        issues.append(f"Title tag too long (>{TITLE_MAX_LENGTH} characters)")
    if not meta_description:
        issues.append("Missing meta description")
    elif len(meta_description) > DESCRIPTION_MAX_LENGTH:
        issues.append(f"Meta description too long (>{DESCRIPTION_MAX_LENGTH} characters)")
    if not h1:
        issues.append("Missing H1 tag")
    if h2_count == 0:
        issues.append("No H2 tags found")
    if status_code != 200:
        issues.append(f"Non-200 status code: {status_code}")
    missing_alt = sum(1 for img in images if not img.alt)
    if missing_alt > 0:
        issues.append(f"{missing_alt} images missing alt text")
    return issues


def analyze_page(
    url: str,
    html: Optional[str],
    headers: Optional[Mapping[str, str]],
    status_code: int,
    depth: int,
    *,
    response_time_ms: float = 0.0,
    crawled_at: Optional[str] = None,
    base_url: Optional[str] = None,
) -> CrawlPage:
    """Extract the structural fields of one page and flag its local issues.

    Parameters
    ----------
    url
        Address the page was fetched from; relative links resolve against it.
    html
        Response body. ``None`` or non-text input is treated as empty markup.
    headers
        Response headers (any key case).
    status_code
        HTTP status of the response.
    depth
        Link depth of the page in the crawl.
    response_time_ms, crawled_at
        Measured by the caller and copied into the result unchanged. Without
        *crawled_at* the current UTC time is used.
    base_url
        Final address after redirects; relative links resolve against it.
    """
    markup = html if isinstance(html, str) else ""
    soup = _parse(markup)
    header_map = {str(k).lower(): v for k, v in (headers or {}).items()}

    title = _text(soup.find("title"))
    meta_description = _meta_content(soup, "description")
    h1 = _text(soup.find("h1"))
    h2s = _headings(soup, "h2")
    h3s = _headings(soup, "h3")

    base = base_url or url
    page_host = extract_domain(base)
    internal: List[str] = []
    external: List[str] = []
    for anchor in soup.find_all("a", href=True):
        absolute = resolve_url(_attr(anchor, "href") or "", base)
        if absolute is None:
            continue
        if extract_domain(absolute) == page_host:
            internal.append(absolute)
        else:
            external.append(absolute)

    images: List[ImageInfo] = []
    for img in soup.find_all("img"):
        src = _attr(img, "src")
        if not src:
            continue
        images.append(
            ImageInfo(
                src=resolve_url(src, base) or src,
                alt=_attr(img, "alt"),
                title=_attr(img, "title"),
            )
        )

    issues = find_page_issues(
        title=title,
        meta_description=meta_description,
        h1=h1,
        h2_count=len(h2s),
        status_code=status_code,
        images=images,
    )

    return CrawlPage(
        url=url,
        status_code=status_code,
        depth=depth,
        title=title,
        meta_description=meta_description,
        h1=h1,
        h2s=tuple(h2s),
        h3s=tuple(h3s),
        response_time_ms=response_time_ms,
        content_length=len(markup),
        content_type=header_map.get("content-type"),
        canonical_url=_canonical(soup),
        meta_robots=_meta_content(soup, "robots"),
        internal_links=tuple(remove_duplicates(internal)),
        external_links=tuple(remove_duplicates(external)),
        images=tuple(images),
        issues=tuple(issues),
        crawled_at=crawled_at or datetime.now(timezone.utc).isoformat(),
    )
