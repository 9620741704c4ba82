# File: site_audit/crawler/sitemap.py
"""site_audit.crawler.sitemap: sitemap.xml parsing used to seed the crawl frontier."""

from __future__ import annotations

from typing import Iterable, List, Tuple
from urllib.parse import urljoin

from lxml import etree

from site_audit.crawler.fetcher import Fetcher
from site_audit.logger import get_logger

__all__ = ("parse_sitemap", "fetch_sitemap_urls")

MAX_CHILD_SITEMAPS = 5
SITEMAP_MAX_SIZE = 10 * 1024 * 1024

logger = get_logger("sitemap")


def parse_sitemap(xml_content: str) -> Tuple[List[str], List[str]]:
    """Parse sitemap XML and return ``(page_urls, child_sitemap_urls)``.

    A ``<urlset>`` yields page URLs from its ``<loc>`` tags, a
    ``<sitemapindex>`` yields the locations of nested sitemaps. Broken XML is
    recovered as far as lxml can; unusable input returns two empty lists.
    """
    if not xml_content or not xml_content.strip():
        return [], []
    parser = etree.XMLParser(ns_clean=True, recover=True, resolve_entities=False)
    try:
        root = etree.fromstring(xml_content.encode("utf-8"), parser=parser)
    except etree.XMLSyntaxError:
        return [], []
    if root is None:
        return [], []
    locs = [loc.text.strip() for loc in root.findall(".//{*}loc") if loc.text and loc.text.strip()]
    if etree.QName(root).localname == "sitemapindex":
        return [], locs
    return locs, []


async def fetch_sitemap_urls(
    fetcher: Fetcher,
    origin_url: str,
    user_agent: str,
    *,
    declared: Iterable[str] = (),
    timeout: float = 10.0,
) -> List[str]:
    """Collect page URLs from the site's sitemaps.

    Uses the ``Sitemap:`` URLs from robots.txt when given, else
    ``/sitemap.xml``. At most ``MAX_CHILD_SITEMAPS`` nested sitemaps are read.
    """
    queue = list(declared) or [urljoin(origin_url, "/sitemap.xml")]
    children_budget = MAX_CHILD_SITEMAPS
    urls: List[str] = []
    seen = set()
    while queue:
        sitemap_url = queue.pop(0)
        if sitemap_url in seen:
            continue
        seen.add(sitemap_url)
        result = await fetcher.fetch(
            sitemap_url, timeout=timeout, max_size=SITEMAP_MAX_SIZE, user_agent=user_agent
        )
        if not result.success or result.status_code != 200:
            logger.debug("Sitemap %s unavailable: %s", sitemap_url, result.error or result.status_code)
            continue
        pages, children = parse_sitemap(result.data or "")
        urls.extend(pages)
        for child in children[:children_budget]:
            queue.append(child)
        children_budget -= min(len(children), children_budget)
    logger.info("Collected %d URL(s) from sitemaps of %s", len(urls), origin_url)
    return urls
