# site_audit/crawler/robots.py
"""
Parser and checker for robots.txt rules.

Only ``Disallow`` prefixes are enforced (``Allow`` lines do not override
them); ``Crawl-delay`` and ``Sitemap`` values are collected for the scheduler.
"""
from __future__ import annotations

import re
from typing import Any, Dict, List, Optional
from urllib.parse import urljoin, urlparse

from site_audit.crawler.fetcher import Fetcher, resolve_user_agent
from site_audit.crawler.models import RobotsRuleSet
from site_audit.logger import get_logger

__all__ = (
    "fetch_robots_rules",
    "is_blocked_by_robots",
    "parse_robots_rules",
    "robots_token",
)

ROBOTS_TIMEOUT = 5.0
ROBOTS_MAX_SIZE = 100 * 1024

logger = get_logger("robots")


_PRODUCT_RE = re.compile(r"([A-Za-z][\w.-]*)/[\w.]+")


def robots_token(user_agent: str) -> str:
    """Name a robots.txt group has to use to address *user_agent*.

    Browser-style strings lead with ``Mozilla/5.0``, so the first other
    product token wins: ``Mozilla/5.0 (compatible; SiteAuditBot/1.0)`` maps to
    ``siteauditbot``. Strings without a product token are used whole.
    """
    ua = resolve_user_agent(user_agent).strip()
    products = _PRODUCT_RE.findall(ua)
    for product in products:
        if product.lower() != "mozilla":
            return product.lower()
    if products:
        return products[0].lower()
    return ua.lower()


def _agent_matches(agent: str, user_agent: str) -> bool:
    agent = agent.strip().lower()
    if agent == "*":
        return True
    return agent in (user_agent.strip().lower(), robots_token(user_agent))


def parse_robots_rules(text: str, user_agent: str) -> RobotsRuleSet:
    """Parse robots.txt content into the rule set applying to *user_agent*.

    Consecutive ``User-agent`` lines share one group. A group applies when one
    of its agents is ``*``, the full *user_agent* string, or its
    :func:`robots_token`.
    Lines that are not ``key: value`` pairs are skipped.
    """
    ua = resolve_user_agent(user_agent)
    groups: List[Dict[str, Any]] = []
    current: Optional[Dict[str, Any]] = None
    sitemaps: List[str] = []

    for raw in (text or "").splitlines():
        line = raw.split("#", 1)[0].strip()
        if not line or ":" not in line:
            continue
        key, _, val = line.partition(":")
        key = key.strip().lower()
        val = val.strip()
        if key == "user-agent":
            if current is None or current["closed"]:
                current = {"agents": [], "disallow": [], "crawl_delay": None, "closed": False}
                groups.append(current)
            current["agents"].append(val)
        elif key == "sitemap":
            if val:
                sitemaps.append(val)
        elif current is None:
            continue
        elif key == "disallow":
            current["closed"] = True
            if val:
                current["disallow"].append(val)
        elif key == "allow":
            current["closed"] = True
        elif key == "crawl-delay":
            current["closed"] = True
            try:
                current["crawl_delay"] = float(val)
            except ValueError:
                pass

    disallow: List[str] = []
    crawl_delay: Optional[float] = None
    for group in groups:
        if not any(_agent_matches(agent, ua) for agent in group["agents"]):
            continue
        disallow.extend(group["disallow"])
        if group["crawl_delay"] is not None:
            crawl_delay = max(crawl_delay or 0.0, group["crawl_delay"])

    return RobotsRuleSet(
        disallow=tuple(disallow),
        crawl_delay=crawl_delay,
        sitemaps=tuple(sitemaps),
    )


def is_blocked_by_robots(url: str, rules: RobotsRuleSet) -> bool:
    """Return True if the path of *url* falls under any disallow prefix."""
    if not rules.disallow:
        return False
    try:
        path = urlparse(url).path or "/"
    except ValueError:
        return False
    for rule in rules.disallow:
        if rule == "/":
            return True
        prefix = rule[:-1] if rule.endswith("*") else rule
        if path.startswith(prefix):
            return True
    return False


async def fetch_robots_rules(
    fetcher: Fetcher,
    origin_url: str,
    user_agent: str,
    *,
    timeout: float = ROBOTS_TIMEOUT,
    max_size: int = ROBOTS_MAX_SIZE,
) -> RobotsRuleSet:
    """Download ``/robots.txt`` for the origin of *origin_url* and parse it.

    Any failure (network error, non-2xx status, oversize body) yields an empty
    rule set so that every URL stays crawlable.
    """
    robots_url = urljoin(origin_url, "/robots.txt")
    result = await fetcher.fetch(
        robots_url, timeout=timeout, max_size=max_size, user_agent=user_agent
    )
    if not result.success:
        logger.warning("Could not fetch %s: %s", robots_url, result.error)
        return RobotsRuleSet()
    if result.status_code is None or not 200 <= result.status_code < 300:
        logger.debug("robots.txt %s -> HTTP %s", robots_url, result.status_code)
        return RobotsRuleSet()
    rules = parse_robots_rules(result.data or "", user_agent)
    logger.info(
        "Loaded %d disallow rule(s) from %s", len(rules.disallow), robots_url
    )
    return rules
