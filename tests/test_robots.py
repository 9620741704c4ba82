# File: tests/test_robots.py
import pytest

from site_audit.crawler.models import RobotsRuleSet
from site_audit.crawler.robots import (
    fetch_robots_rules,
    is_blocked_by_robots,
    parse_robots_rules,
    robots_token,
)

from conftest import FakeFetcher, failed, text

ROBOTS = """
# comment line
User-agent: *
Disallow: /admin
Disallow: /tmp/*
Allow: /admin/public
Crawl-delay: 2

User-agent: Googlebot
Disallow: /

Sitemap: https://example.com/sitemap.xml
"""


def test_parse_wildcard_group():
    rules = parse_robots_rules(ROBOTS, "default")
    assert rules.disallow == ("/admin", "/tmp/*")
    assert rules.crawl_delay == 2.0
    assert rules.sitemaps == ("https://example.com/sitemap.xml",)


def test_parse_named_agent_group():
    rules = parse_robots_rules(ROBOTS, "google")
    assert "/" in rules.disallow
    assert "/admin" in rules.disallow


def test_consecutive_user_agents_share_group():
    content = "User-agent: Foo\nUser-agent: SiteAuditBot\nDisallow: /private\n"
    assert parse_robots_rules(content, "SiteAuditBot/2.0").disallow == ("/private",)
    assert parse_robots_rules(content, "Other/1.0").disallow == ()


def test_default_agent_matches_its_own_group():
    content = (
        "User-agent: Mozilla\nDisallow: /browsers-only\n\n"
        "User-agent: SiteAuditBot\nDisallow: /private\n"
    )
    assert parse_robots_rules(content, "default").disallow == ("/private",)


def test_mozilla_group_does_not_apply_to_default_agent():
    content = "User-agent: Mozilla\nDisallow: /\n"
    assert parse_robots_rules(content, "default").disallow == ()


@pytest.mark.parametrize(
    "user_agent,token",
    [
        ("default", "siteauditbot"),
        ("google", "googlebot"),
        ("linkedin", "linkedinbot"),
        ("facebook", "facebookexternalhit"),
        ("MyBot/3.0 (+https://example.com)", "mybot"),
        ("Mozilla/5.0", "mozilla"),
        ("plainbot", "plainbot"),
    ],
)
def test_robots_token(user_agent, token):
    assert robots_token(user_agent) == token


def test_empty_disallow_allows_everything():
    rules = parse_robots_rules("User-agent: *\nDisallow:\n", "default")
    assert rules == RobotsRuleSet()
    assert not is_blocked_by_robots("https://example.com/anything", rules)


def test_malformed_lines_are_skipped():
    rules = parse_robots_rules("garbage\nDisallow /x\nUser-agent: *\nCrawl-delay: soon\n", "default")
    assert rules.disallow == ()
    assert rules.crawl_delay is None


@pytest.mark.parametrize(
    "url,blocked",
    [
        ("https://example.com/admin", True),
        ("https://example.com/admin/users", True),
        ("https://example.com/administrator", True),
        ("https://example.com/tmp/file", True),
        ("https://example.com/public", False),
        ("https://example.com/", False),
    ],
)
def test_prefix_matching(url, blocked):
    rules = RobotsRuleSet(disallow=("/admin", "/tmp/*"))
    assert is_blocked_by_robots(url, rules) is blocked


def test_root_rule_blocks_everything():
    rules = RobotsRuleSet(disallow=("/",))
    assert is_blocked_by_robots("https://example.com/", rules)
    assert is_blocked_by_robots("https://example.com/a/b?c=d", rules)


def test_allow_does_not_override_disallow():
    rules = parse_robots_rules(ROBOTS, "default")
    assert is_blocked_by_robots("https://example.com/admin/public", rules)


@pytest.mark.asyncio()
async def test_fetch_rules_success():
    fetcher = FakeFetcher({"https://example.com/robots.txt": text("User-agent: *\nDisallow: /x")})
    rules = await fetch_robots_rules(fetcher, "https://example.com", "default")
    assert rules.disallow == ("/x",)
    assert fetcher.calls == ["https://example.com/robots.txt"]


@pytest.mark.asyncio()
@pytest.mark.parametrize(
    "result",
    [failed("Request timeout"), failed("Response too large"), text("oops", status=500)],
)
async def test_fetch_rules_fail_open(result):
    fetcher = FakeFetcher({"https://example.com/robots.txt": result})
    rules = await fetch_robots_rules(fetcher, "https://example.com/some/page", "default")
    assert rules == RobotsRuleSet()
    assert not is_blocked_by_robots("https://example.com/x", rules)


@pytest.mark.asyncio()
async def test_fetch_rules_missing_file():
    rules = await fetch_robots_rules(FakeFetcher({}), "https://example.com", "default")
    assert rules.disallow == ()
