# File: tests/test_cli.py
"""Tests for the click CLI (`site_audit.cli`) using click.testing.CliRunner.
Cover the `crawl` and `config` commands, `--version` and error handling.
"""
import json

import pytest
from click.testing import CliRunner

from site_audit.cli import cli
from site_audit.crawler.models import (
    CrawlIssue,
    CrawlPage,
    CrawlResult,
    CrawlSettings,
    CrawlStats,
    CrawlSummary,
)
from site_audit.utils import InvalidUrlError

QUIET = ["--log-level", "CRITICAL"]


def make_result(start_url: str = "https://example.com/") -> CrawlResult:
    page = CrawlPage(
        url=start_url,
        status_code=200,
        depth=0,
        crawled_at="2024-01-01T00:00:00+00:00",
        title="Home",
    )
    issue = CrawlIssue(
        type="warning",
        category="seo",
        page=start_url,
        issue="Missing meta description",
        description="Missing meta description",
        recommendation="Add one.",
        severity="medium",
    )
    return CrawlResult(
        start_url=start_url,
        pages=(page,),
        issues=(issue,),
        summary=CrawlSummary(total_pages=1, total_issues=1),
        crawl_settings=CrawlSettings(
            max_pages=100, max_depth=3, respect_robots=True, follow_external_links=False
        ),
        crawl_stats=CrawlStats(
            start_time="2024-01-01T00:00:00+00:00",
            end_time="2024-01-01T00:00:01+00:00",
            duration=1000.0,
            pages_per_second=1.0,
        ),
    )


@pytest.fixture()
def calls(monkeypatch):
    """Replace Engine.crawl with a stub that records its options and arguments."""
    recorded = []

    def fake_crawl(self, start_url, *, timeout=None, on_progress=None):
        if start_url.startswith("ftp"):
            raise InvalidUrlError("Only HTTP and HTTPS protocols are allowed")
        recorded.append({"options": self.options, "url": start_url, "timeout": timeout})
        return make_result()

    monkeypatch.setattr("site_audit.engine.Engine.crawl", fake_crawl)
    return recorded


def test_version_option():
    runner = CliRunner()
    result = runner.invoke(cli, ["--version"])
    assert result.exit_code == 0
    assert "SiteAudit" in result.output


def test_show_config_defaults():
    runner = CliRunner()
    result = runner.invoke(cli, QUIET + ["config"])
    assert result.exit_code == 0
    data = json.loads(result.output)
    assert data["max_pages"] == 100
    assert data["respect_robots"] is True


def test_show_config_from_file(tmp_path):
    cfg_file = tmp_path / "config.json"
    cfg_file.write_text(json.dumps({"max_pages": 5, "delay": 0.1}), encoding="utf-8")
    runner = CliRunner()
    result = runner.invoke(cli, QUIET + ["--config", str(cfg_file), "--limit", "3", "config"])
    assert result.exit_code == 0
    data = json.loads(result.output)
    assert data["max_pages"] == 3
    assert data["delay"] == 0.1


def test_bad_config_file(tmp_path):
    cfg_file = tmp_path / "config.yaml"
    cfg_file.write_text("max_pages: -4\n", encoding="utf-8")
    runner = CliRunner()
    result = runner.invoke(cli, QUIET + ["--config", str(cfg_file), "config"])
    assert result.exit_code == 1


def test_crawl_stdout(calls):
    runner = CliRunner()
    result = runner.invoke(cli, QUIET + ["crawl", "https://example.com"])
    assert result.exit_code == 0
    data = json.loads(result.output)
    assert data["start_url"] == "https://example.com/"
    assert data["pages"][0]["title"] == "Home"
    assert calls[0]["url"] == "https://example.com"


def test_crawl_options_forwarded(calls):
    runner = CliRunner()
    result = runner.invoke(
        cli,
        QUIET
        + [
            "--limit", "10",
            "crawl", "https://example.com",
            "--max-depth", "1",
            "--delay", "0",
            "--user-agent", "google",
            "--ignore-robots",
            "--follow-external",
            "--crawl-timeout", "30",
        ],
    )
    assert result.exit_code == 0
    opts = calls[0]["options"]
    assert opts.max_pages == 10
    assert opts.max_depth == 1
    assert opts.delay == 0
    assert opts.user_agent == "google"
    assert opts.respect_robots is False
    assert opts.follow_external_links is True
    assert opts.seed_sitemap is False
    assert calls[0]["timeout"] == 30.0


def test_crawl_json_file(tmp_path, calls):
    out = tmp_path / "reports" / "out.json"
    runner = CliRunner()
    result = runner.invoke(cli, QUIET + ["crawl", "https://example.com", "--json", str(out)])
    assert result.exit_code == 0
    assert "JSON report" in result.output
    data = json.loads(out.read_text(encoding="utf-8"))
    assert data["issues"][0]["issue"] == "Missing meta description"


def test_crawl_html_file(tmp_path, calls):
    out = tmp_path / "report.html"
    runner = CliRunner()
    result = runner.invoke(cli, QUIET + ["crawl", "https://example.com", "--html", str(out)])
    assert result.exit_code == 0
    content = out.read_text(encoding="utf-8")
    assert "https://example.com/" in content
    assert "Missing meta description" in content


def test_crawl_invalid_url(calls):
    runner = CliRunner()
    result = runner.invoke(cli, QUIET + ["crawl", "ftp://example.com"])
    assert result.exit_code == 1
    assert calls == []


def test_crawl_invalid_option_value(calls):
    runner = CliRunner()
    result = runner.invoke(cli, QUIET + ["crawl", "https://example.com", "--max-depth", "-1"])
    assert result.exit_code != 0
    assert calls == []
