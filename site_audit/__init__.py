# site_audit/__init__.py
"""
SiteAudit package initializer.
Defines package version and exposes the crawl entry point and the CLI.
"""
__version__ = "0.1.0"

from site_audit.crawler.crawler import crawl_website  # noqa: E402
from .cli import cli  # noqa: E402

__all__ = ["__version__", "cli", "crawl_website"]
