# File: site_audit/report/__init__.py
"""site_audit.report: JSON and HTML report writers used by the CLI."""

from __future__ import annotations

from pathlib import Path

from .html_report import render_html
from .json_report import render_json

DEFAULT_TEMPLATE_DIR = Path(__file__).resolve().parent.parent / "templates"

__all__ = ["DEFAULT_TEMPLATE_DIR", "render_json", "render_html"]
