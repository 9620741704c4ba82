# File: site_audit/report/html_report.py
"""site_audit.report.html_report: HTML report rendering with Jinja2."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Union

from jinja2 import Environment, FileSystemLoader, select_autoescape

from site_audit.crawler.models import CrawlResult

TEMPLATE_NAME = "report.html.j2"


def render_html(
    result: CrawlResult,
    template_dir: Union[Path, str],
    output_path: Union[Path, str],
) -> Path:
    """Render the crawl report from a template and save it.

    Args:
        result: the CrawlResult of a finished crawl.
        template_dir: directory holding ``report.html.j2``.
        output_path: path of the HTML file to write.

    Returns:
        Path of the saved HTML file.

    Example:
    ```python
    from site_audit.report.html_report import render_html
    html_path = render_html(
        result,
        template_dir='site_audit/templates',
        output_path='reports/report.html'
    )
    ```
    """
    template_dir = Path(template_dir)
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    env = Environment(
        loader=FileSystemLoader(str(template_dir)),
        autoescape=select_autoescape(["html", "xml", "j2"]),
    )
    template = env.get_template(TEMPLATE_NAME)

    context: dict[str, Any] = {
        "start_url": result.start_url,
        "pages": result.pages,
        "issues": result.issues,
        "summary": result.summary,
        "settings": result.crawl_settings,
        "stats": result.crawl_stats,
    }

    html_content = template.render(**context)
    output_path.write_text(html_content, encoding="utf-8")

    return output_path
