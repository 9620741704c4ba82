# site_audit/report/json_report.py

"""
JSON report generation for SiteAudit.

Serializes a CrawlResult into a file.
"""
import json
from pathlib import Path

from site_audit.crawler.models import CrawlResult


def render_json(result: CrawlResult, output_path: Path | str, *, pretty: bool = True) -> Path:
    """
    Save *result* as JSON at *output_path* and return the path.

    Example:
    ```python
    from site_audit.report.json_report import render_json
    report_path = render_json(result, 'reports/report.json')
    print(f"JSON report saved to: {report_path}")
    ```
    """
    output = Path(output_path)
    output.parent.mkdir(parents=True, exist_ok=True)

    with output.open('w', encoding='utf-8') as f:
        json.dump(result.to_dict(), f, ensure_ascii=False, indent=2 if pretty else None)

    return output
