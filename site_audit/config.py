# === FILE: site_audit/config.py ===
"""
Loading and validation of SiteAudit crawl options.
Pydantic describes the schema and checks the values; files may be YAML or JSON.
"""
from __future__ import annotations

import errno
import json
import os
from pathlib import Path
from typing import Any, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator

DEFAULT_MAX_PAGE_SIZE = 5 * 1024 * 1024
DEFAULT_ROBOTS_MAX_SIZE = 100 * 1024


class CrawlOptions(BaseModel):
    """Options for a single crawl run."""
    model_config = ConfigDict(extra="forbid", frozen=True)

    max_pages: int = Field(100, ge=1, description="Hard limit on successfully fetched pages.")
    max_depth: int = Field(3, ge=0, description="Maximum link depth from the start URL.")
    respect_robots: bool = Field(True, description="Skip URLs disallowed by robots.txt.")
    follow_external_links: bool = Field(
        False, description="Also enqueue links pointing to other hosts."
    )
    delay: float = Field(1.0, ge=0, description="Politeness delay between fetches (seconds).")
    user_agent: str = Field(
        "default", min_length=1, description="Named user agent or a raw User-Agent header."
    )
    timeout: float = Field(15.0, gt=0, description="Per-page request timeout (seconds).")
    max_page_size: int = Field(DEFAULT_MAX_PAGE_SIZE, gt=0, description="Max body size (bytes).")
    robots_timeout: float = Field(5.0, gt=0, description="robots.txt request timeout (seconds).")
    robots_max_size: int = Field(
        DEFAULT_ROBOTS_MAX_SIZE, gt=0, description="Max robots.txt size (bytes)."
    )
    retry_times: int = Field(0, ge=0, description="Retries on network errors, 429 and 5xx.")
    seed_sitemap: bool = Field(False, description="Seed the frontier from sitemap.xml.")
    allow_private_networks: bool = Field(
        False, description="Allow crawling loopback and private network hosts."
    )

    @field_validator("user_agent", mode="before")
    def _strip_user_agent(cls, v: Any) -> Any:
        if isinstance(v, str):
            return v.strip()
        return v

    def merged(self, **overrides: Any) -> CrawlOptions:
        """Return a validated copy with the non-``None`` *overrides* applied."""
        values = self.model_dump()
        values.update({k: v for k, v in overrides.items() if v is not None})
        return CrawlOptions(**values)


_DEFAULT_CFG = Path("configs/default.yaml")


def _read_yaml(path: Path) -> dict[str, Any]:
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as exc:
        raise ValueError(f"Invalid YAML in {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise TypeError(f"Top level of YAML must be a mapping, got {type(data).__name__}")
    return data


def _read_json(path: Path) -> dict[str, Any]:
    try:
        data = json.loads(path.read_text(encoding="utf-8")) or {}
    except json.JSONDecodeError as exc:
        raise ValueError(f"Invalid JSON in {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise TypeError(f"Top level of JSON must be a mapping, got {type(data).__name__}")
    return data


def load_config(path: Union[str, Path, None]) -> CrawlOptions:
    """
    Read YAML or JSON and return validated :class:`CrawlOptions`.
    A missing file raises FileNotFoundError; bad values raise ValidationError.
    """
    if path is None:
        if not _DEFAULT_CFG.exists():
            raise FileNotFoundError(errno.ENOENT, os.strerror(errno.ENOENT), str(_DEFAULT_CFG))
        path_obj = _DEFAULT_CFG
    else:
        path_obj = Path(path).expanduser().resolve()
        if not path_obj.is_file():
            raise FileNotFoundError(errno.ENOENT, os.strerror(errno.ENOENT), str(path_obj))

    suffix = path_obj.suffix.lower()
    if suffix in (".yaml", ".yml"):
        data = _read_yaml(path_obj)
    elif suffix == ".json":
        data = _read_json(path_obj)
    else:
        raise ValueError(f"Unsupported config format: {suffix}")

    return CrawlOptions(**data)


__all__ = ["CrawlOptions", "load_config", "DEFAULT_MAX_PAGE_SIZE", "DEFAULT_ROBOTS_MAX_SIZE"]
