# File: site_audit/utils.py
"""site_audit.utils: URL handling helpers shared by the crawler and the analyzer."""

from __future__ import annotations

import ipaddress
import posixpath
import re
from typing import Collection, List, Optional, Sequence
from urllib.parse import parse_qsl, quote, unquote, urlencode, urljoin, urlparse, urlunparse

from site_audit.logger import logger

__all__: Sequence[str] = (
    "InvalidUrlError",
    "MAX_URL_LENGTH",
    "extract_domain",
    "get_origin",
    "normalize_url",
    "remove_duplicates",
    "resolve_url",
    "validate_url",
)

MAX_URL_LENGTH = 2048

_SKIPPED_SCHEMES = ("mailto:", "tel:", "javascript:", "data:")
_DEFAULT_PORTS = {"http": 80, "https": 443}
_HOSTNAME_RE = re.compile(r"^[^\s/\\@]+$")


class InvalidUrlError(ValueError):
    """Raised when a start URL cannot be crawled at all."""


def normalize_url(url: str) -> str:
    """Canonical form used for visited-set membership.

    Lower-cases scheme and host, drops default ports and fragments, collapses
    dot segments and sorts query parameters. The bare origin keeps its ``/``.
    """
    parsed = urlparse(url.strip())
    scheme = parsed.scheme.lower()
    host = (parsed.hostname or "").lower()
    netloc = host
    if ":" in host:
        netloc = f"[{host}]"
    try:
        port = parsed.port
    except ValueError:
        port = None
    if port is not None and port != _DEFAULT_PORTS.get(scheme):
        netloc = f"{netloc}:{port}"
    if parsed.username:
        netloc = f"{parsed.username}@{netloc}"

    path = unquote(parsed.path or "/")
    norm = posixpath.normpath(path)
    if path.endswith("/") and not norm.endswith("/"):
        norm += "/"
    if not norm.startswith("/"):
        norm = "/" + norm
    norm = quote(norm, safe="/:@!$&'()*+,;=~")

    qs = parse_qsl(parsed.query, keep_blank_values=True)
    qs.sort()
    query = urlencode(qs, doseq=True)
    return urlunparse((scheme, netloc, norm, "", query, ""))


def resolve_url(link: str, base: str) -> Optional[str]:
    """Resolve *link* against *base*; ``None`` for fragments and non-http targets."""
    raw = (link or "").strip()
    if not raw or raw.startswith("#") or raw.lower().startswith(_SKIPPED_SCHEMES):
        return None
    try:
        absolute = urljoin(base, raw)
        parsed = urlparse(absolute)
    except ValueError:
        return None
    if parsed.scheme not in ("http", "https") or not parsed.hostname:
        return None
    return urlunparse(parsed._replace(fragment=""))


def extract_domain(url: str) -> str:
    """Return the lower-cased hostname of *url* (no port)."""
    try:
        return (urlparse(url).hostname or "").lower()
    except ValueError:
        return ""


def get_origin(url: str) -> str:
    parsed = urlparse(url)
    return urlunparse((parsed.scheme, parsed.netloc, "", "", "", ""))


def _is_private_host(host: str) -> bool:
    if host == "localhost" or host.endswith(".localhost"):
        return True
    try:
        addr = ipaddress.ip_address(host)
    except ValueError:
        return False
    return (
        addr.is_private
        or addr.is_loopback
        or addr.is_link_local
        or addr.is_multicast
        or addr.is_reserved
        or addr.is_unspecified
    )


def validate_url(url: str, *, allow_private: bool = False) -> str:
    """Validate a start URL and return it stripped.

    Raises :class:`InvalidUrlError` for anything the crawler must refuse.
    """
    if not isinstance(url, str) or not url.strip():
        raise InvalidUrlError("URL is required")
    candidate = url.strip()
    if len(candidate) > MAX_URL_LENGTH:
        raise InvalidUrlError("URL too long")
    try:
        parsed = urlparse(candidate)
        host = parsed.hostname
        parsed.port  # raises ValueError for an out-of-range port
    except ValueError as exc:
        raise InvalidUrlError(f"Malformed URL: {exc}") from exc
    if parsed.scheme.lower() not in ("http", "https"):
        raise InvalidUrlError("Only HTTP and HTTPS protocols are allowed")
    if not host:
        raise InvalidUrlError("URL has no host")
    if ".." in host or "%" in host or not _HOSTNAME_RE.match(host):
        raise InvalidUrlError("Invalid hostname format")
    if not allow_private and _is_private_host(host):
        raise InvalidUrlError("Access to private/local networks is not allowed")
    logger.debug("Validated URL: %s", candidate)
    return candidate


def remove_duplicates(urls: Collection[str]) -> List[str]:
    """Remove duplicate URLs while keeping their first-seen order."""
    unique = list(dict.fromkeys(urls))
    removed = len(urls) - len(unique)
    if removed:
        logger.debug("Removed %d duplicate URLs", removed)
    return unique
