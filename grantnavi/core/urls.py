"""
URL validation and fallback resolution.

``is_valid_url`` is the single predicate used for reporting, write-time
repair and cleanup alike.
"""

import logging
from typing import Mapping, Optional
from urllib.parse import urljoin, urlparse

logger = logging.getLogger(__name__)

PLACEHOLDER_URLS = frozenset({"https://example.com", "http://example.com"})
PLACEHOLDER_HOST = "example.com"


def is_valid_url(url: Optional[str]) -> bool:
    """
    Return True for an absolute http(s) URL with a real hostname.

    Placeholders (``https://example.com``), ``javascript:`` pseudo-URLs,
    relative paths and unparseable strings are all treated as "no URL".

    Examples:
        >>> is_valid_url("https://gov.example.jp/page")
        True
        >>> is_valid_url("javascript:alert(1)")
        False
    """
    if not url or not isinstance(url, str):
        return False

    trimmed = url.strip()
    if not trimmed or trimmed in PLACEHOLDER_URLS:
        return False

    if "javascript:" in trimmed.lower():
        return False

    if not (trimmed.startswith("http://") or trimmed.startswith("https://")):
        return False

    try:
        parsed = urlparse(trimmed)
        hostname = parsed.hostname
    except ValueError:
        return False

    if not hostname or hostname == PLACEHOLDER_HOST:
        return False

    return True


def resolve_url(
    url: Optional[str],
    organization: Optional[str],
    fallback_urls: Mapping[str, str],
) -> str:
    """
    Resolve the URL to persist for a record.

    Priority: the record's own valid URL, then the organization's fallback
    root, then the empty string. The fallback table is only consulted when
    the record's URL is invalid.
    """
    if is_valid_url(url):
        return url.strip()

    fallback = fallback_urls.get(organization or "", "")
    if fallback:
        logger.debug(f"Using fallback URL for {organization}: {fallback}")
    return fallback


def absolute_url(href: str, page_url: str) -> str:
    """Make ``href`` absolute relative to the page it was found on."""
    return urljoin(page_url, href.strip())
