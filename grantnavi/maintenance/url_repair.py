"""
Invalid URL reporting and repair for persisted grants.

Uses the same ``is_valid_url`` predicate as the reconciler, so a repaired
table and a freshly synced one agree on what "invalid" means.
"""

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional
from urllib.parse import urlparse

from tqdm import tqdm

from grantnavi.core.domain_models import GrantRecord
from grantnavi.core.errors import StoreError
from grantnavi.core.urls import PLACEHOLDER_HOST, PLACEHOLDER_URLS, is_valid_url, resolve_url

logger = logging.getLogger(__name__)

URL_VALID = "valid"
URL_EMPTY = "empty"
URL_PLACEHOLDER = "placeholder"
URL_JAVASCRIPT = "javascript"
URL_RELATIVE = "relative"

URL_BUCKETS = [URL_VALID, URL_PLACEHOLDER, URL_JAVASCRIPT, URL_RELATIVE, URL_EMPTY]


def classify_url(url: Optional[str]) -> str:
    """Bucket a URL; anything not "valid" fails ``is_valid_url``."""
    if is_valid_url(url):
        return URL_VALID

    trimmed = (url or "").strip() if isinstance(url, str) else ""
    if not trimmed:
        return URL_EMPTY
    if "javascript:" in trimmed.lower():
        return URL_JAVASCRIPT
    if trimmed in PLACEHOLDER_URLS:
        return URL_PLACEHOLDER

    try:
        hostname = urlparse(trimmed).hostname
    except ValueError:
        hostname = None
    if hostname == PLACEHOLDER_HOST:
        return URL_PLACEHOLDER

    # Relative paths and anything else that is not absolute http(s)
    return URL_RELATIVE


@dataclass
class UrlReport:
    """Read-only breakdown of the ``url`` column."""
    total: int = 0
    buckets: Dict[str, List[GrantRecord]] = field(default_factory=lambda: defaultdict(list))
    invalid_by_level: Dict[str, int] = field(default_factory=lambda: defaultdict(int))

    @property
    def invalid_count(self) -> int:
        return self.total - len(self.buckets[URL_VALID])


@dataclass
class UrlFix:
    grant_id: int
    title: str
    old_url: Optional[str]
    new_url: str


def analyze_invalid_urls(store) -> UrlReport:
    """
    Classify every persisted row's URL.

    Returns:
        UrlReport with rows per bucket and invalid counts per display level
    """
    report = UrlReport()
    for record in store.fetch_all():
        report.total += 1
        bucket = classify_url(record.url)
        report.buckets[bucket].append(record)
        if bucket != URL_VALID:
            report.invalid_by_level[record.effective_level] += 1

    logger.info(f"📊 {report.invalid_count}/{report.total} grants have invalid URLs")
    return report


def fix_invalid_urls(store, fallback_urls: Mapping[str, str], dry_run: bool = False) -> List[UrlFix]:
    """
    Replace invalid URLs with the organization fallback (or "").

    ``updated_at`` is left untouched; this is a data repair, not a content
    update.

    Args:
        store: Grant store
        fallback_urls: Organization -> official site root
        dry_run: Report the planned changes without writing

    Returns:
        Changes applied (or planned, for a dry run)
    """
    candidates = [r for r in store.fetch_all() if not is_valid_url(r.url)]
    logger.info(f"🔧 {len(candidates)} grants with invalid URLs")

    fixes = []
    for record in tqdm(candidates, desc="Fixing URLs", disable=not candidates):
        new_url = resolve_url(record.url, record.organization, fallback_urls)
        if new_url == (record.url or ""):
            continue

        fix = UrlFix(record.id, record.title, record.url, new_url)
        if dry_run:
            fixes.append(fix)
            continue

        try:
            store.update_grant(record.id, url=new_url)
        except StoreError as e:
            logger.error(f"❌ Grant {record.id}: {e}")
            continue
        fixes.append(fix)

    verb = "Would fix" if dry_run else "Fixed"
    logger.info(f"✅ {verb} {len(fixes)} URLs")
    return fixes
