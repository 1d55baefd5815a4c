"""
Classify persisted grants as genuine or likely dummy/test data.

A row is a likely dummy when, checked in this order:
1. its normalized title is "title" or shorter than 3 characters
2. it was created on one of the known bulk-test dates (UTC calendar day)
3. its URL is invalid and its title does not appear in any scraped CSV
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, List, Set, Tuple

from grantnavi.core.domain_models import GrantRecord
from grantnavi.core.errors import SourceError
from grantnavi.core.titles import normalize_title
from grantnavi.core.urls import is_valid_url
from grantnavi.ingest.csv_io import read_csv_rows

logger = logging.getLogger(__name__)

REASON_TITLE = "unnatural title"
REASON_BULK_DATE = "created on bulk-test date"
REASON_UNSOURCED = "invalid URL and not in scraped data"


@dataclass
class GrantClassification:
    record: GrantRecord
    clean_title: str
    reasons: List[str] = field(default_factory=list)

    @property
    def is_dummy(self) -> bool:
        return bool(self.reasons)


def load_scraped_titles(paths: Iterable[Path]) -> Set[str]:
    """Normalized titles from the scraper CSVs; missing files are skipped."""
    titles = set()
    for path in paths:
        path = Path(path)
        if not path.exists():
            logger.debug(f"Scraped file not found, skipping: {path}")
            continue
        try:
            rows = read_csv_rows(path)
        except SourceError as e:
            logger.warning(f"⚠️  {e}")
            continue
        titles.update(t for t in (normalize_title(r.get("title")) for r in rows) if t)
    return titles


def classify_grant(
    record: GrantRecord,
    scraped_titles: Set[str],
    bulk_test_dates: Iterable[str] = (),
) -> GrantClassification:
    clean_title = normalize_title(record.title)
    result = GrantClassification(record=record, clean_title=clean_title)

    created_day = record.created_at.date().isoformat() if record.created_at else ""

    if clean_title == "title" or len(clean_title) < 3:
        result.reasons.append(REASON_TITLE)
    elif created_day and created_day in set(bulk_test_dates):
        result.reasons.append(REASON_BULK_DATE)
    elif not is_valid_url(record.url) and clean_title not in scraped_titles:
        result.reasons.append(REASON_UNSOURCED)

    return result


def classify_grants(
    records: Iterable[GrantRecord],
    scraped_titles: Set[str],
    bulk_test_dates: Iterable[str] = (),
) -> Tuple[List[GrantClassification], List[GrantClassification]]:
    """
    Split records into (valid, dummy).

    Args:
        records: Persisted grants
        scraped_titles: Normalized titles seen in scraper output
        bulk_test_dates: "YYYY-MM-DD" days on which test data was loaded
    """
    dates = tuple(bulk_test_dates)
    valid, dummy = [], []
    for record in records:
        classification = classify_grant(record, scraped_titles, dates)
        (dummy if classification.is_dummy else valid).append(classification)
    return valid, dummy


def delete_dummy_grants(
    store,
    scraped_titles: Set[str],
    bulk_test_dates: Iterable[str] = (),
    dry_run: bool = False,
) -> List[GrantClassification]:
    """
    Delete every likely dummy row in one batch.

    Returns:
        The dummy classifications (deleted, or to be deleted on a dry run)
    """
    _, dummy = classify_grants(store.fetch_all(), scraped_titles, bulk_test_dates)
    if not dummy:
        logger.info("✅ No dummy grants found")
        return []

    if dry_run:
        logger.info(f"Dry run: {len(dummy)} dummy grants would be deleted")
        return dummy

    deleted = store.delete_grants(c.record.id for c in dummy)
    logger.info(f"🧹 Deleted {deleted} dummy grants")
    return dummy
