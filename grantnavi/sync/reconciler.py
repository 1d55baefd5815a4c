"""
Merge one CSV source into the persisted ``grants`` table.

Steps, in order:
1. Adapt each row to a GrantRecord and normalize its title
2. Resolve the URL (own valid URL > organization fallback > "")
3. Drop later rows whose title key repeats an earlier one in the batch
4. Partition the kept rows into new vs. existing with one bulk lookup
5. Upsert all kept rows in one batch keyed on title
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Mapping, Optional, Sequence

from grantnavi.config import DEFAULT_ORG_URLS
from grantnavi.core.domain_models import STATUS_ERROR, STATUS_SUCCESS, GrantRecord, SyncResult
from grantnavi.core.errors import StoreError
from grantnavi.core.titles import TitleStrategy, normalize_title, title_key
from grantnavi.core.urls import resolve_url
from grantnavi.ingest.schema import to_record

logger = logging.getLogger(__name__)


@dataclass
class PreparedBatch:
    """Rows that survived validation and in-batch deduplication."""
    records: List[GrantRecord] = field(default_factory=list)
    skipped_duplicates: int = 0
    skipped_invalid: int = 0


class GrantReconciler:
    """
    Reconcile CSV rows with the grants table.

    Usage:
        reconciler = GrantReconciler(store)
        result = reconciler.reconcile("national", rows)
    """

    def __init__(
        self,
        store,
        fallback_urls: Optional[Mapping[str, str]] = None,
        title_strategy: TitleStrategy = TitleStrategy.STRIP,
        url_columns: Optional[Sequence[str]] = None,
    ):
        """
        Args:
            store: GrantStore or PostgresGrantStore
            fallback_urls: Organization -> site root used for invalid URLs
            title_strategy: Key used for in-batch duplicate detection
            url_columns: CSV columns holding the URL, highest priority first
                (default: chosen from each row's layout)
        """
        self.store = store
        self.fallback_urls = dict(DEFAULT_ORG_URLS if fallback_urls is None else fallback_urls)
        self.title_strategy = TitleStrategy(title_strategy)
        self.url_columns = tuple(url_columns) if url_columns else None

    def prepare(self, rows: Iterable[Dict[str, str]]) -> PreparedBatch:
        """
        Validate, repair and deduplicate rows without touching the store.

        The first row for each title key wins; later ones are discarded.
        """
        batch = PreparedBatch()
        seen: Dict[str, GrantRecord] = {}

        for index, row in enumerate(rows, start=1):
            record = to_record(row, self.url_columns)
            record.title = normalize_title(record.title)

            if not record.title:
                logger.warning(f"Row {index}: empty title, skipping")
                batch.skipped_invalid += 1
                continue

            raw_url = record.url
            record.url = resolve_url(raw_url, record.organization, self.fallback_urls)
            if record.url != (raw_url or "").strip():
                logger.debug(f"Row {index}: URL {raw_url!r} -> {record.url!r}")

            key = title_key(record.title, self.title_strategy)
            if key in seen:
                logger.info(
                    f"Row {index}: duplicate title in batch, keeping first occurrence: "
                    f"{record.title[:50]}"
                )
                batch.skipped_duplicates += 1
                continue

            seen[key] = record
            batch.records.append(record)

        return batch

    def reconcile(self, source_label: str, rows: Iterable[Dict[str, str]]) -> SyncResult:
        """
        Upsert one source's rows.

        Store failures abort the whole batch and are reported through the
        returned SyncResult; they are not raised.

        Args:
            source_label: Name recorded in the sync log (e.g. "national")
            rows: CSV field maps in file order

        Returns:
            SyncResult with new/updated counts or an error status
        """
        batch = self.prepare(rows)
        result = SyncResult(
            source=source_label,
            skipped_duplicates=batch.skipped_duplicates,
            skipped_invalid=batch.skipped_invalid,
        )

        if not batch.records:
            result.message = "No valid rows to sync"
            logger.warning(f"[{source_label}] {result.message}")
            return result

        try:
            existing = self.store.existing_titles(r.title for r in batch.records)
            self.store.upsert_grants(batch.records)
        except StoreError as e:
            logger.error(f"[{source_label}] Batch upsert failed: {e}")
            result.status = STATUS_ERROR
            result.message = str(e)
            return result

        result.updated_count = sum(1 for r in batch.records if r.title in existing)
        result.new_count = len(batch.records) - result.updated_count
        result.status = STATUS_SUCCESS
        result.message = (
            f"Synced successfully ({result.new_count} new, {result.updated_count} updated)"
        )
        logger.info(f"[{source_label}] ✅ {result.message}")
        return result
