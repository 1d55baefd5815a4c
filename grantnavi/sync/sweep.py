"""
Cross-batch duplicate cleanup.

Groups every persisted row by title key and keeps one survivor per group:
the most recently updated row (ties broken by created_at, then highest id).
Everything else is deleted in a single batch.
"""

import logging
from collections import OrderedDict
from datetime import datetime, timezone
from typing import Dict, List

from grantnavi.core.domain_models import STATUS_ERROR, STATUS_SUCCESS, GrantRecord, SweepResult
from grantnavi.core.errors import StoreError
from grantnavi.core.titles import TitleStrategy, title_key

logger = logging.getLogger(__name__)

_OLDEST = datetime.min.replace(tzinfo=timezone.utc)


def survivor_sort_key(record: GrantRecord):
    """Sort key where the preferred survivor is the maximum."""
    return (
        record.updated_at or record.created_at or _OLDEST,
        record.created_at or _OLDEST,
        record.id or 0,
    )


def group_duplicates(
    records: List[GrantRecord],
    strategy: TitleStrategy = TitleStrategy.STRIP,
) -> Dict[str, List[GrantRecord]]:
    """
    Group records sharing a title key, survivor first.

    Only groups with more than one member are returned.
    """
    groups: Dict[str, List[GrantRecord]] = OrderedDict()
    for record in records:
        groups.setdefault(title_key(record.title, strategy), []).append(record)

    return {
        key: sorted(members, key=survivor_sort_key, reverse=True)
        for key, members in groups.items()
        if len(members) > 1
    }


class DeduplicationSweep:
    """
    Collapse persisted rows that share a title key.

    Usage:
        sweep = DeduplicationSweep(store)
        result = sweep.run()
    """

    def __init__(self, store, title_strategy: TitleStrategy = TitleStrategy.STRIP):
        self.store = store
        self.title_strategy = TitleStrategy(title_strategy)

    def run(self, dry_run: bool = False) -> SweepResult:
        """
        Find and delete duplicates.

        Args:
            dry_run: Report the plan without deleting

        Returns:
            SweepResult; store failures set status to "error"
        """
        result = SweepResult(dry_run=dry_run)

        try:
            records = self.store.fetch_all()
        except StoreError as e:
            logger.error(f"Could not read grants for deduplication: {e}")
            result.status = STATUS_ERROR
            result.message = str(e)
            return result

        groups = group_duplicates(records, self.title_strategy)
        to_delete: List[int] = []
        for key, members in groups.items():
            survivor, losers = members[0], members[1:]
            result.groups[key] = [m.id for m in members]
            to_delete.extend(m.id for m in losers)
            logger.info(
                f"📝 \"{key[:50]}\": keep id {survivor.id}, "
                f"delete {', '.join(str(m.id) for m in losers)}"
            )

        if not to_delete:
            logger.info("✅ No duplicates found")
            result.message = "No duplicates"
            return result

        if dry_run:
            result.message = f"Dry run: {len(to_delete)} duplicates would be deleted"
            logger.info(result.message)
            return result

        try:
            self.store.delete_grants(to_delete)
        except StoreError as e:
            logger.error(f"Deleting duplicates failed: {e}")
            result.status = STATUS_ERROR
            result.message = str(e)
            return result

        result.deleted_ids = to_delete
        result.status = STATUS_SUCCESS
        result.message = f"Deleted {len(to_delete)} duplicates"
        logger.info(f"🧹 {result.message}")
        return result
