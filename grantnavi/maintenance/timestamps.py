"""
Detect and repair rows whose updated_at predates created_at.
"""

import logging
from datetime import date, datetime, time, timedelta
from typing import List, Optional, Tuple

from tqdm import tqdm

from grantnavi.core.domain_models import GrantRecord
from grantnavi.core.errors import StoreError
from grantnavi.core.time_utils import TZ_TOKYO

logger = logging.getLogger(__name__)


def tokyo_day_window(day: date) -> Tuple[datetime, datetime]:
    """[00:00, next 00:00) of a calendar day in JST."""
    start = datetime.combine(day, time.min, tzinfo=TZ_TOKYO)
    return start, start + timedelta(days=1)


def find_inconsistent_timestamps(
    store,
    created_from: Optional[datetime] = None,
    created_before: Optional[datetime] = None,
) -> List[GrantRecord]:
    """
    Rows with ``updated_at < created_at``.

    Args:
        store: Grant store
        created_from: Only rows created at or after this moment
        created_before: Only rows created before this moment
    """
    found = []
    for record in store.fetch_all():
        if record.created_at is None or record.updated_at is None:
            continue
        if created_from is not None and record.created_at < created_from:
            continue
        if created_before is not None and record.created_at >= created_before:
            continue
        if record.updated_at < record.created_at:
            found.append(record)
    return found


def fix_updated_at(
    store,
    created_from: Optional[datetime] = None,
    created_before: Optional[datetime] = None,
    dry_run: bool = False,
) -> List[int]:
    """
    Set ``updated_at = created_at`` on every inconsistent row.

    Returns:
        IDs fixed (or that would be fixed)
    """
    records = find_inconsistent_timestamps(store, created_from, created_before)
    if not records:
        logger.info("✅ No inconsistent timestamps")
        return []

    logger.info(f"🔧 {len(records)} grants with updated_at before created_at")
    if dry_run:
        return [r.id for r in records]

    fixed = []
    for record in tqdm(records, desc="Fixing updated_at"):
        try:
            store.update_grant(record.id, updated_at=record.created_at)
        except StoreError as e:
            logger.error(f"❌ Grant {record.id}: {e}")
            continue
        fixed.append(record.id)

    logger.info(f"✅ Fixed {len(fixed)} timestamps")
    return fixed
