"""
Dashboard statistics and the "new today" feed.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Dict, List, Optional, Tuple

from grantnavi.core.domain_models import (
    LEVEL_CITY,
    LEVEL_NATIONAL,
    LEVEL_PREFECTURE,
    TYPE_GRANT,
    TYPE_SUBSIDY,
    GrantFilters,
    GrantRecord,
)
from grantnavi.core.time_utils import now_utc, start_of_day_tokyo

logger = logging.getLogger(__name__)

LEVELS = [LEVEL_NATIONAL, LEVEL_PREFECTURE, LEVEL_CITY]
TYPES = [TYPE_SUBSIDY, TYPE_GRANT]


@dataclass
class GrantStats:
    total: int = 0
    by_level: Dict[str, int] = field(default_factory=dict)
    by_type: Dict[str, int] = field(default_factory=dict)
    by_level_type: Dict[Tuple[str, str], int] = field(default_factory=dict)
    updated_last_24h: int = 0

    @property
    def diff(self) -> int:
        """Rows not touched in the last 24 hours."""
        return self.total - self.updated_last_24h


@dataclass
class NewGrant:
    id: int
    title: str
    level: str
    area_prefecture: str
    updated_at: Optional[datetime]
    label: str


def grant_stats(store, now: Optional[datetime] = None) -> GrantStats:
    """Counts by level, type and level x type, computed by the store."""
    now = now or now_utc()
    stats = GrantStats(total=store.count_grants())

    for level in LEVELS:
        stats.by_level[level] = store.count_grants(GrantFilters(level=level))
    for grant_type in TYPES:
        stats.by_type[grant_type] = store.count_grants(GrantFilters(type=grant_type))
    for level in LEVELS:
        for grant_type in TYPES:
            stats.by_level_type[(level, grant_type)] = store.count_grants(
                GrantFilters(level=level, type=grant_type)
            )

    stats.updated_last_24h = len(store.list_grants(updated_since=now - timedelta(hours=24)))
    return stats


def display_label(record: GrantRecord) -> str:
    """Badge text: national, else the prefecture name, else prefecture."""
    if record.level == LEVEL_NATIONAL:
        return LEVEL_NATIONAL
    return record.area_prefecture or LEVEL_PREFECTURE


def today_new_grants(store, limit: int = 10, now: Optional[datetime] = None) -> List[NewGrant]:
    """
    Grants updated since midnight JST, newest first.

    Args:
        store: Grant store
        limit: Maximum rows
        now: Reference moment (defaults to the current time)
    """
    since = start_of_day_tokyo(now)
    records = store.list_grants(limit=limit, updated_since=since)
    return [
        NewGrant(
            id=r.id,
            title=r.title,
            level=r.level,
            area_prefecture=r.area_prefecture,
            updated_at=r.updated_at,
            label=display_label(r),
        )
        for r in records
    ]
