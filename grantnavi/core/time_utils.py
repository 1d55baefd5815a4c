"""
Timezone utilities.

Listings are published for Japanese audiences, so "today" is always
computed in Asia/Tokyo. Stored timestamps are ISO-8601 in UTC.
"""

from datetime import datetime, timezone
from typing import Optional
import zoneinfo

from dateutil import parser as dateparser

# Canonical timezone for "today" style queries
TZ_TOKYO = zoneinfo.ZoneInfo("Asia/Tokyo")


def now_utc() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def now_tokyo() -> datetime:
    """Current time in Japan Standard Time."""
    return datetime.now(TZ_TOKYO)


def start_of_day_tokyo(moment: Optional[datetime] = None) -> datetime:
    """
    Midnight JST of the day containing ``moment``.

    Args:
        moment: Aware datetime (defaults to now)

    Returns:
        datetime: 00:00 Asia/Tokyo, timezone-aware
    """
    moment = (moment or now_tokyo()).astimezone(TZ_TOKYO)
    return moment.replace(hour=0, minute=0, second=0, microsecond=0)


def utc_isoformat(moment: Optional[datetime] = None) -> str:
    """ISO-8601 UTC string as written to the store."""
    return (moment or now_utc()).astimezone(timezone.utc).isoformat()


def parse_timestamp(value) -> Optional[datetime]:
    """
    Parse a stored timestamp into an aware datetime.

    Accepts datetimes (from psycopg2) or ISO strings (from SQLite).
    Naive values are assumed to be UTC. Returns None when unparseable.
    """
    if value is None or value == "":
        return None

    if isinstance(value, datetime):
        parsed = value
    else:
        try:
            parsed = dateparser.isoparse(str(value))
        except (ValueError, TypeError, OverflowError):
            return None

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed
