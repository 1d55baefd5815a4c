"""
Canonical domain models for the grant sync system.

Every CSV shape and every storage backend converts into these types before
business logic sees the data.
"""

from dataclasses import dataclass, field, asdict
from datetime import datetime
from typing import Optional, List, Dict, Any

from .time_utils import parse_timestamp

LEVEL_NATIONAL = "national"
LEVEL_PREFECTURE = "prefecture"
# Not a stored value: city rows are level == "prefecture" with area_city set
LEVEL_CITY = "city"

TYPE_SUBSIDY = "補助金"
TYPE_GRANT = "助成金"

STATUS_SUCCESS = "success"
STATUS_ERROR = "error"

# Columns written by the scrapers, in file order
CSV_COLUMNS = [
    "type",
    "title",
    "description",
    "organization",
    "level",
    "area_prefecture",
    "area_city",
    "industry",
    "target_type",
    "max_amount",
    "subsidy_rate",
    "url",
    "source_url",
]

# Columns written by the reconciler on upsert
GRANT_WRITE_COLUMNS = CSV_COLUMNS


@dataclass
class GrantRecord:
    """
    One subsidy/grant listing.

    ``id``, ``created_at`` and ``updated_at`` are assigned by the store and
    are None for records that have not been persisted yet.
    """
    title: str
    type: str = ""
    description: str = ""
    organization: str = ""
    level: str = LEVEL_NATIONAL
    area_prefecture: str = ""
    area_city: str = ""
    industry: str = ""
    target_type: str = ""
    max_amount: str = ""
    subsidy_rate: str = ""
    url: Optional[str] = ""
    source_url: Optional[str] = ""

    # Store-assigned
    id: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def effective_level(self) -> str:
        """Display level: prefecture rows with a city are municipal."""
        if self.level == LEVEL_PREFECTURE and (self.area_city or "").strip():
            return LEVEL_CITY
        return self.level or ""

    def to_row(self) -> Dict[str, Any]:
        """Writable columns only, with None coerced to empty string."""
        return {column: (getattr(self, column) or "") for column in GRANT_WRITE_COLUMNS}

    @classmethod
    def from_mapping(cls, row: Dict[str, Any]) -> "GrantRecord":
        """Build from a store row (sqlite3.Row, RealDictRow or dict)."""
        keys = set(row.keys())

        def get(name, default=""):
            return row[name] if name in keys and row[name] is not None else default

        return cls(
            id=row["id"] if "id" in keys else None,
            title=get("title"),
            type=get("type"),
            description=get("description"),
            organization=get("organization"),
            level=get("level"),
            area_prefecture=get("area_prefecture"),
            area_city=get("area_city"),
            industry=get("industry"),
            target_type=get("target_type"),
            max_amount=get("max_amount"),
            subsidy_rate=get("subsidy_rate"),
            url=row["url"] if "url" in keys else "",
            source_url=row["source_url"] if "source_url" in keys else "",
            created_at=parse_timestamp(get("created_at", None)),
            updated_at=parse_timestamp(get("updated_at", None)),
        )


@dataclass
class SyncResult:
    """Outcome of reconciling one CSV source."""
    source: str
    new_count: int = 0
    updated_count: int = 0
    skipped_duplicates: int = 0
    skipped_invalid: int = 0
    status: str = STATUS_SUCCESS
    message: str = ""

    @property
    def synced_count(self) -> int:
        return self.new_count + self.updated_count

    @property
    def ok(self) -> bool:
        return self.status == STATUS_SUCCESS


@dataclass
class SweepResult:
    """Outcome of one deduplication sweep."""
    groups: Dict[str, List[int]] = field(default_factory=dict)  # key -> ids, survivor first
    deleted_ids: List[int] = field(default_factory=list)
    status: str = STATUS_SUCCESS
    message: str = ""
    dry_run: bool = False

    @property
    def deleted_count(self) -> int:
        return len(self.deleted_ids)


@dataclass
class SyncLogEntry:
    """One audit row in ``sync_logs``."""
    source: str
    records_synced: int
    status: str
    message: str
    created_at: Optional[datetime] = None

    def to_row(self) -> Dict[str, Any]:
        row = asdict(self)
        row.pop("created_at")
        return row


@dataclass
class GrantFilters:
    """
    Listing filters.

    ``level`` accepts "national", "prefecture" or "city"; city and
    prefecture are both stored as level "prefecture" and are told apart by
    whether ``area_city`` is set.
    """
    level: Optional[str] = None
    type: Optional[str] = None
    area_prefecture: Optional[str] = None
    area_city: Optional[str] = None
