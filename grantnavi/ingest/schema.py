"""
Adapter from the CSV shapes produced over time to ``GrantRecord``.

Three layouts exist:
    CURRENT            ... url, source_url   (detail page + listing page)
    LEGACY_SOURCE_URL  ... source_url        (no url column)
    LEGACY_LINK        ... link              (oldest exports)

Current rows take the detail page from ``url`` and keep ``source_url`` as
the listing page. Legacy rows take the first non-empty cell of
``source_url``, ``url`` and ``link``, in that order.
"""

from enum import Enum
from typing import Dict, Iterable, Optional, Sequence

from grantnavi.config import CURRENT_URL_COLUMNS, DEFAULT_URL_COLUMNS
from grantnavi.core.domain_models import GrantRecord, LEVEL_NATIONAL

DEFAULT_INDUSTRY = "旅館業"
DEFAULT_TARGET_TYPE = "法人"


class CsvSchema(str, Enum):
    CURRENT = "current"
    LEGACY_SOURCE_URL = "legacy_source_url"
    LEGACY_LINK = "legacy_link"
    UNKNOWN = "unknown"


def detect_schema(header: Iterable[str]) -> CsvSchema:
    """Identify which CSV layout a header belongs to."""
    columns = set(header)
    if "link" in columns:
        return CsvSchema.LEGACY_LINK
    if "url" in columns and "source_url" in columns:
        return CsvSchema.CURRENT
    if "source_url" in columns:
        return CsvSchema.LEGACY_SOURCE_URL
    return CsvSchema.UNKNOWN


def pick_url(row: Dict[str, str], url_columns: Sequence[str] = DEFAULT_URL_COLUMNS) -> str:
    """First non-empty value among ``url_columns``, in order."""
    for column in url_columns:
        value = (row.get(column) or "").strip()
        if value:
            return value
    return ""


def url_columns_for(header: Iterable[str]) -> Sequence[str]:
    """URL columns to consult for a header, highest priority first."""
    if detect_schema(header) is CsvSchema.CURRENT:
        return CURRENT_URL_COLUMNS
    return DEFAULT_URL_COLUMNS


def to_record(row: Dict[str, str], url_columns: Optional[Sequence[str]] = None) -> GrantRecord:
    """
    Convert one CSV field map to a canonical record.

    The title is kept raw here; normalization is the reconciler's job.

    Args:
        row: Field map from ``read_csv_rows``
        url_columns: Override the layout-based URL column priority
    """
    if url_columns is None:
        url_columns = url_columns_for(row.keys())

    def cell(name: str) -> str:
        return (row.get(name) or "").strip()

    return GrantRecord(
        type=cell("type"),
        title=row.get("title") or "",
        description=cell("description"),
        organization=cell("organization"),
        level=cell("level") or LEVEL_NATIONAL,
        area_prefecture=cell("area_prefecture"),
        area_city=cell("area_city"),
        industry=cell("industry") or DEFAULT_INDUSTRY,
        target_type=cell("target_type") or DEFAULT_TARGET_TYPE,
        max_amount=cell("max_amount"),
        subsidy_rate=cell("subsidy_rate"),
        url=pick_url(row, url_columns),
        source_url=cell("source_url"),
    )
