"""
Tabular export of the grants table (CSV or Excel) via pandas.
"""

import logging
from pathlib import Path
from typing import List

import pandas as pd

from grantnavi.core.domain_models import GrantRecord
from grantnavi.storage.queries import GRANT_SELECT_COLUMNS

logger = logging.getLogger(__name__)


def grants_dataframe(records: List[GrantRecord]) -> pd.DataFrame:
    """One row per grant, columns in table order, plus the display level."""
    rows = []
    for record in records:
        row = {column: getattr(record, column) for column in GRANT_SELECT_COLUMNS}
        row["effective_level"] = record.effective_level
        rows.append(row)

    df = pd.DataFrame(rows, columns=GRANT_SELECT_COLUMNS + ["effective_level"])

    # Excel cannot store timezone-aware datetimes
    for col in ("created_at", "updated_at"):
        df[col] = pd.to_datetime(df[col], utc=True).dt.tz_localize(None)

    return df


def export_grants(records: List[GrantRecord], output_path: Path) -> int:
    """
    Write grants to ``.csv`` or ``.xlsx`` depending on the suffix.

    Returns:
        Number of rows written
    """
    output_path = Path(output_path)
    df = grants_dataframe(records)

    if output_path.suffix.lower() in (".xlsx", ".xls"):
        df.to_excel(output_path, index=False, sheet_name="grants")
    else:
        df.to_csv(output_path, index=False, encoding="utf-8-sig")

    logger.info(f"📁 Exported {len(df)} grants to {output_path}")
    return len(df)
