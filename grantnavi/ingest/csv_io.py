"""
CSV reading and writing for scraper output / sync input.

Reading tolerates RFC 4180 quoting, ragged rows (missing cells become ""),
extra cells (dropped) and a UTF-8 BOM. Row order is file order, which the
reconciler relies on for "first occurrence wins".
"""

import csv
import logging
from pathlib import Path
from typing import Dict, Iterable, List, Union

from grantnavi.core.domain_models import CSV_COLUMNS, GrantRecord
from grantnavi.core.errors import SourceError

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


def _clean_header(header: List[str]) -> List[str]:
    return [name.strip().lstrip("\ufeff").strip() for name in header]


def read_csv_rows(path: PathLike) -> List[Dict[str, str]]:
    """
    Parse a header-first CSV file into ordered field maps.

    Args:
        path: CSV file path

    Returns:
        One dict per data row, keyed by header name in header order

    Raises:
        SourceError: File missing or not parseable as UTF-8 CSV
    """
    file_path = Path(path)
    if not file_path.exists():
        raise SourceError(f"{file_path.name} does not exist")

    rows: List[Dict[str, str]] = []
    try:
        with open(file_path, "r", encoding="utf-8-sig", newline="") as f:
            reader = csv.reader(f)
            header = next(reader, None)
            if header is None:
                return rows

            header = _clean_header(header)
            width = len(header)

            for line_no, cells in enumerate(reader, start=2):
                if not cells or all(not cell.strip() for cell in cells):
                    continue

                if len(cells) > width:
                    logger.debug(
                        f"{file_path.name}:{line_no}: dropping {len(cells) - width} extra cell(s)"
                    )
                cells = cells[:width] + [""] * (width - len(cells))
                rows.append({name: cell.strip() for name, cell in zip(header, cells)})

    except UnicodeDecodeError as e:
        raise SourceError(f"{file_path.name} is not valid UTF-8: {e}") from e
    except csv.Error as e:
        raise SourceError(f"{file_path.name} is malformed: {e}") from e

    logger.debug(f"Read {len(rows)} rows from {file_path}")
    return rows


def write_grants_csv(records: Iterable[GrantRecord], path: PathLike) -> int:
    """
    Write records using the scraper CSV schema.

    Args:
        records: Records to write
        path: Destination file (parent directories are created)

    Returns:
        Number of rows written
    """
    file_path = Path(path)
    file_path.parent.mkdir(parents=True, exist_ok=True)

    count = 0
    with open(file_path, "w", encoding="utf-8", newline="") as f:
        writer = csv.DictWriter(f, fieldnames=CSV_COLUMNS, quoting=csv.QUOTE_MINIMAL, lineterminator="\n")
        writer.writeheader()
        for record in records:
            writer.writerow(record.to_row())
            count += 1

    logger.info(f"📁 Wrote {count} rows to {file_path}")
    return count
