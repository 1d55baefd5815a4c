"""
SQLite storage for GrantRecord objects.

Handles:
- Batch upsert keyed on title
- Bulk title lookups for new/updated partitioning
- Batch deletes by id
- Filtered listings and counts
- Sync log rows
"""

import logging
import sqlite3
from datetime import datetime
from typing import Any, Iterable, List, Optional, Set

from grantnavi.core.domain_models import (
    GRANT_WRITE_COLUMNS,
    GrantFilters,
    GrantRecord,
    SyncLogEntry,
)
from grantnavi.core.errors import StoreError
from grantnavi.core.time_utils import parse_timestamp, utc_isoformat
from .db import Database
from .queries import GRANT_SELECT_COLUMNS, UPDATABLE_COLUMNS, build_filter_clause


logger = logging.getLogger(__name__)

# SQLite's default limit on bound parameters is 999
_CHUNK_SIZE = 500


def _chunks(values: List[Any], size: int = _CHUNK_SIZE):
    for start in range(0, len(values), size):
        yield values[start:start + size]


class GrantStore:
    """
    Persistent storage for grants in SQLite.

    Usage:
        store = GrantStore("grants.db")
        store.upsert_grants(records)
        rows = store.fetch_all()
    """

    def __init__(self, db_path: str = "grants.db"):
        """
        Initialize grant store.

        Args:
            db_path: Path to SQLite database
        """
        self.db = Database(db_path)

    def init_schema(self) -> None:
        """Create tables and indexes if they are missing."""
        self.db._init_db()

    def close(self) -> None:
        """Nothing to release; connections are opened per call."""

    def __repr__(self) -> str:
        return f"GrantStore({self.db.path!r})"

    def existing_titles(self, titles: Iterable[str]) -> Set[str]:
        """
        Return the subset of ``titles`` already stored (exact match).

        Args:
            titles: Titles to look up

        Returns:
            Titles present in the grants table
        """
        wanted = list(dict.fromkeys(titles))
        found: Set[str] = set()
        if not wanted:
            return found

        try:
            with self.db.get_connection() as conn:
                cursor = conn.cursor()
                for chunk in _chunks(wanted):
                    marks = ", ".join("?" for _ in chunk)
                    cursor.execute(f"SELECT title FROM grants WHERE title IN ({marks})", chunk)
                    found.update(row["title"] for row in cursor.fetchall())
        except sqlite3.Error as e:
            raise StoreError(f"Title lookup failed: {e}") from e

        return found

    def upsert_grants(self, records: List[GrantRecord]) -> None:
        """
        Insert or update grants in one transaction.

        Uses UPSERT (INSERT ... ON CONFLICT(title)) so re-syncing a title
        updates the row in place. Either every record is written or none is.

        Args:
            records: Records to persist; titles must be unique in the batch
        """
        if not records:
            return

        columns = list(GRANT_WRITE_COLUMNS)
        column_sql = ", ".join(columns)
        value_sql = ", ".join(f":{c}" for c in columns)
        update_sql = ", ".join(f"{c}=excluded.{c}" for c in columns if c != "title")

        now = utc_isoformat()
        params = []
        for record in records:
            row = record.to_row()
            row["now"] = now
            params.append(row)

        try:
            with self.db.get_connection() as conn:
                conn.executemany(
                    f"""
                    INSERT INTO grants ({column_sql}, created_at, updated_at)
                    VALUES ({value_sql}, :now, :now)
                    ON CONFLICT(title) DO UPDATE SET
                        {update_sql},
                        updated_at=excluded.updated_at;
                    """,
                    params,
                )
        except sqlite3.Error as e:
            raise StoreError(f"Upsert of {len(records)} grants failed: {e}") from e

        logger.debug(f"Upserted {len(records)} grants")

    def fetch_all(self) -> List[GrantRecord]:
        """All grants, oldest id first."""
        try:
            with self.db.get_connection() as conn:
                cursor = conn.cursor()
                cursor.execute(f"SELECT {', '.join(GRANT_SELECT_COLUMNS)} FROM grants ORDER BY id")
                rows = cursor.fetchall()
        except sqlite3.Error as e:
            raise StoreError(f"Reading grants failed: {e}") from e

        return [GrantRecord.from_mapping(row) for row in rows]

    def get_grant(self, grant_id: int) -> Optional[GrantRecord]:
        """
        Retrieve grant by ID.

        Returns:
            GrantRecord or None if not found
        """
        try:
            with self.db.get_connection() as conn:
                cursor = conn.cursor()
                cursor.execute(
                    f"SELECT {', '.join(GRANT_SELECT_COLUMNS)} FROM grants WHERE id = ? LIMIT 1",
                    (grant_id,),
                )
                row = cursor.fetchone()
        except sqlite3.Error as e:
            raise StoreError(f"Reading grant {grant_id} failed: {e}") from e

        return GrantRecord.from_mapping(row) if row else None

    def delete_grants(self, ids: Iterable[int]) -> int:
        """
        Delete grants by id in a single transaction.

        Returns:
            Number of rows deleted
        """
        id_list = list(ids)
        if not id_list:
            return 0

        deleted = 0
        try:
            with self.db.get_connection() as conn:
                cursor = conn.cursor()
                for chunk in _chunks(id_list):
                    marks = ", ".join("?" for _ in chunk)
                    cursor.execute(f"DELETE FROM grants WHERE id IN ({marks})", chunk)
                    deleted += cursor.rowcount
        except sqlite3.Error as e:
            raise StoreError(f"Deleting {len(id_list)} grants failed: {e}") from e

        logger.debug(f"Deleted {deleted} grants")
        return deleted

    def update_grant(self, grant_id: int, **fields) -> None:
        """
        Patch individual columns of one grant.

        Used by the URL and timestamp backfills. ``updated_at`` is only
        changed when passed explicitly.
        """
        unknown = set(fields) - UPDATABLE_COLUMNS
        if unknown:
            raise ValueError(f"Cannot update columns: {', '.join(sorted(unknown))}")
        if not fields:
            return

        values = {
            k: (utc_isoformat(v) if isinstance(v, datetime) else v)
            for k, v in fields.items()
        }
        set_sql = ", ".join(f"{k} = :{k}" for k in values)
        values["grant_id"] = grant_id

        try:
            with self.db.get_connection() as conn:
                conn.execute(f"UPDATE grants SET {set_sql} WHERE id = :grant_id", values)
        except sqlite3.Error as e:
            raise StoreError(f"Updating grant {grant_id} failed: {e}") from e

    def list_grants(
        self,
        filters: Optional[GrantFilters] = None,
        limit: Optional[int] = None,
        updated_since: Optional[datetime] = None,
    ) -> List[GrantRecord]:
        """
        List grants, newest first.

        Args:
            filters: Level/type/area filters
            limit: Maximum rows to return
            updated_since: Only rows with updated_at at or after this moment

        Returns:
            List of GrantRecord objects
        """
        where_sql, params = build_filter_clause(filters or GrantFilters(), "?")
        rows = self._select(where_sql, params, order="created_at DESC, id DESC")

        records = [GrantRecord.from_mapping(row) for row in rows]
        if updated_since is not None:
            records = [r for r in records if r.updated_at and r.updated_at >= updated_since]
            records.sort(key=lambda r: r.updated_at, reverse=True)
        if limit is not None:
            records = records[:limit]
        return records

    def count_grants(self, filters: Optional[GrantFilters] = None) -> int:
        """Count grants matching ``filters``."""
        where_sql, params = build_filter_clause(filters or GrantFilters(), "?")
        try:
            with self.db.get_connection() as conn:
                cursor = conn.cursor()
                cursor.execute(f"SELECT COUNT(*) AS n FROM grants{where_sql}", params)
                return cursor.fetchone()["n"]
        except sqlite3.Error as e:
            raise StoreError(f"Counting grants failed: {e}") from e

    def _select(self, where_sql: str, params: List, order: str):
        # Timestamps are compared in Python after parsing; ISO strings with
        # mixed offsets do not sort lexically.
        try:
            with self.db.get_connection() as conn:
                cursor = conn.cursor()
                cursor.execute(
                    f"SELECT {', '.join(GRANT_SELECT_COLUMNS)} FROM grants{where_sql} ORDER BY {order}",
                    params,
                )
                return cursor.fetchall()
        except sqlite3.Error as e:
            raise StoreError(f"Listing grants failed: {e}") from e

    def insert_sync_log(self, entry: SyncLogEntry) -> None:
        """Append one audit row."""
        row = entry.to_row()
        row["created_at"] = utc_isoformat()
        try:
            with self.db.get_connection() as conn:
                conn.execute(
                    """
                    INSERT INTO sync_logs (source, records_synced, status, message, created_at)
                    VALUES (:source, :records_synced, :status, :message, :created_at)
                    """,
                    row,
                )
        except sqlite3.Error as e:
            raise StoreError(f"Writing sync log failed: {e}") from e

    def list_sync_logs(self, limit: int = 50) -> List[SyncLogEntry]:
        """Most recent audit rows first."""
        try:
            with self.db.get_connection() as conn:
                cursor = conn.cursor()
                cursor.execute(
                    "SELECT source, records_synced, status, message, created_at "
                    "FROM sync_logs ORDER BY id DESC LIMIT ?",
                    (limit,),
                )
                rows = cursor.fetchall()
        except sqlite3.Error as e:
            raise StoreError(f"Reading sync logs failed: {e}") from e

        return [
            SyncLogEntry(
                source=row["source"],
                records_synced=row["records_synced"],
                status=row["status"],
                message=row["message"] or "",
                created_at=parse_timestamp(row["created_at"]),
            )
            for row in rows
        ]
