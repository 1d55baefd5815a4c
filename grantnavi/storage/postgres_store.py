"""
PostgreSQL storage for the hosted ``grants`` table.

Same interface as the SQLite GrantStore. Connects with the database
connection string (DATABASE_URL) of the hosted Postgres instance.
"""

import logging
from datetime import datetime
from typing import Iterable, List, Optional, Set

import psycopg2
from psycopg2.extras import RealDictCursor, execute_values

from grantnavi.core.domain_models import (
    GRANT_WRITE_COLUMNS,
    GrantFilters,
    GrantRecord,
    SyncLogEntry,
)
from grantnavi.core.errors import StoreError
from grantnavi.core.time_utils import parse_timestamp
from .queries import GRANT_SELECT_COLUMNS, UPDATABLE_COLUMNS, build_filter_clause

logger = logging.getLogger(__name__)


SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS grants (
    id BIGSERIAL PRIMARY KEY,
    type TEXT,
    title TEXT NOT NULL,
    description TEXT,
    organization TEXT,
    level TEXT,
    area_prefecture TEXT,
    area_city TEXT,
    industry TEXT,
    target_type TEXT,
    max_amount TEXT,
    subsidy_rate TEXT,
    url TEXT,
    source_url TEXT,
    created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
    updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
);
CREATE UNIQUE INDEX IF NOT EXISTS idx_grants_title ON grants(title);
CREATE INDEX IF NOT EXISTS idx_grants_level ON grants(level);
CREATE TABLE IF NOT EXISTS sync_logs (
    id BIGSERIAL PRIMARY KEY,
    source TEXT NOT NULL,
    records_synced INTEGER NOT NULL,
    status TEXT NOT NULL,
    message TEXT,
    created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
);
"""


class PostgresGrantStore:
    """
    Persistent storage for grants in PostgreSQL.

    Usage:
        store = PostgresGrantStore(os.getenv("DATABASE_URL"))
        store.upsert_grants(records)
    """

    def __init__(self, database_url: str, connection=None):
        """
        Args:
            database_url: libpq connection string
            connection: Existing psycopg2 connection (tests, pooling)
        """
        self.database_url = database_url
        try:
            self.conn = connection or psycopg2.connect(database_url)
        except psycopg2.Error as e:
            raise StoreError(f"Could not connect to PostgreSQL: {e}") from e
        logger.info("PostgreSQL store connected")

    def __repr__(self) -> str:
        return "PostgresGrantStore(DATABASE_URL)"

    def close(self) -> None:
        self.conn.close()

    def _run(self, action: str, sql: str, params=None, fetch: bool = False):
        """Execute one statement in its own transaction."""
        try:
            with self.conn:
                with self.conn.cursor(cursor_factory=RealDictCursor) as cursor:
                    cursor.execute(sql, params)
                    if fetch:
                        return cursor.fetchall()
                    return cursor.rowcount
        except psycopg2.Error as e:
            raise StoreError(f"{action} failed: {e}") from e

    def init_schema(self) -> None:
        """Create tables and indexes if they are missing."""
        self._run("Schema creation", SCHEMA_SQL)
        logger.info("PostgreSQL schema created/verified")

    def existing_titles(self, titles: Iterable[str]) -> Set[str]:
        wanted = list(dict.fromkeys(titles))
        if not wanted:
            return set()
        rows = self._run(
            "Title lookup",
            "SELECT title FROM grants WHERE title = ANY(%s)",
            (wanted,),
            fetch=True,
        )
        return {row["title"] for row in rows}

    def upsert_grants(self, records: List[GrantRecord]) -> None:
        """Batch upsert keyed on title, one transaction."""
        if not records:
            return

        columns = list(GRANT_WRITE_COLUMNS)
        update_sql = ",\n".join(f"{c} = EXCLUDED.{c}" for c in columns if c != "title")
        values = [tuple(record.to_row()[c] for c in columns) for record in records]

        try:
            with self.conn:
                with self.conn.cursor() as cursor:
                    execute_values(
                        cursor,
                        f"""
                        INSERT INTO grants ({', '.join(columns)})
                        VALUES %s
                        ON CONFLICT (title) DO UPDATE SET
                            {update_sql},
                            updated_at = NOW()
                        """,
                        values,
                    )
        except psycopg2.Error as e:
            raise StoreError(f"Upsert of {len(records)} grants failed: {e}") from e

        logger.debug(f"Upserted {len(records)} grants")

    def fetch_all(self) -> List[GrantRecord]:
        rows = self._run(
            "Reading grants",
            f"SELECT {', '.join(GRANT_SELECT_COLUMNS)} FROM grants ORDER BY id",
            fetch=True,
        )
        return [GrantRecord.from_mapping(row) for row in rows]

    def get_grant(self, grant_id: int) -> Optional[GrantRecord]:
        rows = self._run(
            f"Reading grant {grant_id}",
            f"SELECT {', '.join(GRANT_SELECT_COLUMNS)} FROM grants WHERE id = %s LIMIT 1",
            (grant_id,),
            fetch=True,
        )
        return GrantRecord.from_mapping(rows[0]) if rows else None

    def delete_grants(self, ids: Iterable[int]) -> int:
        id_list = list(ids)
        if not id_list:
            return 0
        deleted = self._run(
            f"Deleting {len(id_list)} grants",
            "DELETE FROM grants WHERE id = ANY(%s)",
            (id_list,),
        )
        logger.debug(f"Deleted {deleted} grants")
        return deleted

    def update_grant(self, grant_id: int, **fields) -> None:
        unknown = set(fields) - UPDATABLE_COLUMNS
        if unknown:
            raise ValueError(f"Cannot update columns: {', '.join(sorted(unknown))}")
        if not fields:
            return

        set_sql = ", ".join(f"{k} = %s" for k in fields)
        self._run(
            f"Updating grant {grant_id}",
            f"UPDATE grants SET {set_sql} WHERE id = %s",
            list(fields.values()) + [grant_id],
        )

    def list_grants(
        self,
        filters: Optional[GrantFilters] = None,
        limit: Optional[int] = None,
        updated_since: Optional[datetime] = None,
    ) -> List[GrantRecord]:
        where_sql, params = build_filter_clause(filters or GrantFilters(), "%s")
        order = "created_at DESC, id DESC"
        if updated_since is not None:
            where_sql += (" AND " if where_sql else " WHERE ") + "updated_at >= %s"
            params.append(updated_since)
            order = "updated_at DESC"

        sql = f"SELECT {', '.join(GRANT_SELECT_COLUMNS)} FROM grants{where_sql} ORDER BY {order}"
        if limit is not None:
            sql += " LIMIT %s"
            params.append(limit)

        rows = self._run("Listing grants", sql, params, fetch=True)
        return [GrantRecord.from_mapping(row) for row in rows]

    def count_grants(self, filters: Optional[GrantFilters] = None) -> int:
        where_sql, params = build_filter_clause(filters or GrantFilters(), "%s")
        rows = self._run("Counting grants", f"SELECT COUNT(*) AS n FROM grants{where_sql}", params, fetch=True)
        return rows[0]["n"]

    def insert_sync_log(self, entry: SyncLogEntry) -> None:
        self._run(
            "Writing sync log",
            "INSERT INTO sync_logs (source, records_synced, status, message) "
            "VALUES (%(source)s, %(records_synced)s, %(status)s, %(message)s)",
            entry.to_row(),
        )

    def list_sync_logs(self, limit: int = 50) -> List[SyncLogEntry]:
        rows = self._run(
            "Reading sync logs",
            "SELECT source, records_synced, status, message, created_at "
            "FROM sync_logs ORDER BY id DESC LIMIT %s",
            (limit,),
            fetch=True,
        )
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
