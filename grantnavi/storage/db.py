"""
Lightweight SQLite database wrapper.

Handles:
- Database initialization
- Schema creation
- Connection management

Mirrors the hosted Postgres ``grants`` / ``sync_logs`` tables so that local
runs and tests exercise the same statements.
"""

import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator
import logging


logger = logging.getLogger(__name__)


class Database:
    """
    SQLite database wrapper for grants and sync logs.

    Usage:
        db = Database("grants.db")
        with db.get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute("SELECT * FROM grants")
    """

    def __init__(self, path: str = "grants.db"):
        """
        Initialize database.

        Args:
            path: Path to SQLite database file
        """
        self.path = str(path)

        # Ensure parent directory exists
        Path(self.path).parent.mkdir(parents=True, exist_ok=True)

        # Initialize schema
        self._init_db()

        logger.info(f"Database initialized: {self.path}")

    def _init_db(self):
        """Create database schema if it doesn't exist."""
        with self.get_connection() as conn:
            cursor = conn.cursor()

            # Grants table; title is the upsert conflict key
            cursor.execute(
                """
                CREATE TABLE IF NOT EXISTS grants (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
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
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                );
                """
            )

            cursor.execute(
                """
                CREATE UNIQUE INDEX IF NOT EXISTS idx_grants_title
                ON grants(title);
                """
            )

            cursor.execute(
                """
                CREATE INDEX IF NOT EXISTS idx_grants_level
                ON grants(level);
                """
            )

            # Audit trail, one row per sync run per source
            cursor.execute(
                """
                CREATE TABLE IF NOT EXISTS sync_logs (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    source TEXT NOT NULL,
                    records_synced INTEGER NOT NULL,
                    status TEXT NOT NULL,
                    message TEXT,
                    created_at TEXT NOT NULL
                );
                """
            )

            conn.commit()
            logger.debug("Database schema created/verified (grants, sync_logs)")

    @contextmanager
    def get_connection(self) -> Iterator[sqlite3.Connection]:
        """
        Get a database connection context manager.

        Automatically commits on success, rolls back on error, closes on exit.

        Yields:
            sqlite3.Connection
        """
        conn = sqlite3.connect(self.path)
        conn.row_factory = sqlite3.Row  # Enable column access by name

        try:
            yield conn
            conn.commit()
        except Exception as e:
            conn.rollback()
            logger.error(f"Database error: {e}")
            raise
        finally:
            conn.close()
