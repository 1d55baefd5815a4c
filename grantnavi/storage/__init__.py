"""
Storage backends for the grants table.

``open_store`` picks PostgreSQL when DATABASE_URL is configured and falls
back to a local SQLite file otherwise.
"""

import logging

from grantnavi.config import Settings
from .grant_store import GrantStore

logger = logging.getLogger(__name__)

__all__ = ["GrantStore", "open_store"]


def open_store(settings: Settings):
    """Return the store configured by ``settings``."""
    if settings.uses_postgres:
        from .postgres_store import PostgresGrantStore

        logger.info("Using PostgreSQL store")
        return PostgresGrantStore(settings.database_url)

    logger.info(f"Using SQLite store: {settings.sqlite_path}")
    return GrantStore(settings.sqlite_path)
