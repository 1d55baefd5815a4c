"""
Best-effort audit trail for sync runs.
"""

import logging

from grantnavi.core.domain_models import STATUS_SUCCESS, SyncLogEntry

logger = logging.getLogger(__name__)


class SyncLogWriter:
    """
    Append one row to ``sync_logs`` per reconciliation run.

    Failures to write are logged and swallowed; the audit trail never
    decides whether a sync succeeded.
    """

    def __init__(self, store):
        self.store = store

    def log(self, source: str, records_synced: int, status: str, message: str) -> bool:
        """
        Record the outcome of one run.

        Returns:
            True if the row was written
        """
        entry = SyncLogEntry(
            source=source,
            records_synced=records_synced,
            status=status,
            message=message,
        )

        icon = "📝" if status == STATUS_SUCCESS else "❌"
        logger.info(f"{icon} [{source}] {status}: {message} ({records_synced} records)")

        try:
            self.store.insert_sync_log(entry)
        except Exception as e:
            logger.error(f"Failed to save sync log for {source}: {e}")
            return False
        return True
