"""
Sync orchestration: every CSV source in turn, then the deduplication sweep.

Each source is isolated: a missing file, an empty file or a rejected
batch is logged for that source only and the run moves on.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from grantnavi.core.domain_models import STATUS_ERROR, SweepResult, SyncResult
from grantnavi.core.errors import SourceError
from grantnavi.ingest.csv_io import read_csv_rows
from .reconciler import GrantReconciler
from .sweep import DeduplicationSweep
from .sync_log import SyncLogWriter

logger = logging.getLogger(__name__)

DEDUP_SOURCE = "deduplication"


@dataclass
class SyncSource:
    """A labelled CSV file to reconcile."""
    label: str
    path: Path


def default_sources(data_dir: Path) -> List[SyncSource]:
    """The scraper outputs, in the order they are synced."""
    data_dir = Path(data_dir)
    return [
        SyncSource("national", data_dir / "fetched_national_grants.csv"),
        SyncSource("yamagata", data_dir / "fetched_pref_yamagata.csv"),
        SyncSource("yamagata_city", data_dir / "fetched_city_yamagata.csv"),
    ]


@dataclass
class SyncReport:
    results: List[SyncResult] = field(default_factory=list)
    sweep: Optional[SweepResult] = None

    @property
    def ok(self) -> bool:
        sweep_ok = self.sweep is None or self.sweep.status != STATUS_ERROR
        return sweep_ok and all(r.ok for r in self.results)


class SyncPipeline:
    """
    Run reconciliation for several sources and log each outcome.

    Usage:
        pipeline = SyncPipeline(store, GrantReconciler(store), DeduplicationSweep(store))
        report = pipeline.run(default_sources(Path("data")))
    """

    def __init__(
        self,
        store,
        reconciler: Optional[GrantReconciler] = None,
        sweep: Optional[DeduplicationSweep] = None,
        sync_log: Optional[SyncLogWriter] = None,
    ):
        self.store = store
        self.reconciler = reconciler
        self.sweep = sweep
        self.sync_log = sync_log or SyncLogWriter(store)

    def sync_source(self, source: SyncSource) -> SyncResult:
        """Read, reconcile and log one source. Never raises for source errors."""
        if self.reconciler is None:
            raise ValueError("SyncPipeline was built without a reconciler")

        logger.info(f"📡 Syncing {source.label} from {source.path}")

        try:
            rows = read_csv_rows(source.path)
            if not rows:
                raise SourceError(f"{Path(source.path).name} has no data rows")
        except SourceError as e:
            result = SyncResult(source=source.label, status=STATUS_ERROR, message=str(e))
            self.sync_log.log(source.label, 0, STATUS_ERROR, result.message)
            return result

        result = self.reconciler.reconcile(source.label, rows)
        self.sync_log.log(source.label, result.synced_count, result.status, result.message)
        return result

    def run_sweep(self, dry_run: bool = False) -> Optional[SweepResult]:
        if self.sweep is None:
            return None

        logger.info("🧹 Checking for duplicate titles...")
        sweep_result = self.sweep.run(dry_run=dry_run)
        if not dry_run:
            self.sync_log.log(
                DEDUP_SOURCE,
                sweep_result.deleted_count,
                sweep_result.status,
                sweep_result.message,
            )
        return sweep_result

    def run(self, sources: List[SyncSource], dedupe: bool = True) -> SyncReport:
        """
        Sync every source in order, then sweep duplicates.

        Args:
            sources: CSV sources to reconcile
            dedupe: Run the deduplication sweep afterwards
        """
        report = SyncReport()
        for source in sources:
            report.results.append(self.sync_source(source))

        if dedupe:
            report.sweep = self.run_sweep()

        return report
