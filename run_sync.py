#!/usr/bin/env python3
"""
Sync scraped CSVs into the grants table, then remove duplicate titles.

Each source is reconciled on its own: a missing or broken CSV is recorded
in sync_logs and the remaining sources still run.

Usage:
    # Sync data/*.csv into the configured store
    python run_sync.py

    # Collapse internal whitespace when comparing titles
    python run_sync.py --strategy collapse

    # Sync without the duplicate sweep
    python run_sync.py --no-dedupe
"""

import sys
import argparse
import logging
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent))

from grantnavi.config import Settings
from grantnavi.core.errors import ConfigurationError, StoreError
from grantnavi.core.titles import TitleStrategy
from grantnavi.storage import open_store
from grantnavi.sync.pipeline import SyncPipeline, default_sources
from grantnavi.sync.reconciler import GrantReconciler
from grantnavi.sync.sweep import DeduplicationSweep

logger = logging.getLogger(__name__)


def run_sync(settings: Settings, data_dir: Path, dedupe: bool = True, dry_run_sweep: bool = False):
    """
    Reconcile every default source and sweep duplicates.

    Returns:
        SyncReport
    """
    store = open_store(settings)
    try:
        store.init_schema()

        reconciler = GrantReconciler(
            store,
            fallback_urls=settings.org_urls,
            title_strategy=settings.title_strategy,
        )
        sweep = DeduplicationSweep(store, title_strategy=settings.title_strategy)
        pipeline = SyncPipeline(store, reconciler, sweep)

        logger.info("=" * 70)
        logger.info(f"GRANT SYNC ({settings.title_strategy.value} titles)")
        logger.info("=" * 70)

        report = pipeline.run(default_sources(data_dir), dedupe=False)
        if dedupe:
            report.sweep = pipeline.run_sweep(dry_run=dry_run_sweep)
    finally:
        store.close()

    logger.info("\n" + "=" * 70)
    logger.info("SYNC COMPLETE")
    logger.info("=" * 70)
    for result in report.results:
        status = "✅" if result.ok else "❌"
        logger.info(
            f"  {status} {result.source:15} new={result.new_count} updated={result.updated_count} "
            f"dup={result.skipped_duplicates} invalid={result.skipped_invalid}  {result.message}"
        )
    if report.sweep is not None:
        logger.info(f"  🧹 {report.sweep.message}")

    return report


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(description='Sync scraped grant CSVs into the database')
    parser.add_argument(
        '--data-dir',
        type=Path,
        default=None,
        help='Directory holding the fetched_*.csv files (default: GRANTNAVI_DATA_DIR)'
    )
    parser.add_argument(
        '--strategy',
        choices=[s.value for s in TitleStrategy],
        default=None,
        help='Title comparison strategy (default: GRANTNAVI_TITLE_STRATEGY)'
    )
    parser.add_argument('--no-dedupe', action='store_true', help='Skip the duplicate sweep')
    parser.add_argument('--dry-run', action='store_true', help='Report duplicates without deleting')
    parser.add_argument('--verbose', '-v', action='store_true', help='Debug logging')

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    try:
        settings = Settings.from_env()
    except ConfigurationError as e:
        logger.error(f"❌ {e}")
        return 1

    if args.strategy:
        settings.title_strategy = TitleStrategy(args.strategy)

    try:
        report = run_sync(
            settings,
            args.data_dir or settings.data_dir,
            dedupe=not args.no_dedupe,
            dry_run_sweep=args.dry_run,
        )
    except StoreError as e:
        logger.error(f"❌ {e}")
        return 1

    return 0 if report.ok else 1


if __name__ == "__main__":
    sys.exit(main())
