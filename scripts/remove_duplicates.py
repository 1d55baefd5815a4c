#!/usr/bin/env python3
"""
Delete grants whose normalized titles collide, keeping the most recently
updated row of each group.

Usage:
    python scripts/remove_duplicates.py --dry-run
    python scripts/remove_duplicates.py --strategy collapse
"""

import sys
import argparse
import logging
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from grantnavi.config import Settings
from grantnavi.core.domain_models import STATUS_ERROR
from grantnavi.core.errors import ConfigurationError, StoreError
from grantnavi.core.titles import TitleStrategy
from grantnavi.storage import open_store
from grantnavi.sync.pipeline import SyncPipeline
from grantnavi.sync.sweep import DeduplicationSweep

logger = logging.getLogger(__name__)


def main():
    parser = argparse.ArgumentParser(description='Remove duplicate grant titles')
    parser.add_argument('--strategy', choices=[s.value for s in TitleStrategy], default=None)
    parser.add_argument('--dry-run', action='store_true', help='List groups without deleting')
    parser.add_argument('--verbose', '-v', action='store_true', help='Debug logging')
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    try:
        settings = Settings.from_env()
        store = open_store(settings)
    except (ConfigurationError, StoreError) as e:
        logger.error(f"❌ {e}")
        return 1

    strategy = TitleStrategy(args.strategy) if args.strategy else settings.title_strategy
    pipeline = SyncPipeline(store, sweep=DeduplicationSweep(store, title_strategy=strategy))

    try:
        result = pipeline.run_sweep(dry_run=args.dry_run)
    finally:
        store.close()

    for key, ids in list(result.groups.items())[:20]:
        logger.info(f"  '{key[:40]}': keep {ids[0]}, delete {ids[1:]}")
    if len(result.groups) > 20:
        logger.info(f"  ...and {len(result.groups) - 20} more groups")

    logger.info(result.message)
    return 1 if result.status == STATUS_ERROR else 0


if __name__ == "__main__":
    sys.exit(main())
