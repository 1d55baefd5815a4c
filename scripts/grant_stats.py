#!/usr/bin/env python3
"""
Print grant counts by level and type, plus today's new listings.

Usage:
    python scripts/grant_stats.py
"""

import sys
import argparse
import logging
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from grantnavi.config import Settings
from grantnavi.core.errors import ConfigurationError, StoreError
from grantnavi.maintenance.stats import LEVELS, TYPES, grant_stats, today_new_grants
from grantnavi.storage import open_store

logger = logging.getLogger(__name__)


def main():
    parser = argparse.ArgumentParser(description='Grant statistics')
    parser.add_argument('--limit', type=int, default=10, help='Rows in the new-today list')
    parser.add_argument('--verbose', '-v', action='store_true', help='Debug logging')
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    store = None
    try:
        store = open_store(Settings.from_env())
        stats = grant_stats(store)
        new_today = today_new_grants(store, limit=args.limit)
    except (ConfigurationError, StoreError) as e:
        logger.error(f"❌ {e}")
        return 1
    finally:
        if store is not None:
            store.close()

    logger.info("=" * 70)
    logger.info(f"GRANTS: {stats.total} (updated in last 24h: {stats.updated_last_24h})")
    logger.info("=" * 70)
    for level in LEVELS:
        by_type = "  ".join(f"{t}={stats.by_level_type[(level, t)]}" for t in TYPES)
        logger.info(f"  {level:12} {stats.by_level[level]:5}   {by_type}")
    for grant_type in TYPES:
        logger.info(f"  {grant_type:12} {stats.by_type[grant_type]:5}")

    logger.info(f"\n📝 New today ({len(new_today)}):")
    for grant in new_today:
        logger.info(f"  [{grant.label}] {grant.title[:50]}")

    return 0


if __name__ == "__main__":
    sys.exit(main())
