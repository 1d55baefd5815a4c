#!/usr/bin/env python3
"""
Split grants into genuine rows and likely dummy/test rows.

Usage:
    # Report only
    python scripts/classify_grants.py

    # Delete the dummies in one batch
    python scripts/classify_grants.py --delete
"""

import sys
import argparse
import logging
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from grantnavi.config import Settings
from grantnavi.core.errors import ConfigurationError, StoreError
from grantnavi.maintenance.dummy import classify_grants, delete_dummy_grants, load_scraped_titles
from grantnavi.storage import open_store
from grantnavi.sync.pipeline import default_sources

logger = logging.getLogger(__name__)

# Day the initial test fixtures were bulk-loaded into the hosted table
BULK_TEST_DATES = ["2025-10-21"]


def main():
    parser = argparse.ArgumentParser(description='Classify grants as genuine or dummy')
    parser.add_argument('--delete', action='store_true', help='Delete the dummy rows')
    parser.add_argument(
        '--bulk-date',
        action='append',
        default=None,
        help='Creation day (YYYY-MM-DD) of bulk test data; repeatable'
    )
    parser.add_argument('--verbose', '-v', action='store_true', help='Debug logging')
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    bulk_dates = args.bulk_date or BULK_TEST_DATES

    store = None
    try:
        settings = Settings.from_env()
        store = open_store(settings)
        scraped = load_scraped_titles(s.path for s in default_sources(settings.data_dir))
        logger.info(f"📊 Scraped titles: {len(scraped)}")

        if args.delete:
            dummy = delete_dummy_grants(store, scraped, bulk_dates)
            valid = []
        else:
            valid, dummy = classify_grants(store.fetch_all(), scraped, bulk_dates)
    except (ConfigurationError, StoreError) as e:
        logger.error(f"❌ {e}")
        return 1
    finally:
        if store is not None:
            store.close()

    if not args.delete:
        logger.info(f"✅ Genuine: {len(valid)}")
    logger.info(f"🔴 Dummy (likely): {len(dummy)}")
    for c in dummy[:20]:
        logger.info(f"  ID {c.record.id}: {c.clean_title[:50]}  ({', '.join(c.reasons)})")
    if len(dummy) > 20:
        logger.info(f"  ...and {len(dummy) - 20} more")

    return 0


if __name__ == "__main__":
    sys.exit(main())
