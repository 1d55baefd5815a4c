#!/usr/bin/env python3
"""
Set updated_at = created_at on rows where updated_at is earlier.

Usage:
    python scripts/fix_updated_at.py --date 2025-11-13
    python scripts/fix_updated_at.py --dry-run
"""

import sys
import argparse
import logging
from datetime import date
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from grantnavi.config import Settings
from grantnavi.core.errors import ConfigurationError, StoreError
from grantnavi.maintenance.timestamps import fix_updated_at, tokyo_day_window
from grantnavi.storage import open_store

logger = logging.getLogger(__name__)


def main():
    parser = argparse.ArgumentParser(description='Repair updated_at older than created_at')
    parser.add_argument(
        '--date',
        type=date.fromisoformat,
        default=None,
        help='Only rows created on this JST day (YYYY-MM-DD)'
    )
    parser.add_argument('--dry-run', action='store_true', help='List rows without writing')
    parser.add_argument('--verbose', '-v', action='store_true', help='Debug logging')
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    created_from = created_before = None
    if args.date:
        created_from, created_before = tokyo_day_window(args.date)

    store = None
    try:
        store = open_store(Settings.from_env())
        ids = fix_updated_at(store, created_from, created_before, dry_run=args.dry_run)
    except (ConfigurationError, StoreError) as e:
        logger.error(f"❌ {e}")
        return 1
    finally:
        if store is not None:
            store.close()

    verb = "Would fix" if args.dry_run else "Fixed"
    logger.info(f"📊 {verb}: {len(ids)}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
