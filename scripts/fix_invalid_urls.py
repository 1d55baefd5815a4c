#!/usr/bin/env python3
"""
Report and repair invalid grant URLs.

Invalid URLs (placeholders, javascript:, relative paths, empty) are
replaced with the organization's official site, or cleared when the
organization is unknown.

Usage:
    python scripts/fix_invalid_urls.py --report-only
    python scripts/fix_invalid_urls.py --dry-run
    python scripts/fix_invalid_urls.py
"""

import sys
import argparse
import logging
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from grantnavi.config import Settings
from grantnavi.core.errors import ConfigurationError, StoreError
from grantnavi.maintenance.url_repair import URL_BUCKETS, analyze_invalid_urls, fix_invalid_urls
from grantnavi.storage import open_store

logger = logging.getLogger(__name__)


def print_report(report):
    logger.info("=" * 70)
    logger.info(f"URL REPORT ({report.total} grants)")
    logger.info("=" * 70)
    for bucket in URL_BUCKETS:
        logger.info(f"  {bucket:12} {len(report.buckets[bucket])}")

    if report.invalid_by_level:
        logger.info("\nInvalid by level:")
        for level, count in sorted(report.invalid_by_level.items()):
            logger.info(f"  {level:12} {count}")


def main():
    parser = argparse.ArgumentParser(description='Fix invalid grant URLs')
    parser.add_argument('--report-only', action='store_true', help='Only print the URL breakdown')
    parser.add_argument('--dry-run', action='store_true', help='Show fixes without writing')
    parser.add_argument('--verbose', '-v', action='store_true', help='Debug logging')
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    store = None
    try:
        settings = Settings.from_env()
        store = open_store(settings)
        print_report(analyze_invalid_urls(store))
        if args.report_only:
            return 0

        fixes = fix_invalid_urls(store, settings.org_urls, dry_run=args.dry_run)
    except (ConfigurationError, StoreError) as e:
        logger.error(f"❌ {e}")
        return 1
    finally:
        if store is not None:
            store.close()

    for fix in fixes[:20]:
        logger.info(f"  ID {fix.grant_id}: {fix.title[:40]}  {fix.old_url!r} -> {fix.new_url!r}")
    if len(fixes) > 20:
        logger.info(f"  ...and {len(fixes) - 20} more")

    return 0


if __name__ == "__main__":
    sys.exit(main())
