#!/usr/bin/env python3
"""
Grant scrapers: national ministries, Yamagata prefecture, Yamagata municipalities.

Writes one CSV per level into the data directory; run_sync.py picks them up.

Usage:
    # Everything, sequentially
    python run_scrapers.py

    # Municipalities only, four workers
    python run_scrapers.py --level city --workers 4
"""

import sys
import argparse
import logging
from pathlib import Path
from typing import Optional

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent))

from grantnavi.config import Settings
from grantnavi.core.errors import ConfigurationError
from grantnavi.ingest.csv_io import write_grants_csv
from grantnavi.scrape.fetcher import PageFetcher
from grantnavi.scrape.scraper import GrantScraper
from grantnavi.scrape.targets import TARGET_SETS

logger = logging.getLogger(__name__)

# Suppress FutureWarning from soupsieve
import warnings
warnings.filterwarnings('ignore', category=FutureWarning, module='soupsieve')


def run_scrapers(settings: Settings, levels, output_dir: Path, workers: Optional[int] = None) -> int:
    """
    Scrape each requested level into its CSV.

    Returns:
        Total rows written
    """
    output_dir.mkdir(parents=True, exist_ok=True)
    fetcher = PageFetcher(delay=settings.request_delay, timeout=settings.request_timeout)

    total = 0
    for level in levels:
        targets, filename = TARGET_SETS[level]

        logger.info("=" * 70)
        logger.info(f"SCRAPING {level.upper()} ({len(targets)} targets)")
        logger.info("=" * 70)

        scraper = GrantScraper(targets, fetcher=fetcher, workers=workers or settings.workers)
        records = scraper.run()

        output_path = output_dir / filename
        written = write_grants_csv(records, output_path)
        logger.info(f"📁 Saved {written} rows to {output_path}")
        total += written

    return total


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(description='Scrape subsidy/grant listings to CSV')
    parser.add_argument(
        '--level',
        choices=['national', 'prefecture', 'city', 'all'],
        default='all',
        help='Which target set to scrape'
    )
    parser.add_argument(
        '--output-dir', '-o',
        type=Path,
        default=None,
        help='Directory for CSV output (default: GRANTNAVI_DATA_DIR)'
    )
    parser.add_argument(
        '--workers', '-w',
        type=int,
        default=None,
        help='Worker threads (default: GRANTNAVI_WORKERS)'
    )
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

    levels = list(TARGET_SETS) if args.level == 'all' else [args.level]
    total = run_scrapers(settings, levels, args.output_dir or settings.data_dir, args.workers)

    logger.info(f"\n✅ Scraping complete: {total} rows")
    return 0


if __name__ == "__main__":
    sys.exit(main())
