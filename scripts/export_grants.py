#!/usr/bin/env python3
"""
Export grants to CSV or Excel.

Usage:
    python scripts/export_grants.py                         # grants_YYYYmmdd_HHMMSS.xlsx
    python scripts/export_grants.py --output grants.csv
    python scripts/export_grants.py --level city --output city.xlsx
"""

import sys
import argparse
import logging
from datetime import datetime
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from grantnavi.config import Settings
from grantnavi.core.domain_models import GrantFilters
from grantnavi.core.errors import ConfigurationError, StoreError
from grantnavi.maintenance.export import export_grants
from grantnavi.storage import open_store

logger = logging.getLogger(__name__)


def main():
    parser = argparse.ArgumentParser(description='Export grants to CSV or Excel')
    parser.add_argument('--output', '-o', type=Path, default=None, help='.csv or .xlsx path')
    parser.add_argument('--level', choices=['national', 'prefecture', 'city'], default=None)
    parser.add_argument('--type', dest='grant_type', default=None, help='補助金 or 助成金')
    parser.add_argument('--verbose', '-v', action='store_true', help='Debug logging')
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    output = args.output or Path(f"grants_{datetime.now().strftime('%Y%m%d_%H%M%S')}.xlsx")

    store = None
    try:
        store = open_store(Settings.from_env())
        records = store.list_grants(GrantFilters(level=args.level, type=args.grant_type))
    except (ConfigurationError, StoreError) as e:
        logger.error(f"❌ {e}")
        return 1
    finally:
        if store is not None:
            store.close()

    export_grants(records, output)
    return 0


if __name__ == "__main__":
    sys.exit(main())
