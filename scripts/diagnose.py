#!/usr/bin/env python3
"""
Ask the AI diagnosis for grants matching a company profile.

Usage:
    python scripts/diagnose.py --business-type 旅館業 --employees 25 \
        --goal 客室改装 --support 設備投資
"""

import sys
import argparse
import logging
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from openai import OpenAI

from grantnavi.api.diagnose import DiagnosisProfile, diagnose
from grantnavi.config import Settings
from grantnavi.core.errors import ConfigurationError, DiagnosisError

logger = logging.getLogger(__name__)


def main():
    parser = argparse.ArgumentParser(description='AI grant diagnosis')
    parser.add_argument('--business-type', required=True)
    parser.add_argument('--employees', required=True)
    parser.add_argument('--goal', default='')
    parser.add_argument('--support', default='')
    parser.add_argument('--verbose', '-v', action='store_true', help='Debug logging')
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    try:
        settings = Settings.from_env(require_openai=True)
    except ConfigurationError as e:
        logger.error(f"❌ {e}")
        return 1

    profile = DiagnosisProfile(
        business_type=args.business_type,
        employees=args.employees,
        goal=args.goal,
        support=args.support,
    )

    try:
        text = diagnose(profile, client=OpenAI(api_key=settings.openai_api_key), model=settings.openai_model)
    except DiagnosisError as e:
        logger.error(f"❌ {e}")
        return 1

    print(text)
    return 0


if __name__ == "__main__":
    sys.exit(main())
