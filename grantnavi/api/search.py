"""
Grant search by area and industry.

``search_response`` mirrors the JSON contract of the public search
endpoint: 400 for a missing parameter, 500 for a store failure.
"""

import logging
from dataclasses import asdict
from typing import Any, Dict, List, Tuple

from grantnavi.core.domain_models import LEVEL_NATIONAL, GrantRecord
from grantnavi.core.errors import StoreError

logger = logging.getLogger(__name__)

MISSING_PARAMS_MESSAGE = "エリアと業種の指定が必要です。"
NO_RESULTS_MESSAGE = "該当する助成金・補助金は見つかりませんでした。"
SERVER_ERROR_MESSAGE = "サーバーエラー"


def matches_area(record: GrantRecord, area: str) -> bool:
    """National grants apply everywhere."""
    if record.level == LEVEL_NATIONAL:
        return True
    return area in (record.area_prefecture, record.area_city)


def search_grants(store, area: str, industry: str) -> List[GrantRecord]:
    """
    Grants available in ``area`` whose industry mentions ``industry``.

    Raises:
        ValueError: area or industry missing
    """
    area = (area or "").strip()
    industry = (industry or "").strip()
    if not area or not industry:
        raise ValueError("area and industry are required")

    results = [
        record
        for record in store.fetch_all()
        if matches_area(record, area) and industry in (record.industry or "")
    ]
    logger.info(f"🔍 {len(results)} grants for area={area} industry={industry}")
    return results


def _serialize(record: GrantRecord) -> Dict[str, Any]:
    data = asdict(record)
    for key in ("created_at", "updated_at"):
        if data[key] is not None:
            data[key] = data[key].isoformat()
    return data


def search_response(store, payload: Dict[str, Any]) -> Tuple[int, Dict[str, Any]]:
    """
    Handle a search request body.

    Returns:
        (HTTP status, JSON body)
    """
    try:
        results = search_grants(store, payload.get("area"), payload.get("industry"))
    except ValueError:
        return 400, {"error": MISSING_PARAMS_MESSAGE}
    except StoreError as e:
        logger.error(f"❌ Search failed: {e}")
        return 500, {"error": SERVER_ERROR_MESSAGE}

    if not results:
        return 200, {"message": NO_RESULTS_MESSAGE}
    return 200, {"results": [_serialize(r) for r in results]}
