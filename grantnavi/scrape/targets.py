"""
Scrape targets: the national ministries, Yamagata prefecture and its
municipalities.
"""

from typing import List

from grantnavi.core.domain_models import (
    LEVEL_NATIONAL,
    LEVEL_PREFECTURE,
    TYPE_GRANT,
    TYPE_SUBSIDY,
)
from .scraper import ScrapeTarget

YAMAGATA = "山形県"

NATIONAL_TARGETS: List[ScrapeTarget] = [
    ScrapeTarget(
        organization="観光庁",
        pages=["https://www.mlit.go.jp/kankocho/"],
        type=TYPE_SUBSIDY,
        level=LEVEL_NATIONAL,
        area_prefecture="全国",
        description="観光庁公式サイトより取得",
    ),
    ScrapeTarget(
        organization="厚生労働省",
        pages=["https://www.mhlw.go.jp/stf/seisakunitsuite/bunya/koyou_roudou/index.html"],
        type=TYPE_GRANT,
        level=LEVEL_NATIONAL,
        area_prefecture="全国",
        description="厚生労働省公式サイトより取得",
    ),
    ScrapeTarget(
        organization="経済産業省",
        pages=["https://www.chusho.meti.go.jp/"],
        type=TYPE_SUBSIDY,
        level=LEVEL_NATIONAL,
        area_prefecture="全国",
        description="経済産業省公式サイトより取得",
    ),
    ScrapeTarget(
        organization="jGrants",
        pages=["https://www.jgrants-portal.go.jp/"],
        type=TYPE_SUBSIDY,
        level=LEVEL_NATIONAL,
        area_prefecture="全国",
        description="jGrantsポータルより取得",
    ),
]

PREFECTURE_TARGETS: List[ScrapeTarget] = [
    ScrapeTarget(
        organization=YAMAGATA,
        pages=[
            "https://www.pref.yamagata.jp/090001/industry/",
            "https://www.pref.yamagata.jp/090002/tourism/",
            "https://www.pref.yamagata.jp/090003/sme/",
            "https://www.pref.yamagata.jp/090004/agriculture/",
            "https://www.pref.yamagata.jp/090005/labor/",
        ],
        type=TYPE_SUBSIDY,
        level=LEVEL_PREFECTURE,
        area_prefecture=YAMAGATA,
        description="山形県の公式サイトより自動取得された補助金・助成金情報です。",
    ),
]

YAMAGATA_MUNICIPALITIES = [
    ("山形市", "https://www.city.yamagata.yamagata.jp"),
    ("米沢市", "https://www.city.yonezawa.lg.jp"),
    ("鶴岡市", "https://www.city.tsuruoka.lg.jp"),
    ("酒田市", "https://www.city.sakata.lg.jp"),
    ("新庄市", "https://www.city.shinjo.yamagata.jp"),
    ("寒河江市", "https://www.city.sagae.yamagata.jp"),
    ("上山市", "https://www.city.kaminoyama.yamagata.jp"),
    ("村山市", "https://www.city.murayama.yamagata.jp"),
    ("長井市", "https://www.city.nagai.yamagata.jp"),
    ("天童市", "https://www.city.tendo.yamagata.jp"),
    ("東根市", "https://www.city.higashine.yamagata.jp"),
    ("尾花沢市", "https://www.city.obanazawa.yamagata.jp"),
    ("南陽市", "https://www.city.nanyo.yamagata.jp"),
    ("山辺町", "https://www.town.yamanobe.yamagata.jp"),
    ("中山町", "https://www.town.nakayama.yamagata.jp"),
    ("河北町", "https://www.town.kahoku.yamagata.jp"),
    ("西川町", "https://www.town.nishikawa.yamagata.jp"),
    ("朝日町", "https://www.town.asahi.yamagata.jp"),
    ("大江町", "https://www.town.oe.yamagata.jp"),
    ("大石田町", "https://www.town.oishida.yamagata.jp"),
    ("金山町", "https://www.town.kaneyama.yamagata.jp"),
    ("最上町", "https://www.town.mogami.yamagata.jp"),
    ("舟形町", "https://www.town.funagata.yamagata.jp"),
    ("真室川町", "https://www.town.mamurogawa.yamagata.jp"),
    ("高畠町", "https://www.town.takahata.yamagata.jp"),
    ("川西町", "https://www.town.kawanishi.yamagata.jp"),
    ("小国町", "https://www.town.oguni.yamagata.jp"),
    ("白鷹町", "https://www.town.shirataka.yamagata.jp"),
    ("飯豊町", "https://www.town.iide.yamagata.jp"),
    ("庄内町", "https://www.town.shonai.yamagata.jp"),
    ("遊佐町", "https://www.town.yuza.yamagata.jp"),
    ("大蔵村", "https://www.vill.okura.yamagata.jp"),
    ("鮭川村", "https://www.vill.sakegawa.yamagata.jp"),
    ("戸沢村", "https://www.vill.tozawa.yamagata.jp"),
]

# Common locations of grant listings on municipal sites, tried in order
CITY_SEARCH_PATHS = ["/", "/josei/", "/shoko/", "/kanko/", "/sangyo/", "/jigyo/"]


def city_target(name: str, base_url: str) -> ScrapeTarget:
    """Target for one municipality; stops at the first path with hits."""
    base = base_url.rstrip("/")
    return ScrapeTarget(
        organization=name,
        pages=[f"{base}{path}" for path in CITY_SEARCH_PATHS],
        type=TYPE_SUBSIDY,
        level=LEVEL_PREFECTURE,
        area_prefecture=YAMAGATA,
        area_city=name,
        description=f"{name}の公式サイトより自動取得された補助金・助成金情報です。",
        stop_after_first_hit=True,
    )


CITY_TARGETS: List[ScrapeTarget] = [city_target(name, url) for name, url in YAMAGATA_MUNICIPALITIES]

# Scrape level -> (targets, output file name)
TARGET_SETS = {
    "national": (NATIONAL_TARGETS, "fetched_national_grants.csv"),
    "prefecture": (PREFECTURE_TARGETS, "fetched_pref_yamagata.csv"),
    "city": (CITY_TARGETS, "fetched_city_yamagata.csv"),
}
