import threading

import requests

from grantnavi.config import DEFAULT_GENERIC_PHRASES, DEFAULT_KEYWORDS
from grantnavi.core.domain_models import LEVEL_PREFECTURE
from grantnavi.scrape.anchors import extract_keyword_links, is_generic_title, title_from_detail_page
from grantnavi.scrape.scraper import GrantScraper, ScrapeTarget, dedupe_records
from grantnavi.scrape.targets import CITY_TARGETS, NATIONAL_TARGETS, TARGET_SETS

LISTING = "https://www.pref.yamagata.jp/090001/industry/"

LISTING_HTML = """
<html><body>
  <a href="/090001/kanko.html">観光施設改修補助金のご案内</a>
  <a href="detail/1.html">詳細</a>
  <a href="https://www.pref.yamagata.jp/090001/koyo.html">雇用  助成金
     について</a>
  <a href="#top">補助金トップへ</a>
  <a href="javascript:void(0)">補助金を検索</a>
  <a href="/news.html">お知らせ</a>
  <a href="/dup.html">観光施設改修補助金のご案内</a>
  <a href="/090001/kanko.html">観光施設改修補助金のご案内</a>
</body></html>
"""

DETAIL_HTML = """
<html><head><title>省エネ設備導入支援金｜山形県</title></head>
<body><h1>詳細</h1><h2>概要</h2></body></html>
"""


def test_is_generic_title():
    assert is_generic_title("詳細", DEFAULT_GENERIC_PHRASES)
    assert is_generic_title("MORE", DEFAULT_GENERIC_PHRASES)
    assert is_generic_title("補助金", DEFAULT_GENERIC_PHRASES)
    assert is_generic_title("abc", ())
    assert not is_generic_title("観光施設改修補助金", DEFAULT_GENERIC_PHRASES)


def test_extract_keyword_links():
    links = extract_keyword_links(LISTING_HTML, LISTING, DEFAULT_KEYWORDS)

    assert [link.text for link in links] == [
        "観光施設改修補助金のご案内",
        "雇用 助成金 について",
        "観光施設改修補助金のご案内",
        "観光施設改修補助金のご案内",
    ]
    assert links[0].href == "https://www.pref.yamagata.jp/090001/kanko.html"


def test_generic_anchor_without_keyword_is_ignored():
    # "詳細" contains no keyword, so it is not a candidate at all
    links = extract_keyword_links(LISTING_HTML, LISTING, DEFAULT_KEYWORDS)
    assert all(link.text != "詳細" for link in links)


def test_title_from_detail_page_order():
    assert title_from_detail_page(DETAIL_HTML, DEFAULT_GENERIC_PHRASES) == "省エネ設備導入支援金"
    assert title_from_detail_page("<h1>創業支援補助金</h1><title>x</title>", DEFAULT_GENERIC_PHRASES) == "創業支援補助金"
    assert title_from_detail_page("<h1>詳細</h1><h3>販路開拓助成金</h3>", DEFAULT_GENERIC_PHRASES) == "販路開拓助成金"
    assert title_from_detail_page("<h1>一覧</h1><h2>more</h2>", DEFAULT_GENERIC_PHRASES) is None


def make_target(pages, **kwargs):
    return ScrapeTarget(
        organization="山形県",
        pages=pages,
        level=LEVEL_PREFECTURE,
        area_prefecture="山形県",
        description="test",
        **kwargs,
    )


def test_generic_anchor_is_resolved_from_detail_page(fetcher, fake_session):
    fake_session.pages = {
        LISTING: '<a href="/a.html">補助金</a><a href="/b.html">助成金一覧</a>',
        "https://www.pref.yamagata.jp/a.html": DETAIL_HTML,
        "https://www.pref.yamagata.jp/b.html": "<h1>一覧</h1>",
    }
    records = GrantScraper([make_target([LISTING])], fetcher=fetcher).run()

    assert [(r.title, r.url) for r in records] == [
        ("省エネ設備導入支援金", "https://www.pref.yamagata.jp/a.html"),
    ]
    assert records[0].source_url == LISTING
    assert records[0].organization == "山形県"


def test_records_are_deduplicated_by_title_and_url(fetcher, fake_session):
    fake_session.pages = {LISTING: LISTING_HTML}
    records = GrantScraper([make_target([LISTING])], fetcher=fetcher).run()

    pairs = [(r.title, r.url) for r in records]
    assert len(pairs) == len(set(pairs)) == 3


def test_failing_target_does_not_abort_run(fetcher, fake_session):
    ok_page = "https://ok.go.jp/"
    fake_session.pages = {
        "https://down.go.jp/": requests.Timeout("timed out"),
        "https://gone.go.jp/": 500,
        ok_page: '<a href="/x.html">創業補助金のお知らせ</a>',
    }
    targets = [
        make_target(["https://down.go.jp/"]),
        make_target(["https://gone.go.jp/"]),
        make_target([ok_page]),
    ]
    records = GrantScraper(targets, fetcher=fetcher).run()

    assert [r.url for r in records] == ["https://ok.go.jp/x.html"]


def test_stop_after_first_hit(fetcher, fake_session):
    base = "https://www.city.example.lg.jp"
    fake_session.pages = {
        f"{base}/": "<p>no links</p>",
        f"{base}/josei/": '<a href="/j.html">空き店舗活用補助金</a>',
        f"{base}/shoko/": '<a href="/s.html">商工振興補助金</a>',
    }
    target = make_target([f"{base}/", f"{base}/josei/", f"{base}/shoko/"], stop_after_first_hit=True)
    records = GrantScraper([target], fetcher=fetcher).run()

    assert [r.title for r in records] == ["空き店舗活用補助金"]
    assert f"{base}/shoko/" not in fake_session.requested


def test_worker_pool_keeps_target_order(fetcher, fake_session):
    pages = {}
    targets = []
    for i in range(6):
        url = f"https://t{i}.go.jp/"
        pages[url] = f'<a href="/g.html">補助金その{i}</a>'
        targets.append(make_target([url]))
    fake_session.pages = pages

    records = GrantScraper(targets, fetcher=fetcher, workers=3).run()

    assert [r.title for r in records] == [f"補助金その{i}" for i in range(6)]


def test_cancelled_scraper_makes_no_requests(fetcher, fake_session):
    event = threading.Event()
    event.set()
    fake_session.pages = {LISTING: LISTING_HTML}

    records = GrantScraper([make_target([LISTING])], fetcher=fetcher, cancel_event=event).run()

    assert records == []
    assert fake_session.requested == []


def test_dedupe_records_keeps_first():
    target = make_target([])
    a = target.make_record("A", "https://a/", "s1")
    b = target.make_record("A", "https://a/", "s2")
    c = target.make_record("A", "https://c/", "s1")
    assert dedupe_records([a, b, c]) == [a, c]


def test_target_sets():
    assert len(CITY_TARGETS) == 34
    assert all(t.stop_after_first_hit and t.area_city == t.organization for t in CITY_TARGETS)
    assert CITY_TARGETS[0].pages[1] == "https://www.city.yamagata.yamagata.jp/josei/"
    assert {t.organization for t in NATIONAL_TARGETS} == {"観光庁", "厚生労働省", "経済産業省", "jGrants"}
    assert set(TARGET_SETS) == {"national", "prefecture", "city"}
