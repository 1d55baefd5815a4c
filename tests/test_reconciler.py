from grantnavi.core.domain_models import STATUS_ERROR, STATUS_SUCCESS, GrantRecord
from grantnavi.core.errors import StoreError
from grantnavi.core.titles import TitleStrategy
from grantnavi.ingest.csv_io import read_csv_rows, write_grants_csv
from grantnavi.sync.reconciler import GrantReconciler

FALLBACKS = {"山形県": "https://www.pref.yamagata.jp/"}


def snapshot(store):
    return sorted(
        (r.title, r.url, r.organization, r.level, r.source_url) for r in store.fetch_all()
    )


def test_reconcile_is_idempotent(store, write_csv):
    path = write_csv("national.csv", [
        {"title": "補助金A", "organization": "観光庁", "url": "https://www.mlit.go.jp/a"},
        {"title": "助成金B", "organization": "厚生労働省", "url": ""},
        {"title": "支援金C", "organization": "不明組織", "url": "javascript:void(0)"},
    ])
    rows = read_csv_rows(path)
    reconciler = GrantReconciler(store, FALLBACKS)

    first = reconciler.reconcile("national", rows)
    after_first = snapshot(store)
    second = reconciler.reconcile("national", rows)

    assert (first.new_count, first.updated_count) == (3, 0)
    assert (second.new_count, second.updated_count) == (0, 3)
    assert second.status == STATUS_SUCCESS
    assert snapshot(store) == after_first


def test_first_occurrence_in_batch_wins(store):
    rows = [
        {"title": "A", "url": "https://a.go.jp/1"},
        {"title": "A", "url": "https://a.go.jp/2"},
    ]
    result = GrantReconciler(store, FALLBACKS).reconcile("national", rows)

    persisted = store.fetch_all()
    assert len(persisted) == 1
    assert persisted[0].url == "https://a.go.jp/1"
    assert result.skipped_duplicates == 1
    assert result.new_count == 1


def test_quoted_title_counts_as_duplicate_and_is_stored_normalized(store):
    rows = [
        {"title": '"補助金A"', "url": "https://a.go.jp/1"},
        {"title": "  補助金A ", "url": "https://a.go.jp/2"},
    ]
    GrantReconciler(store, FALLBACKS).reconcile("national", rows)

    assert [r.title for r in store.fetch_all()] == ["補助金A"]


def test_collapse_strategy_folds_internal_whitespace(store):
    rows = [
        {"title": "観光 支援金", "url": "https://a.go.jp/1"},
        {"title": "観光支援金", "url": "https://a.go.jp/2"},
    ]
    strip = GrantReconciler(store, FALLBACKS, TitleStrategy.STRIP).prepare(rows)
    collapse = GrantReconciler(store, FALLBACKS, TitleStrategy.COLLAPSE).prepare(rows)

    assert len(strip.records) == 2
    assert len(collapse.records) == 1
    assert collapse.records[0].title == "観光 支援金"


def test_fallback_urls_end_to_end(store, write_csv):
    path = write_csv("pref.csv", [
        {"title": "補助金A", "organization": "山形県", "url": ""},
        {"title": "補助金B", "organization": "不明組織", "url": "https://example.com"},
    ])
    result = GrantReconciler(store, FALLBACKS).reconcile("yamagata", read_csv_rows(path))

    by_title = {r.title: r for r in store.fetch_all()}
    assert result.new_count == 2
    assert by_title["補助金A"].url == "https://www.pref.yamagata.jp/"
    assert by_title["補助金B"].url == ""


def test_valid_url_never_uses_fallback(store):
    rows = [{"title": "補助金A", "organization": "山形県", "url": "https://www.pref.yamagata.jp/a.html"}]
    GrantReconciler(store, FALLBACKS).reconcile("yamagata", rows)
    assert store.fetch_all()[0].url == "https://www.pref.yamagata.jp/a.html"


def test_empty_titles_are_skipped(store):
    rows = [{"title": '""', "url": "https://a.go.jp/"}, {"title": "B", "url": "https://b.go.jp/"}]
    result = GrantReconciler(store, FALLBACKS).reconcile("national", rows)

    assert result.skipped_invalid == 1
    assert [r.title for r in store.fetch_all()] == ["B"]


def test_no_valid_rows_is_success_without_writes(store):
    result = GrantReconciler(store, FALLBACKS).reconcile("national", [{"title": "  "}])
    assert result.status == STATUS_SUCCESS
    assert result.synced_count == 0
    assert store.fetch_all() == []


def test_update_overwrites_fields(store):
    reconciler = GrantReconciler(store, FALLBACKS)
    reconciler.reconcile("national", [{"title": "A", "description": "old", "url": "https://a.go.jp/"}])
    reconciler.reconcile("national", [{"title": "A", "description": "new", "url": "https://a.go.jp/"}])

    records = store.fetch_all()
    assert len(records) == 1
    assert records[0].description == "new"


class FailingStore:
    def existing_titles(self, titles):
        return set()

    def upsert_grants(self, records):
        raise StoreError("connection refused")


def test_store_failure_is_reported_not_raised():
    result = GrantReconciler(FailingStore(), FALLBACKS).reconcile("national", [{"title": "A"}])

    assert result.status == STATUS_ERROR
    assert result.synced_count == 0
    assert "connection refused" in result.message


def test_scraper_csv_keeps_detail_and_listing_urls(store, tmp_path):
    path = tmp_path / "fetched_pref_yamagata.csv"
    write_grants_csv([
        GrantRecord(title='観光"特別",補助金', organization="山形県", level="prefecture",
                    url="https://www.pref.yamagata.jp/a.html",
                    source_url="https://www.pref.yamagata.jp/list/"),
    ], path)

    result = GrantReconciler(store, FALLBACKS).reconcile("yamagata", read_csv_rows(path))

    assert result.status == STATUS_SUCCESS
    persisted = store.fetch_all()[0]
    assert persisted.title == '観光"特別",補助金'
    assert persisted.url == "https://www.pref.yamagata.jp/a.html"
    assert persisted.source_url == "https://www.pref.yamagata.jp/list/"
