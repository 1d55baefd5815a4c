import pytest

from grantnavi.core.domain_models import STATUS_ERROR, STATUS_SUCCESS, SyncLogEntry
from grantnavi.sync.pipeline import SyncPipeline, SyncSource, default_sources
from grantnavi.sync.reconciler import GrantReconciler
from grantnavi.sync.sweep import DeduplicationSweep
from grantnavi.sync.sync_log import SyncLogWriter


def make_pipeline(store):
    return SyncPipeline(store, GrantReconciler(store, {}), DeduplicationSweep(store))


def test_default_sources_order(tmp_path):
    sources = default_sources(tmp_path)
    assert [s.label for s in sources] == ["national", "yamagata", "yamagata_city"]
    assert sources[0].path == tmp_path / "fetched_national_grants.csv"


def test_missing_and_empty_sources_do_not_stop_the_run(store, write_csv, tmp_path):
    good = write_csv("good.csv", [{"title": "補助金A", "url": "https://a.go.jp/"}])
    empty = write_csv("empty.csv", [])
    sources = [
        SyncSource("missing", tmp_path / "nope.csv"),
        SyncSource("empty", empty),
        SyncSource("good", good),
    ]

    report = make_pipeline(store).run(sources)

    statuses = {r.source: r.status for r in report.results}
    assert statuses == {"missing": STATUS_ERROR, "empty": STATUS_ERROR, "good": STATUS_SUCCESS}
    assert [r.title for r in store.fetch_all()] == ["補助金A"]
    assert not report.ok


def test_sync_logs_written_per_source_and_for_sweep(store, write_csv, tmp_path):
    good = write_csv("good.csv", [
        {"title": "A", "url": "https://a.go.jp/"},
        {"title": "B", "url": "https://b.go.jp/"},
    ])
    make_pipeline(store).run([SyncSource("national", good), SyncSource("missing", tmp_path / "x.csv")])

    logs = {log.source: log for log in store.list_sync_logs()}
    assert logs["national"].status == STATUS_SUCCESS
    assert logs["national"].records_synced == 2
    assert logs["missing"].status == STATUS_ERROR
    assert logs["missing"].records_synced == 0
    assert logs["deduplication"].records_synced == 0
    assert logs["national"].created_at is not None


def test_cross_source_duplicates_are_swept(store, write_csv):
    first = write_csv("a.csv", [{"title": "観光 支援金", "url": "https://a.go.jp/"}])
    second = write_csv("b.csv", [{"title": "観光支援金", "url": "https://b.go.jp/"}])
    pipeline = SyncPipeline(
        store,
        GrantReconciler(store, {}, "collapse"),
        DeduplicationSweep(store, "collapse"),
    )

    report = pipeline.run([SyncSource("a", first), SyncSource("b", second)])

    assert report.ok
    assert report.sweep.deleted_count == 1
    assert len(store.fetch_all()) == 1


def test_dry_run_sweep_is_not_logged(store):
    make_pipeline(store).run_sweep(dry_run=True)
    assert store.list_sync_logs() == []


class BrokenLogStore:
    def insert_sync_log(self, entry):
        raise RuntimeError("table missing")


def test_sync_log_failures_are_swallowed():
    assert SyncLogWriter(BrokenLogStore()).log("national", 1, STATUS_SUCCESS, "ok") is False


def test_sync_log_entry_row_has_no_timestamp():
    row = SyncLogEntry("national", 3, STATUS_SUCCESS, "ok").to_row()
    assert row == {"source": "national", "records_synced": 3, "status": STATUS_SUCCESS, "message": "ok"}


def test_sweep_only_pipeline(store, tmp_path):
    GrantReconciler(store, {}).reconcile("national", [
        {"title": "観光 支援金", "url": "https://a.go.jp/"},
    ])
    GrantReconciler(store, {}).reconcile("national", [
        {"title": "観光支援金", "url": "https://b.go.jp/"},
    ])
    pipeline = SyncPipeline(store, sweep=DeduplicationSweep(store, title_strategy="collapse"))

    result = pipeline.run_sweep()

    assert result.deleted_count == 1
    assert len(store.fetch_all()) == 1
    assert [log.source for log in store.list_sync_logs()] == ["deduplication"]
    with pytest.raises(ValueError):
        pipeline.sync_source(SyncSource("national", tmp_path / "a.csv"))
