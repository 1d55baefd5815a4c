from grantnavi.core.domain_models import STATUS_ERROR, GrantRecord
from grantnavi.core.errors import StoreError
from grantnavi.core.titles import TitleStrategy, title_key
from grantnavi.sync.sweep import DeduplicationSweep


def seed(store, *titles):
    """Insert raw titles (bypassing reconciliation) and return their ids."""
    store.upsert_grants([GrantRecord(title=t, url="https://a.go.jp/") for t in titles])
    by_title = {r.title: r.id for r in store.fetch_all()}
    return [by_title[t] for t in titles]


def test_sweep_converges(store):
    seed(store, "補助金A", '"補助金A"', " 補助金A ", "補助金B", '"補助金B"', "補助金C")
    sweep = DeduplicationSweep(store)

    first = sweep.run()
    second = sweep.run()

    keys = [title_key(r.title) for r in store.fetch_all()]
    assert len(keys) == len(set(keys)) == 3
    assert first.deleted_count == 3
    assert second.deleted_count == 0
    assert second.message == "No duplicates"


def test_most_recently_updated_row_survives(store, set_timestamps):
    old_id, new_id, mid_id = seed(store, "補助金A", '"補助金A"', "補助金A ")
    set_timestamps(old_id, updated_at="2025-01-01T00:00:00+00:00")
    set_timestamps(new_id, updated_at="2025-03-01T00:00:00+00:00")
    set_timestamps(mid_id, updated_at="2025-02-01T00:00:00+00:00")

    result = DeduplicationSweep(store).run()

    assert [r.id for r in store.fetch_all()] == [new_id]
    assert result.groups["補助金A"][0] == new_id
    assert sorted(result.deleted_ids) == sorted([old_id, mid_id])


def test_ties_fall_back_to_highest_id(store, set_timestamps):
    ids = seed(store, "A", '"A"')
    for grant_id in ids:
        set_timestamps(grant_id, created_at="2025-01-01T00:00:00+00:00",
                       updated_at="2025-01-01T00:00:00+00:00")

    DeduplicationSweep(store).run()

    assert [r.id for r in store.fetch_all()] == [max(ids)]


def test_dry_run_deletes_nothing(store):
    seed(store, "A", '"A"', "B")
    result = DeduplicationSweep(store).run(dry_run=True)

    assert result.dry_run
    assert result.deleted_count == 0
    assert len(result.groups) == 1
    assert len(store.fetch_all()) == 3
    assert result.message.startswith("Dry run: 1")


def test_collapse_strategy_groups_spacing_variants(store):
    seed(store, "観光 支援金", "観光支援金")

    assert DeduplicationSweep(store, TitleStrategy.STRIP).run().deleted_count == 0
    assert DeduplicationSweep(store, TitleStrategy.COLLAPSE).run().deleted_count == 1


class BrokenDeleteStore:
    def fetch_all(self):
        return [GrantRecord(title="A", id=1), GrantRecord(title='"A"', id=2)]

    def delete_grants(self, ids):
        raise StoreError("delete rejected")


def test_delete_failure_is_reported():
    result = DeduplicationSweep(BrokenDeleteStore()).run()
    assert result.status == STATUS_ERROR
    assert result.deleted_count == 0
