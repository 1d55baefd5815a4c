from grantnavi.core.domain_models import LEVEL_NATIONAL
from grantnavi.ingest.schema import CsvSchema, detect_schema, pick_url, to_record, url_columns_for


def test_detect_schema():
    assert detect_schema(["title", "url", "source_url"]) is CsvSchema.CURRENT
    assert detect_schema(["title", "source_url"]) is CsvSchema.LEGACY_SOURCE_URL
    assert detect_schema(["title", "link"]) is CsvSchema.LEGACY_LINK
    assert detect_schema(["title"]) is CsvSchema.UNKNOWN


def test_pick_url_priority():
    row = {"source_url": "https://list.go.jp/", "url": "https://detail.go.jp/1", "link": "https://l"}
    assert pick_url(row) == "https://list.go.jp/"
    assert pick_url(row, ("url", "source_url")) == "https://detail.go.jp/1"


def test_pick_url_skips_empty_cells():
    assert pick_url({"source_url": " ", "url": "", "link": "https://old.go.jp/"}) == "https://old.go.jp/"
    assert pick_url({"title": "A"}) == ""


def test_legacy_link_row_becomes_canonical_record():
    record = to_record({"title": '"A"', "link": "https://old.go.jp/a", "organization": "総務省"})
    assert record.title == '"A"'
    assert record.url == "https://old.go.jp/a"
    assert record.source_url == ""
    assert record.organization == "総務省"


def test_defaults_for_missing_columns():
    record = to_record({"title": "A"})
    assert record.level == LEVEL_NATIONAL
    assert record.industry == "旅館業"
    assert record.target_type == "法人"


def test_explicit_values_are_kept():
    record = to_record({"title": "A", "level": "prefecture", "industry": "製造業", "area_city": " 山形市 "})
    assert record.level == "prefecture"
    assert record.industry == "製造業"
    assert record.area_city == "山形市"


def test_current_row_keeps_detail_url():
    row = {"title": "A", "url": "https://detail.go.jp/1", "source_url": "https://list.go.jp/"}
    record = to_record(row)
    assert record.url == "https://detail.go.jp/1"
    assert record.source_url == "https://list.go.jp/"


def test_current_row_without_detail_url_uses_listing_page():
    record = to_record({"title": "A", "url": "", "source_url": "https://list.go.jp/"})
    assert record.url == "https://list.go.jp/"


def test_legacy_source_url_row_prefers_source_url():
    record = to_record({"title": "A", "source_url": "https://list.go.jp/", "organization": "観光庁"})
    assert record.url == "https://list.go.jp/"


def test_url_columns_for_header():
    assert url_columns_for(["title", "url", "source_url"]) == ("url", "source_url")
    assert url_columns_for(["title", "link"]) == ("source_url", "url", "link")


def test_explicit_url_columns_override_layout():
    row = {"title": "A", "url": "https://detail.go.jp/1", "source_url": "https://list.go.jp/"}
    assert to_record(row, ("source_url", "url")).url == "https://list.go.jp/"
