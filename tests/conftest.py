import csv
import threading

import pytest
import requests

from grantnavi.core.domain_models import CSV_COLUMNS
from grantnavi.scrape.fetcher import PageFetcher
from grantnavi.storage.grant_store import GrantStore


@pytest.fixture
def store(tmp_path):
    return GrantStore(str(tmp_path / "grants.db"))


@pytest.fixture
def write_csv(tmp_path):
    """Write rows (dicts) to a CSV under tmp_path and return its path."""
    def _write(name, rows, columns=None):
        path = tmp_path / name
        columns = columns or CSV_COLUMNS
        with open(path, "w", encoding="utf-8", newline="") as f:
            writer = csv.DictWriter(f, fieldnames=columns)
            writer.writeheader()
            for row in rows:
                writer.writerow({c: row.get(c, "") for c in columns})
        return path
    return _write


@pytest.fixture
def set_timestamps(store):
    """Overwrite stored timestamps directly (ISO strings)."""
    def _set(grant_id, created_at=None, updated_at=None):
        with store.db.get_connection() as conn:
            if created_at is not None:
                conn.execute("UPDATE grants SET created_at = ? WHERE id = ?", (created_at, grant_id))
            if updated_at is not None:
                conn.execute("UPDATE grants SET updated_at = ? WHERE id = ?", (updated_at, grant_id))
    return _set


class FakeResponse:
    def __init__(self, url, text="", status_code=200, encoding="utf-8"):
        self.url = url
        self.text = text
        self.status_code = status_code
        self.encoding = encoding
        self.apparent_encoding = "utf-8"

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Error for url: {self.url}")


class FakeSession:
    """
    Serves canned pages.

    ``pages`` maps URL -> HTML string, status code (int) or an exception
    instance to raise. Unknown URLs return 404.
    """

    def __init__(self, pages=None):
        self.pages = dict(pages or {})
        self.headers = {}
        self.requested = []
        self._lock = threading.Lock()

    def get(self, url, timeout=None):
        with self._lock:
            self.requested.append(url)
        page = self.pages.get(url, 404)
        if isinstance(page, Exception):
            raise page
        if isinstance(page, int):
            return FakeResponse(url, status_code=page)
        return FakeResponse(url, text=page)


@pytest.fixture
def fake_session():
    return FakeSession()


@pytest.fixture
def fetcher(fake_session):
    return PageFetcher(delay=0, timeout=1, session_factory=lambda: fake_session)
