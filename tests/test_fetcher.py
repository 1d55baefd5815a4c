import pytest
import requests

from grantnavi.core.errors import FetchError
from grantnavi.scrape.fetcher import DEFAULT_HEADERS, PageFetcher

from conftest import FakeResponse, FakeSession


def test_fetch_returns_html_and_sets_headers(fetcher, fake_session):
    fake_session.pages = {"https://a.go.jp/": "<p>ok</p>"}

    assert fetcher.fetch("https://a.go.jp/") == "<p>ok</p>"
    assert fake_session.headers["User-Agent"] == DEFAULT_HEADERS["User-Agent"]


def test_fetch_errors_become_fetch_error(fetcher, fake_session):
    fake_session.pages = {
        "https://slow.go.jp/": requests.Timeout("slow"),
        "https://down.go.jp/": requests.ConnectionError("dns"),
    }
    for url in ("https://slow.go.jp/", "https://down.go.jp/", "https://missing.go.jp/"):
        with pytest.raises(FetchError):
            fetcher.fetch(url)


def test_fetch_webpage_returns_none_on_failure(fetcher):
    assert fetcher.fetch_webpage("https://missing.go.jp/") is None


def test_missing_charset_uses_apparent_encoding():
    class Latin1Session(FakeSession):
        def get(self, url, timeout=None):
            response = FakeResponse(url, text="x", encoding="ISO-8859-1")
            response.apparent_encoding = "shift_jis"
            self.last = response
            return response

    session = Latin1Session()
    PageFetcher(delay=0, session_factory=lambda: session).fetch("https://a.go.jp/")
    assert session.last.encoding == "shift_jis"


def test_rate_limit_spaces_requests_per_host(monkeypatch):
    clock = {"now": 100.0}
    sleeps = []
    monkeypatch.setattr("grantnavi.scrape.fetcher.time.monotonic", lambda: clock["now"])
    monkeypatch.setattr("grantnavi.scrape.fetcher.time.sleep", sleeps.append)

    fetcher = PageFetcher(delay=0.5, session_factory=FakeSession)
    fetcher._rate_limit("https://a.go.jp/1")
    fetcher._rate_limit("https://a.go.jp/2")
    fetcher._rate_limit("https://b.go.jp/1")

    assert sleeps == [0.5]
