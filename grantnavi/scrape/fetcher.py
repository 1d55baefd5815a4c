"""
Fetch listing and detail pages with per-host rate limiting.
"""

import logging
import threading
import time
from typing import Callable, Dict, Optional
from urllib.parse import urlparse

import requests

from grantnavi.core.errors import FetchError

logger = logging.getLogger(__name__)


DEFAULT_HEADERS = {
    "User-Agent": "Mozilla/5.0 (compatible; GrantNaviBot/1.0)",
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
    "Accept-Language": "ja,en;q=0.5",
}


class PageFetcher:
    """
    Fetch webpages politely.

    One requests.Session per worker thread; the per-host delay is shared
    across threads so parallel workers never hammer the same site.
    """

    def __init__(
        self,
        delay: float = 0.5,
        timeout: float = 15.0,
        session_factory: Optional[Callable[[], requests.Session]] = None,
    ):
        """
        Args:
            delay: Minimum seconds between requests to the same host
            timeout: Per-request timeout in seconds
            session_factory: Builds the session used by each thread
        """
        self.delay = delay
        self.timeout = timeout
        self.session_factory = session_factory or requests.Session
        self._local = threading.local()
        self._lock = threading.Lock()
        self.next_request_time: Dict[str, float] = {}  # Domain-based rate limiting

    @property
    def session(self) -> requests.Session:
        session = getattr(self._local, "session", None)
        if session is None:
            session = self.session_factory()
            session.headers.update(DEFAULT_HEADERS)
            self._local.session = session
        return session

    def fetch(self, url: str) -> str:
        """
        Fetch HTML, raising on any failure.

        Raises:
            FetchError: Timeout, connection failure or non-2xx status
        """
        self._rate_limit(url)

        try:
            response = self.session.get(url, timeout=self.timeout)
            response.raise_for_status()
        except requests.Timeout as e:
            raise FetchError(f"Timed out after {self.timeout}s: {url}") from e
        except requests.RequestException as e:
            raise FetchError(f"Failed to fetch {url}: {e}") from e

        # Japanese sites often omit the charset header
        if not response.encoding or response.encoding.lower() == "iso-8859-1":
            response.encoding = response.apparent_encoding

        return response.text

    def fetch_webpage(self, url: str) -> Optional[str]:
        """
        Fetch webpage HTML.

        Returns HTML string or None if fetch fails.
        """
        try:
            html = self.fetch(url)
        except FetchError as e:
            logger.warning(f"⚠️  {e}")
            return None

        logger.debug(f"Fetched webpage: {url}")
        return html

    def _rate_limit(self, url: str):
        """Apply rate limiting per domain."""
        if self.delay <= 0:
            return

        domain = urlparse(url).netloc
        with self._lock:
            now = time.monotonic()
            slot = max(now, self.next_request_time.get(domain, now))
            self.next_request_time[domain] = slot + self.delay

        wait = slot - time.monotonic()
        if wait > 0:
            time.sleep(wait)
