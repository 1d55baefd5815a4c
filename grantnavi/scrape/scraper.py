"""
Keyword-anchor scraper for official grant listing pages.

Each target lists one or more listing URLs. Anchors whose text mentions a
grant keyword become GrantRecord rows; generic anchor text ("詳細",
"こちら", ...) is replaced by the linked page's own title.

Targets run sequentially by default or on a small thread pool. A failing
page or target is logged and skipped; it never aborts the run.
"""

import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Iterable, List, Optional

from grantnavi.config import DEFAULT_GENERIC_PHRASES, DEFAULT_KEYWORDS
from grantnavi.core.domain_models import LEVEL_NATIONAL, TYPE_SUBSIDY, GrantRecord
from grantnavi.core.errors import FetchError
from grantnavi.ingest.schema import DEFAULT_INDUSTRY, DEFAULT_TARGET_TYPE
from .anchors import TitleResolver, extract_keyword_links
from .fetcher import PageFetcher

logger = logging.getLogger(__name__)


@dataclass
class ScrapeTarget:
    """One issuing organization and the listing pages to scan."""
    organization: str
    pages: List[str]
    type: str = TYPE_SUBSIDY
    level: str = LEVEL_NATIONAL
    area_prefecture: str = ""
    area_city: str = ""
    description: str = ""
    stop_after_first_hit: bool = False
    industry: str = DEFAULT_INDUSTRY
    target_type: str = DEFAULT_TARGET_TYPE

    def make_record(self, title: str, url: str, source_url: str) -> GrantRecord:
        return GrantRecord(
            title=title,
            type=self.type,
            description=self.description,
            organization=self.organization,
            level=self.level,
            area_prefecture=self.area_prefecture,
            area_city=self.area_city,
            industry=self.industry,
            target_type=self.target_type,
            url=url,
            source_url=source_url,
        )


class GrantScraper:
    """
    Scrape a list of targets into GrantRecords.

    Usage:
        scraper = GrantScraper(NATIONAL_TARGETS, PageFetcher(delay=0.5), workers=4)
        records = scraper.run()
    """

    def __init__(
        self,
        targets: List[ScrapeTarget],
        fetcher: Optional[PageFetcher] = None,
        keywords: Iterable[str] = DEFAULT_KEYWORDS,
        generic_phrases: Iterable[str] = DEFAULT_GENERIC_PHRASES,
        workers: int = 1,
        cancel_event: Optional[threading.Event] = None,
    ):
        """
        Args:
            targets: Organizations to scan, in output order
            fetcher: Page fetcher (rate limiting, timeouts)
            keywords: Anchor text must contain one of these
            generic_phrases: Anchor text that needs a detail-page title
            workers: Thread pool size; 1 runs sequentially
            cancel_event: Shared token; once set no new requests start
        """
        self.targets = list(targets)
        self.fetcher = fetcher or PageFetcher()
        self.keywords = tuple(keywords)
        self.resolver = TitleResolver(self.fetcher, generic_phrases)
        self.workers = max(1, workers)
        self.cancel_event = cancel_event or threading.Event()

    def cancel(self) -> None:
        """Stop issuing requests; targets in flight finish their current page."""
        self.cancel_event.set()

    @property
    def cancelled(self) -> bool:
        return self.cancel_event.is_set()

    def scrape_target(self, target: ScrapeTarget) -> List[GrantRecord]:
        """
        Scan every listing page of one target.

        Returns:
            Records in page and anchor order (may contain duplicates)
        """
        logger.info(f"📡 Fetching {target.organization}...")
        records = []

        for page_url in target.pages:
            if self.cancelled:
                logger.info(f"Cancelled before {page_url}")
                break

            try:
                html = self.fetcher.fetch(page_url)
            except FetchError as e:
                logger.warning(f"⚠️  {target.organization}: {e}")
                continue

            page_records = []
            for link in extract_keyword_links(html, page_url, self.keywords):
                if self.cancelled:
                    break
                title = self.resolver.resolve(link)
                if not title:
                    logger.debug(f"Skipped generic link without title: {link.href}")
                    continue
                page_records.append(target.make_record(title, link.href, page_url))

            records.extend(page_records)
            if page_records and target.stop_after_first_hit:
                break

        if records:
            logger.info(f"✅ {target.organization}: {len(records)} links")
        else:
            logger.warning(f"⚠️  {target.organization}: no grant links found")

        return records

    def _scrape_isolated(self, target: ScrapeTarget) -> List[GrantRecord]:
        try:
            return self.scrape_target(target)
        except Exception as e:
            logger.error(f"❌ {target.organization} failed: {e}", exc_info=True)
            return []

    def run(self) -> List[GrantRecord]:
        """
        Scrape all targets and merge results in target order.

        Duplicates by (title, url) are dropped, first occurrence wins.
        """
        if self.workers == 1:
            per_target = [self._scrape_isolated(t) for t in self.targets]
        else:
            with ThreadPoolExecutor(max_workers=self.workers) as pool:
                # Set the token before the pool joins its workers
                try:
                    per_target = list(pool.map(self._scrape_isolated, self.targets))
                except KeyboardInterrupt:
                    logger.warning("Interrupted, cancelling remaining targets")
                    self.cancel()
                    raise

        return dedupe_records(r for records in per_target for r in records)


def dedupe_records(records: Iterable[GrantRecord]) -> List[GrantRecord]:
    """Drop repeated (title, url) pairs, keeping the first."""
    seen = set()
    unique = []
    for record in records:
        key = (record.title, record.url)
        if key in seen:
            continue
        seen.add(key)
        unique.append(record)
    return unique
