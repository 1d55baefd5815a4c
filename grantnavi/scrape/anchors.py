"""
HTML helpers: keyword anchors on listing pages, titles on detail pages.
"""

import logging
import re
from dataclasses import dataclass
from typing import Iterable, List, Optional

from bs4 import BeautifulSoup

from grantnavi.core.urls import absolute_url

logger = logging.getLogger(__name__)

_WS = re.compile(r"\s+")
_TITLE_SEPARATORS = re.compile(r"[|｜]")
_SKIPPED_HREF_PREFIXES = ("#", "javascript:", "mailto:", "tel:")


@dataclass
class KeywordLink:
    """An anchor whose text mentions a grant keyword."""
    text: str
    href: str


def clean_text(text: Optional[str]) -> str:
    """Collapse runs of whitespace and trim."""
    if not text:
        return ""
    return _WS.sub(" ", text).strip()


def is_generic_title(text: str, generic_phrases: Iterable[str]) -> bool:
    """
    True when ``text`` is too short or boilerplate to identify a grant.

    Text of 3 characters or fewer is always generic; otherwise it must
    equal one of the phrases, ignoring case.
    """
    cleaned = clean_text(text)
    if len(cleaned) <= 3:
        return True
    lowered = cleaned.lower()
    return any(lowered == phrase.lower() for phrase in generic_phrases)


def extract_keyword_links(html: str, page_url: str, keywords: Iterable[str]) -> List[KeywordLink]:
    """
    Find anchors whose text contains any keyword.

    Args:
        html: Listing page HTML
        page_url: URL the page was fetched from (for relative hrefs)
        keywords: Substrings that mark a grant link

    Returns:
        Links in document order with absolute hrefs
    """
    keywords = tuple(keywords)
    soup = BeautifulSoup(html, "html.parser")

    links = []
    for anchor in soup.find_all("a", href=True):
        text = clean_text(anchor.get_text())
        if not text or not any(k in text for k in keywords):
            continue

        href = anchor["href"].strip()
        if not href or href.lower().startswith(_SKIPPED_HREF_PREFIXES):
            continue

        links.append(KeywordLink(text=text, href=absolute_url(href, page_url)))

    return links


def title_from_detail_page(html: str, generic_phrases: Iterable[str]) -> Optional[str]:
    """
    Pick a descriptive title from a detail page.

    Tried in order: first <h1>, <title> up to the first "|" or "｜",
    then each <h2>/<h3>. The first non-generic candidate wins.
    """
    phrases = tuple(generic_phrases)
    soup = BeautifulSoup(html, "html.parser")

    candidates = []
    h1 = soup.find("h1")
    if h1:
        candidates.append(h1.get_text())
    if soup.title and soup.title.string:
        candidates.append(_TITLE_SEPARATORS.split(soup.title.string)[0])
    candidates.extend(h.get_text() for h in soup.find_all(["h2", "h3"]))

    for candidate in candidates:
        text = clean_text(candidate)
        if not is_generic_title(text, phrases):
            return text

    return None


class TitleResolver:
    """Replace generic anchor text with the detail page's own title."""

    def __init__(self, fetcher, generic_phrases: Iterable[str]):
        self.fetcher = fetcher
        self.generic_phrases = tuple(generic_phrases)

    def resolve(self, link: KeywordLink) -> Optional[str]:
        """
        Title for ``link``: its own text unless generic, else the detail page title.

        Returns None when no usable title can be found.
        """
        if not is_generic_title(link.text, self.generic_phrases):
            return link.text

        html = self.fetcher.fetch_webpage(link.href)
        if html is None:
            return None

        title = title_from_detail_page(html, self.generic_phrases)
        if title:
            logger.debug(f"Resolved generic link '{link.text}' -> '{title}'")
        else:
            logger.debug(f"No usable title on {link.href}")
        return title
