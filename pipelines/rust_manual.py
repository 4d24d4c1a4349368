"""Fetching and searching The Rust Programming Language book."""

import logging
from typing import List, Optional

from bs4 import BeautifulSoup

from .http import HttpFetcher

logger = logging.getLogger(__name__)

RUST_BOOK_URL = "https://doc.rust-lang.org/stable/book/"

_SEARCHABLE_TAGS = ['h1', 'h2', 'h3', 'h4', 'p', 'li', 'pre', 'td', 'blockquote']
MIN_MATCH_LENGTH = 20


def search_html(html: str, query: str, limit: int = 20) -> List[str]:
    """Text blocks of ``html`` containing ``query``, case-insensitively."""
    needle = query.lower()
    soup = BeautifulSoup(html, 'html.parser')
    root = soup.select_one('main') or soup.body or soup

    matches: List[str] = []
    seen = set()
    for element in root.find_all(_SEARCHABLE_TAGS):
        text = ' '.join(element.get_text(' ').split())
        if len(text) <= MIN_MATCH_LENGTH or needle not in text.lower() or text in seen:
            continue
        seen.add(text)
        matches.append(text)
        if len(matches) >= limit:
            break
    return matches


class RustManual:
    """The Rust book's landing page, fetched once and cached."""

    def __init__(self, fetcher: HttpFetcher, url: str = RUST_BOOK_URL):
        self.fetcher = fetcher
        self.url = url
        self._cached: Optional[str] = None

    @property
    def is_cached(self) -> bool:
        return self._cached is not None

    async def fetch(self, refresh: bool = False) -> str:
        if self._cached is None or refresh:
            self._cached = await self.fetcher.get_text(self.url)
            logger.info(f"Fetched Rust manual ({len(self._cached)} bytes)")
        return self._cached

    async def search(self, query: str, limit: int = 20) -> List[str]:
        html = await self.fetch()
        return search_html(html, query, limit=limit)
