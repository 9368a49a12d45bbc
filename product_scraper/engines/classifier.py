from __future__ import annotations

import logging
from typing import List, Optional, Tuple
from urllib.parse import urlparse

from bs4 import BeautifulSoup

from .base import CrawlState
from ..profiles.base import FieldSelectorProfile
from ..utils.parsing import in_scope, is_static_asset, resolve_url

logger = logging.getLogger(__name__)


class LinkClassifier:
    """
    Sorts a page's anchors into crawlable links and product candidates.

    Every href is resolved against the seed URL, not the page it appears on,
    and must pass the scope check. The two classifications are independent:
    a product link is usually also queued for crawling.
    """

    def __init__(self, seed: str, profile: FieldSelectorProfile, *, strict_origin: bool = False) -> None:
        self.seed = seed
        self.profile = profile
        self.strict_origin = strict_origin

    def resolve(self, href: Optional[str]) -> Optional[str]:
        url = resolve_url(href, self.seed)
        if url is None or not in_scope(url, self.seed, strict=self.strict_origin):
            return None
        return url

    def crawlable(self, soup: BeautifulSoup, state: CrawlState) -> List[str]:
        """
        Mark new in-scope links visited and return those worth fetching.
        Static assets are marked visited but never queued.
        """
        queued: List[str] = []
        for a in soup.select("a[href]"):
            url = self.resolve(a.get("href"))
            if url is None or url in state.visited:
                continue
            state.visited.add(url)
            if not is_static_asset(url):
                queued.append(url)
        return queued

    def product_candidates(self, soup: BeautifulSoup) -> List[str]:
        """Links under the product-link selector whose path contains the profile's href guard."""
        guard = self.profile.product_href_contains
        found: List[str] = []
        for el in soup.select(self.profile.product_link):
            anchors = [el] if el.name == "a" else el.select("a[href]")
            for a in anchors:
                url = self.resolve(a.get("href"))
                if url is None or (guard and guard not in urlparse(url).path) or url in found:
                    continue
                found.append(url)
        return found

    def classify(self, soup: BeautifulSoup, state: CrawlState) -> Tuple[int, int]:
        """Apply both classifications to ``state``; returns (queued, new products)."""
        queued = self.crawlable(soup, state)
        state.queue.extend(queued)
        new_products = sum(1 for url in self.product_candidates(soup) if state.add_product(url))
        logger.debug("classified page: %d queued, %d new product links", len(queued), new_products)
        return len(queued), new_products
