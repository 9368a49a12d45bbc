from __future__ import annotations

import logging

from bs4 import BeautifulSoup

from .base import CrawlState, CrawlSummary
from .classifier import LinkClassifier
from ..errors import FetchExhausted, NoProductsFound
from ..profiles.base import FieldSelectorProfile
from ..progress import ProgressEvent, ProgressSink
from ..utils.http import Fetcher
from ..utils.parsing import first_text

logger = logging.getLogger(__name__)


class Frontier:
    """
    Breadth-first link discovery from a seed URL.

    - One page in flight at a time.
    - Stops when the queue drains or ``max_pages`` pages were dequeued.
    - An unreachable page is reported and skipped, never fatal.
    """

    def __init__(
        self,
        fetcher: Fetcher,
        profile: FieldSelectorProfile,
        *,
        max_pages: int = 50,
        strict_origin: bool = False,
    ) -> None:
        self.fetcher = fetcher
        self.profile = profile
        self.max_pages = max_pages
        self.strict_origin = strict_origin

    async def crawl(self, seed: str, sink: ProgressSink) -> CrawlSummary:
        classifier = LinkClassifier(seed, self.profile, strict_origin=self.strict_origin)
        state = CrawlState.start(seed)

        while state.queue and state.processed_count < self.max_pages:
            url = state.queue.popleft()
            state.processed_count += 1

            path = url[len(seed):] if url.startswith(seed) else url
            await sink.emit(ProgressEvent.progress(f"Crawling: {path or '/'}"))

            try:
                page = await self.fetcher.get(url)
            except FetchExhausted:
                await sink.emit(ProgressEvent.progress(f"Warning: Could not crawl {url}"))
                continue

            if not page.is_html:
                logger.debug("skipping non-HTML response from %s (%s)", url, page.content_type)
                continue

            soup = BeautifulSoup(page.text, "html.parser")
            classifier.classify(soup, state)

        logger.info(
            "crawl of %s finished: %d pages, %d product links",
            seed, state.processed_count, len(state.product_urls),
        )

        if not state.product_urls and self.profile.listing_path:
            await self._scan_listing(seed, classifier, state, sink)
        if not state.product_urls:
            await self._check_seed(seed, state, sink)

        return CrawlSummary(product_urls=list(state.product_urls), pages_processed=state.processed_count)

    async def _scan_listing(
        self, seed: str, classifier: LinkClassifier, state: CrawlState, sink: ProgressSink
    ) -> None:
        listing_url = seed.rstrip("/") + self.profile.listing_path
        await sink.emit(ProgressEvent.progress(
            f"No product links found on crawled pages. Trying {listing_url}"
        ))
        try:
            page = await self.fetcher.get(listing_url)
        except FetchExhausted:
            logger.info("listing page %s is not reachable", listing_url)
            return
        soup = BeautifulSoup(page.text, "html.parser")
        for url in classifier.product_candidates(soup):
            state.add_product(url)

    async def _check_seed(self, seed: str, state: CrawlState, sink: ProgressSink) -> None:
        # A FetchExhausted here propagates: the seed itself is unreachable.
        page = await self.fetcher.get(seed)
        soup = BeautifulSoup(page.text, "html.parser")
        if not first_text(soup, self.profile.title):
            raise NoProductsFound(self.profile.key)
        state.add_product(seed)
        await sink.emit(ProgressEvent.progress("Base URL detected as a product page"))
