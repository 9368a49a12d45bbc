from __future__ import annotations

import logging
from typing import List, Optional

from aiohttp import ClientSession

from .archiver import AssetArchiver
from .base import ScrapeEngine, ScrapeReport
from .extractor import ProductExtractor
from .frontier import Frontier
from ..config import ScrapeConfig
from ..errors import ScrapeError
from ..export.archive import ImageArchive
from ..export.csv_exporter import to_csv
from ..profiles.base import FieldSelectorProfile, ProductRecord
from ..progress import ProgressEvent, ProgressSink
from ..utils.http import Fetcher, create_session
from ..utils.parsing import normalize_seed

logger = logging.getLogger(__name__)


class ScrapeOrchestrator(ScrapeEngine):
    """
    Crawl, extract, archive, report.

    - Pages and products are processed one at a time, so events come out in
      a deterministic order.
    - Exactly one terminal event (``complete`` or ``error``) is emitted, then
      the sink is closed, whatever happens.
    - The aiohttp session is created and closed here unless one is injected.
    """

    def __init__(
        self,
        config: ScrapeConfig,
        profile: FieldSelectorProfile,
        *,
        session: ClientSession | None = None,
    ) -> None:
        self.config = config
        self.profile = profile
        self._session = session

    async def run(self, seed: str, sink: ProgressSink) -> Optional[ScrapeReport]:
        seed = normalize_seed(seed)
        session = self._session or create_session()
        try:
            report = await self._scrape(seed, sink, session)
            await sink.emit(ProgressEvent.complete(report.csv, report.archive.to_base64()))
            return report
        except ScrapeError as exc:
            logger.warning("Scrape of %s failed: %s", seed, exc)
            await sink.emit(ProgressEvent.error(str(exc)))
        except Exception as exc:
            logger.exception("Unexpected scraping error for %s", seed)
            await sink.emit(ProgressEvent.error(f"An unexpected error occurred: {exc.__class__.__name__}"))
        finally:
            if self._session is None:
                await session.close()
            await sink.close()
        return None

    async def _scrape(self, seed: str, sink: ProgressSink, session: ClientSession) -> ScrapeReport:
        cfg = self.config
        fetcher = Fetcher(
            session,
            user_agent=cfg.user_agent,
            retries=cfg.retries,
            delay=cfg.retry_delay,
            timeout=cfg.request_timeout,
        )
        archive = ImageArchive()
        frontier = Frontier(fetcher, self.profile, max_pages=cfg.max_pages, strict_origin=cfg.strict_origin)
        extractor = ProductExtractor(fetcher, AssetArchiver(fetcher, archive, concurrency=cfg.image_concurrency))

        await sink.emit(ProgressEvent.progress(f"Starting {self.profile.key} crawl at {seed}"))
        summary = await frontier.crawl(seed, sink)

        total = len(summary.product_urls)
        await sink.emit(ProgressEvent.progress(f"Found {total} unique product pages."))

        products: List[ProductRecord] = []
        for count, url in enumerate(summary.product_urls, start=1):
            await sink.emit(ProgressEvent.progress(f"Scraping product {count}/{total}..."))
            record = await extractor.extract(url, self.profile)
            if record is None:
                await sink.emit(ProgressEvent.progress(f"Warning: Could not extract product data from {url}"))
                continue
            products.append(record)
            await sink.emit(ProgressEvent.product(record))

        await sink.emit(ProgressEvent.progress("Generating final files..."))
        logger.info("scraped %d/%d products, %d images from %s", len(products), total, len(archive), seed)
        return ScrapeReport(
            products=products,
            csv=to_csv(products),
            archive=archive,
            pages_processed=summary.pages_processed,
        )
