from __future__ import annotations

import asyncio
import logging
import time
from typing import List, Optional, Tuple
from urllib.parse import urlparse

from ..export.archive import ImageArchive, image_path
from ..utils.http import Fetcher
from ..utils.parsing import resolve_url

logger = logging.getLogger(__name__)


def image_filename(url: str, index: int = 0) -> str:
    """
    Last path segment without the query string, or a timestamped stand-in.
    """
    segment = urlparse(url).path.rsplit("/", 1)[-1]
    if segment:
        return segment
    return f"image-{int(time.time() * 1000)}-{index}"


class AssetArchiver:
    """
    Downloads a product's images into the shared ``ImageArchive``.

    Filenames are decided and reserved before any download starts; a filename
    that is already stored or reserved is never fetched again. Downloads run
    concurrently under a semaphore, and a failed one only drops that image.
    """

    def __init__(self, fetcher: Fetcher, archive: ImageArchive, *, concurrency: int = 5) -> None:
        self.fetcher = fetcher
        self.archive = archive
        self._sem = asyncio.Semaphore(concurrency)

    async def archive_images(self, image_urls: List[str], base_url: str) -> List[str]:
        """
        Archive ``image_urls`` (resolved against the product page ``base_url``)
        and return the filenames that ended up in the archive, in page order.
        """
        filenames: List[str] = []
        jobs: List[Tuple[str, str]] = []
        for index, raw in enumerate(image_urls):
            url = resolve_url(raw, base_url)
            if url is None:
                continue
            filename = image_filename(url, index)
            if filename in filenames:
                continue
            filenames.append(filename)
            if self.archive.reserve(image_path(filename)):
                jobs.append((url, filename))
            else:
                logger.debug("image %s already archived, reusing", filename)

        if jobs:
            await asyncio.gather(*(self._download(url, filename) for url, filename in jobs))

        return [f for f in filenames if image_path(f) in self.archive]

    async def _download(self, url: str, filename: str) -> Optional[str]:
        path = image_path(filename)
        async with self._sem:
            try:
                result = await self.fetcher.get(url)
            except Exception as exc:
                logger.warning("Failed to download image %s: %s", url, exc)
                self.archive.release(path)
                return None
        self.archive.store(path, result.body)
        return filename
