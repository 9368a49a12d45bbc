"""Shared fixtures: an in-memory stand-in for ``aiohttp.ClientSession``."""

from __future__ import annotations

from collections import Counter
from typing import Any, Dict, List, Optional

import aiohttp
import pytest

from product_scraper.config import ScrapeConfig
from product_scraper.utils.http import Fetcher


class FakeResponse:
    def __init__(self, url: str, status: int, body: bytes, content_type: str) -> None:
        self.url = url
        self.status = status
        self._body = body
        self.content_type = content_type
        self.charset = "utf-8" if content_type.startswith("text/") else None

    async def __aenter__(self) -> "FakeResponse":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        return None

    def raise_for_status(self) -> None:
        if self.status >= 400:
            raise aiohttp.ClientError(f"HTTP {self.status} for {self.url}")

    async def read(self) -> bytes:
        return self._body


class FakeSession:
    """
    Serves canned responses keyed by exact URL. A value may be an HTML string,
    raw bytes (served as an image), an int status, an exception instance, a
    ready-made FakeResponse, or a list consumed one item per request.
    """

    def __init__(self, routes: Optional[Dict[str, Any]] = None) -> None:
        self.routes: Dict[str, Any] = dict(routes or {})
        self.requests: List[str] = []
        self.headers: List[Dict[str, str]] = []
        self.closed = False

    @property
    def hits(self) -> Counter:
        return Counter(self.requests)

    def get(self, url: str, headers: Optional[Dict[str, str]] = None, **kwargs: Any) -> FakeResponse:
        self.requests.append(url)
        self.headers.append(dict(headers or {}))
        value = self.routes.get(url, 404)
        if isinstance(value, list):
            value = value.pop(0) if len(value) > 1 else value[0]
        if isinstance(value, Exception):
            raise value
        if isinstance(value, FakeResponse):
            return value
        if isinstance(value, int):
            return FakeResponse(url, value, b"", "text/html")
        if isinstance(value, bytes):
            return FakeResponse(url, 200, value, "image/jpeg")
        return FakeResponse(url, 200, value.encode("utf-8"), "text/html")

    async def close(self) -> None:
        self.closed = True


@pytest.fixture
def session() -> FakeSession:
    return FakeSession()


@pytest.fixture
def fetcher(session: FakeSession) -> Fetcher:
    return Fetcher(session, user_agent="test-agent", retries=3, delay=0, timeout=1)


@pytest.fixture
def config() -> ScrapeConfig:
    return ScrapeConfig(retry_delay=0, request_timeout=1)


def product_page(
    name: str,
    *,
    images: List[str] = (),
    price: str = '<span class="amount">$10.00</span>',
    extra: str = "",
) -> str:
    gallery = "".join(
        f'<div class="woocommerce-product-gallery__image"><a href="{src}"><img src="{src}"></a></div>'
        for src in images
    )
    return f"""
    <html><body>
      <h1 class="product_title">{name}</h1>
      <p class="price">{price}</p>
      {gallery}
      <span class="sku">SKU-{name}</span>
      <div id="tab-description"><p>About {name}</p></div>
      {extra}
    </body></html>
    """
