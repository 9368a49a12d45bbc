"""Fetcher retry behaviour."""

from __future__ import annotations

import aiohttp
import pytest

from product_scraper.errors import FetchExhausted
from product_scraper.utils.http import Fetcher, FetchResult


@pytest.mark.asyncio
async def test_fetch_sends_user_agent_and_returns_body(session, fetcher) -> None:
    session.routes["https://shop.example/"] = "<html>ok</html>"

    result = await fetcher.get("https://shop.example/")

    assert result.status == 200
    assert result.text == "<html>ok</html>"
    assert result.is_html
    assert session.headers[0]["User-Agent"] == "test-agent"


@pytest.mark.asyncio
async def test_fetch_retries_after_network_error(session, fetcher) -> None:
    session.routes["https://shop.example/"] = [aiohttp.ClientError("reset"), "<html>second</html>"]

    result = await fetcher.get("https://shop.example/")

    assert result.text == "<html>second</html>"
    assert session.hits["https://shop.example/"] == 2


@pytest.mark.asyncio
async def test_fetch_treats_error_status_as_failed_attempt(session, fetcher) -> None:
    session.routes["https://shop.example/"] = [503, 503, "<html>third</html>"]

    result = await fetcher.get("https://shop.example/")

    assert result.text == "<html>third</html>"
    assert session.hits["https://shop.example/"] == 3


@pytest.mark.asyncio
async def test_fetch_raises_after_exhausting_attempts(session, fetcher) -> None:
    session.routes["https://shop.example/gone"] = 404

    with pytest.raises(FetchExhausted) as info:
        await fetcher.get("https://shop.example/gone")

    assert info.value.url == "https://shop.example/gone"
    assert info.value.attempts == 3
    assert session.hits["https://shop.example/gone"] == 3


@pytest.mark.asyncio
async def test_fetch_sleeps_fixed_delay_between_attempts(session, monkeypatch) -> None:
    delays = []

    async def fake_sleep(seconds: float) -> None:
        delays.append(seconds)

    monkeypatch.setattr("product_scraper.utils.http.asyncio.sleep", fake_sleep)
    session.routes["https://shop.example/"] = 500
    fetcher = Fetcher(session, retries=3, delay=1.0)

    with pytest.raises(FetchExhausted):
        await fetcher.get("https://shop.example/")

    # No pause after the final attempt, and no growth between pauses.
    assert delays == [1.0, 1.0]


@pytest.mark.asyncio
async def test_image_response_is_not_html(session, fetcher) -> None:
    session.routes["https://shop.example/a.jpg"] = b"\xff\xd8jpeg"

    result = await fetcher.get("https://shop.example/a.jpg")

    assert result.body == b"\xff\xd8jpeg"
    assert not result.is_html


def test_missing_content_type_counts_as_html() -> None:
    assert FetchResult("u", 200, b"", content_type="").is_html
    # aiohttp's value when the header is absent.
    assert FetchResult("u", 200, b"", content_type="application/octet-stream").is_html
    assert FetchResult("u", 200, b"", content_type="Application/XHTML+XML").is_html
    assert not FetchResult("u", 200, b"", content_type="application/pdf").is_html
