from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Optional
from aiohttp import ClientSession, ClientTimeout
import aiohttp
import logging

from ..errors import FetchExhausted

logger = logging.getLogger(__name__)

_HTML_TYPES = ("text/html", "application/xhtml+xml")
# What aiohttp reports when the server sends no Content-Type.
_UNKNOWN_TYPES = ("", "application/octet-stream")


@dataclass
class FetchResult:
    url: str
    status: int
    body: bytes
    content_type: str = ""
    charset: Optional[str] = None
    final_url: Optional[str] = None

    @property
    def text(self) -> str:
        try:
            return self.body.decode(self.charset or "utf-8", errors="replace")
        except LookupError:
            # Unknown charset label sent by the server.
            return self.body.decode("utf-8", errors="replace")

    @property
    def is_html(self) -> bool:
        # Servers that omit the header usually serve HTML.
        content_type = (self.content_type or "").lower()
        return content_type in _HTML_TYPES or content_type in _UNKNOWN_TYPES


class Fetcher:
    """
    GET with a browser user agent and fixed-delay retries.

    ``retries`` is the total number of attempts. Network errors, timeouts and
    non-2xx statuses all count as failed attempts; once they are used up the
    call raises ``FetchExhausted``.
    """

    def __init__(
        self,
        session: ClientSession,
        *,
        user_agent: Optional[str] = None,
        retries: int = 3,
        delay: float = 1.0,
        timeout: float = 15.0,
    ) -> None:
        self.session = session
        self.user_agent = user_agent
        self.retries = max(1, retries)
        self.delay = delay
        self.timeout = timeout

    async def get(self, url: str) -> FetchResult:
        headers = {}
        if self.user_agent:
            headers["User-Agent"] = self.user_agent

        last_exc: Optional[Exception] = None
        for attempt in range(1, self.retries + 1):
            try:
                async with self.session.get(
                    url, headers=headers, timeout=ClientTimeout(total=self.timeout)
                ) as resp:
                    resp.raise_for_status()
                    body = await resp.read()
                    return FetchResult(
                        url=url,
                        status=resp.status,
                        body=body,
                        content_type=resp.content_type or "",
                        charset=resp.charset,
                        final_url=str(resp.url),
                    )
            except Exception as exc:  # broad catch to keep crawler moving
                last_exc = exc
                logger.debug("fetch attempt %s failed for %s: %r", attempt, url, exc)
                if attempt < self.retries:
                    await asyncio.sleep(self.delay)
        logger.warning("fetch failed for %s after %s attempts: %r", url, self.retries, last_exc)
        raise FetchExhausted(url, self.retries)


def create_session() -> ClientSession:
    """
    Create a shared aiohttp ClientSession.
    """
    # Note: caller is responsible for closing the session (await session.close()).
    connector = aiohttp.TCPConnector(limit=0)  # unlimited; concurrency managed via semaphore
    return aiohttp.ClientSession(connector=connector)
