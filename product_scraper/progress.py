from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import dataclass, field
from typing import Any, AsyncIterator, Dict, List, Optional, Protocol

from .profiles.base import ProductRecord

logger = logging.getLogger(__name__)

PROGRESS = "progress"
PRODUCT = "product"
COMPLETE = "complete"
ERROR = "error"

TERMINAL_TYPES = (COMPLETE, ERROR)


@dataclass(frozen=True)
class ProgressEvent:
    type: str
    payload: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def progress(cls, message: str) -> "ProgressEvent":
        return cls(PROGRESS, {"message": message})

    @classmethod
    def product(cls, record: ProductRecord) -> "ProgressEvent":
        return cls(PRODUCT, {"product": record.to_dict()})

    @classmethod
    def complete(cls, csv: str, zip_b64: str) -> "ProgressEvent":
        return cls(COMPLETE, {"csv": csv, "zip": zip_b64})

    @classmethod
    def error(cls, message: str) -> "ProgressEvent":
        return cls(ERROR, {"message": message})

    @property
    def is_terminal(self) -> bool:
        return self.type in TERMINAL_TYPES

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.type, **self.payload}

    def to_sse(self) -> str:
        return f"data: {json.dumps(self.to_dict(), ensure_ascii=False)}\n\n"


class ProgressSink(Protocol):
    """
    Consumer of orchestrator events. Events arrive in emission order and the
    orchestrator calls ``close`` exactly once, after the terminal event.
    """

    async def emit(self, event: ProgressEvent) -> None:
        ...

    async def close(self) -> None:
        ...


class EventChannel:
    """
    Queue between a producing scrape task and a streaming HTTP response.
    Iterating yields events until the producer closes the channel.
    """

    _CLOSED = None

    def __init__(self) -> None:
        self._queue: asyncio.Queue[Optional[ProgressEvent]] = asyncio.Queue()
        self._closed = False

    async def emit(self, event: ProgressEvent) -> None:
        if self._closed:
            raise RuntimeError("emit on a closed channel")
        await self._queue.put(event)

    async def close(self) -> None:
        if not self._closed:
            self._closed = True
            await self._queue.put(self._CLOSED)

    async def __aiter__(self) -> AsyncIterator[ProgressEvent]:
        while True:
            event = await self._queue.get()
            if event is self._CLOSED:
                return
            yield event


class CollectingSink:
    """Keeps every event in memory; used by the batch route and tests."""

    def __init__(self) -> None:
        self.events: List[ProgressEvent] = []
        self.closed = False

    async def emit(self, event: ProgressEvent) -> None:
        self.events.append(event)

    async def close(self) -> None:
        self.closed = True

    @property
    def terminal(self) -> Optional[ProgressEvent]:
        for event in reversed(self.events):
            if event.is_terminal:
                return event
        return None

    def of_type(self, type_: str) -> List[ProgressEvent]:
        return [e for e in self.events if e.type == type_]

    def messages(self) -> List[str]:
        return [e.payload["message"] for e in self.of_type(PROGRESS)]


class LoggingSink:
    """Writes events to the log; the CLI's sink."""

    def __init__(self, log: logging.Logger | None = None) -> None:
        self.log = log or logger

    async def emit(self, event: ProgressEvent) -> None:
        if event.type == PROGRESS:
            self.log.info("%s", event.payload["message"])
        elif event.type == PRODUCT:
            product = event.payload["product"]
            self.log.info("Extracted %s (sku=%s)", product["name"], product["sku"] or "-")
        elif event.type == COMPLETE:
            self.log.info("Scrape complete")
        elif event.type == ERROR:
            self.log.error("Scrape failed: %s", event.payload["message"])

    async def close(self) -> None:
        return None
