from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
from typing import Deque, Dict, List, Optional, Set
from abc import ABC, abstractmethod

from ..export.archive import ImageArchive
from ..profiles.base import ProductRecord
from ..progress import ProgressSink


@dataclass
class CrawlState:
    """
    Mutable state of one link-discovery pass. A URL joins ``visited`` when it
    is enqueued, so it is never queued twice.
    """
    queue: Deque[str] = field(default_factory=deque)
    visited: Set[str] = field(default_factory=set)
    # Insertion-ordered set: products are scraped in discovery order.
    product_urls: Dict[str, None] = field(default_factory=dict)
    processed_count: int = 0

    @classmethod
    def start(cls, seed: str) -> "CrawlState":
        return cls(queue=deque([seed]), visited={seed})

    def add_product(self, url: str) -> bool:
        if url in self.product_urls:
            return False
        self.product_urls[url] = None
        return True


@dataclass
class CrawlSummary:
    product_urls: List[str]
    pages_processed: int


@dataclass
class ScrapeReport:
    products: List[ProductRecord] = field(default_factory=list)
    csv: str = ""
    archive: ImageArchive = field(default_factory=ImageArchive)
    pages_processed: int = 0


class ScrapeEngine(ABC):
    """
    Abstract engine interface. Implementations own the scrape lifecycle and
    must emit exactly one terminal event to ``sink`` before closing it.
    """
    @abstractmethod
    async def run(self, seed: str, sink: ProgressSink) -> Optional[ScrapeReport]:  # pragma: no cover - interface
        ...
