from __future__ import annotations

from dataclasses import dataclass, field, asdict
from typing import List, Optional, Dict, Any
from pathlib import Path
import os
import json

from .version import CONFIG_SCHEMA_VERSION

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/98.0.4758.82 Safari/537.36"
)
DEFAULT_ENGINE = "product_scraper.engines.orchestrator:ScrapeOrchestrator"
DEFAULT_EXPORTER = "product_scraper.export.csv_exporter:CSVExporter"


@dataclass
class ScrapeConfig:
    """
    Canonical configuration object passed throughout the system.
    Keep it dataclass-only (no heavy deps) to stay upgrade-friendly.
    """
    schema_version: int = CONFIG_SCHEMA_VERSION
    start_url: Optional[str] = None
    platform: str = "woocommerce"
    # Hard cap on dequeued pages during link discovery.
    max_pages: int = 50
    request_timeout: float = 15.0
    # Total attempts per URL, separated by a fixed pause.
    retries: int = 3
    retry_delay: float = 1.0
    user_agent: str = DEFAULT_USER_AGENT
    image_concurrency: int = 5
    # False keeps the legacy string-prefix scope check.
    strict_origin: bool = False
    # Dotted paths for engine/exporter to allow runtime swapping without code changes.
    engine: str = DEFAULT_ENGINE
    exporter: str = DEFAULT_EXPORTER
    # Extra selector profiles (dotted paths) to register at startup
    extra_profiles: List[str] = field(default_factory=list)
    output_path: str = "output/products.csv"
    archive_path: str = "output/images.zip"

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    # ---------- Loaders ----------

    @classmethod
    def from_env(cls) -> "ScrapeConfig":
        """
        Build config from environment variables (all optional).
        """
        def _get(name: str, default: str) -> str:
            return os.getenv(name, default)

        return cls(
            start_url=os.getenv("SCRAPER_START_URL") or None,
            platform=_get("SCRAPER_PLATFORM", "woocommerce"),
            max_pages=int(_get("SCRAPER_MAX_PAGES", "50")),
            request_timeout=float(_get("SCRAPER_REQUEST_TIMEOUT", "15.0")),
            retries=int(_get("SCRAPER_RETRIES", "3")),
            retry_delay=float(_get("SCRAPER_RETRY_DELAY", "1.0")),
            user_agent=_get("SCRAPER_USER_AGENT", DEFAULT_USER_AGENT),
            image_concurrency=int(_get("SCRAPER_IMAGE_CONCURRENCY", "5")),
            strict_origin=_get("SCRAPER_STRICT_ORIGIN", "").lower() in ("1", "true", "yes"),
            engine=_get("SCRAPER_ENGINE", DEFAULT_ENGINE),
            exporter=_get("SCRAPER_EXPORTER", DEFAULT_EXPORTER),
            extra_profiles=[p.strip() for p in _get("SCRAPER_EXTRA_PROFILES", "").split(",") if p.strip()],
            output_path=_get("SCRAPER_OUTPUT_PATH", "output/products.csv"),
            archive_path=_get("SCRAPER_ARCHIVE_PATH", "output/images.zip"),
        )

    @classmethod
    def from_file(cls, path: str | os.PathLike[str]) -> "ScrapeConfig":
        """
        Load configuration from a JSON file. Supports schema migration for older versions.
        """
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
        data = migrate_config(data)
        return cls(**data)

    # ---------- Validation ----------

    def validate(self, *, require_url: bool = True) -> None:
        if require_url and not self.start_url:
            raise ValueError("start_url cannot be empty; provide the shop URL to scrape.")
        if self.max_pages <= 0:
            raise ValueError("max_pages must be > 0")
        if self.retries <= 0:
            raise ValueError("retries must be > 0")
        if self.retry_delay < 0:
            raise ValueError("retry_delay must be >= 0")
        if self.image_concurrency <= 0:
            raise ValueError("image_concurrency must be > 0")

    def ensure_output_dirs(self) -> None:
        for target in (self.output_path, self.archive_path):
            Path(target).parent.mkdir(parents=True, exist_ok=True)


def migrate_config(raw: Dict[str, Any]) -> Dict[str, Any]:
    """
    Migrate config dict to the latest schema version.
    Keep this pure and additive. Add migrations here as you bump schema.
    """
    raw = dict(raw)
    schema = raw.get("schema_version", 1)

    if schema < 2:
        # v1 used a crawl-depth model with multiple start URLs.
        start_urls = raw.pop("start_urls", None) or []
        if start_urls and not raw.get("start_url"):
            raw["start_url"] = start_urls[0]
        if "max_depth" in raw:
            raw.pop("max_depth")
        if "max_concurrency" in raw:
            raw["image_concurrency"] = raw.pop("max_concurrency")
        raw.pop("allowed_domains", None)
        # v1 engines/exporters no longer exist; fall back to the defaults.
        raw.pop("engine", None)
        raw.pop("exporter", None)
        # v1 counted retries on top of the first attempt.
        if "retries" in raw:
            raw["retries"] = int(raw["retries"]) + 1
        if "extra_adapters" in raw:
            raw["extra_profiles"] = raw.pop("extra_adapters")

    raw["schema_version"] = CONFIG_SCHEMA_VERSION
    return raw
