from __future__ import annotations

import argparse
import asyncio
import logging
from pathlib import Path
from typing import List, Optional

from ..config import ScrapeConfig
from ..utils.logging import setup_logging
from ..utils.loader import load_symbol
from ..profiles.registry import ProfileRegistry
from ..engines.base import ScrapeReport
from ..errors import UnknownPlatform
from ..export.base import Exporter
from ..progress import LoggingSink

logger = logging.getLogger(__name__)

BATCH_PAGE_CAP = 100


def build_arg_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="Storefront product scraper CLI")
    p.add_argument("url", nargs="?", help="Shop URL to crawl")
    p.add_argument("--platform", type=str, default=None, help="Selector profile (woocommerce, shopify, ...)")
    p.add_argument("--config", type=str, help="Path to config JSON", default=None)
    p.add_argument("--max-pages", type=int, default=None,
                   help=f"Max pages to crawl for product links (default {BATCH_PAGE_CAP})")
    p.add_argument("--image-concurrency", type=int, default=None, help="Concurrent image downloads per product")
    p.add_argument("--strict-origin", action="store_true",
                   help="Compare origin and path instead of a plain URL prefix when scoping the crawl")
    p.add_argument("--engine", type=str, default=None, help="Engine dotted path (module:ClassName)")
    p.add_argument("--exporter", type=str, default=None, help="Exporter dotted path (module:ClassName)")
    p.add_argument("--extra-profiles", type=str, default=None,
                   help="Comma-separated dotted paths for additional selector profiles")
    p.add_argument("--output", type=str, default=None, help="Products output file path")
    p.add_argument("--archive", type=str, default=None, help="Images zip output path")
    p.add_argument("--log-level", type=str, default=None, help="Log level (DEBUG, INFO, WARNING, ERROR)")
    p.add_argument("--serve", action="store_true", help="Run REST API server instead of CLI scrape")
    p.add_argument("--host", type=str, default="127.0.0.1", help="API host (when --serve)")
    p.add_argument("--port", type=int, default=8000, help="API port (when --serve)")
    return p


def _load_config(args: argparse.Namespace) -> ScrapeConfig:
    if args.config:
        cfg = ScrapeConfig.from_file(args.config)
    else:
        cfg = ScrapeConfig.from_env()
        # Batch runs may look further than the interactive stream.
        cfg.max_pages = BATCH_PAGE_CAP

    if args.url:
        cfg.start_url = args.url
    if args.platform:
        cfg.platform = args.platform
    if args.max_pages is not None:
        cfg.max_pages = args.max_pages
    if args.image_concurrency is not None:
        cfg.image_concurrency = args.image_concurrency
    if args.strict_origin:
        cfg.strict_origin = True
    if args.engine:
        cfg.engine = args.engine
    if args.exporter:
        cfg.exporter = args.exporter
    if args.extra_profiles:
        cfg.extra_profiles = [p.strip() for p in args.extra_profiles.split(",") if p.strip()]
    if args.output:
        cfg.output_path = args.output
    if args.archive:
        cfg.archive_path = args.archive

    cfg.validate()
    return cfg


def run_server(host: str, port: int) -> None:
    try:
        import uvicorn  # type: ignore
    except Exception as exc:  # pragma: no cover - optional dep
        raise SystemExit("To run the API, install dependencies: pip install fastapi uvicorn pydantic") from exc
    uvicorn.run("product_scraper.apis.app:app", host=host, port=port)


def run_cli(argv: Optional[List[str]] = None) -> int:
    args = build_arg_parser().parse_args(argv)
    setup_logging(args.log_level)

    if args.serve:
        run_server(args.host, args.port)
        return 0

    try:
        cfg = _load_config(args)
    except ValueError as exc:
        logger.error("%s", exc)
        return 2

    registry = ProfileRegistry()
    registry.discover_entry_points()
    registry.load_dotted(cfg.extra_profiles)
    try:
        profile = registry.get(cfg.platform)
        profile.validate()
    except (UnknownPlatform, ValueError) as exc:
        logger.error("%s (available: %s)", exc, ", ".join(registry.keys()))
        return 2

    # Engine and exporter are dotted paths in the config.
    engine_cls = load_symbol(cfg.engine)
    exporter_cls = load_symbol(cfg.exporter)

    async def _run() -> Optional[ScrapeReport]:
        engine = engine_cls(cfg, profile)
        return await engine.run(cfg.start_url, LoggingSink())

    report = asyncio.run(_run())
    if report is None:
        return 1

    cfg.ensure_output_dirs()
    exporter: Exporter = exporter_cls()
    exporter.export(report.products, cfg.output_path)
    Path(cfg.archive_path).write_bytes(report.archive.to_zip_bytes())

    logger.info("Pages: %s | Products: %s | Images: %s | Output: %s, %s",
                report.pages_processed,
                len(report.products),
                len(report.archive),
                cfg.output_path,
                cfg.archive_path)
    return 0


def main() -> int:
    return run_cli()
