from __future__ import annotations

from typing import Any, Dict, List, Optional, Set
import asyncio
import logging

try:
    from fastapi import FastAPI, HTTPException, Request
    from fastapi.responses import PlainTextResponse, StreamingResponse
    from pydantic import BaseModel, ConfigDict, Field
except Exception as exc:  # pragma: no cover - optional dependency
    raise RuntimeError(
        "FastAPI not installed. Install with `pip install fastapi pydantic uvicorn` "
        "or avoid using the API server."
    ) from exc

from ..config import ScrapeConfig
from ..engines.base import ScrapeEngine
from ..errors import UnknownPlatform
from ..profiles.base import FieldSelectorProfile
from ..profiles.registry import ProfileRegistry
from ..progress import CollectingSink, EventChannel, ERROR
from ..utils.loader import load_symbol
from ..version import __version__

logger = logging.getLogger(__name__)

STREAM_PAGE_CAP = 50
BATCH_PAGE_CAP = 100

app = FastAPI(title="product_scraper API", version=__version__)

registry = ProfileRegistry()
registry.discover_entry_points()
registry.load_dotted(ScrapeConfig.from_env().extra_profiles)

# Streaming scrapes keep running after the handler returns.
_running: Set[asyncio.Task] = set()


class SelectorOverrides(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    product_link: Optional[str] = Field(None, alias="productLink")
    title: Optional[str] = None
    price: Optional[str] = None
    sale_price: Optional[str] = Field(None, alias="salePrice")
    description: Optional[str] = None
    images: Optional[str] = None
    sku: Optional[str] = None


class ScrapeRequest(BaseModel):
    url: str
    platform: Optional[str] = None
    max_pages: int = Field(BATCH_PAGE_CAP, gt=0)
    strict_origin: Optional[bool] = None
    selectors: Optional[SelectorOverrides] = None


def _build_config(max_pages: int, strict_origin: Optional[bool]) -> ScrapeConfig:
    cfg = ScrapeConfig.from_env()
    cfg.max_pages = max_pages
    if strict_origin is not None:
        cfg.strict_origin = strict_origin
    cfg.validate(require_url=False)
    return cfg


def _resolve_profile(platform: Optional[str], overrides: Optional[SelectorOverrides]) -> FieldSelectorProfile:
    """Look up and customise a profile; raises HTTPException(400) on bad input."""
    try:
        profile = registry.get(platform)
    except UnknownPlatform as exc:
        raise HTTPException(
            status_code=400,
            detail=f"{exc}. Platform must be one of: {', '.join(registry.keys())}",
        ) from None
    if overrides is not None:
        profile = profile.with_overrides(**overrides.model_dump(exclude_none=True))
    try:
        profile.validate()
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from None
    return profile


def _build_engine(cfg: ScrapeConfig, profile: FieldSelectorProfile) -> ScrapeEngine:
    engine_cls = load_symbol(cfg.engine)
    return engine_cls(cfg, profile)


@app.get("/health")
async def health() -> Dict[str, str]:
    return {"status": "ok"}


@app.get("/platforms")
async def platforms() -> Dict[str, List[str]]:
    return {"platforms": registry.keys()}


@app.get("/scrape")
async def scrape_stream(request: Request, url: Optional[str] = None, platform: Optional[str] = None):
    """
    Stream a scrape as server-sent events: one ``data: <json>`` message per
    event, ending with a ``complete`` or ``error`` message.
    """
    if not url:
        return PlainTextResponse("URL is required", status_code=400)

    strict = request.query_params.get("strictOrigin")
    cfg = _build_config(STREAM_PAGE_CAP, strict.lower() in ("1", "true", "yes") if strict else None)
    overrides = SelectorOverrides.model_validate(dict(request.query_params))
    profile = _resolve_profile(platform, overrides)
    engine = _build_engine(cfg, profile)

    channel = EventChannel()
    task = asyncio.create_task(engine.run(url, channel))
    _running.add(task)
    task.add_done_callback(_running.discard)

    async def events():
        async for event in channel:
            yield event.to_sse()

    return StreamingResponse(
        events(),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache", "Connection": "keep-alive"},
    )


@app.post("/scrape")
async def scrape_batch(req: ScrapeRequest) -> Dict[str, Any]:
    cfg = _build_config(req.max_pages, req.strict_origin)
    profile = _resolve_profile(req.platform, req.selectors)
    engine = _build_engine(cfg, profile)

    sink = CollectingSink()
    report = await engine.run(req.url, sink)
    terminal = sink.terminal
    if report is None or terminal is None or terminal.type == ERROR:
        message = terminal.payload.get("message") if terminal else "Scrape ended without a result"
        raise HTTPException(status_code=422, detail=message)

    return {
        "products": [p.to_dict() for p in report.products],
        "csv": terminal.payload["csv"],
        "zip": terminal.payload["zip"],
        "messages": sink.messages(),
        "pagesProcessed": report.pages_processed,
    }
