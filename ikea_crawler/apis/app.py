from __future__ import annotations

from typing import Any, Dict, List, Optional
import logging

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel

from ..config import ConfigError, CrawlConfig
from ..utils.loader import load_symbol
from ..engines.base import CrawlReport
from ..adapters.registry import AdapterRegistry
from ..export.memory import MemorySink
from ..version import __version__

logger = logging.getLogger(__name__)

app = FastAPI(title="ikea_crawler API", version=__version__)


class DepartmentIn(BaseModel):
    name: str
    url: str


class CrawlRequest(BaseModel):
    country: int
    departments: Optional[List[DepartmentIn]] = None
    base_url: Optional[str] = None


@app.get("/health")
async def health() -> Dict[str, str]:
    return {"status": "ok"}


@app.get("/countries")
async def countries() -> List[Dict[str, Any]]:
    cfg = CrawlConfig.from_env()
    return [{"index": i, **c} for i, c in enumerate(cfg.countries)]


@app.post("/crawl")
async def crawl(req: CrawlRequest) -> Dict[str, Any]:
    cfg = CrawlConfig.from_env()
    cfg.country = req.country
    cfg.loop = False
    cfg.output_mode = "memory"
    if req.departments:
        cfg.departments = [d.model_dump() for d in req.departments]
    if req.base_url:
        cfg.base_url = req.base_url
    try:
        cfg.validate()
    except ConfigError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc

    engine_cls = load_symbol(cfg.engine)
    registry = AdapterRegistry()
    registry.discover_entry_points()
    sink = MemorySink()

    engine = engine_cls(cfg, registry=registry, sink=sink)
    report: CrawlReport = await engine.crawl()
    return {
        "country": report.country,
        "visited": report.visited_count,
        "products": [p.to_dict() for p in sink.products],
        "errors": list(report.errors),
    }
