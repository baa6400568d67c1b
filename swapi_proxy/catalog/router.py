"""
Route definitions for the catalog API.

Endpoints under /api:
- GET /api/universe               : every category, fully loaded, unpaginated
- GET /api/cache/status           : loaded flag and size of each cached category
- GET /api/{category}             : paginated, searchable list (served from cache)
- GET /api/{category}/stream      : SSE progressive delivery of a category
- GET /api/{category}/{record_id} : one record (cache, upstream fallback)

The fixed routes are declared before the ``{category}`` ones so that
``universe`` and ``cache`` are never taken for a category name.
"""

from __future__ import annotations

import logging
from typing import Dict, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from sse_starlette.sse import EventSourceResponse

from ..config import Settings
from .enrichment import enrich
from .errors import UpstreamClientError, UpstreamError
from .query import build_page_links, paginate
from .schemas import (
    CacheStatusEntry,
    PaginatedResources,
    Record,
    ResourceCategory,
    UniverseEntry,
)
from .store import ResourceLoader, ResourceStore
from .streaming import stream_category
from .swapi_service import SwapiClient


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["catalog"])

# Seconds between ": ping" keep-alive comments on idle SSE streams.
SSE_PING_INTERVAL = 15


# ---------------------------------------------------------------------------
# Dependencies
#
# The store, loader, upstream client and settings are created by the
# application factory and kept on ``app.state``.

def get_settings_dep(request: Request) -> Settings:
    return request.app.state.settings


def get_store(request: Request) -> ResourceStore:
    return request.app.state.store


def get_loader(request: Request) -> ResourceLoader:
    return request.app.state.loader


def get_client(request: Request) -> SwapiClient:
    return request.app.state.client


# ---------------------------------------------------------------------------
# Aggregate endpoints

@router.get("/universe", response_model=Dict[str, UniverseEntry])
async def universe(
    loader: ResourceLoader = Depends(get_loader),
) -> Dict[str, UniverseEntry]:
    """Return every category in full, loading the cold ones in parallel."""
    await loader.ensure_all_loaded()
    result: Dict[str, UniverseEntry] = {}
    for category in loader.store.categories():
        items = loader.store.entry(category).items
        result[category.value] = UniverseEntry(count=len(items), results=list(items))
    return result


@router.get("/cache/status", response_model=Dict[str, CacheStatusEntry])
def cache_status(store: ResourceStore = Depends(get_store)) -> Dict[str, CacheStatusEntry]:
    return store.status()


# ---------------------------------------------------------------------------
# Per-category endpoints

@router.get("/{category}", response_model=PaginatedResources)
async def list_resources(
    request: Request,
    category: ResourceCategory,
    search: Optional[str] = Query(default=None, description="Case-insensitive match on name/title"),
    page: Optional[str] = Query(default=None, description="1-indexed page"),
    limit: Optional[str] = Query(default=None, description="Page size"),
    loader: ResourceLoader = Depends(get_loader),
    settings: Settings = Depends(get_settings_dep),
) -> PaginatedResources:
    """
    Returns one page of a category.

    A cold category is loaded first, but the response only waits up to
    ``LIST_WAIT_TIMEOUT`` seconds. Past that, whatever is cached (possibly
    nothing) is paginated and returned; the load carries on in the
    background.
    """
    entry = loader.store.entry(category)
    if not entry.loaded:
        entry = await loader.wait_loaded(category, settings.list_wait_timeout)

    result = paginate(
        entry.items,
        search=search,
        page=page,
        limit=limit,
        default_limit=settings.default_page_size,
    )
    links = build_page_links(request.url, result, search=search, limit=limit)
    return PaginatedResources(
        count=result.total,
        next=links["next"],
        previous=links["previous"],
        results=result.items,
    )


@router.get("/{category}/stream")
async def stream_resources(
    request: Request,
    category: ResourceCategory,
    search: Optional[str] = Query(default=None, description="Case-insensitive match on name/title"),
    loader: ResourceLoader = Depends(get_loader),
    settings: Settings = Depends(get_settings_dep),
) -> EventSourceResponse:
    """
    Streams a category as ``batch`` events followed by one ``done`` event.

    Besides those events the stream carries ``: ping`` comment lines
    every ``SSE_PING_INTERVAL`` seconds while it is idle; clients
    should ignore lines starting with ``:``.
    """
    logger.info("SSE stream opened for %s (search=%r)", category.value, search)
    events = stream_category(
        request,
        loader,
        category,
        search=search,
        wait_timeout=settings.stream_wait_timeout,
        poll_interval=settings.stream_poll_interval,
        first_batch=settings.stream_first_batch,
    )
    return EventSourceResponse(
        events,
        sep="\n",
        ping=SSE_PING_INTERVAL,
        headers={"Cache-Control": "no-cache", "X-Accel-Buffering": "no"},
    )


@router.get("/{category}/{record_id}", response_model=Record)
async def get_resource(
    category: ResourceCategory,
    record_id: str,
    loader: ResourceLoader = Depends(get_loader),
    client: SwapiClient = Depends(get_client),
    settings: Settings = Depends(get_settings_dep),
) -> Record:
    """Return one record by id.

    The category is loaded without a time limit. When the load fails the
    record is fetched straight from the upstream instead, and upstream
    errors are passed through with the upstream's status code.
    """
    entry = await loader.ensure_loaded(category)
    if entry.loaded:
        for item in entry.items:
            if str(item.get("id")) == record_id:
                return item
        raise HTTPException(status_code=404, detail=f"{category.value} {record_id} not found")

    logger.warning("%s not cached, proxying %s directly", category.value, record_id)
    try:
        raw = await client.fetch_record(category, record_id)
    except UpstreamClientError as exc:
        logger.error("Error fetching %s %s: %s", category.value, record_id, exc)
        raise HTTPException(
            status_code=exc.status_code or 500,
            detail=f"Failed to fetch {category.value} {record_id}",
        ) from exc
    except UpstreamError as exc:
        logger.error("Error fetching %s %s: %s", category.value, record_id, exc)
        raise HTTPException(status_code=500, detail=f"Failed to fetch {category.value} {record_id}") from exc
    return enrich(category, {**raw, "id": record_id}, settings.image_base_url)
