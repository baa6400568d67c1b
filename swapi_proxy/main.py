# swapi_proxy/main.py
import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .catalog import catalog_router
from .catalog.schemas import HealthStatus
from .catalog.store import ResourceLoader, ResourceStore
from .catalog.swapi_service import SwapiClient
from .config import Settings, get_settings


logger = logging.getLogger(__name__)

ENDPOINTS = (
    ("/api/people", "All characters"),
    ("/api/planets", "All planets"),
    ("/api/starships", "All starships"),
    ("/api/vehicles", "All vehicles"),
    ("/api/species", "All species"),
    ("/api/films", "All films"),
    ("/api/{category}/stream", "Progressive SSE delivery"),
    ("/api/universe", "Every category at once"),
    ("/api/cache/status", "Cache status"),
    ("/health", "Health check"),
)


def _log_banner(settings: Settings) -> None:
    logger.info("Star Wars API server running on http://%s:%s", settings.host, settings.port)
    logger.info("Endpoints available:")
    for path, label in ENDPOINTS:
        logger.info("   GET %-24s - %s", path, label)


def create_app(
    settings: Optional[Settings] = None,
    client: Optional[SwapiClient] = None,
) -> FastAPI:
    """Build the application.

    ``client`` replaces the upstream client, which tests use to avoid the
    network; the caller keeps ownership of it. The cache lives on
    ``app.state`` for the life of the app.
    """
    settings = settings or get_settings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        upstream = client or SwapiClient(settings.swapi_base_url, timeout=settings.upstream_timeout)
        store = ResourceStore()
        loader = ResourceLoader(store, upstream, settings.image_base_url)
        app.state.settings = settings
        app.state.client = upstream
        app.state.store = store
        app.state.loader = loader

        preload: Optional["asyncio.Task[None]"] = None
        if settings.preload_on_startup:
            # Not awaited: the server accepts requests while the cache warms up.
            preload = asyncio.ensure_future(loader.preload_all())
        _log_banner(settings)
        try:
            yield
        finally:
            if preload is not None and not preload.done():
                preload.cancel()
            if client is None:
                await upstream.aclose()

    app = FastAPI(
        title="Star Wars API",
        description=(
            "Proxy for the public Star Wars catalog with search, pagination, "
            "image URLs and an in-memory cache of every collection."
        ),
        version="1.0.0",
        lifespan=lifespan,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins,
        allow_methods=["GET"],
        allow_headers=["*"],
    )

    @app.get("/health", response_model=HealthStatus)
    def health_check() -> HealthStatus:
        return HealthStatus()

    app.include_router(catalog_router)
    return app


def run() -> None:
    settings = get_settings()
    uvicorn.run(create_app(settings), host=settings.host, port=settings.port)


if __name__ == "__main__":
    run()
