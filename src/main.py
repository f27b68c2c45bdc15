"""tunefeed FastAPI application entry point.

Wires together the serving-side providers, services, and routes via
dependency injection.  Loads configuration from ``.env`` and
``config/config.yaml`` and configures structured logging.

The API only reads the curated serving store and the user library; the
reference mirror is touched by the batch job (``src/cli/ingest.py``) alone.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any

import httpx
import structlog
import uvicorn
from fastapi import FastAPI

from src.api.middleware import (
    ErrorHandlingMiddleware,
    RequestLoggingMiddleware,
    configure_cors,
)
from src.api.routes import API_VERSION
from src.api.routes import router as api_router
from src.config.loader import load_settings
from src.config.settings import Settings
from src.providers.cache.memory_cache import MemoryCacheProvider
from src.providers.charts.billboard_provider import BillboardChartProvider
from src.providers.curated.sqlite_curated_store import SQLiteCuratedStoreProvider
from src.providers.library.sqlite_library_provider import SQLiteLibraryProvider
from src.providers.store.connection_pool import SQLiteConnectionPool
from src.services.chart_service import ChartService
from src.services.feed_composer import FeedComposer
from src.services.library_service import LibraryService
from src.utils.logging import configure_logging, get_logger

# ---------------------------------------------------------------------------
# Module-level settings & logging
# ---------------------------------------------------------------------------

settings = load_settings()

configure_logging(
    log_level=settings.log_level,
    json_output=(settings.app_env == "production"),
)
_logger: structlog.BoundLogger = get_logger(__name__)


def _build_all(app_settings: Settings) -> dict[str, Any]:
    """Construct every provider and service instance for the application.

    Returns a flat dict of named components to be stored on ``app.state``.
    Nothing is opened here; the lifespan opens the pools.
    """
    # -- Stores --
    serving_pool = SQLiteConnectionPool(
        app_settings.serving_db_path,
        size=app_settings.store_pool_size,
        query_timeout=app_settings.store_query_timeout,
        name="serving",
    )
    library_pool = SQLiteConnectionPool(
        app_settings.library_db_path,
        size=app_settings.store_pool_size,
        query_timeout=app_settings.store_query_timeout,
        name="library",
    )
    curated_store = SQLiteCuratedStoreProvider(serving_pool)
    library_provider = SQLiteLibraryProvider(library_pool)

    # -- Chart feed --
    http_client = httpx.AsyncClient(
        timeout=httpx.Timeout(app_settings.billboard_timeout),
        follow_redirects=True,
    )
    chart_feed = BillboardChartProvider(
        http_client=http_client,
        base_url=app_settings.billboard_base_url,
    )
    cache = MemoryCacheProvider()

    # -- Services --
    chart_service = ChartService(
        chart_feed,
        cache=cache,
        recent_ttl=app_settings.chart_recent_cache_ttl,
        archive_ttl=app_settings.chart_archive_cache_ttl,
    )
    feed_composer = FeedComposer(
        curated_store,
        query_cap=app_settings.feed_query_cap,
        result_limit=app_settings.feed_result_limit,
        include_app_popularity=app_settings.feed_include_app_popularity,
    )
    library_service = LibraryService(
        library_provider,
        curated_store,
        include_app_popularity=app_settings.feed_include_app_popularity,
    )

    return {
        "pools": {"serving": serving_pool, "library": library_pool},
        "http_client": http_client,
        "cache": cache,
        "curated_store": curated_store,
        "library_provider": library_provider,
        "chart_service": chart_service,
        "feed_composer": feed_composer,
        "library_service": library_service,
    }


# ---------------------------------------------------------------------------
# Application lifespan (startup / shutdown)
# ---------------------------------------------------------------------------


@asynccontextmanager
async def _lifespan(application: FastAPI):  # noqa: ANN201
    """Open the store pools on startup, close them and the HTTP client on shutdown."""
    app_settings: Settings = application.state.settings
    components = _build_all(app_settings)

    for key, value in components.items():
        setattr(application.state, key, value)

    pools: dict[str, SQLiteConnectionPool] = components["pools"]
    try:
        for pool in pools.values():
            await pool.open()
        await components["curated_store"].initialize()
        await components["library_provider"].initialize()

        _logger.info(
            "app_startup",
            version=API_VERSION,
            environment=app_settings.app_env,
            pools=sorted(pools),
        )

        yield
    finally:
        for pool in pools.values():
            await pool.close()
        http_client: httpx.AsyncClient = components["http_client"]
        await http_client.aclose()
        _logger.info("app_shutdown")


# ---------------------------------------------------------------------------
# FastAPI application factory
# ---------------------------------------------------------------------------


def create_app(app_settings: Settings | None = None) -> FastAPI:
    """Build and configure the FastAPI application."""
    application = FastAPI(
        title="tunefeed API",
        version=API_VERSION,
        description=(
            "Personalized music feed ranked by app and chart popularity, "
            "served from a curated subset of the MusicBrainz catalog."
        ),
        lifespan=_lifespan,
    )
    application.state.settings = app_settings or settings

    # -- Middleware (order matters: last added = first executed) --
    application.add_middleware(ErrorHandlingMiddleware)
    application.add_middleware(RequestLoggingMiddleware)
    configure_cors(application)

    # -- API routes --
    application.include_router(api_router)

    return application


app = create_app()

# ---------------------------------------------------------------------------
# CLI entry point
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    uvicorn.run(
        "src.main:app",
        host=settings.app_host,
        port=settings.app_port,
        reload=(settings.app_env == "development"),
    )
