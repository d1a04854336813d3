"""ChronoSync FastAPI application entry point.

Wires together the key-value store, the WebScorer client, the services and
the routes via dependency injection.  Loads configuration from ``.env`` and
``config/config.yaml`` and configures structured logging.

Every long-lived handle (HTTP client, store connection) is created once in
``_build_all`` at startup, stored on ``app.state`` and closed at shutdown.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any

import httpx
import structlog
import uvicorn
from fastapi import FastAPI

from src.api.admin_routes import admin_router
from src.api.middleware import (
    ErrorHandlingMiddleware,
    RequestLoggingMiddleware,
    configure_cors,
)
from src.api.routes import router as api_router
from src.config.loader import load_config
from src.config.settings import Settings
from src.interfaces.kv_store import IKeyValueStore
from src.providers.kv import MemoryKeyValueStore, RedisKeyValueStore, SQLiteKeyValueStore
from src.providers.results import WebScorerProvider
from src.services.lifecycle_service import LifecycleService
from src.services.race_registry import RaceRegistry
from src.services.result_cache import ResultCacheEngine
from src.services.retention import RetentionPolicy
from src.services.settings_service import SettingsService
from src.utils.logging import configure_logging, get_logger

# ---------------------------------------------------------------------------
# Module-level settings & logging
# ---------------------------------------------------------------------------

settings = Settings()
config = load_config(settings=settings)

configure_logging(
    log_level=settings.log_level,
    json_output=(settings.app_env == "production"),
)
_logger: structlog.BoundLogger = get_logger(__name__)


# ---------------------------------------------------------------------------
# Key-value store selection
# ---------------------------------------------------------------------------


def _build_kv_store(app_settings: Settings) -> IKeyValueStore:
    """Return the store backend named by ``KV_BACKEND``.

    This is the only place that knows which backend is in use.
    """
    if app_settings.kv_backend == "redis":
        return RedisKeyValueStore(url=app_settings.kv_url)
    if app_settings.kv_backend == "sqlite":
        return SQLiteKeyValueStore(db_path=app_settings.kv_sqlite_path)
    return MemoryKeyValueStore()


# ---------------------------------------------------------------------------
# Component assembly
# ---------------------------------------------------------------------------


def _build_all(
    app_settings: Settings,
    app_config: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """Construct every provider and service.

    Returns a flat dict of named components to be stored on ``app.state``.
    """
    app_config = app_config if app_config is not None else config
    provider_config = app_config.get("provider", {})

    http_client = httpx.AsyncClient()
    kv_store = _build_kv_store(app_settings)

    provider = WebScorerProvider(
        http_client=http_client,
        api_id=app_settings.webscorer_api_id,
        base_url=app_settings.webscorer_base_url,
        timeout=app_settings.provider_timeout_seconds,
        max_retries=app_settings.provider_max_retries,
        retry_base_delay=app_settings.provider_retry_base_delay,
        user_agent=provider_config.get("user_agent", "ChronoSync/1.0"),
    )
    if not app_settings.provider_configured():
        _logger.warning("webscorer_not_configured", hint="set WEBSCORER_API_ID")

    settings_service = SettingsService(kv_store)
    registry = RaceRegistry(kv_store)
    retention = RetentionPolicy(settings_service)
    result_cache = ResultCacheEngine(
        store=kv_store,
        registry=registry,
        provider=provider,
        retention=retention,
        single_flight=app_settings.results_single_flight,
    )
    lifecycle = LifecycleService(registry=registry, results=result_cache)

    return {
        "config": app_config,
        "http_client": http_client,
        "kv_store": kv_store,
        "results_provider": provider,
        "settings_service": settings_service,
        "registry": registry,
        "result_cache": result_cache,
        "lifecycle": lifecycle,
    }


# ---------------------------------------------------------------------------
# Application lifespan
# ---------------------------------------------------------------------------


@asynccontextmanager
async def _lifespan(application: FastAPI):  # noqa: ANN201
    """Initialise all providers and services on startup, clean up on shutdown."""
    components = _build_all(settings)

    for key, value in components.items():
        setattr(application.state, key, value)

    kv_store: IKeyValueStore = components["kv_store"]
    await kv_store.initialize()

    _logger.info(
        "app_startup",
        version=config.get("app", {}).get("version", "0.1.0"),
        environment=settings.app_env,
        kv_backend=kv_store.get_provider_name(),
        single_flight=settings.results_single_flight,
    )

    yield

    http_client: httpx.AsyncClient = components["http_client"]
    await http_client.aclose()
    await kv_store.close()
    _logger.info("app_shutdown", message="HTTP client and store closed")


# ---------------------------------------------------------------------------
# FastAPI application factory
# ---------------------------------------------------------------------------


def create_app() -> FastAPI:
    """Build and configure the FastAPI application."""
    application = FastAPI(
        title="ChronoSync API",
        version=str(config.get("app", {}).get("version", "0.1.0")),
        description=(
            "Race results publishing backend: cached WebScorer results with "
            "lifecycle-aware retention, plus event and race administration."
        ),
        lifespan=_lifespan,
    )

    # -- Middleware (order matters: last added = first executed) --
    application.add_middleware(ErrorHandlingMiddleware)
    application.add_middleware(RequestLoggingMiddleware)
    configure_cors(
        application,
        allowed_origins=config.get("cors", {}).get("allowed_origins"),
    )

    # -- API routes --
    application.include_router(api_router)
    application.include_router(admin_router)

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
