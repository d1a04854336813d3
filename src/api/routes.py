"""FastAPI public routes for race results, events and cache settings.

Service dependencies are resolved from ``app.state`` via FastAPI's
``Depends`` using the ``Annotated`` pattern.

# ─── API ROUTE MAP ────────────────────────────────────────────────────
#
# Endpoint                                  Method  Description
# ─────────────────────────────────────────────────────────────────────
# /api/v1/races/{rid}/results               GET     Cached or fresh results (?force=)
# /api/v1/races/{rid}/results               POST    Force a fresh fetch
# /api/v1/races/{rid}/results/normalized    GET     Results in normalized form
# /api/v1/races/{rid}                       GET     Race record
# /api/v1/events                            GET     Events (?status=&search=)
# /api/v1/events/{eid}                      GET     Event with its races
# /api/v1/settings/cache                    GET     Public cache TTLs
# /api/v1/health                            GET     Health check
#
# Admin routes live in admin_routes.py.
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request

from src.api.schemas import ApiResponse, HealthResponse
from src.interfaces.kv_store import IKeyValueStore
from src.models.results import ResultsSnapshot
from src.providers.results import normalize_results
from src.services.lifecycle_service import LifecycleService
from src.services.race_registry import RaceRegistry
from src.services.result_cache import ResultCacheEngine
from src.services.settings_service import SettingsService

router = APIRouter(prefix="/api/v1")


# ---------------------------------------------------------------------------
# Dependency injection helpers: resolve singletons from app.state
# ---------------------------------------------------------------------------


def _get_result_cache(request: Request) -> ResultCacheEngine:
    return request.app.state.result_cache


def _get_registry(request: Request) -> RaceRegistry:
    return request.app.state.registry


def _get_settings_service(request: Request) -> SettingsService:
    return request.app.state.settings_service


def _get_lifecycle(request: Request) -> LifecycleService:
    return request.app.state.lifecycle


def _get_kv_store(request: Request) -> IKeyValueStore:
    return request.app.state.kv_store


ResultCacheDep = Annotated[ResultCacheEngine, Depends(_get_result_cache)]
RegistryDep = Annotated[RaceRegistry, Depends(_get_registry)]
SettingsServiceDep = Annotated[SettingsService, Depends(_get_settings_service)]
LifecycleDep = Annotated[LifecycleService, Depends(_get_lifecycle)]
KVStoreDep = Annotated[IKeyValueStore, Depends(_get_kv_store)]


def results_response(snapshot: ResultsSnapshot, data: object | None = None) -> ApiResponse:
    """Wrap a snapshot (or a view of it) in the envelope with provenance."""
    return ApiResponse(
        data=snapshot.document if data is None else data,
        last_updated=snapshot.last_updated,
        cache_hit=snapshot.cache_hit,
        cache_age=snapshot.cache_age,
    )


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------


@router.get(
    "/races/{race_id}/results",
    response_model=ApiResponse,
    response_model_exclude_none=True,
    summary="Race results, served from cache when fresh",
)
async def get_race_results(
    race_id: str,
    result_cache: ResultCacheDep,
    force: Annotated[bool, Query(description="Bypass the freshness check")] = False,
) -> ApiResponse:
    snapshot = await result_cache.get_results(race_id, force_refresh=force)
    return results_response(snapshot)


@router.post(
    "/races/{race_id}/results",
    response_model=ApiResponse,
    response_model_exclude_none=True,
    summary="Fetch fresh race results and refresh the cache",
)
async def refresh_race_results(race_id: str, result_cache: ResultCacheDep) -> ApiResponse:
    snapshot = await result_cache.get_results(race_id, force_refresh=True)
    return results_response(snapshot)


@router.get(
    "/races/{race_id}/results/normalized",
    response_model=ApiResponse,
    response_model_exclude_none=True,
    summary="Race results grouped and normalized for display",
)
async def get_normalized_results(
    race_id: str,
    result_cache: ResultCacheDep,
    force: bool = False,
) -> ApiResponse:
    snapshot = await result_cache.get_results(race_id, force_refresh=force)
    normalized = normalize_results(snapshot.document)
    return results_response(snapshot, data=normalized.model_dump(mode="json"))


# ---------------------------------------------------------------------------
# Races & events
# ---------------------------------------------------------------------------


@router.get("/races/{race_id}", response_model=ApiResponse, response_model_exclude_none=True)
async def get_race(race_id: str, registry: RegistryDep) -> ApiResponse:
    race = await registry.require_race(race_id)
    return ApiResponse(data=race.model_dump(mode="json"))


@router.get("/events", response_model=ApiResponse, response_model_exclude_none=True)
async def list_events(
    registry: RegistryDep,
    status: str | None = None,
    search: str | None = None,
) -> ApiResponse:
    events = await registry.list_events(status=status, search=search)
    return ApiResponse(data=[e.model_dump(mode="json") for e in events])


@router.get("/events/{event_id}", response_model=ApiResponse, response_model_exclude_none=True)
async def get_event(event_id: str, registry: RegistryDep) -> ApiResponse:
    event = await registry.get_event_with_races(event_id)
    return ApiResponse(data=event.model_dump(mode="json"))


# ---------------------------------------------------------------------------
# Settings & health
# ---------------------------------------------------------------------------


@router.get("/settings/cache", response_model=ApiResponse, response_model_exclude_none=True)
async def get_public_cache_settings(settings_service: SettingsServiceDep) -> ApiResponse:
    cache = await settings_service.get_public_cache_settings()
    return ApiResponse(data=cache.model_dump())


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Application health check",
)
async def health_check(request: Request, kv_store: KVStoreDep) -> HealthResponse:
    """Return application status, version and the active store backend."""
    config = getattr(request.app.state, "config", {}) or {}
    return HealthResponse(
        status="healthy",
        version=str(config.get("app", {}).get("version", "0.1.0")),
        kv_backend=kv_store.get_provider_name(),
        provider_configured=bool(config.get("provider", {}).get("configured", False)),
    )
