"""FastAPI admin routes — event/race management, lifecycle, cache control.

Authentication is handled in front of this service; these handlers assume
the caller is an operator.

# ─── API ROUTE MAP ────────────────────────────────────────────────────
#
# Endpoint                                       Method   Description
# ─────────────────────────────────────────────────────────────────────
# /api/v1/admin/events                           POST     Create event
# /api/v1/admin/events/{eid}                     PUT      Update event
# /api/v1/admin/events/{eid}                     DELETE   Delete event + races
# /api/v1/admin/events/{eid}/races               POST     Create race
# /api/v1/admin/races/{rid}                      GET      Race record
# /api/v1/admin/races/{rid}                      PUT      Edit race
# /api/v1/admin/races/{rid}                      DELETE   Delete race + cache
# /api/v1/admin/races/{rid}/status               PUT      Lifecycle transition
# /api/v1/admin/settings                         GET      System settings
# /api/v1/admin/settings/cache                   PUT      Update cache TTLs
# /api/v1/admin/settings/cache/clear             POST     Purge results cache
# /api/v1/admin/settings/data/clear-results      POST     Purge stored results
# /api/v1/admin/test/kv-connection               GET      Store self-test
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

from fastapi import APIRouter

from src.api.routes import (
    KVStoreDep,
    LifecycleDep,
    RegistryDep,
    ResultCacheDep,
    SettingsServiceDep,
)
from src.api.schemas import (
    ApiResponse,
    CacheSettingsRequest,
    EventRequest,
    RaceRequest,
    StatusUpdateRequest,
)
from src.services.store_diagnostics import run_store_diagnostics

admin_router = APIRouter(prefix="/api/v1/admin")


# ---------------------------------------------------------------------------
# Events
# ---------------------------------------------------------------------------


@admin_router.post(
    "/events", status_code=201, response_model=ApiResponse, response_model_exclude_none=True
)
async def create_event(body: EventRequest, registry: RegistryDep) -> ApiResponse:
    event = await registry.create_event(body.name, body.date, body.description)
    return ApiResponse(data=event.model_dump(mode="json"))


@admin_router.put(
    "/events/{event_id}", response_model=ApiResponse, response_model_exclude_none=True
)
async def update_event(event_id: str, body: EventRequest, registry: RegistryDep) -> ApiResponse:
    event = await registry.update_event(event_id, body.name, body.date, body.description)
    return ApiResponse(data=event.model_dump(mode="json"))


@admin_router.delete(
    "/events/{event_id}", response_model=ApiResponse, response_model_exclude_none=True
)
async def delete_event(event_id: str, registry: RegistryDep) -> ApiResponse:
    race_ids = await registry.delete_event(event_id)
    return ApiResponse(
        data={"event_id": event_id, "deleted_race_ids": race_ids},
        message=f"Deleted event {event_id} and {len(race_ids)} race(s)",
    )


# ---------------------------------------------------------------------------
# Races
# ---------------------------------------------------------------------------


@admin_router.post(
    "/events/{event_id}/races",
    status_code=201,
    response_model=ApiResponse,
    response_model_exclude_none=True,
)
async def create_race(event_id: str, body: RaceRequest, registry: RegistryDep) -> ApiResponse:
    race = await registry.create_race(
        event_id,
        name=body.name,
        category=body.category,
        provider_race_id=body.provider_race_id,
        sport_type=body.sport_type,
    )
    return ApiResponse(data=race.model_dump(mode="json"))


@admin_router.get("/races/{race_id}", response_model=ApiResponse, response_model_exclude_none=True)
async def get_race(race_id: str, registry: RegistryDep) -> ApiResponse:
    race = await registry.require_race(race_id)
    return ApiResponse(data=race.model_dump(mode="json"))


@admin_router.put("/races/{race_id}", response_model=ApiResponse, response_model_exclude_none=True)
async def update_race(race_id: str, body: RaceRequest, registry: RegistryDep) -> ApiResponse:
    race = await registry.update_race(
        race_id,
        name=body.name,
        category=body.category,
        provider_race_id=body.provider_race_id,
    )
    return ApiResponse(data=race.model_dump(mode="json"))


@admin_router.delete(
    "/races/{race_id}", response_model=ApiResponse, response_model_exclude_none=True
)
async def delete_race(race_id: str, registry: RegistryDep) -> ApiResponse:
    await registry.delete_race(race_id)
    return ApiResponse(data={"race_id": race_id}, message=f"Deleted race {race_id}")


@admin_router.put(
    "/races/{race_id}/status", response_model=ApiResponse, response_model_exclude_none=True
)
async def update_race_status(
    race_id: str,
    body: StatusUpdateRequest,
    lifecycle: LifecycleDep,
) -> ApiResponse:
    race = await lifecycle.transition_race_status(race_id, body.status)
    return ApiResponse(
        data=race.model_dump(mode="json"),
        message=f"Race status changed to {race.status.value}",
    )


# ---------------------------------------------------------------------------
# Settings & cache control
# ---------------------------------------------------------------------------


@admin_router.get("/settings", response_model=ApiResponse, response_model_exclude_none=True)
async def get_settings(settings_service: SettingsServiceDep) -> ApiResponse:
    settings = await settings_service.get_settings()
    return ApiResponse(data=settings.model_dump(mode="json"))


@admin_router.put(
    "/settings/cache", response_model=ApiResponse, response_model_exclude_none=True
)
async def update_cache_settings(
    body: CacheSettingsRequest,
    settings_service: SettingsServiceDep,
) -> ApiResponse:
    settings = await settings_service.update_cache_settings(
        race_results_ttl=body.race_results_ttl,
        event_list_ttl=body.event_list_ttl,
        dashboard_stats_ttl=body.dashboard_stats_ttl,
    )
    return ApiResponse(data=settings.model_dump(mode="json"), message="Cache settings updated")


@admin_router.post(
    "/settings/cache/clear", response_model=ApiResponse, response_model_exclude_none=True
)
async def clear_cache(result_cache: ResultCacheDep) -> ApiResponse:
    report = await result_cache.clear_all()
    return ApiResponse(
        data=report.model_dump(),
        message=f"Cleared {report.cleared_count} cache key(s)",
    )


@admin_router.post(
    "/settings/data/clear-results", response_model=ApiResponse, response_model_exclude_none=True
)
async def clear_results(result_cache: ResultCacheDep) -> ApiResponse:
    report = await result_cache.clear_all()
    return ApiResponse(
        data=report.model_dump(),
        message=f"Cleared stored results for {len(report.race_ids)} race(s)",
    )


@admin_router.get(
    "/test/kv-connection", response_model=ApiResponse, response_model_exclude_none=True
)
async def test_kv_connection(kv_store: KVStoreDep) -> ApiResponse:
    report = await run_store_diagnostics(kv_store)
    return ApiResponse(data=report.model_dump())
