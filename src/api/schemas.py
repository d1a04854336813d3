"""Pydantic request/response schemas for the ChronoSync API.

Every response uses one envelope: ``{"success": true, "data": ...}`` plus,
for results endpoints, provenance fields (``last_updated``, ``cache_hit``,
``cache_age``).  Errors use ``{"success": false, "error", "detail", "code"}``.

Convention: Request schemas end with "Request", response schemas
end with "Response".
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class ApiResponse(BaseModel):
    """Success envelope shared by every endpoint."""

    success: bool = True
    data: Any = None
    message: str | None = None
    last_updated: str | None = None
    cache_hit: bool | None = None
    cache_age: int | None = None


class ErrorResponse(BaseModel):
    """Standard error response body."""

    success: bool = False
    error: str
    detail: str | None = None
    code: str | None = None


class HealthResponse(BaseModel):
    """Application health check response."""

    status: str
    version: str
    kv_backend: str
    provider_configured: bool


class EventRequest(BaseModel):
    """Create or replace an event's descriptive fields."""

    name: str
    date: str = Field(description="YYYY-MM-DD")
    description: str = ""


class RaceRequest(BaseModel):
    """Create or edit a race.  Status is changed only via the status endpoint."""

    name: str
    category: str = ""
    provider_race_id: str | None = Field(
        default=None, description="WebScorer race id (digits only)."
    )
    sport_type: str = "trail-running"


class StatusUpdateRequest(BaseModel):
    status: str = Field(description="preparing | active | completed")


class CacheSettingsRequest(BaseModel):
    """New cache TTLs in seconds; bounds are checked by the settings service."""

    race_results_ttl: int
    event_list_ttl: int
    dashboard_stats_ttl: int
