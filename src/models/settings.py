"""Operator-adjustable settings persisted in the key-value store.

Unlike :class:`src.config.settings.Settings` (process configuration from
the environment), these live under ``system:settings`` and can change at
runtime from the admin API.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict

DEFAULT_RACE_RESULTS_TTL = 180
DEFAULT_EVENT_LIST_TTL = 3600
DEFAULT_DASHBOARD_STATS_TTL = 300

# Inclusive (min, max) seconds, enforced when an operator writes new values.
TTL_BOUNDS: dict[str, tuple[int, int]] = {
    "race_results_ttl": (30, 3600),
    "event_list_ttl": (300, 86400),
    "dashboard_stats_ttl": (60, 3600),
}


class CacheSettings(BaseModel):
    """Cache TTLs in seconds."""

    model_config = ConfigDict(frozen=True)

    race_results_ttl: int = DEFAULT_RACE_RESULTS_TTL
    event_list_ttl: int = DEFAULT_EVENT_LIST_TTL
    dashboard_stats_ttl: int = DEFAULT_DASHBOARD_STATS_TTL


class SystemSettings(BaseModel):
    model_config = ConfigDict(frozen=True)

    cache: CacheSettings = CacheSettings()
    last_updated: str
