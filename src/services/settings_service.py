"""Operator cache settings: storage, validation and effective-TTL resolution.

# ─── ARCHITECTURE ROLE ───────────────────────────────────────────────
#
# Layer: Services.
# Depends on: IKeyValueStore.
#
# Settings live under ``system:settings`` as one JSON document.  There are
# three readers with different failure contracts:
#
#   get_active_results_ttl()    — results read path; never raises, never
#                                 writes, falls back to 180 s.
#   get_public_cache_settings() — public page; stored values or defaults.
#   get_settings()              — admin console; persists defaults on
#                                 first read.
#
# TTL bounds are checked only when an operator writes new values.
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

from datetime import datetime
from typing import Callable

from pydantic import ValidationError

from src.interfaces.kv_store import IKeyValueStore, get_json, set_json
from src.models.settings import (
    DEFAULT_RACE_RESULTS_TTL,
    TTL_BOUNDS,
    CacheSettings,
    SystemSettings,
)
from src.utils.errors import InvalidInputError
from src.utils.logging import get_logger
from src.utils.timestamps import create_timestamp, utc_now

logger = get_logger(__name__)

SETTINGS_KEY = "system:settings"


class SettingsService:
    """Reads and writes :class:`SystemSettings` in the key-value store."""

    def __init__(
        self,
        store: IKeyValueStore,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._store = store
        self._clock = clock

    async def get_active_results_ttl(self) -> int:
        """Configured TTL for non-completed race results, or 180 on any failure."""
        try:
            data = await get_json(self._store, SETTINGS_KEY)
            ttl = (data or {}).get("cache", {}).get("race_results_ttl")
            if ttl:
                return int(ttl)
        except Exception as exc:  # noqa: BLE001 - read path must not fail
            logger.warning("settings_ttl_read_failed", error=str(exc))
        return DEFAULT_RACE_RESULTS_TTL

    async def get_public_cache_settings(self) -> CacheSettings:
        stored = await self._load()
        return stored.cache if stored else CacheSettings()

    async def get_settings(self) -> SystemSettings:
        """Return stored settings, persisting the defaults when none exist."""
        stored = await self._load()
        if stored is not None:
            return stored
        defaults = SystemSettings(last_updated=create_timestamp(self._clock()))
        await set_json(self._store, SETTINGS_KEY, defaults.model_dump(mode="json"))
        logger.info("settings_defaults_initialized")
        return defaults

    async def update_cache_settings(
        self,
        race_results_ttl: int,
        event_list_ttl: int,
        dashboard_stats_ttl: int,
    ) -> SystemSettings:
        """Validate and persist new TTLs.

        Raises
        ------
        InvalidInputError
            A value is missing or outside its allowed range.
        """
        values = {
            "race_results_ttl": race_results_ttl,
            "event_list_ttl": event_list_ttl,
            "dashboard_stats_ttl": dashboard_stats_ttl,
        }
        for field, value in values.items():
            low, high = TTL_BOUNDS[field]
            if not value:
                raise InvalidInputError(f"{field} is required")
            if not low <= value <= high:
                raise InvalidInputError(
                    f"{field} must be between {low} and {high} seconds (got {value})"
                )

        current = await self.get_settings()
        updated = current.model_copy(
            update={
                "cache": CacheSettings(**values),
                "last_updated": create_timestamp(self._clock()),
            }
        )
        await set_json(self._store, SETTINGS_KEY, updated.model_dump(mode="json"))
        logger.info("cache_settings_updated", **values)
        return updated

    async def _load(self) -> SystemSettings | None:
        data = await get_json(self._store, SETTINGS_KEY)
        if data is None:
            return None
        try:
            return SystemSettings.model_validate(data)
        except ValidationError as exc:
            logger.warning("settings_invalid", error=str(exc))
            return None
