"""Unit tests for SettingsService."""

from __future__ import annotations

from unittest.mock import AsyncMock

import pytest

from src.interfaces.kv_store import get_json
from src.models.settings import CacheSettings
from src.services.settings_service import SETTINGS_KEY, SettingsService
from src.utils.errors import CacheStoreError, InvalidInputError


class TestActiveResultsTtl:
    @pytest.mark.asyncio
    async def test_defaults_to_180_when_unset(self, settings_service, store) -> None:
        assert await settings_service.get_active_results_ttl() == 180
        assert await store.get(SETTINGS_KEY) is None

    @pytest.mark.asyncio
    async def test_uses_stored_value(self, settings_service) -> None:
        await settings_service.update_cache_settings(45, 3600, 300)
        assert await settings_service.get_active_results_ttl() == 45

    @pytest.mark.asyncio
    async def test_falls_back_on_store_failure(self) -> None:
        store = AsyncMock()
        store.get.side_effect = CacheStoreError("down")
        service = SettingsService(store)
        assert await service.get_active_results_ttl() == 180

    @pytest.mark.asyncio
    async def test_falls_back_on_corrupt_document(self, settings_service, store) -> None:
        await store.set(SETTINGS_KEY, '{"cache": "nonsense"}')
        assert await settings_service.get_active_results_ttl() == 180


class TestReadSettings:
    @pytest.mark.asyncio
    async def test_public_settings_default_without_writing(
        self, settings_service, store
    ) -> None:
        assert await settings_service.get_public_cache_settings() == CacheSettings()
        assert await store.get(SETTINGS_KEY) is None

    @pytest.mark.asyncio
    async def test_get_settings_persists_defaults(self, settings_service, store, clock) -> None:
        settings = await settings_service.get_settings()

        assert settings.cache == CacheSettings()
        assert settings.last_updated == "2025-06-15T09:00:00.000Z"
        stored = await get_json(store, SETTINGS_KEY)
        assert stored["cache"]["race_results_ttl"] == 180

    @pytest.mark.asyncio
    async def test_get_settings_returns_stored(self, settings_service, clock) -> None:
        await settings_service.update_cache_settings(60, 600, 120)
        clock.advance(100)
        settings = await settings_service.get_settings()
        assert settings.cache.event_list_ttl == 600
        assert settings.last_updated == "2025-06-15T09:00:00.000Z"


class TestUpdateCacheSettings:
    @pytest.mark.asyncio
    async def test_bounds_are_inclusive(self, settings_service) -> None:
        low = await settings_service.update_cache_settings(30, 300, 60)
        high = await settings_service.update_cache_settings(3600, 86400, 3600)
        assert low.cache.race_results_ttl == 30
        assert high.cache.event_list_ttl == 86400

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "values",
        [
            (29, 3600, 300),
            (3601, 3600, 300),
            (180, 299, 300),
            (180, 86401, 300),
            (180, 3600, 59),
            (180, 3600, 3601),
            (0, 3600, 300),
        ],
    )
    async def test_out_of_range_rejected_and_not_stored(
        self, settings_service, store, values
    ) -> None:
        with pytest.raises(InvalidInputError):
            await settings_service.update_cache_settings(*values)
        assert await store.get(SETTINGS_KEY) is None

    @pytest.mark.asyncio
    async def test_update_refreshes_last_updated(self, settings_service, clock) -> None:
        await settings_service.get_settings()
        clock.advance(3600)
        updated = await settings_service.update_cache_settings(90, 3600, 300)
        assert updated.last_updated == "2025-06-15T10:00:00.000Z"
