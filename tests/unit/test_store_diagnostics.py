"""Unit tests for the key-value store self-test."""

from __future__ import annotations

from unittest.mock import patch

import pytest

from src.providers.kv.memory_store import MemoryKeyValueStore
from src.services.store_diagnostics import run_store_diagnostics
from src.utils.errors import CacheStoreError


class _SetsBrokenStore(MemoryKeyValueStore):
    async def sadd(self, key: str, member: str) -> None:
        raise CacheStoreError("sets unsupported", provider_name="memory")


@pytest.mark.asyncio
async def test_healthy_store_passes_every_check(store, clock) -> None:
    report = await run_store_diagnostics(store, clock=clock)

    assert report.backend == "memory"
    assert report.connection_status == "success"
    assert all(report.checks.model_dump().values())
    assert report.error_details is None
    assert report.timestamp == "2025-06-15T09:00:00.000Z"


@pytest.mark.asyncio
async def test_test_keys_are_removed(store, clock) -> None:
    await run_store_diagnostics(store, clock=clock)
    assert await store.keys("test:connection:*") == []


@pytest.mark.asyncio
async def test_set_failure_is_informational(clock) -> None:
    report = await run_store_diagnostics(_SetsBrokenStore(timer=clock.timer), clock=clock)

    assert report.connection_status == "success"
    assert report.checks.set_operations is False
    assert report.error_details.startswith("Set operations failed")


@pytest.mark.asyncio
async def test_broken_store_reports_error_without_raising(store, clock) -> None:
    failure = CacheStoreError("connection refused", provider_name="memory")
    with (
        patch.object(store, "set", side_effect=failure),
        patch.object(store, "get", side_effect=failure),
    ):
        report = await run_store_diagnostics(store, clock=clock)

    assert report.connection_status == "error"
    assert report.checks.basic_set is False
    assert report.checks.json_set is False
    assert "Basic operations failed" in report.error_details


class _ExpireIgnoredStore(MemoryKeyValueStore):
    async def expire(self, key: str, seconds: int) -> None:
        return None


@pytest.mark.asyncio
async def test_key_exists_check_uses_store(store, clock) -> None:
    with patch.object(store, "exists", return_value=False) as exists:
        report = await run_store_diagnostics(store, clock=clock)

    exists.assert_awaited_once()
    assert report.checks.key_exists is False
    assert report.connection_status == "success"


@pytest.mark.asyncio
async def test_ttl_check_applies_expiry_with_expire(clock) -> None:
    report = await run_store_diagnostics(_ExpireIgnoredStore(timer=clock.timer), clock=clock)

    assert report.checks.ttl_operations is False
    assert report.checks.basic_get is True
