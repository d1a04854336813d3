"""Unit tests for MemoryKeyValueStore."""

from __future__ import annotations

import pytest

from src.interfaces.kv_store import get_json, set_json
from src.providers.kv.memory_store import MemoryKeyValueStore
from src.utils.errors import CacheStoreError
from tests.conftest import FakeClock


class TestStrings:
    @pytest.fixture()
    def kv(self, clock: FakeClock) -> MemoryKeyValueStore:
        return MemoryKeyValueStore(timer=clock.timer)

    @pytest.mark.asyncio
    async def test_get_missing_key_returns_none(self, kv: MemoryKeyValueStore) -> None:
        assert await kv.get("nonexistent") is None

    @pytest.mark.asyncio
    async def test_set_overwrites_existing(self, kv: MemoryKeyValueStore) -> None:
        await kv.set("key1", "old")
        await kv.set("key1", "new")
        assert await kv.get("key1") == "new"

    @pytest.mark.asyncio
    async def test_delete_several_keys(self, kv: MemoryKeyValueStore) -> None:
        await kv.set("a", "1")
        await kv.set("b", "2")
        await kv.delete("a", "b", "missing")
        assert await kv.exists("a") is False
        assert await kv.exists("b") is False

    @pytest.mark.asyncio
    async def test_delete_with_no_keys_is_noop(self, kv: MemoryKeyValueStore) -> None:
        await kv.delete()

    @pytest.mark.asyncio
    async def test_json_helpers(self, kv: MemoryKeyValueStore) -> None:
        await set_json(kv, "doc", {"name": "Ōmachi 50K", "n": 3})
        assert await get_json(kv, "doc") == {"name": "Ōmachi 50K", "n": 3}

    @pytest.mark.asyncio
    async def test_get_json_on_garbage_returns_none(self, kv: MemoryKeyValueStore) -> None:
        await kv.set("doc", "{not json")
        assert await get_json(kv, "doc") is None


class TestExpiry:
    @pytest.fixture()
    def kv(self, clock: FakeClock) -> MemoryKeyValueStore:
        return MemoryKeyValueStore(timer=clock.timer)

    @pytest.mark.asyncio
    async def test_entry_expires_after_ttl(self, kv, clock: FakeClock) -> None:
        await kv.set("k", "v", ttl=10)
        clock.advance(9)
        assert await kv.get("k") == "v"
        clock.advance(1)
        assert await kv.get("k") is None
        assert await kv.exists("k") is False

    @pytest.mark.asyncio
    async def test_ttl_reports_remaining_seconds(self, kv, clock: FakeClock) -> None:
        await kv.set("k", "v", ttl=180)
        clock.advance(60)
        assert await kv.ttl("k") == 120

    @pytest.mark.asyncio
    async def test_ttl_sentinels(self, kv) -> None:
        await kv.set("forever", "v")
        assert await kv.ttl("forever") == -1
        assert await kv.ttl("missing") == -2

    @pytest.mark.asyncio
    async def test_non_positive_ttl_deletes(self, kv) -> None:
        await kv.set("k", "v")
        await kv.set("k", "v2", ttl=0)
        assert await kv.get("k") is None

    @pytest.mark.asyncio
    async def test_overwrite_without_ttl_clears_expiry(self, kv, clock: FakeClock) -> None:
        await kv.set("k", "v", ttl=5)
        await kv.set("k", "v2")
        clock.advance(100)
        assert await kv.get("k") == "v2"

    @pytest.mark.asyncio
    async def test_expire_applies_new_lifetime(self, kv, clock: FakeClock) -> None:
        await kv.set("k", "v")
        await kv.expire("k", 30)
        assert await kv.ttl("k") == 30
        clock.advance(30)
        assert await kv.get("k") is None

    @pytest.mark.asyncio
    async def test_keys_skips_expired_entries(self, kv, clock: FakeClock) -> None:
        await kv.set("race:R1:results", "x", ttl=10)
        await kv.set("race:R2:results", "x")
        clock.advance(10)
        assert await kv.keys("race:*:results") == ["race:R2:results"]


class TestSets:
    @pytest.fixture()
    def kv(self) -> MemoryKeyValueStore:
        return MemoryKeyValueStore()

    @pytest.mark.asyncio
    async def test_sadd_and_smembers(self, kv) -> None:
        await kv.sadd("s", "b")
        await kv.sadd("s", "a")
        await kv.sadd("s", "a")
        assert await kv.smembers("s") == ["a", "b"]

    @pytest.mark.asyncio
    async def test_srem_last_member_removes_key(self, kv) -> None:
        await kv.sadd("s", "a")
        await kv.srem("s", "a")
        assert await kv.exists("s") is False
        assert await kv.smembers("s") == []

    @pytest.mark.asyncio
    async def test_srem_missing_member_is_noop(self, kv) -> None:
        await kv.sadd("s", "a")
        await kv.srem("s", "zzz")
        assert await kv.smembers("s") == ["a"]

    @pytest.mark.asyncio
    async def test_string_op_on_set_raises(self, kv) -> None:
        await kv.sadd("s", "a")
        with pytest.raises(CacheStoreError):
            await kv.get("s")

    @pytest.mark.asyncio
    async def test_set_op_on_string_raises(self, kv) -> None:
        await kv.set("k", "v")
        with pytest.raises(CacheStoreError):
            await kv.sadd("k", "a")

    @pytest.mark.asyncio
    async def test_keys_matches_sets_and_strings(self, kv) -> None:
        await kv.sadd("event:E1:races", "R1")
        await kv.set("event:E1:info", "{}")
        await kv.set("race:R1:config", "{}")
        assert await kv.keys("event:E1:*") == ["event:E1:info", "event:E1:races"]


def test_provider_name() -> None:
    assert MemoryKeyValueStore().get_provider_name() == "memory"
