"""In-memory key-value store using cachetools.TLRUCache.

Fast and dependency-free at runtime; suitable for local development, tests
and single-process deployments.  Contents are lost on restart and are not
shared across workers — use the SQLite or Redis store for that.

``TLRUCache`` asks a *time-to-use* function for each entry's expiry, which
gives every key its own TTL (unlike ``TTLCache``'s single global TTL).
The cache is unbounded: nothing is evicted except by expiry.
"""

from __future__ import annotations

import math
import time
from dataclasses import dataclass
from fnmatch import fnmatchcase
from typing import Callable

from cachetools import TLRUCache

from src.interfaces.kv_store import IKeyValueStore
from src.utils.errors import CacheStoreError
from src.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class _Entry:
    value: str | frozenset[str]
    expires_at: float | None


def _time_to_use(_key: str, entry: _Entry, _now: float) -> float:
    return math.inf if entry.expires_at is None else entry.expires_at


class MemoryKeyValueStore(IKeyValueStore):
    """Process-local store backed by ``cachetools.TLRUCache``.

    Parameters
    ----------
    timer:
        Monotonic clock used for expiry; injectable so tests can move time.
    """

    def __init__(self, timer: Callable[[], float] = time.monotonic) -> None:
        self._cache: TLRUCache[str, _Entry] = TLRUCache(
            maxsize=math.inf, ttu=_time_to_use, timer=timer
        )

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _now(self) -> float:
        return self._cache.timer()

    def _expiry_for(self, ttl: int | None) -> float | None:
        return None if ttl is None else self._now() + ttl

    def _get_string(self, key: str) -> str | None:
        entry = self._cache.get(key)
        if entry is None:
            return None
        if not isinstance(entry.value, str):
            raise CacheStoreError(
                f"Key '{key}' holds a set, not a string",
                provider_name=self.get_provider_name(),
            )
        return entry.value

    def _get_members(self, key: str) -> frozenset[str]:
        entry = self._cache.get(key)
        if entry is None:
            return frozenset()
        if isinstance(entry.value, str):
            raise CacheStoreError(
                f"Key '{key}' holds a string, not a set",
                provider_name=self.get_provider_name(),
            )
        return entry.value

    # ------------------------------------------------------------------
    # IKeyValueStore implementation
    # ------------------------------------------------------------------

    async def get(self, key: str) -> str | None:
        return self._get_string(key)

    async def set(self, key: str, value: str, ttl: int | None = None) -> None:
        if ttl is not None and ttl <= 0:
            self._cache.pop(key, None)
            return
        self._cache[key] = _Entry(value=value, expires_at=self._expiry_for(ttl))
        logger.debug("kv_set", key=key, ttl=ttl)

    async def delete(self, *keys: str) -> None:
        for key in keys:
            self._cache.pop(key, None)

    async def exists(self, key: str) -> bool:
        return key in self._cache

    async def sadd(self, key: str, member: str) -> None:
        members = self._get_members(key)
        entry = self._cache.get(key)
        expires_at = entry.expires_at if entry is not None else None
        self._cache[key] = _Entry(value=members | {member}, expires_at=expires_at)

    async def smembers(self, key: str) -> list[str]:
        return sorted(self._get_members(key))

    async def srem(self, key: str, member: str) -> None:
        members = self._get_members(key)
        if member not in members:
            return
        remaining = members - {member}
        if not remaining:
            self._cache.pop(key, None)
            return
        entry = self._cache[key]
        self._cache[key] = _Entry(value=remaining, expires_at=entry.expires_at)

    async def ttl(self, key: str) -> int:
        entry = self._cache.get(key)
        if entry is None:
            return -2
        if entry.expires_at is None:
            return -1
        return max(0, math.ceil(entry.expires_at - self._now()))

    async def expire(self, key: str, seconds: int) -> None:
        entry = self._cache.get(key)
        if entry is None:
            return
        if seconds <= 0:
            self._cache.pop(key, None)
            return
        self._cache[key] = _Entry(value=entry.value, expires_at=self._now() + seconds)

    async def keys(self, pattern: str) -> list[str]:
        self._cache.expire()
        return sorted(key for key in list(self._cache) if fnmatchcase(key, pattern))

    def get_provider_name(self) -> str:
        return "memory"

