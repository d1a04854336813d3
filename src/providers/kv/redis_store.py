"""Redis-backed key-value store for the managed cache service.

Uses ``redis.asyncio`` with ``decode_responses=True`` so every value comes
back as ``str``.  The client is created lazily from ``url`` unless one is
injected (tests pass an ``AsyncMock``).  ``keys()`` iterates with ``SCAN``
rather than the blocking ``KEYS`` command.
"""

from __future__ import annotations

from typing import Any

import redis.asyncio as redis
from redis.exceptions import RedisError

from src.interfaces.kv_store import IKeyValueStore
from src.utils.errors import CacheStoreError
from src.utils.logging import get_logger

logger = get_logger(__name__)


class RedisKeyValueStore(IKeyValueStore):
    """Store backed by a Redis server.

    Parameters
    ----------
    url:
        Redis connection URL, e.g. ``redis://localhost:6379/0``.
    client:
        Pre-built ``redis.asyncio.Redis`` client; overrides *url*.
    """

    def __init__(self, url: str = "redis://localhost:6379/0", client: Any = None) -> None:
        self._url = url
        self._client = client

    @property
    def client(self) -> Any:
        if self._client is None:
            self._client = redis.from_url(self._url, decode_responses=True)
        return self._client

    def _error(self, operation: str, key: str, exc: Exception) -> CacheStoreError:
        logger.error("kv_redis_error", operation=operation, key=key, error=str(exc))
        return CacheStoreError(
            f"Redis {operation} failed for '{key}': {exc}",
            provider_name=self.get_provider_name(),
        )

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def initialize(self) -> None:
        """Ping the server so a bad URL fails at startup, not on first request."""
        try:
            await self.client.ping()
        except RedisError as exc:
            raise self._error("ping", self._url, exc) from exc
        logger.info("kv_redis_connected", url=self._url)

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    # ------------------------------------------------------------------
    # IKeyValueStore implementation
    # ------------------------------------------------------------------

    async def get(self, key: str) -> str | None:
        try:
            return await self.client.get(key)
        except RedisError as exc:
            raise self._error("get", key, exc) from exc

    async def set(self, key: str, value: str, ttl: int | None = None) -> None:
        try:
            if ttl is None:
                await self.client.set(key, value)
            elif ttl <= 0:
                await self.client.delete(key)
            else:
                await self.client.set(key, value, ex=ttl)
        except RedisError as exc:
            raise self._error("set", key, exc) from exc

    async def delete(self, *keys: str) -> None:
        if not keys:
            return
        try:
            await self.client.delete(*keys)
        except RedisError as exc:
            raise self._error("delete", ", ".join(keys), exc) from exc

    async def exists(self, key: str) -> bool:
        try:
            return bool(await self.client.exists(key))
        except RedisError as exc:
            raise self._error("exists", key, exc) from exc

    async def sadd(self, key: str, member: str) -> None:
        try:
            await self.client.sadd(key, member)
        except RedisError as exc:
            raise self._error("sadd", key, exc) from exc

    async def smembers(self, key: str) -> list[str]:
        try:
            return sorted(await self.client.smembers(key))
        except RedisError as exc:
            raise self._error("smembers", key, exc) from exc

    async def srem(self, key: str, member: str) -> None:
        try:
            await self.client.srem(key, member)
        except RedisError as exc:
            raise self._error("srem", key, exc) from exc

    async def ttl(self, key: str) -> int:
        try:
            return int(await self.client.ttl(key))
        except RedisError as exc:
            raise self._error("ttl", key, exc) from exc

    async def expire(self, key: str, seconds: int) -> None:
        try:
            await self.client.expire(key, seconds)
        except RedisError as exc:
            raise self._error("expire", key, exc) from exc

    async def keys(self, pattern: str) -> list[str]:
        try:
            return sorted({key async for key in self.client.scan_iter(match=pattern)})
        except RedisError as exc:
            raise self._error("keys", pattern, exc) from exc

    def get_provider_name(self) -> str:
        return "redis"
