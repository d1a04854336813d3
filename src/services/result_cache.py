"""Race results cache: freshness, refetch and stale-on-error fallback.

# ─── ARCHITECTURE ROLE ───────────────────────────────────────────────
#
# Layer: Services (the core of the results site).
# Depends on: IKeyValueStore, IResultsProvider, RaceRegistry,
#             RetentionPolicy.
#
# get_results(race_id, force_refresh) runs this decision per request:
#
#   1. LOOKUP   — race must exist (NotFoundError) and be linked to a
#                 provider race id (ConfigurationError).
#   2. READ     — unless forced, read the cached document and its
#                 timestamp.  Any read or parse failure is a miss.
#                 cache_age < ttl_for(status)  →  serve it (cache hit).
#   3. FETCH    — call the provider.
#        ok     → write document + timestamp with ttl_for(status);
#                 a failed write is logged, the fresh document is
#                 still returned (cache_hit=False, cache_age=0).
#        failed → serve the entry read in step 2 even if stale
#                 (cache_hit=True with its real age); with no entry,
#                 re-raise.
#
# Without single-flight, two concurrent stale reads of the same race
# both fetch and the last write wins.  ``single_flight=True`` collapses
# them onto one shared upstream request per race id.
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

import asyncio
import json
from datetime import datetime
from typing import Any, Callable

from src.interfaces.kv_store import IKeyValueStore
from src.interfaces.results_provider import IResultsProvider
from src.models.race import Race, RaceStatus
from src.models.results import ClearReport, ResultsSnapshot
from src.services.race_registry import RaceRegistry, race_results_key, race_timestamp_key
from src.services.retention import RetentionPolicy
from src.utils.errors import CacheStoreError, ConfigurationError
from src.utils.logging import get_logger
from src.utils.timestamps import calculate_cache_age, create_timestamp, utc_now

logger = get_logger(__name__)

_CLEAR_PATTERNS = ("race:*:results", "race:*:timestamp")


class ResultCacheEngine:
    """Serves race results from the cache or the upstream provider.

    Parameters
    ----------
    store:
        Key-value store holding ``race:{id}:results`` / ``race:{id}:timestamp``.
    registry:
        Source of race records (provider id and lifecycle status).
    provider:
        Upstream results client.
    retention:
        Maps a race status to its freshness limit / storage TTL.
    clock:
        Current UTC time.
    single_flight:
        Share one in-flight upstream fetch between concurrent callers
        for the same race.
    """

    def __init__(
        self,
        store: IKeyValueStore,
        registry: RaceRegistry,
        provider: IResultsProvider,
        retention: RetentionPolicy,
        clock: Callable[[], datetime] = utc_now,
        single_flight: bool = False,
    ) -> None:
        self._store = store
        self._registry = registry
        self._provider = provider
        self._retention = retention
        self._clock = clock
        self._single_flight = single_flight
        self._inflight: dict[str, asyncio.Future[dict[str, Any]]] = {}

    # ── Read path ─────────────────────────────────────────────────────

    async def get_results(self, race_id: str, force_refresh: bool = False) -> ResultsSnapshot:
        race = await self._registry.require_race(race_id)
        if not race.provider_race_id:
            raise ConfigurationError(f"Race '{race_id}' has no provider race id configured")

        cached: ResultsSnapshot | None = None
        if not force_refresh:
            cached = await self._read_cached(race_id)
            if cached is not None:
                ttl_limit = await self._retention.ttl_for(race.status)
                if cached.cache_age < ttl_limit:
                    logger.debug(
                        "results_cache_hit",
                        race_id=race_id,
                        cache_age=cached.cache_age,
                        ttl=ttl_limit,
                    )
                    return cached
                logger.info(
                    "results_cache_stale",
                    race_id=race_id,
                    cache_age=cached.cache_age,
                    ttl=ttl_limit,
                )

        try:
            document = await self._fetch(race)
        except Exception as exc:
            if cached is not None:
                logger.warning(
                    "results_fetch_failed_serving_stale",
                    race_id=race_id,
                    cache_age=cached.cache_age,
                    error=str(exc),
                )
                return cached
            logger.error("results_fetch_failed", race_id=race_id, error=str(exc))
            raise

        timestamp = create_timestamp(self._clock())
        ttl = await self._retention.ttl_for(race.status)
        try:
            await self._write(race_id, document, timestamp, ttl)
        except CacheStoreError as exc:
            logger.warning("results_cache_write_failed", race_id=race_id, error=str(exc))

        logger.info("results_fetched", race_id=race_id, ttl=ttl, forced=force_refresh)
        return ResultsSnapshot(
            document=document,
            last_updated=timestamp,
            cache_hit=False,
            cache_age=0,
        )

    # ── Write path ────────────────────────────────────────────────────

    async def store_snapshot(
        self,
        race_id: str,
        document: dict[str, Any],
        status: RaceStatus,
    ) -> str:
        """Overwrite the cached entry with the TTL for *status*.

        Returns the stored timestamp.  Store failures propagate.
        """
        timestamp = create_timestamp(self._clock())
        ttl = await self._retention.ttl_for(status)
        await self._write(race_id, document, timestamp, ttl)
        logger.info("results_snapshot_stored", race_id=race_id, status=status.value, ttl=ttl)
        return timestamp

    async def refresh_snapshot(self, race: Race, status: RaceStatus) -> str:
        """Fetch fresh results for *race* and store them under *status*'s TTL."""
        if not race.provider_race_id:
            raise ConfigurationError(f"Race '{race.id}' has no provider race id configured")
        document = await self._provider.fetch_results(race.provider_race_id)
        return await self.store_snapshot(race.id, document, status)

    async def clear_race(self, race_id: str) -> None:
        await self._store.delete(race_results_key(race_id), race_timestamp_key(race_id))
        logger.info("results_cache_cleared", race_id=race_id)

    async def clear_all(self) -> ClearReport:
        """Delete every cached results document and timestamp.

        A pattern whose scan or delete fails is logged and skipped.
        """
        cleared = 0
        race_ids: set[str] = set()
        for pattern in _CLEAR_PATTERNS:
            try:
                keys = await self._store.keys(pattern)
                if keys:
                    await self._store.delete(*keys)
            except CacheStoreError as exc:
                logger.error("results_cache_clear_failed", pattern=pattern, error=str(exc))
                continue
            cleared += len(keys)
            race_ids.update(key.split(":", 1)[1].rsplit(":", 1)[0] for key in keys)
            logger.info("results_cache_pattern_cleared", pattern=pattern, count=len(keys))

        logger.info("results_cache_cleared_all", cleared=cleared, races=len(race_ids))
        return ClearReport(cleared_count=cleared, race_ids=sorted(race_ids))

    # ── Private helpers ───────────────────────────────────────────────

    async def _read_cached(self, race_id: str) -> ResultsSnapshot | None:
        try:
            raw_document = await self._store.get(race_results_key(race_id))
            cached_at = await self._store.get(race_timestamp_key(race_id))
            if raw_document is None or cached_at is None:
                return None
            document = json.loads(raw_document)
            if not isinstance(document, dict):
                raise ValueError("cached document is not an object")
            age = calculate_cache_age(cached_at, self._clock())
        except (CacheStoreError, ValueError) as exc:
            logger.warning("results_cache_read_failed", race_id=race_id, error=str(exc))
            return None
        return ResultsSnapshot(
            document=document,
            last_updated=cached_at,
            cache_hit=True,
            cache_age=age,
        )

    async def _write(
        self,
        race_id: str,
        document: dict[str, Any],
        timestamp: str,
        ttl: int,
    ) -> None:
        await self._store.set(
            race_results_key(race_id), json.dumps(document, ensure_ascii=False), ttl=ttl
        )
        await self._store.set(race_timestamp_key(race_id), timestamp, ttl=ttl)

    async def _fetch(self, race: Race) -> dict[str, Any]:
        assert race.provider_race_id is not None
        if not self._single_flight:
            return await self._provider.fetch_results(race.provider_race_id)

        task = self._inflight.get(race.id)
        if task is None:
            task = asyncio.ensure_future(self._provider.fetch_results(race.provider_race_id))
            self._inflight[race.id] = task
            task.add_done_callback(lambda done, key=race.id: self._forget(key, done))
        else:
            logger.debug("results_fetch_joined", race_id=race.id)
        # shield: one caller going away must not cancel the fetch for the rest
        return await asyncio.shield(task)

    def _forget(self, race_id: str, task: asyncio.Future[dict[str, Any]]) -> None:
        if self._inflight.get(race_id) is task:
            del self._inflight[race_id]
        if not task.cancelled():
            # mark the exception retrieved even if every waiter went away
            task.exception()
