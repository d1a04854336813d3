"""Race status transitions and their effect on the results cache.

Moving a race to ``completed`` must archive the latest results, not a
snapshot that may be minutes old; re-opening it must shrink the 30-day
retention back to the active TTL.  Both happen by fetching fresh results
and overwriting the cached entry under the TTL of the *new* status.  That
refresh is best-effort: the status change is saved even when the provider
is down, and the cache fills again on the next read.
"""

from __future__ import annotations

from datetime import datetime
from typing import Callable

from src.models.race import Race, RaceStatus
from src.services.race_registry import RaceRegistry
from src.services.result_cache import ResultCacheEngine
from src.utils.errors import InvalidInputError, InvalidTransitionError
from src.utils.logging import get_logger
from src.utils.timestamps import create_timestamp, utc_now

logger = get_logger(__name__)


class LifecycleService:
    def __init__(
        self,
        registry: RaceRegistry,
        results: ResultCacheEngine,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._registry = registry
        self._results = results
        self._clock = clock

    async def transition_race_status(self, race_id: str, new_status: RaceStatus | str) -> Race:
        """Move *race_id* to *new_status* and rewrite its cached results.

        Raises
        ------
        NotFoundError
            The race does not exist.
        InvalidInputError
            *new_status* is not a known status.
        InvalidTransitionError
            The transition is not allowed; the stored race is untouched.
        """
        try:
            target = RaceStatus(new_status)
        except ValueError as exc:
            raise InvalidInputError(f"Unknown race status '{new_status}'") from exc

        race = await self._registry.require_race(race_id)
        if not race.status.can_transition_to(target):
            raise InvalidTransitionError(race.status.value, target.value)

        if race.provider_race_id:
            try:
                await self._results.refresh_snapshot(race, target)
            except Exception as exc:  # noqa: BLE001 - cache refills on next read
                logger.warning(
                    "status_change_refresh_failed",
                    race_id=race_id,
                    new_status=target.value,
                    error=str(exc),
                )

        updated = race.model_copy(
            update={"status": target, "updated_at": create_timestamp(self._clock())}
        )
        await self._registry.save_race(updated)
        logger.info(
            "race_status_changed",
            race_id=race_id,
            old_status=race.status.value,
            new_status=target.value,
        )
        return updated
