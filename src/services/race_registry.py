"""Event and race records persisted in the key-value store.

# ─── KEY LAYOUT ───────────────────────────────────────────────────────
#
#   events:list            set of event ids
#   event:{id}:info        Event JSON
#   event:{id}:races       set of race ids
#   race:{id}:config       Race JSON
#   race:{id}:results      cached results document (owned by ResultCacheEngine)
#   race:{id}:timestamp    cachedAt of the results document
#
# The registry owns the first four.  Deleting a race or an event also
# deletes the cached results of every race removed, so no orphaned
# snapshot outlives its race.
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

import re
import time
from datetime import date, datetime
from typing import Callable
from uuid import uuid4

from pydantic import ValidationError

from src.interfaces.kv_store import IKeyValueStore, get_json, set_json
from src.models.race import Event, EventStatus, EventWithRaces, Race
from src.utils.errors import InvalidInputError, NotFoundError
from src.utils.logging import get_logger
from src.utils.timestamps import create_timestamp, utc_now

logger = get_logger(__name__)

EVENTS_LIST_KEY = "events:list"

_PROVIDER_ID_RE = re.compile(r"^\d+$")
_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def event_info_key(event_id: str) -> str:
    return f"event:{event_id}:info"


def event_races_key(event_id: str) -> str:
    return f"event:{event_id}:races"


def race_config_key(race_id: str) -> str:
    return f"race:{race_id}:config"


def race_results_key(race_id: str) -> str:
    return f"race:{race_id}:results"


def race_timestamp_key(race_id: str) -> str:
    return f"race:{race_id}:timestamp"


def _new_id(prefix: str) -> str:
    return f"{prefix}_{int(time.time() * 1000)}_{uuid4().hex[:6]}"


def _parse_event_date(value: str) -> date:
    if not value or not _DATE_RE.match(value):
        raise InvalidInputError(f"Invalid event date '{value}' (expected YYYY-MM-DD)")
    try:
        return date.fromisoformat(value)
    except ValueError as exc:
        raise InvalidInputError(f"Invalid event date '{value}'") from exc


def _clean_provider_id(value: str | None) -> str | None:
    value = (value or "").strip()
    if not value:
        return None
    if not _PROVIDER_ID_RE.match(value):
        raise InvalidInputError(f"Provider race id must be numeric (got '{value}')")
    return value


def _require(value: str | None, field: str) -> str:
    value = (value or "").strip()
    if not value:
        raise InvalidInputError(f"{field} is required")
    return value


class RaceRegistry:
    """CRUD for events and races.

    Parameters
    ----------
    store:
        The shared key-value store.
    clock:
        Current UTC time; drives timestamps and event status.
    """

    def __init__(
        self,
        store: IKeyValueStore,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._store = store
        self._clock = clock

    # ── Races ─────────────────────────────────────────────────────────

    async def get_race(self, race_id: str) -> Race | None:
        data = await get_json(self._store, race_config_key(race_id))
        if data is None:
            return None
        try:
            return Race.model_validate(data)
        except ValidationError as exc:
            logger.warning("race_record_invalid", race_id=race_id, error=str(exc))
            return None

    async def require_race(self, race_id: str) -> Race:
        race = await self.get_race(race_id)
        if race is None:
            raise NotFoundError(f"Race '{race_id}' not found")
        return race

    async def save_race(self, race: Race) -> None:
        await set_json(self._store, race_config_key(race.id), race.model_dump(mode="json"))

    async def create_race(
        self,
        event_id: str,
        name: str,
        category: str = "",
        provider_race_id: str | None = None,
        sport_type: str = "trail-running",
    ) -> Race:
        """Create a race in ``preparing`` status under an existing event."""
        if await self.get_event(event_id) is None:
            raise NotFoundError(f"Event '{event_id}' not found")
        now = create_timestamp(self._clock())
        race = Race(
            id=_new_id("race"),
            event_id=event_id,
            name=_require(name, "name"),
            category=(category or "").strip(),
            provider_race_id=_clean_provider_id(provider_race_id),
            sport_type=sport_type or "trail-running",
            created_at=now,
            updated_at=now,
        )
        await self.save_race(race)
        await self._store.sadd(event_races_key(event_id), race.id)
        logger.info("race_created", race_id=race.id, event_id=event_id)
        return race

    async def update_race(
        self,
        race_id: str,
        name: str,
        category: str = "",
        provider_race_id: str | None = None,
    ) -> Race:
        """Edit descriptive fields.  Status changes go through LifecycleService."""
        race = await self.require_race(race_id)
        updated = race.model_copy(
            update={
                "name": _require(name, "name"),
                "category": (category or "").strip(),
                "provider_race_id": _clean_provider_id(provider_race_id),
                "updated_at": create_timestamp(self._clock()),
            }
        )
        await self.save_race(updated)
        logger.info("race_updated", race_id=race_id)
        return updated

    async def delete_race(self, race_id: str) -> None:
        race = await self.require_race(race_id)
        await self._store.delete(
            race_config_key(race_id),
            race_results_key(race_id),
            race_timestamp_key(race_id),
        )
        await self._store.srem(event_races_key(race.event_id), race_id)
        logger.info("race_deleted", race_id=race_id, event_id=race.event_id)

    async def list_event_races(self, event_id: str) -> list[Race]:
        races = []
        for race_id in await self._store.smembers(event_races_key(event_id)):
            race = await self.get_race(race_id)
            if race is not None:
                races.append(race)
        return sorted(races, key=lambda r: r.created_at)

    # ── Events ────────────────────────────────────────────────────────

    def _today(self) -> date:
        return self._clock().date()

    async def create_event(self, name: str, event_date: str, description: str = "") -> Event:
        day = _parse_event_date(event_date)
        now = create_timestamp(self._clock())
        event = Event(
            id=_new_id("event"),
            name=_require(name, "name"),
            date=event_date,
            description=description or "",
            status=EventStatus.for_date(day, self._today()),
            created_at=now,
            updated_at=now,
        )
        await set_json(self._store, event_info_key(event.id), event.model_dump(mode="json"))
        await self._store.sadd(EVENTS_LIST_KEY, event.id)
        logger.info("event_created", event_id=event.id)
        return event

    async def get_event(self, event_id: str) -> Event | None:
        data = await get_json(self._store, event_info_key(event_id))
        if data is None:
            return None
        try:
            event = Event.model_validate(data)
        except ValidationError as exc:
            logger.warning("event_record_invalid", event_id=event_id, error=str(exc))
            return None
        return self._with_current_status(event)

    async def get_event_with_races(self, event_id: str) -> EventWithRaces:
        event = await self.get_event(event_id)
        if event is None:
            raise NotFoundError(f"Event '{event_id}' not found")
        return EventWithRaces(event=event, races=await self.list_event_races(event_id))

    async def list_events(
        self,
        status: str | None = None,
        search: str | None = None,
    ) -> list[Event]:
        """All events, newest date first.

        ``status`` filters on the derived event status (``"all"`` or empty
        disables it); ``search`` is a case-insensitive substring match on
        name or description.
        """
        events = []
        for event_id in await self._store.smembers(EVENTS_LIST_KEY):
            event = await self.get_event(event_id)
            if event is not None:
                events.append(event)

        if status and status != "all":
            events = [e for e in events if e.status.value == status]
        if search:
            term = search.lower()
            events = [
                e for e in events
                if term in e.name.lower() or term in e.description.lower()
            ]
        return sorted(events, key=lambda e: e.date, reverse=True)

    async def update_event(
        self,
        event_id: str,
        name: str,
        event_date: str,
        description: str = "",
    ) -> Event:
        event = await self.get_event(event_id)
        if event is None:
            raise NotFoundError(f"Event '{event_id}' not found")
        day = _parse_event_date(event_date)
        updated = event.model_copy(
            update={
                "name": _require(name, "name"),
                "date": event_date,
                "description": description or "",
                "status": EventStatus.for_date(day, self._today()),
                "updated_at": create_timestamp(self._clock()),
            }
        )
        await set_json(self._store, event_info_key(event_id), updated.model_dump(mode="json"))
        logger.info("event_updated", event_id=event_id)
        return updated

    async def delete_event(self, event_id: str) -> list[str]:
        """Delete an event, its races and their cached results.

        Returns the ids of the races removed.
        """
        if await self.get_event(event_id) is None:
            raise NotFoundError(f"Event '{event_id}' not found")
        race_ids = await self._store.smembers(event_races_key(event_id))
        for race_id in race_ids:
            await self._store.delete(
                race_config_key(race_id),
                race_results_key(race_id),
                race_timestamp_key(race_id),
            )
        await self._store.delete(event_info_key(event_id), event_races_key(event_id))
        await self._store.srem(EVENTS_LIST_KEY, event_id)
        logger.info("event_deleted", event_id=event_id, races_deleted=len(race_ids))
        return race_ids

    def _with_current_status(self, event: Event) -> Event:
        # Status follows the calendar, so a stored value can go out of date.
        try:
            status = EventStatus.for_date(date.fromisoformat(event.date), self._today())
        except ValueError:
            return event
        if status is event.status:
            return event
        return event.model_copy(update={"status": status})
