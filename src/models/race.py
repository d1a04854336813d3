"""Pydantic v2 models for events, races and their lifecycle states.

All models use frozen config (immutable); updates go through
``model_copy(update=...)`` so every change produces a new record that the
registry writes back as a whole.

Race lifecycle::

    PREPARING ──► ACTIVE ──► COMPLETED
                    ▲            │
                    └────────────┘   (re-open)
"""

from __future__ import annotations

from datetime import date
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class RaceStatus(str, Enum):  # noqa: UP042 - StrEnum requires Python 3.11+
    """Lifecycle states of a race; drive the results retention window."""

    PREPARING = "preparing"
    ACTIVE = "active"
    COMPLETED = "completed"

    def can_transition_to(self, target: RaceStatus) -> bool:
        return target in _ALLOWED_TRANSITIONS[self]


_ALLOWED_TRANSITIONS: dict[RaceStatus, frozenset[RaceStatus]] = {
    RaceStatus.PREPARING: frozenset({RaceStatus.ACTIVE}),
    RaceStatus.ACTIVE: frozenset({RaceStatus.COMPLETED}),
    RaceStatus.COMPLETED: frozenset({RaceStatus.ACTIVE}),
}


class EventStatus(str, Enum):  # noqa: UP042 - StrEnum requires Python 3.11+
    """Event state derived from its date relative to today."""

    UPCOMING = "upcoming"
    ACTIVE = "active"
    COMPLETED = "completed"

    @classmethod
    def for_date(cls, event_date: date, today: date) -> EventStatus:
        if event_date > today:
            return cls.UPCOMING
        if event_date == today:
            return cls.ACTIVE
        return cls.COMPLETED


class Race(BaseModel):
    """A timed competition segment within an event.

    ``provider_race_id`` links the race to its WebScorer results; without
    it the results cache refuses to fetch.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    event_id: str
    name: str
    category: str = ""
    provider_race_id: str | None = Field(
        default=None, description="WebScorer numeric race id."
    )
    status: RaceStatus = RaceStatus.PREPARING
    sport_type: str = "trail-running"
    created_at: str
    updated_at: str


class Event(BaseModel):
    """A competition grouping one or more races."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    date: str = Field(description="Event day as YYYY-MM-DD.")
    description: str = ""
    status: EventStatus
    created_at: str
    updated_at: str


class EventWithRaces(BaseModel):
    """An event together with its races, ordered by creation time."""

    model_config = ConfigDict(frozen=True)

    event: Event
    races: list[Race] = Field(default_factory=list)
