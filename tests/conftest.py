"""Shared pytest fixtures for the ChronoSync test suite."""

from __future__ import annotations

import copy
from datetime import datetime, timedelta, timezone
from typing import Any

import pytest

from src.interfaces.results_provider import IResultsProvider
from src.models.race import Race, RaceStatus
from src.providers.kv.memory_store import MemoryKeyValueStore
from src.services.race_registry import RaceRegistry
from src.services.result_cache import ResultCacheEngine
from src.services.retention import RetentionPolicy
from src.services.settings_service import SettingsService
from src.utils.errors import ProviderError
from src.utils.timestamps import create_timestamp

# ---------------------------------------------------------------------------
# Fakes
# ---------------------------------------------------------------------------


class FakeClock:
    """Mutable UTC clock shared by services and the memory store."""

    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2025, 6, 15, 9, 0, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now = self.now + timedelta(seconds=seconds)

    def timer(self) -> float:
        return self.now.timestamp()


class FakeResultsProvider(IResultsProvider):
    """Returns a canned document, or raises ``error`` when it is set."""

    def __init__(self, document: dict[str, Any]) -> None:
        self.document = document
        self.error: Exception | None = None
        self.calls: list[str] = []

    async def fetch_results(self, provider_race_id: str) -> dict[str, Any]:
        self.calls.append(provider_race_id)
        if self.error is not None:
            raise self.error
        return copy.deepcopy(self.document)

    def get_provider_name(self) -> str:
        return "fake"


def make_race(
    race_id: str = "R1",
    status: RaceStatus = RaceStatus.ACTIVE,
    provider_race_id: str | None = "371034",
    event_id: str = "E1",
) -> Race:
    stamp = create_timestamp(datetime(2025, 6, 1, tzinfo=timezone.utc))
    return Race(
        id=race_id,
        event_id=event_id,
        name="Trail 21K",
        category="21K",
        provider_race_id=provider_race_id,
        status=status,
        created_at=stamp,
        updated_at=stamp,
    )


# ---------------------------------------------------------------------------
# Sample data
# ---------------------------------------------------------------------------


@pytest.fixture
def webscorer_document() -> dict[str, Any]:
    """A trimmed-down WebScorer ``/json/race`` response."""
    return {
        "RaceInfo": {
            "RaceId": 371034,
            "Name": "Mountain Trail 21K",
            "DisplayURL": "https://www.webscorer.com/race?raceid=371034",
            "Date": "2025-06-15",
            "Sport": "Trail running",
            "City": "Hakuba",
            "Country": "Japan",
        },
        "Results": [
            {
                "Grouping": {"Overall": True},
                "Racers": [
                    {"Place": "1", "Bib": "101", "Name": "Aiko Tanaka", "Time": "1:45:12",
                     "Gender": "F", "Age": 31, "TeamName": "Hakuba TC",
                     "Difference": "", "PercentBack": "0%"},
                    {"Place": "2", "Bib": "205", "Name": "Ken Sato", "Time": "1:47:40",
                     "Gender": "M", "Age": 28, "TeamName": None,
                     "Difference": "+2:28", "PercentBack": "2.3%"},
                ],
            },
            {
                "Grouping": {"Category": "Women 30-39"},
                "Racers": [
                    {"Place": "1", "Bib": "101", "Name": "Aiko Tanaka", "Time": "1:45:12"},
                ],
            },
            {
                "Grouping": {"Gender": "M"},
                "Racers": [
                    {"Place": "1", "Bib": "205", "Name": "Ken Sato", "Time": "1:47:40"},
                ],
            },
        ],
    }


# ---------------------------------------------------------------------------
# Wiring
# ---------------------------------------------------------------------------


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store(clock: FakeClock) -> MemoryKeyValueStore:
    return MemoryKeyValueStore(timer=clock.timer)


@pytest.fixture
def provider(webscorer_document: dict[str, Any]) -> FakeResultsProvider:
    return FakeResultsProvider(webscorer_document)


@pytest.fixture
def settings_service(store: MemoryKeyValueStore, clock: FakeClock) -> SettingsService:
    return SettingsService(store, clock=clock)


@pytest.fixture
def registry(store: MemoryKeyValueStore, clock: FakeClock) -> RaceRegistry:
    return RaceRegistry(store, clock=clock)


@pytest.fixture
def engine(
    store: MemoryKeyValueStore,
    registry: RaceRegistry,
    provider: FakeResultsProvider,
    settings_service: SettingsService,
    clock: FakeClock,
) -> ResultCacheEngine:
    return ResultCacheEngine(
        store=store,
        registry=registry,
        provider=provider,
        retention=RetentionPolicy(settings_service),
        clock=clock,
    )


@pytest.fixture
def failing_error() -> ProviderError:
    return ProviderError("upstream down", provider_name="fake", upstream_status=503)
