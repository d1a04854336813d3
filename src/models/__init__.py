"""ChronoSync domain models — re-exports all public model classes.

The models are organized across four submodules by domain concern:
    - race.py     — Events, races and the race lifecycle state machine
    - results.py  — Cached results snapshots and the normalized results view
    - settings.py — Operator-adjustable cache settings stored in the KV store
    - diagnostics.py — Key-value store self-test report
"""

from __future__ import annotations

from src.models.diagnostics import StoreChecks, StoreDiagnostics
from src.models.race import Event, EventStatus, EventWithRaces, Race, RaceStatus
from src.models.results import (
    ClearReport,
    NormalizedGrouping,
    NormalizedRaceInfo,
    NormalizedRacer,
    NormalizedResults,
    ResultsSnapshot,
)
from src.models.settings import CacheSettings, SystemSettings

__all__ = [
    "CacheSettings",
    "ClearReport",
    "Event",
    "EventStatus",
    "EventWithRaces",
    "NormalizedGrouping",
    "NormalizedRaceInfo",
    "NormalizedRacer",
    "NormalizedResults",
    "Race",
    "RaceStatus",
    "ResultsSnapshot",
    "StoreChecks",
    "StoreDiagnostics",
    "SystemSettings",
]
