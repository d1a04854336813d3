"""Results-cache models: snapshots with provenance and the normalized view.

The raw WebScorer document is carried as an opaque ``dict``; the cache
never looks inside it beyond the two required top-level sections.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class ResultsSnapshot(BaseModel):
    """A results document plus where it came from.

    ``cache_hit`` is also true for a stale entry served because the
    upstream fetch failed; ``cache_age`` tells the two apart.
    """

    model_config = ConfigDict(frozen=True)

    document: dict[str, Any]
    last_updated: str = Field(description="ISO-8601 time the document was fetched.")
    cache_hit: bool
    cache_age: int = Field(ge=0, description="Whole seconds since last_updated.")


class ClearReport(BaseModel):
    """Outcome of a bulk results purge."""

    model_config = ConfigDict(frozen=True)

    cleared_count: int
    race_ids: list[str] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Normalized results view
# ---------------------------------------------------------------------------


class NormalizedRacer(BaseModel):
    model_config = ConfigDict(frozen=True)

    place: str = ""
    bib: str = ""
    name: str = ""
    time: str = ""
    category: str | None = None
    age: str | None = None
    gender: str | None = None
    team: str | None = None
    difference: str | None = None
    percent_back: str | None = None


class NormalizedGrouping(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    overall: bool = False
    category: str | None = None
    gender: str | None = None
    racers: list[NormalizedRacer] = Field(default_factory=list)


class NormalizedRaceInfo(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str = ""
    date: str = ""
    sport: str = ""
    location: str | None = None


class NormalizedResults(BaseModel):
    """Provider-independent shape consumed by the public results pages."""

    model_config = ConfigDict(frozen=True)

    race_info: NormalizedRaceInfo
    results: list[NormalizedGrouping] = Field(default_factory=list)
