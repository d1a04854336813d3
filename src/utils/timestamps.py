"""Timestamp helpers shared by the registry and the results cache.

Timestamps are stored as ISO-8601 UTC strings with millisecond precision and
a ``Z`` suffix (``2025-06-15T09:30:00.000Z``), the format the public site and
existing stored data already use.
"""

from __future__ import annotations

import math
from datetime import datetime, timezone


def utc_now() -> datetime:
    return datetime.now(tz=timezone.utc)  # noqa: UP017


def format_timestamp(moment: datetime) -> str:
    """Render *moment* as ``YYYY-MM-DDTHH:MM:SS.mmmZ`` in UTC."""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)  # noqa: UP017
    moment = moment.astimezone(timezone.utc)  # noqa: UP017
    return moment.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def create_timestamp(moment: datetime | None = None) -> str:
    return format_timestamp(moment or utc_now())


def parse_timestamp(value: str) -> datetime:
    """Parse a stored timestamp; naive values are taken as UTC.

    Raises ``ValueError`` for strings that are not ISO-8601.
    """
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)  # noqa: UP017
    return parsed


def calculate_cache_age(cached_at: str, now: datetime | None = None) -> int:
    """Whole seconds elapsed since *cached_at*.

    The millisecond delta is floored before the integer division by 1000, so
    an entry written 59.999 s ago is 59 s old.  Clock skew that would put
    *cached_at* in the future yields 0.
    """
    current = now or utc_now()
    delta_ms = math.floor((current - parse_timestamp(cached_at)).total_seconds() * 1000)
    return max(0, delta_ms // 1000)
