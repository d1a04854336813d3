"""How long a race's cached results stay fresh.

Completed races keep their final results for a fixed 30 days, independent
of operator settings.  Preparing and active races use the configured
active-results TTL.  The limit is computed on every call, so a settings
change or a status transition applies to the very next read.
"""

from __future__ import annotations

from src.models.race import RaceStatus
from src.services.settings_service import SettingsService

COMPLETED_RETENTION_SECONDS = 30 * 24 * 60 * 60


class RetentionPolicy:
    def __init__(self, settings: SettingsService) -> None:
        self._settings = settings

    async def ttl_for(self, status: RaceStatus) -> int:
        """Freshness limit and storage TTL, in seconds, for a race in *status*."""
        if status is RaceStatus.COMPLETED:
            return COMPLETED_RETENTION_SECONDS
        return await self._settings.get_active_results_ttl()
