"""Abstract base class for upstream race-results providers.

The results cache only ever talks to this interface, so tests can inject a
fake and a second timing service could be added without touching the
caching policy.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any


class IResultsProvider(ABC):
    """Contract for services that supply raw race-results documents."""

    @abstractmethod
    async def fetch_results(self, provider_race_id: str) -> dict[str, Any]:
        """Fetch the current results document for *provider_race_id*.

        The returned document is passed through the cache untouched; it must
        contain a race-info section and a results section.

        Raises
        ------
        ConfigurationError
            The provider credentials are not configured.
        NotFoundError
            The provider does not know this race.
        AuthError
            The provider rejected the credentials.
        ProviderError
            Any other failure, including exhausted retries and malformed
            bodies (``ProviderTimeoutError`` for timeouts).
        """

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier for this provider."""
