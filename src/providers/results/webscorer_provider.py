"""WebScorer race-results client.

Fetches ``/json/race?raceid=<id>&apiid=<key>`` from WebScorer's public JSON
API and returns the raw document (a ``RaceInfo`` object plus a ``Results``
array of groupings).  The document is cached verbatim by
:class:`~src.services.result_cache.ResultCacheEngine`, so this adapter only
checks that both sections exist.

Retry policy: each attempt has its own timeout; server errors (5xx),
timeouts and transport failures are retried with exponential backoff
(``base_delay * 2**attempt``).  Client errors (4xx) and malformed bodies
fail immediately.

Follows the same adapter pattern as the other providers: injected
``httpx.AsyncClient``, typed errors from :mod:`src.utils.errors`, structlog
events per attempt.
"""

from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Callable

import httpx

from src.interfaces.results_provider import IResultsProvider
from src.models.results import (
    NormalizedGrouping,
    NormalizedRaceInfo,
    NormalizedRacer,
    NormalizedResults,
)
from src.utils.errors import (
    AuthError,
    ConfigurationError,
    NotFoundError,
    ProviderError,
    ProviderTimeoutError,
)
from src.utils.logging import get_logger

_PROVIDER_NAME = "webscorer"
_BASE_URL = "https://www.webscorer.com"
_RESULTS_PATH = "/json/race"
_USER_AGENT = "ChronoSync/1.0"
_TIMEOUT = 10.0
_MAX_RETRIES = 3
_RETRY_BASE_DELAY = 1.0


class WebScorerProvider(IResultsProvider):
    """Fetches race results from WebScorer.

    Parameters
    ----------
    http_client:
        Injected ``httpx.AsyncClient`` for testability and connection pooling.
    api_id:
        WebScorer API id sent as the ``apiid`` query parameter.  Empty means
        not configured: every fetch raises :class:`ConfigurationError`.
    base_url:
        Scheme and host of the WebScorer API.
    timeout:
        Per-attempt timeout in seconds.
    max_retries:
        Retries after the first attempt (``3`` → up to 4 requests).
    retry_base_delay:
        Backoff before retry *n* (0-based) is ``retry_base_delay * 2**n``.
    sleep:
        Awaitable sleep used between attempts; tests pass a recorder.
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        api_id: str,
        base_url: str = _BASE_URL,
        timeout: float = _TIMEOUT,
        max_retries: int = _MAX_RETRIES,
        retry_base_delay: float = _RETRY_BASE_DELAY,
        user_agent: str = _USER_AGENT,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        self._http = http_client
        self._api_id = api_id
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._max_retries = max(0, max_retries)
        self._retry_base_delay = retry_base_delay
        self._user_agent = user_agent
        self._sleep = sleep
        self._logger = get_logger(__name__)

    def get_provider_name(self) -> str:
        return _PROVIDER_NAME

    async def fetch_results(self, provider_race_id: str) -> dict[str, Any]:
        if not self._api_id:
            raise ConfigurationError(
                "WebScorer API id is not configured", provider_name=_PROVIDER_NAME
            )

        last_error: ProviderError | None = None
        for attempt in range(self._max_retries + 1):
            try:
                return await self._fetch_once(provider_race_id)
            except ProviderError as exc:
                if not exc.retryable:
                    raise
                last_error = exc
                if attempt >= self._max_retries:
                    break
                delay = self._retry_base_delay * (2**attempt)
                self._logger.warning(
                    "webscorer_retrying",
                    race_id=provider_race_id,
                    attempt=attempt + 1,
                    max_attempts=self._max_retries + 1,
                    delay_s=delay,
                    error=str(exc),
                )
                await self._sleep(delay)

        self._logger.error(
            "webscorer_retries_exhausted",
            race_id=provider_race_id,
            attempts=self._max_retries + 1,
        )
        assert last_error is not None
        raise last_error

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    async def _fetch_once(self, provider_race_id: str) -> dict[str, Any]:
        """Issue one request and classify the outcome."""
        try:
            response = await self._http.get(
                f"{self._base_url}{_RESULTS_PATH}",
                params={"raceid": provider_race_id, "apiid": self._api_id},
                headers={"Accept": "application/json", "User-Agent": self._user_agent},
                timeout=self._timeout,
                follow_redirects=True,
            )
        except httpx.TimeoutException as exc:
            raise ProviderTimeoutError(
                f"Request for race {provider_race_id} timed out after {self._timeout}s",
                provider_name=_PROVIDER_NAME,
            ) from exc
        except httpx.HTTPError as exc:
            raise ProviderError(
                f"Request for race {provider_race_id} failed: {exc}",
                provider_name=_PROVIDER_NAME,
                retryable=True,
            ) from exc

        status = response.status_code
        if status >= 500:
            raise ProviderError(
                f"WebScorer server error: {status}",
                provider_name=_PROVIDER_NAME,
                upstream_status=status,
                retryable=True,
            )
        if status == 404:
            raise NotFoundError(
                f"WebScorer race {provider_race_id} not found",
                provider_name=_PROVIDER_NAME,
            )
        if status in (401, 403):
            raise AuthError(
                "WebScorer rejected the API id; check WEBSCORER_API_ID",
                provider_name=_PROVIDER_NAME,
            )
        if status >= 400:
            raise ProviderError(
                f"WebScorer API error: {status}",
                provider_name=_PROVIDER_NAME,
                upstream_status=status,
            )

        try:
            data = response.json()
        except ValueError as exc:
            raise ProviderError(
                "WebScorer returned a non-JSON body", provider_name=_PROVIDER_NAME
            ) from exc
        return self._validate(data)

    @staticmethod
    def _validate(data: Any) -> dict[str, Any]:
        if not isinstance(data, dict):
            raise ProviderError(
                "WebScorer response is not a JSON object", provider_name=_PROVIDER_NAME
            )
        if "Error" in data:
            raise ProviderError(
                f"WebScorer API error: {data['Error']}", provider_name=_PROVIDER_NAME
            )
        if data.get("RaceInfo") is None or data.get("Results") is None:
            raise ProviderError(
                "WebScorer response is missing RaceInfo or Results",
                provider_name=_PROVIDER_NAME,
            )
        return data


# ---------------------------------------------------------------------------
# Normalization
# ---------------------------------------------------------------------------


def _text(value: Any) -> str | None:
    if value is None or value == "":
        return None
    return str(value)


def normalize_results(document: dict[str, Any]) -> NormalizedResults:
    """Convert a raw WebScorer document into :class:`NormalizedResults`.

    Grouping names are ``"Overall"`` for the overall ranking, otherwise the
    category, then the gender, then ``"Other"``.
    """
    info = document.get("RaceInfo") or {}
    city = _text(info.get("City"))
    country = _text(info.get("Country"))
    location = None
    if city:
        location = f"{city}, {country}" if country else city

    groupings: list[NormalizedGrouping] = []
    for block in document.get("Results") or []:
        grouping = block.get("Grouping") or {}
        overall = bool(grouping.get("Overall"))
        category = _text(grouping.get("Category"))
        gender = _text(grouping.get("Gender"))
        name = "Overall" if overall else (category or gender or "Other")

        racers = [
            NormalizedRacer(
                place=str(racer.get("Place", "")),
                bib=str(racer.get("Bib", "")),
                name=str(racer.get("Name", "")),
                time=str(racer.get("Time", "")),
                category=_text(racer.get("Category")),
                age=_text(racer.get("Age")),
                gender=_text(racer.get("Gender")),
                team=_text(racer.get("TeamName")),
                difference=_text(racer.get("Difference")),
                percent_back=_text(racer.get("PercentBack")),
            )
            for racer in block.get("Racers") or []
        ]
        groupings.append(
            NormalizedGrouping(
                name=name,
                overall=overall,
                category=category,
                gender=gender,
                racers=racers,
            )
        )

    return NormalizedResults(
        race_info=NormalizedRaceInfo(
            id=str(info.get("RaceId", "")),
            name=str(info.get("Name", "")),
            date=str(info.get("Date", "")),
            sport=str(info.get("Sport", "")),
            location=location,
        ),
        results=groupings,
    )
