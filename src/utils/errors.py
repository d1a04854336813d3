"""Custom exception hierarchy for ChronoSync.

All application exceptions inherit from :class:`ChronoSyncError`, which
carries an optional ``provider_name`` so error handlers can identify which
external collaborator (e.g. "webscorer", "redis", "sqlite") caused the
failure.

The hierarchy is organized by the layer that raises it:

    ChronoSyncError  (base -- catch-all for any ChronoSync error)
    +-- ConfigurationError     (race without provider id, missing API id)
    +-- InvalidInputError      (request payload fails validation)
    +-- NotFoundError          (unknown race/event, upstream 404)
    +-- InvalidTransitionError (race lifecycle change not allowed)
    +-- AuthError              (upstream rejected our credentials)
    +-- ProviderError          (upstream 5xx / 4xx / malformed body)
    |   +-- ProviderTimeoutError  (upstream did not answer in time)
    +-- CacheStoreError        (key-value store read/write failure)

Each class carries the HTTP ``status_code`` and stable ``code`` used by
:class:`~src.api.middleware.ErrorHandlingMiddleware`, plus a ``retryable``
flag read by the results provider's retry loop.
"""


class ChronoSyncError(Exception):
    """Base exception for all ChronoSync errors.

    Every subclass carries a human-readable ``message`` and an optional
    ``provider_name`` identifying which collaborator triggered the error.
    The ``__str__`` method prefixes the provider name in brackets for
    structured log output, e.g. ``[webscorer] Request timed out``.
    """

    status_code: int = 500
    code: str = "INTERNAL_ERROR"
    retryable: bool = False

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        provider_name: str | None = None,
    ) -> None:
        self._message = message
        self._provider_name = provider_name
        super().__init__(self._message)

    @property
    def message(self) -> str:
        return self._message

    @property
    def provider_name(self) -> str | None:
        return self._provider_name

    def __str__(self) -> str:
        if self._provider_name:
            return f"[{self._provider_name}] {self._message}"
        return self._message


# ---------------------------------------------------------------------------
# Request / configuration errors
# ---------------------------------------------------------------------------

class ConfigurationError(ChronoSyncError):
    """Raised when a race or the service itself is not configured to fetch results."""

    status_code = 400
    code = "CONFIGURATION_ERROR"

    def __init__(
        self,
        message: str = "Invalid or missing configuration",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class InvalidInputError(ChronoSyncError):
    """Raised when administrative input fails validation (TTL bounds, dates, ids)."""

    status_code = 400
    code = "VALIDATION_ERROR"

    def __init__(
        self,
        message: str = "Invalid input",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class NotFoundError(ChronoSyncError):
    """Raised when a race/event is unknown, or the upstream reports no such race."""

    status_code = 404
    code = "NOT_FOUND"

    def __init__(
        self,
        message: str = "Resource not found",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class InvalidTransitionError(ChronoSyncError):
    """Raised when a race status change is not in the allowed transition table."""

    status_code = 409
    code = "INVALID_TRANSITION"

    def __init__(
        self,
        current_status: str,
        requested_status: str,
        provider_name: str | None = None,
    ) -> None:
        self._current_status = current_status
        self._requested_status = requested_status
        super().__init__(
            message=(
                f"Cannot change race status from '{current_status}' "
                f"to '{requested_status}'"
            ),
            provider_name=provider_name,
        )

    @property
    def current_status(self) -> str:
        return self._current_status

    @property
    def requested_status(self) -> str:
        return self._requested_status


# ---------------------------------------------------------------------------
# Upstream results provider errors
# ---------------------------------------------------------------------------

class AuthError(ChronoSyncError):
    """Raised when the upstream provider rejects the configured credentials.

    Operator-actionable (fix the API id), never retried.
    """

    status_code = 502
    code = "EXTERNAL_AUTH_ERROR"

    def __init__(
        self,
        message: str = "Upstream provider rejected the credentials",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class ProviderError(ChronoSyncError):
    """Raised when the upstream provider fails or returns an unusable body.

    ``retryable`` is decided per instance: server errors and transport
    failures are retried by the client, 4xx and malformed bodies are not.
    """

    status_code = 502
    code = "EXTERNAL_API_ERROR"

    def __init__(
        self,
        message: str = "Upstream provider request failed",
        provider_name: str | None = None,
        *,
        upstream_status: int | None = None,
        retryable: bool = False,
    ) -> None:
        self._upstream_status = upstream_status
        self.retryable = retryable
        super().__init__(message=message, provider_name=provider_name)

    @property
    def upstream_status(self) -> int | None:
        return self._upstream_status


class ProviderTimeoutError(ProviderError):
    """Raised when a single upstream attempt exceeds its timeout."""

    status_code = 504
    code = "EXTERNAL_API_TIMEOUT"

    def __init__(
        self,
        message: str = "Upstream provider request timed out",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name, retryable=True)


# ---------------------------------------------------------------------------
# Storage errors
# ---------------------------------------------------------------------------

class CacheStoreError(ChronoSyncError):
    """Raised when the key-value store cannot complete a read or write.

    On the results read path this degrades to a cache miss; after a
    successful upstream fetch the write failure is only logged.
    """

    status_code = 500
    code = "CACHE_ERROR"

    def __init__(
        self,
        message: str = "Key-value store operation failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)
