"""Utility modules for ChronoSync.

- **errors** -- Exception hierarchy rooted at ChronoSyncError; every class
  carries the HTTP status and error code the API returns for it.
- **logging** -- structlog setup with a dual-renderer pattern: coloured
  console output in development, structured JSON in production.
- **timestamps** -- ISO-8601 UTC timestamp formatting/parsing and the
  cache-age calculation used by the results cache.
"""

from src.utils.errors import (
    AuthError,
    CacheStoreError,
    ChronoSyncError,
    ConfigurationError,
    InvalidInputError,
    InvalidTransitionError,
    NotFoundError,
    ProviderError,
    ProviderTimeoutError,
)
from src.utils.logging import configure_logging, get_logger
from src.utils.timestamps import calculate_cache_age, create_timestamp, parse_timestamp

__all__ = [
    "AuthError",
    "CacheStoreError",
    "ChronoSyncError",
    "ConfigurationError",
    "InvalidInputError",
    "InvalidTransitionError",
    "NotFoundError",
    "ProviderError",
    "ProviderTimeoutError",
    "calculate_cache_age",
    "configure_logging",
    "create_timestamp",
    "get_logger",
    "parse_timestamp",
]
