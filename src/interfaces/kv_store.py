"""Abstract base class for key-value store providers.

Defines the storage contract used by the race registry, the settings
service and the results cache.  Implementations may use an in-process
cache, SQLite, Redis, or any other backend; the concrete backend is chosen
once at startup in ``src/main.py`` and injected everywhere else, so business
logic never branches on which store is in use.

Values are strings.  Structured data goes through :func:`get_json` /
:func:`set_json` below.
"""

from __future__ import annotations

import json
from abc import ABC, abstractmethod
from typing import Any

from src.utils.logging import get_logger

_logger = get_logger(__name__)


class IKeyValueStore(ABC):
    """Contract for key-value stores with optional per-key expiry.

    All operations are async to allow for network-backed stores without
    blocking the event loop.  Backend failures surface as
    :class:`~src.utils.errors.CacheStoreError`.
    """

    @abstractmethod
    async def get(self, key: str) -> str | None:
        """Return the string stored under *key*, or ``None`` if missing or expired."""

    @abstractmethod
    async def set(self, key: str, value: str, ttl: int | None = None) -> None:
        """Store *value* under *key*.

        Parameters
        ----------
        key:
            The key to write.
        value:
            The string value.
        ttl:
            Time-to-live in seconds.  ``None`` means the entry does not
            expire automatically.
        """

    @abstractmethod
    async def delete(self, *keys: str) -> None:
        """Remove every key in *keys*.  Absent keys (or no keys) are a no-op."""

    @abstractmethod
    async def exists(self, key: str) -> bool:
        """Return ``True`` if *key* is present and not expired."""

    @abstractmethod
    async def sadd(self, key: str, member: str) -> None:
        """Add *member* to the set stored under *key*, creating it if needed."""

    @abstractmethod
    async def smembers(self, key: str) -> list[str]:
        """Return all members of the set under *key* (empty when absent)."""

    @abstractmethod
    async def srem(self, key: str, member: str) -> None:
        """Remove *member* from the set under *key* (no-op if absent)."""

    @abstractmethod
    async def ttl(self, key: str) -> int:
        """Return the remaining lifetime of *key* in seconds.

        Returns
        -------
        int
            ``-2`` when the key does not exist, ``-1`` when it has no
            expiry, otherwise the remaining whole seconds.
        """

    @abstractmethod
    async def expire(self, key: str, seconds: int) -> None:
        """Apply a *seconds* expiry to an existing key (no-op if absent)."""

    @abstractmethod
    async def keys(self, pattern: str) -> list[str]:
        """Return live keys matching the glob *pattern* (``*``, ``?``, ``[...]``)."""

    async def initialize(self) -> None:
        """Prepare the backend (create tables, open connections).  Called at startup."""

    async def close(self) -> None:
        """Release backend resources.  Called at shutdown."""

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier for this backend."""


async def get_json(store: IKeyValueStore, key: str) -> Any | None:
    """Read and decode a JSON value.

    Returns ``None`` for a missing key *and* for a value that is not valid
    JSON; the latter is logged.  Store errors propagate.
    """
    raw = await store.get(key)
    if raw is None:
        return None
    try:
        return json.loads(raw)
    except (TypeError, ValueError) as exc:
        _logger.warning("kv_json_decode_failed", key=key, error=str(exc))
        return None


async def set_json(store: IKeyValueStore, key: str, value: Any, ttl: int | None = None) -> None:
    """Encode *value* as JSON and store it under *key*."""
    await store.set(key, json.dumps(value, ensure_ascii=False), ttl=ttl)
