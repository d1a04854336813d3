"""SQLite-backed durable key-value store.

Persists keys to a local SQLite database (default ``data/chronosync.db``)
using ``aiosqlite`` for async I/O.  Expiry is stored as a wall-clock epoch
in ``expires_at`` so TTLs survive restarts; expired rows are invisible to
every read and are pruned on :meth:`initialize`.

String values and set members live in separate tables.  ``keys()`` scans
both with SQLite's ``GLOB`` operator, which shares Redis' ``*``/``?``/``[]``
wildcard syntax.
"""

from __future__ import annotations

import math
import time
from pathlib import Path
from typing import Callable

import aiosqlite

from src.interfaces.kv_store import IKeyValueStore
from src.utils.errors import CacheStoreError
from src.utils.logging import get_logger

logger = get_logger(__name__)

_DEFAULT_DB_PATH = Path("data/chronosync.db")

_CREATE_TABLES_SQL = [
    """\
CREATE TABLE IF NOT EXISTS kv_entries (
    key         TEXT PRIMARY KEY,
    value       TEXT NOT NULL,
    expires_at  REAL
);
""",
    """\
CREATE TABLE IF NOT EXISTS kv_set_members (
    key     TEXT NOT NULL,
    member  TEXT NOT NULL,
    PRIMARY KEY (key, member)
);
""",
    "CREATE INDEX IF NOT EXISTS idx_kv_entries_expires ON kv_entries(expires_at);",
]

_LIVE = "(expires_at IS NULL OR expires_at > ?)"

_UPSERT_SQL = """\
INSERT INTO kv_entries (key, value, expires_at)
VALUES (?, ?, ?)
ON CONFLICT(key)
DO UPDATE SET value      = excluded.value,
              expires_at = excluded.expires_at;
"""

_SELECT_SQL = f"SELECT value FROM kv_entries WHERE key = ? AND {_LIVE};"
_SELECT_EXPIRY_SQL = f"SELECT expires_at FROM kv_entries WHERE key = ? AND {_LIVE};"
_PRUNE_SQL = "DELETE FROM kv_entries WHERE expires_at IS NOT NULL AND expires_at <= ?;"


class SQLiteKeyValueStore(IKeyValueStore):
    """Durable store backed by SQLite.

    Parameters
    ----------
    db_path:
        Path to the SQLite database file; parent directories are created.
    clock:
        Wall-clock source in epoch seconds; injectable for tests.
    """

    def __init__(
        self,
        db_path: str | Path = _DEFAULT_DB_PATH,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._db_path = Path(db_path)
        self._clock = clock

    def _connect(self) -> aiosqlite.Connection:
        return aiosqlite.connect(str(self._db_path))

    def _error(self, operation: str, key: str, exc: Exception) -> CacheStoreError:
        logger.error("kv_sqlite_error", operation=operation, key=key, error=str(exc))
        return CacheStoreError(
            f"SQLite {operation} failed for '{key}': {exc}",
            provider_name=self.get_provider_name(),
        )

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def initialize(self) -> None:
        """Create tables/indices and drop rows that expired while offline."""
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        try:
            async with self._connect() as db:
                for statement in _CREATE_TABLES_SQL:
                    await db.execute(statement)
                cursor = await db.execute(_PRUNE_SQL, (self._clock(),))
                pruned = cursor.rowcount
                await db.commit()
        except aiosqlite.Error as exc:
            raise self._error("initialize", str(self._db_path), exc) from exc
        logger.info("kv_sqlite_initialized", path=str(self._db_path), pruned=pruned)

    # ------------------------------------------------------------------
    # IKeyValueStore implementation
    # ------------------------------------------------------------------

    async def get(self, key: str) -> str | None:
        try:
            async with self._connect() as db:
                cursor = await db.execute(_SELECT_SQL, (key, self._clock()))
                row = await cursor.fetchone()
        except aiosqlite.Error as exc:
            raise self._error("get", key, exc) from exc
        return row[0] if row else None

    async def set(self, key: str, value: str, ttl: int | None = None) -> None:
        expires_at = None if ttl is None else self._clock() + ttl
        try:
            async with self._connect() as db:
                if ttl is not None and ttl <= 0:
                    await db.execute("DELETE FROM kv_entries WHERE key = ?;", (key,))
                else:
                    await db.execute(_UPSERT_SQL, (key, value, expires_at))
                await db.commit()
        except aiosqlite.Error as exc:
            raise self._error("set", key, exc) from exc

    async def delete(self, *keys: str) -> None:
        if not keys:
            return
        params = [(key,) for key in keys]
        try:
            async with self._connect() as db:
                await db.executemany("DELETE FROM kv_entries WHERE key = ?;", params)
                await db.executemany("DELETE FROM kv_set_members WHERE key = ?;", params)
                await db.commit()
        except aiosqlite.Error as exc:
            raise self._error("delete", ", ".join(keys), exc) from exc

    async def exists(self, key: str) -> bool:
        try:
            async with self._connect() as db:
                cursor = await db.execute(
                    f"SELECT 1 FROM kv_entries WHERE key = ? AND {_LIVE} "
                    "UNION ALL SELECT 1 FROM kv_set_members WHERE key = ? LIMIT 1;",
                    (key, self._clock(), key),
                )
                row = await cursor.fetchone()
        except aiosqlite.Error as exc:
            raise self._error("exists", key, exc) from exc
        return row is not None

    async def sadd(self, key: str, member: str) -> None:
        try:
            async with self._connect() as db:
                await db.execute(
                    "INSERT OR IGNORE INTO kv_set_members (key, member) VALUES (?, ?);",
                    (key, member),
                )
                await db.commit()
        except aiosqlite.Error as exc:
            raise self._error("sadd", key, exc) from exc

    async def smembers(self, key: str) -> list[str]:
        try:
            async with self._connect() as db:
                cursor = await db.execute(
                    "SELECT member FROM kv_set_members WHERE key = ? ORDER BY member;",
                    (key,),
                )
                rows = await cursor.fetchall()
        except aiosqlite.Error as exc:
            raise self._error("smembers", key, exc) from exc
        return [row[0] for row in rows]

    async def srem(self, key: str, member: str) -> None:
        try:
            async with self._connect() as db:
                await db.execute(
                    "DELETE FROM kv_set_members WHERE key = ? AND member = ?;",
                    (key, member),
                )
                await db.commit()
        except aiosqlite.Error as exc:
            raise self._error("srem", key, exc) from exc

    async def ttl(self, key: str) -> int:
        now = self._clock()
        try:
            async with self._connect() as db:
                cursor = await db.execute(_SELECT_EXPIRY_SQL, (key, now))
                row = await cursor.fetchone()
                if row is None:
                    cursor = await db.execute(
                        "SELECT 1 FROM kv_set_members WHERE key = ? LIMIT 1;", (key,)
                    )
                    return -1 if await cursor.fetchone() else -2
        except aiosqlite.Error as exc:
            raise self._error("ttl", key, exc) from exc
        if row[0] is None:
            return -1
        return max(0, math.ceil(row[0] - now))

    async def expire(self, key: str, seconds: int) -> None:
        now = self._clock()
        try:
            async with self._connect() as db:
                if seconds <= 0:
                    await db.execute("DELETE FROM kv_entries WHERE key = ?;", (key,))
                else:
                    await db.execute(
                        f"UPDATE kv_entries SET expires_at = ? WHERE key = ? AND {_LIVE};",
                        (now + seconds, key, now),
                    )
                await db.commit()
        except aiosqlite.Error as exc:
            raise self._error("expire", key, exc) from exc

    async def keys(self, pattern: str) -> list[str]:
        try:
            async with self._connect() as db:
                cursor = await db.execute(
                    f"SELECT key FROM kv_entries WHERE key GLOB ? AND {_LIVE} "
                    "UNION SELECT DISTINCT key FROM kv_set_members WHERE key GLOB ? "
                    "ORDER BY key;",
                    (pattern, self._clock(), pattern),
                )
                rows = await cursor.fetchall()
        except aiosqlite.Error as exc:
            raise self._error("keys", pattern, exc) from exc
        return [row[0] for row in rows]

    def get_provider_name(self) -> str:
        return "sqlite"
