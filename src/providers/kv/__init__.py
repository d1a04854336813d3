"""Key-value store backends.

Three concrete implementations of IKeyValueStore (src/interfaces/kv_store.py):
    - MemoryKeyValueStore — cachetools TLRUCache, per-key TTL, process-local
    - SQLiteKeyValueStore — aiosqlite, durable single-node storage
    - RedisKeyValueStore  — redis.asyncio, the managed cache service

main.py picks one from the ``KV_BACKEND`` setting at startup and injects it
into app.state; nothing else in the codebase knows which one is running.
"""

from src.providers.kv.memory_store import MemoryKeyValueStore
from src.providers.kv.redis_store import RedisKeyValueStore
from src.providers.kv.sqlite_store import SQLiteKeyValueStore

__all__ = ["MemoryKeyValueStore", "SQLiteKeyValueStore", "RedisKeyValueStore"]
