"""Public interface definitions for ChronoSync's external collaborators.

Business logic talks only to these abstract base classes; concrete adapters
live in ``src/providers/`` and are chosen once in ``src/main.py``.

CONCRETE PROVIDER MAP:
    Interface          →  Concrete implementations (in src/providers/)
    ─────────────────────────────────────────────────────────────────────
    IKeyValueStore     →  MemoryKeyValueStore, SQLiteKeyValueStore,
                          RedisKeyValueStore
    IResultsProvider   →  WebScorerProvider
"""

from src.interfaces.kv_store import IKeyValueStore, get_json, set_json
from src.interfaces.results_provider import IResultsProvider

__all__ = ["IKeyValueStore", "IResultsProvider", "get_json", "set_json"]
