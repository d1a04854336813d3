"""Round-trip self-test for the configured key-value store.

Runs each check on throwaway ``test:connection:*`` keys, records the first
failure, and always attempts to delete the keys afterwards.  Never raises:
a broken store shows up as ``connection_status="error"`` in the report.
"""

from __future__ import annotations

import time
from datetime import datetime
from typing import Callable

from src.interfaces.kv_store import IKeyValueStore, get_json, set_json
from src.models.diagnostics import StoreChecks, StoreDiagnostics
from src.utils.errors import CacheStoreError
from src.utils.logging import get_logger
from src.utils.timestamps import create_timestamp, utc_now

logger = get_logger(__name__)

_TEST_VALUE = "test-value"
_TTL_SECONDS = 60


async def run_store_diagnostics(
    store: IKeyValueStore,
    clock: Callable[[], datetime] = utc_now,
) -> StoreDiagnostics:
    base_key = f"test:connection:{int(time.time() * 1000)}"
    json_key, set_key, ttl_key = f"{base_key}:json", f"{base_key}:set", f"{base_key}:ttl"
    checks: dict[str, bool] = {}
    errors: list[str] = []

    try:
        await store.set(base_key, _TEST_VALUE)
        checks["basic_set"] = True
        checks["basic_get"] = await store.get(base_key) == _TEST_VALUE
        checks["key_exists"] = await store.exists(base_key)
    except CacheStoreError as exc:
        errors.append(f"Basic operations failed: {exc}")

    try:
        await set_json(store, json_key, {"test": True, "timestamp": base_key})
        checks["json_set"] = True
        value = await get_json(store, json_key)
        checks["json_get"] = isinstance(value, dict) and value.get("test") is True
    except CacheStoreError as exc:
        errors.append(f"JSON operations failed: {exc}")

    try:
        await store.sadd(set_key, "member1")
        await store.sadd(set_key, "member2")
        checks["set_operations"] = len(await store.smembers(set_key)) == 2
    except CacheStoreError as exc:
        errors.append(f"Set operations failed: {exc}")

    try:
        await store.set(ttl_key, _TEST_VALUE)
        await store.expire(ttl_key, _TTL_SECONDS)
        remaining = await store.ttl(ttl_key)
        checks["ttl_operations"] = 0 < remaining <= _TTL_SECONDS
    except CacheStoreError as exc:
        errors.append(f"TTL operations failed: {exc}")

    try:
        await store.delete(base_key, json_key, set_key, ttl_key)
    except CacheStoreError as exc:
        logger.warning("store_diagnostics_cleanup_failed", error=str(exc))

    result = StoreChecks(**checks)
    ok = result.basic_set and result.basic_get and result.json_set and result.json_get
    report = StoreDiagnostics(
        backend=store.get_provider_name(),
        connection_status="success" if ok else "error",
        checks=result,
        error_details=errors[0] if errors else None,
        timestamp=create_timestamp(clock()),
    )
    logger.info(
        "store_diagnostics_completed",
        backend=report.backend,
        status=report.connection_status,
        **checks,
    )
    return report
