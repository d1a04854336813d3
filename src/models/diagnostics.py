"""Key-value store self-test report returned by the admin diagnostics endpoint."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict


class StoreChecks(BaseModel):
    model_config = ConfigDict(frozen=True)

    basic_set: bool = False
    basic_get: bool = False
    key_exists: bool = False
    json_set: bool = False
    json_get: bool = False
    set_operations: bool = False
    ttl_operations: bool = False


class StoreDiagnostics(BaseModel):
    """Outcome of one round of store checks.

    ``connection_status`` is ``"success"`` when the basic and JSON
    read/write checks pass; set and TTL checks are informational.
    """

    model_config = ConfigDict(frozen=True)

    backend: str
    connection_status: Literal["success", "error"]
    checks: StoreChecks
    error_details: str | None = None
    timestamp: str
