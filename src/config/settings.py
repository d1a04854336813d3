"""Application settings loaded from environment variables via pydantic-settings.

# ─── HOW SETTINGS WORK ────────────────────────────────────────────────
#
# Values are read from two sources (in priority order):
#
#   1. **Environment variables** — e.g. WEBSCORER_API_ID=abc123
#   2. **.env file** — key=value lines in the project root .env file
#
# Field `webscorer_api_id` maps to env var `WEBSCORER_API_ID`.
# Defaults apply when neither source sets a field.
#
# These are *process* settings.  The operator-adjustable cache TTLs live
# in the key-value store (see src/services/settings_service.py) so they can
# change at runtime without a redeploy.
# ──────────────────────────────────────────────────────────────────────
"""

from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """ChronoSync application settings.

    Environment variables override defaults. Loaded from .env file when present.
    """

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # === WebScorer (upstream results provider) ===
    # Empty string = "not configured" → every fetch fails with a
    # ConfigurationError and readers are served whatever is cached.
    webscorer_api_id: str = ""
    webscorer_base_url: str = "https://www.webscorer.com"
    provider_timeout_seconds: float = 10.0
    provider_max_retries: int = 3  # retries after the first attempt
    provider_retry_base_delay: float = 1.0  # seconds, doubled per attempt

    # === Key-value store ===
    # "memory" for local development and tests, "sqlite" for a durable
    # single-node deployment, "redis" for the managed cache service.
    kv_backend: Literal["memory", "sqlite", "redis"] = "memory"
    kv_url: str = "redis://localhost:6379/0"
    kv_sqlite_path: str = "data/chronosync.db"

    # === Results cache ===
    # Collapse concurrent upstream fetches for the same race onto one request.
    results_single_flight: bool = False

    # === App Config ===
    app_host: str = "0.0.0.0"
    app_port: int = 8000
    app_env: str = "development"
    log_level: str = "INFO"

    def provider_configured(self) -> bool:
        """Return True when an upstream API id is available."""
        return bool(self.webscorer_api_id)
