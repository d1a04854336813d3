"""YAML configuration loader with environment variable overrides.

# ─── CONFIGURATION HIERARCHY ──────────────────────────────────────────
#
# Configuration is loaded in layers (later layers override earlier):
#
#   1. config/config.yaml  — Static defaults checked into the repo
#   2. .env file           — Local developer overrides (not committed)
#   3. Environment vars    — Set at deploy time
#
# load_config() reads the YAML file first, then deep-merges the values
# resolved by Settings on top, e.g.
#   base      = {"provider": {"user_agent": "ChronoSync/1.0"}}
#   overrides = {"provider": {"timeout_seconds": 10.0}}
#   result    = {"provider": {"user_agent": "ChronoSync/1.0", "timeout_seconds": 10.0}}
# ──────────────────────────────────────────────────────────────────────
"""

from pathlib import Path

import yaml

from src.config.settings import Settings


def load_config(path: str = "config/config.yaml", settings: Settings | None = None) -> dict:
    """Load YAML config and merge with environment-based Settings.

    Args:
        path: Path to the YAML configuration file.
        settings: Resolved settings; a fresh ``Settings()`` when omitted.

    Returns:
        Fully resolved configuration dictionary.
    """
    config_path = Path(path)
    if config_path.exists():
        with open(config_path) as f:
            yaml_config = yaml.safe_load(f) or {}
    else:
        yaml_config = {}

    settings = settings or Settings()
    env_overrides = {
        "app": {
            "host": settings.app_host,
            "port": settings.app_port,
            "env": settings.app_env,
        },
        "provider": {
            "base_url": settings.webscorer_base_url,
            "configured": settings.provider_configured(),
            "timeout_seconds": settings.provider_timeout_seconds,
            "max_retries": settings.provider_max_retries,
            "retry_base_delay": settings.provider_retry_base_delay,
        },
        "kv": {
            "backend": settings.kv_backend,
            "sqlite_path": settings.kv_sqlite_path,
        },
        "results": {
            "single_flight": settings.results_single_flight,
        },
        "logging": {
            "level": settings.log_level,
        },
    }

    _deep_merge(yaml_config, env_overrides)
    return yaml_config


def _deep_merge(base: dict, overrides: dict) -> None:
    """Recursively merge overrides into base dict, mutating base in place."""
    for key, value in overrides.items():
        if key in base and isinstance(base[key], dict) and isinstance(value, dict):
            _deep_merge(base[key], value)
        else:
            base[key] = value
