"""YAML configuration loader with environment variable overrides.

# ─── CONFIGURATION HIERARCHY ──────────────────────────────────────────
#
#   1. config/config.yaml  : Static defaults checked into the repo
#   2. .env file           : Local developer overrides (not committed)
#   3. Environment vars    : Set at deploy time
#
# load_config() reads the YAML file first, then deep-merges the
# environment-derived values on top:
#   base = {"app": {"cors_origins": ["https://inkwell.example"]}}
#   overrides = {"app": {"env": "production"}}
#   result = {"app": {"cors_origins": [...], "env": "production"}}
# ──────────────────────────────────────────────────────────────────────
"""

from pathlib import Path

import yaml

from src.config.settings import Settings


def load_config(path: str = "config/config.yaml", settings: Settings | None = None) -> dict:
    """Load YAML config and merge with environment-based Settings.

    Args:
        path: Path to the YAML configuration file.
        settings: Settings to overlay; a fresh ``Settings()`` when omitted.

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
        "volatile_store": {
            "backend": "redis" if settings.uses_shared_volatile_store() else "memory",
            "timeout_ms": settings.volatile_timeout_ms,
        },
        "cache": {
            "post_ttl": settings.post_cache_ttl,
            "list_ttl": settings.list_cache_ttl,
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
