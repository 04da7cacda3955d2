"""Application settings loaded from environment variables via pydantic-settings.

# ─── HOW SETTINGS WORK ────────────────────────────────────────────────
#
# Values are read from TWO sources (in priority order):
#
#   1. **Environment variables** : e.g., REDIS_URL=redis://cache:6379/0
#   2. **.env file** : key=value lines in the project root .env file
#
# Field name `redis_url` maps to env var `REDIS_URL` automatically.
#
# REDIS_URL left empty selects the in-process memory providers for the
# counter and the cache.  That is only correct for a single worker: the
# whole point of the volatile store is that every instance sees the same
# counters and the same invalidations.
# ──────────────────────────────────────────────────────────────────────
"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Inkwell application settings.

    Environment variables override defaults. Loaded from .env file when present.
    """

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    # === Durable store ===
    database_path: str = "data/posts.db"
    # SQLite busy timeout; each store call is capped at twice this.
    # Exceeding either => TransientStoreError (503).
    database_timeout_seconds: float = 5.0

    # === Volatile store (counters + cache) ===
    redis_url: str = ""
    # Request-path budget for counter and cache calls before failing open.
    volatile_timeout_ms: int = 250
    cache_max_size: int = 10_000

    # === Cache TTLs (seconds) ===
    post_cache_ttl: int = 900
    list_cache_ttl: int = 60

    # === Posts ===
    slug_max_length: int = 100
    slug_max_attempts: int = 100
    excerpt_length: int = 200

    # === Reconciliation ===
    reconcile_concurrency: int = 10
    reconcile_interval_seconds: int = 300

    # === App Config ===
    app_host: str = "0.0.0.0"
    app_port: int = 8000
    app_env: str = "development"
    log_level: str = "INFO"

    @property
    def volatile_timeout_seconds(self) -> float:
        return self.volatile_timeout_ms / 1000.0

    def uses_shared_volatile_store(self) -> bool:
        """Return True when counters and cache live in Redis."""
        return bool(self.redis_url)
