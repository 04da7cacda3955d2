"""In-memory cache provider using cachetools.TLRUCache.

Simple, fast cache suitable for development, tests and single-worker
deployments.  Multi-worker deployments must use RedisCacheProvider: an
in-process cache cannot see invalidations issued by other instances.
"""

from __future__ import annotations

import time
from typing import Any, Callable, NamedTuple

import structlog
from cachetools import TLRUCache

from src.interfaces.cache_provider import ICacheProvider

logger = structlog.get_logger(logger_name=__name__)


class _Entry(NamedTuple):
    value: Any
    ttl: float


def _time_to_use(_key: str, entry: _Entry, now: float) -> float:
    return now + entry.ttl


class MemoryCacheProvider(ICacheProvider):
    """In-memory cache with per-entry TTL backed by ``cachetools.TLRUCache``.

    Parameters
    ----------
    max_size:
        Maximum number of entries before the least-recently-used entry
        is evicted.
    ttl:
        Default time-to-live in seconds when ``set`` is called without one.
    timer:
        Clock used for expiry; tests pass a fake to step past TTLs.
    """

    def __init__(
        self,
        max_size: int = 10_000,
        ttl: int = 300,
        timer: Callable[[], float] = time.monotonic,
    ) -> None:
        self._default_ttl = ttl
        self._cache: TLRUCache[str, _Entry] = TLRUCache(
            maxsize=max_size, ttu=_time_to_use, timer=timer
        )

    def get_provider_name(self) -> str:
        return "memory_cache"

    # ------------------------------------------------------------------
    # ICacheProvider implementation
    # ------------------------------------------------------------------

    async def get(self, key: str) -> Any | None:
        """Retrieve the cached value for *key*, or ``None`` if missing/expired."""
        entry = self._cache.get(key)
        if entry is None:
            logger.debug("cache_miss", key=key)
            return None
        logger.debug("cache_hit", key=key)
        return entry.value

    async def set(self, key: str, value: Any, ttl: int | None = None) -> None:
        """Store *value* under *key* for *ttl* seconds (default TTL if None)."""
        self._cache[key] = _Entry(value, ttl if ttl is not None else self._default_ttl)
        logger.debug("cache_set", key=key, ttl=ttl)

    async def delete(self, key: str) -> None:
        """Remove *key* from the cache (no-op if absent)."""
        self._cache.pop(key, None)
        logger.debug("cache_delete", key=key)

    async def delete_matching(self, pattern: str) -> int:
        """Remove *pattern* exactly, or every key with its prefix if it ends in ``*``."""
        if not pattern.endswith("*"):
            removed = 1 if self._cache.pop(pattern, None) is not None else 0
        else:
            prefix = pattern[:-1]
            removed = 0
            for key in [k for k in list(self._cache.keys()) if k.startswith(prefix)]:
                if self._cache.pop(key, None) is not None:
                    removed += 1
        logger.debug("cache_delete_matching", pattern=pattern, removed=removed)
        return removed

    async def exists(self, key: str) -> bool:
        """Return ``True`` if *key* is present and not expired."""
        return key in self._cache
