"""Fail-open wrapper around an ICacheProvider.

# ─── ARCHITECTURE ROLE ───────────────────────────────────────────────
#
# Layer: Services.
#
# The cache is an optimisation, never a dependency: a cache read that
# times out or errors is reported to the caller as a miss (forcing a
# durable read), and a failed write or delete is logged and dropped.
# Every call is bounded by the volatile-store timeout so a slow Redis
# costs a request at most a few hundred milliseconds.
#
# A failed invalidation is the one case with a visible cost: a stale
# entry may be served until its TTL runs out, so it is logged at error
# level rather than warning.
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

import asyncio
from typing import Any

import structlog

from src.interfaces.cache_provider import ICacheProvider
from src.utils.errors import TransientStoreError

logger = structlog.get_logger(logger_name=__name__)

# Corrupt JSON payloads surface as ValueError and are treated as misses.
_CACHE_FAILURES = (TransientStoreError, asyncio.TimeoutError, ValueError)


class CacheAside:
    """Cache operations that never raise to the caller.

    Parameters
    ----------
    provider:
        The backing cache (memory or Redis).
    timeout_seconds:
        Upper bound on every individual cache call.
    """

    def __init__(self, provider: ICacheProvider, timeout_seconds: float = 0.25) -> None:
        self._provider = provider
        self._timeout = timeout_seconds

    async def get(self, key: str) -> Any | None:
        """Return the cached value, or ``None`` on miss *or* failure."""
        try:
            return await asyncio.wait_for(self._provider.get(key), self._timeout)
        except _CACHE_FAILURES as exc:
            logger.warning("cache_get_failed", key=key, error=str(exc) or type(exc).__name__)
            return None

    async def set(self, key: str, value: Any, ttl: int) -> None:
        try:
            await asyncio.wait_for(self._provider.set(key, value, ttl), self._timeout)
        except _CACHE_FAILURES as exc:
            logger.warning("cache_set_failed", key=key, error=str(exc) or type(exc).__name__)

    async def delete(self, key: str) -> None:
        try:
            await asyncio.wait_for(self._provider.delete(key), self._timeout)
        except _CACHE_FAILURES as exc:
            logger.error("cache_invalidation_failed", key=key, error=str(exc) or type(exc).__name__)

    async def delete_matching(self, pattern: str) -> int:
        """Drop every key under *pattern*; returns 0 if the delete failed."""
        try:
            return await asyncio.wait_for(
                self._provider.delete_matching(pattern), self._timeout
            )
        except _CACHE_FAILURES as exc:
            logger.error(
                "cache_invalidation_failed",
                pattern=pattern,
                error=str(exc) or type(exc).__name__,
            )
            return 0
