"""Request-path access to the trending board.

Trending is a ranking hint kept in the volatile store, so it fails open
like the view counters: a score change that cannot reach the store is
logged and dropped, and an unreadable board reads as empty.  Likes move a
post's score by one in either direction; soft deletes remove it.
"""

from __future__ import annotations

import asyncio

import structlog

from src.interfaces.counter_store import ICounterStore
from src.utils.errors import TransientStoreError

logger = structlog.get_logger(logger_name=__name__)

_BOARD_FAILURES = (TransientStoreError, asyncio.TimeoutError)


class TrendingBoard:
    """Timeout-bounded, fail-open wrapper around the trending operations."""

    def __init__(self, store: ICounterStore, timeout_seconds: float = 0.25) -> None:
        self._store = store
        self._timeout = timeout_seconds

    async def record_like(self, post_id: str, liked: bool) -> None:
        """Move *post_id* up one for a like, down one for an unlike."""
        delta = 1.0 if liked else -1.0
        try:
            await asyncio.wait_for(self._store.add_trending_score(post_id, delta), self._timeout)
        except _BOARD_FAILURES as exc:
            logger.warning(
                "trending_score_dropped",
                post_id=post_id,
                delta=delta,
                error=str(exc) or type(exc).__name__,
            )

    async def remove(self, post_id: str) -> None:
        try:
            await asyncio.wait_for(self._store.remove_trending(post_id), self._timeout)
        except _BOARD_FAILURES as exc:
            # The stale member is filtered out at hydration time.
            logger.error(
                "trending_remove_failed",
                post_id=post_id,
                error=str(exc) or type(exc).__name__,
            )

    async def top(self, limit: int) -> list[str]:
        """Return the top *limit* post ids, or ``[]`` if the board is unreadable."""
        try:
            return await asyncio.wait_for(self._store.top_trending(limit), self._timeout)
        except _BOARD_FAILURES as exc:
            logger.warning("trending_read_failed", error=str(exc) or type(exc).__name__)
            return []
