"""Request-path access to the volatile view counters.

Views are a best-effort signal, not safety-critical data:

  - ``record_view`` seeds the counter from the persisted baseline if it is
    absent (SET NX), then increments it.  If the counter store is slow or
    down the increment is logged and dropped, never retried
    synchronously, and the caller gets the persisted count back.
  - ``live_count`` reads without incrementing and fails open the same way.

Reported values are never below the persisted baseline: a counter that was
lost and re-seeded from an older cached baseline cannot make a post look
less viewed than the durable store says it is.
"""

from __future__ import annotations

import asyncio

import structlog

from src.interfaces.counter_store import ICounterStore
from src.utils.errors import TransientStoreError

logger = structlog.get_logger(logger_name=__name__)

_COUNTER_FAILURES = (TransientStoreError, asyncio.TimeoutError)


class ViewCounter:
    """Timeout-bounded, fail-open wrapper around an ICounterStore."""

    def __init__(self, store: ICounterStore, timeout_seconds: float = 0.25) -> None:
        self._store = store
        self._timeout = timeout_seconds

    async def record_view(self, post_id: str, baseline: int) -> int:
        """Count one view; return the live total (or *baseline* on failure)."""
        try:
            await asyncio.wait_for(self._store.seed(post_id, baseline), self._timeout)
            value = await asyncio.wait_for(self._store.increment(post_id), self._timeout)
        except _COUNTER_FAILURES as exc:
            logger.warning(
                "view_increment_dropped",
                post_id=post_id,
                error=str(exc) or type(exc).__name__,
            )
            return baseline
        return max(value, baseline)

    async def live_count(self, post_id: str, baseline: int) -> int:
        """Return the live total without counting a view."""
        try:
            value = await asyncio.wait_for(self._store.read(post_id), self._timeout)
            if value is None:
                await asyncio.wait_for(self._store.seed(post_id, baseline), self._timeout)
                value = await asyncio.wait_for(self._store.read(post_id), self._timeout)
        except _COUNTER_FAILURES as exc:
            logger.warning(
                "view_count_read_failed",
                post_id=post_id,
                error=str(exc) or type(exc).__name__,
            )
            return baseline
        return max(value or 0, baseline)
