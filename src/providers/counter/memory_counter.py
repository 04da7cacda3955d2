"""In-process view-counter store for development and tests.

Each method body runs without an ``await`` between its read and its write,
so on a single event loop every operation is atomic, the same guarantee
Redis gives with INCR / SET NX.  Counters are lost on restart and are not
shared between workers; that is acceptable only because the reconciliation
ratchet never lets a smaller (re-seeded) count overwrite a larger one.
"""

from __future__ import annotations

import structlog

from src.interfaces.counter_store import ICounterStore

logger = structlog.get_logger(logger_name=__name__)


class MemoryCounterStore(ICounterStore):
    """Dict-backed counters and trending scores keyed by post id."""

    def __init__(self) -> None:
        self._counters: dict[str, int] = {}
        self._scores: dict[str, float] = {}

    def get_provider_name(self) -> str:
        return "memory_counter"

    async def increment(self, post_id: str) -> int:
        value = self._counters.get(post_id, 0) + 1
        self._counters[post_id] = value
        return value

    async def read(self, post_id: str) -> int | None:
        return self._counters.get(post_id)

    async def seed(self, post_id: str, baseline: int) -> bool:
        if post_id in self._counters:
            return False
        self._counters[post_id] = max(0, baseline)
        logger.debug("counter_seeded", post_id=post_id, baseline=baseline)
        return True

    async def reseed(self, post_id: str, baseline: int) -> int:
        value = max(self._counters.get(post_id, 0), baseline)
        self._counters[post_id] = value
        return value

    async def snapshot(self) -> dict[str, int]:
        return {post_id: value for post_id, value in self._counters.items() if value > 0}

    # -- Trending board --

    async def add_trending_score(self, post_id: str, delta: float) -> float:
        score = self._scores.get(post_id, 0.0) + delta
        self._scores[post_id] = score
        return score

    async def remove_trending(self, post_id: str) -> None:
        self._scores.pop(post_id, None)

    async def top_trending(self, limit: int) -> list[str]:
        # Same tie-break as ZREVRANGE: higher score, then higher member.
        ranked = sorted(self._scores.items(), key=lambda item: (item[1], item[0]), reverse=True)
        return [post_id for post_id, _ in ranked[:limit]]
