"""Redis-backed view-counter store shared by every app instance.

# ─── ARCHITECTURE ROLE ───────────────────────────────────────────────
#
# Layer: Providers (concrete adapter implementing ICounterStore).
#
# Key layout: ``post:{post_id}:views`` → integer string.
#
# Every operation maps to one atomic Redis primitive:
#   increment → INCR
#   seed      → SET NX            (set-if-absent, never GET-then-SET)
#   reseed    → EVAL raise-to-max (server-side, so no lost increments)
#   snapshot  → SCAN + MGET       (read-only; counters are never reset)
#
# Trending board: one sorted set ``trending:posts`` (member = post id).
#   add_trending_score → ZINCRBY
#   remove_trending    → ZREM
#   top_trending       → ZREVRANGE 0 limit-1
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

import re

import redis.asyncio as aioredis
import structlog

from src.interfaces.counter_store import ICounterStore
from src.providers.redis_client import scan_keys, translate_redis_errors

logger = structlog.get_logger(logger_name=__name__)

_KEY_TEMPLATE = "post:{post_id}:views"
_KEY_PATTERN = "post:*:views"
_KEY_RE = re.compile(r"^post:([^:]+):views$")
_MGET_BATCH = 500
TRENDING_KEY = "trending:posts"

# Raise KEYS[1] to at least ARGV[1]; returns the resulting value.
_RESEED_LUA = """
local current = tonumber(redis.call('GET', KEYS[1]) or '0')
local baseline = tonumber(ARGV[1])
if current < baseline then
  redis.call('SET', KEYS[1], baseline)
  return baseline
end
return current
"""


def counter_key(post_id: str) -> str:
    return _KEY_TEMPLATE.format(post_id=post_id)


class RedisCounterStore(ICounterStore):
    """Atomic per-post counters in a shared Redis."""

    def __init__(self, client: aioredis.Redis) -> None:
        self._client = client

    def get_provider_name(self) -> str:
        return "redis_counter"

    async def increment(self, post_id: str) -> int:
        async with translate_redis_errors("INCR"):
            return int(await self._client.incr(counter_key(post_id)))

    async def read(self, post_id: str) -> int | None:
        async with translate_redis_errors("GET"):
            raw = await self._client.get(counter_key(post_id))
        return int(raw) if raw is not None else None

    async def seed(self, post_id: str, baseline: int) -> bool:
        async with translate_redis_errors("SET NX"):
            created = await self._client.set(counter_key(post_id), max(0, baseline), nx=True)
        return bool(created)

    async def reseed(self, post_id: str, baseline: int) -> int:
        async with translate_redis_errors("EVAL reseed"):
            value = await self._client.eval(_RESEED_LUA, 1, counter_key(post_id), baseline)
        return int(value)

    async def snapshot(self) -> dict[str, int]:
        """Read every counter with SCAN + batched MGET."""
        async with translate_redis_errors("SCAN"):
            keys = await scan_keys(self._client, _KEY_PATTERN)

        counters: dict[str, int] = {}
        for start in range(0, len(keys), _MGET_BATCH):
            batch = keys[start:start + _MGET_BATCH]
            async with translate_redis_errors("MGET"):
                values = await self._client.mget(batch)

            for key, raw in zip(batch, values):
                match = _KEY_RE.match(key)
                if match is None:
                    logger.warning("counter_key_invalid", key=key)
                    continue
                # Key may have been evicted between SCAN and MGET.
                if raw is None:
                    continue
                try:
                    value = int(raw)
                except (TypeError, ValueError):
                    logger.warning("counter_value_invalid", key=key, value=raw)
                    continue
                if value > 0:
                    counters[match.group(1)] = value

        logger.debug("counter_snapshot", keys=len(keys), counters=len(counters))
        return counters

    # ------------------------------------------------------------------
    # Trending board
    # ------------------------------------------------------------------

    async def add_trending_score(self, post_id: str, delta: float) -> float:
        async with translate_redis_errors("ZINCRBY"):
            return float(await self._client.zincrby(TRENDING_KEY, delta, post_id))

    async def remove_trending(self, post_id: str) -> None:
        async with translate_redis_errors("ZREM"):
            await self._client.zrem(TRENDING_KEY, post_id)

    async def top_trending(self, limit: int) -> list[str]:
        if limit < 1:
            return []
        async with translate_redis_errors("ZREVRANGE"):
            members = await self._client.zrevrange(TRENDING_KEY, 0, limit - 1)
        return list(members)
