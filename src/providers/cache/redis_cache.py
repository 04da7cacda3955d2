"""Redis-backed cache provider shared by every app instance.

Values are stored as JSON strings with ``SETEX``.  Pattern deletes walk the
keyspace with ``SCAN MATCH`` (never ``KEYS``, which blocks the server) and
delete in batches.  A key written by another instance between a SCAN page
and the DEL can survive until its TTL; listing TTLs are kept short for
exactly that reason.
"""

from __future__ import annotations

import json
import re
from typing import Any

import redis.asyncio as aioredis
import structlog

from src.interfaces.cache_provider import ICacheProvider
from src.providers.redis_client import scan_keys, translate_redis_errors

logger = structlog.get_logger(logger_name=__name__)

_DELETE_BATCH = 500
_GLOB_SPECIALS = re.compile(r"([\\*?\[\]])")


def _literal_prefix_pattern(pattern: str) -> str:
    # Only the trailing '*' is a wildcard; ids embedded in the prefix are literal.
    return _GLOB_SPECIALS.sub(r"\\\1", pattern[:-1]) + "*"


class RedisCacheProvider(ICacheProvider):
    """JSON cache in Redis with per-key TTL and prefix invalidation.

    Parameters
    ----------
    client:
        A ``redis.asyncio`` client created with ``decode_responses=True``.
    ttl:
        Default time-to-live in seconds when ``set`` is called without one.
    """

    def __init__(self, client: aioredis.Redis, ttl: int = 300) -> None:
        self._client = client
        self._default_ttl = ttl

    def get_provider_name(self) -> str:
        return "redis_cache"

    async def get(self, key: str) -> Any | None:
        async with translate_redis_errors("GET"):
            raw = await self._client.get(key)
        if raw is None:
            logger.debug("cache_miss", key=key)
            return None
        logger.debug("cache_hit", key=key)
        return json.loads(raw)

    async def set(self, key: str, value: Any, ttl: int | None = None) -> None:
        ttl = ttl if ttl is not None else self._default_ttl
        payload = json.dumps(value)
        async with translate_redis_errors("SETEX"):
            await self._client.setex(key, ttl, payload)
        logger.debug("cache_set", key=key, ttl=ttl)

    async def delete(self, key: str) -> None:
        async with translate_redis_errors("DEL"):
            await self._client.delete(key)
        logger.debug("cache_delete", key=key)

    async def delete_matching(self, pattern: str) -> int:
        if not pattern.endswith("*"):
            async with translate_redis_errors("DEL"):
                return int(await self._client.delete(pattern))

        async with translate_redis_errors("SCAN"):
            keys = await scan_keys(self._client, _literal_prefix_pattern(pattern))

        removed = 0
        for start in range(0, len(keys), _DELETE_BATCH):
            async with translate_redis_errors("DEL"):
                removed += int(await self._client.delete(*keys[start:start + _DELETE_BATCH]))
        logger.debug("cache_delete_matching", pattern=pattern, removed=removed)
        return removed

    async def exists(self, key: str) -> bool:
        async with translate_redis_errors("EXISTS"):
            return bool(await self._client.exists(key))
