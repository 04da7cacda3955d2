"""Shared redis.asyncio client construction and error translation.

Both Redis-backed providers (counters and cache) talk to the same server
through one connection pool.  Socket timeouts are the volatile-store
budget from settings (hundreds of milliseconds) so a stalled Redis turns
into a fast ``TransientStoreError`` instead of a hung request.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator

import redis.asyncio as aioredis
from redis.exceptions import RedisError

from src.utils.errors import TransientStoreError

PROVIDER_NAME = "redis"


def create_redis_client(redis_url: str, timeout_seconds: float) -> aioredis.Redis:
    """Build a pooled async client with short socket timeouts."""
    return aioredis.from_url(
        redis_url,
        decode_responses=True,
        socket_timeout=timeout_seconds,
        socket_connect_timeout=timeout_seconds,
        health_check_interval=30,
    )


@asynccontextmanager
async def translate_redis_errors(operation: str) -> AsyncIterator[None]:
    """Re-raise any ``RedisError`` inside the block as ``TransientStoreError``."""
    try:
        yield
    except RedisError as exc:
        raise TransientStoreError(
            f"Redis {operation} failed: {exc}", provider_name=PROVIDER_NAME
        ) from exc


async def scan_keys(client: aioredis.Redis, pattern: str, count: int = 500) -> list[str]:
    """Collect every key matching *pattern* with cursor-based SCAN (never KEYS)."""
    keys: list[str] = []
    cursor = 0
    while True:
        cursor, batch = await client.scan(cursor=cursor, match=pattern, count=count)
        keys.extend(batch)
        if int(cursor) == 0:
            return keys
