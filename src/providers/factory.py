"""Provider construction shared by the API server and the CLI jobs.

The web process (``src.main._build_all``) and the reconciliation CLI
(``src.cli.sync_views``) must agree on where counters and cache entries
live, so both build their stores here from the same Settings.

``REDIS_URL`` set   -> RedisCounterStore + RedisCacheProvider on one pool
``REDIS_URL`` empty -> MemoryCounterStore + MemoryCacheProvider (single API
                       worker only; the reconciliation CLI refuses to run)
"""

from __future__ import annotations

from dataclasses import dataclass

import redis.asyncio as aioredis
import structlog

from src.config.settings import Settings
from src.interfaces.cache_provider import ICacheProvider
from src.interfaces.counter_store import ICounterStore
from src.providers.cache.memory_cache import MemoryCacheProvider
from src.providers.cache.redis_cache import RedisCacheProvider
from src.providers.counter.memory_counter import MemoryCounterStore
from src.providers.counter.redis_counter import RedisCounterStore
from src.providers.post.sqlite_post_store import SQLitePostStore
from src.providers.redis_client import create_redis_client

logger = structlog.get_logger(logger_name=__name__)


@dataclass
class VolatileStores:
    """Counter and cache backends plus the client they share (if any)."""

    counter_store: ICounterStore
    cache_provider: ICacheProvider
    redis_client: aioredis.Redis | None = None

    async def aclose(self) -> None:
        if self.redis_client is not None:
            await self.redis_client.aclose()


def build_volatile_stores(app_settings: Settings) -> VolatileStores:
    if app_settings.uses_shared_volatile_store():
        client = create_redis_client(
            app_settings.redis_url, app_settings.volatile_timeout_seconds
        )
        logger.info("volatile_store_selected", backend="redis")
        return VolatileStores(
            counter_store=RedisCounterStore(client),
            cache_provider=RedisCacheProvider(client, ttl=app_settings.post_cache_ttl),
            redis_client=client,
        )

    logger.warning(
        "volatile_store_selected",
        backend="memory",
        note="counters and cache are private to this process",
    )
    return VolatileStores(
        counter_store=MemoryCounterStore(),
        cache_provider=MemoryCacheProvider(
            max_size=app_settings.cache_max_size, ttl=app_settings.post_cache_ttl
        ),
    )


def build_post_store(app_settings: Settings) -> SQLitePostStore:
    return SQLitePostStore(
        db_path=app_settings.database_path,
        timeout=app_settings.database_timeout_seconds,
    )
