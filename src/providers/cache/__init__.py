"""Cache providers for the cache-aside layer.

MemoryCacheProvider is a TLRU dict: fast but private to one process.
RedisCacheProvider is the production backend: every app instance reads the
same entries and, more importantly, sees the same invalidations.
"""

from src.providers.cache.memory_cache import MemoryCacheProvider
from src.providers.cache.redis_cache import RedisCacheProvider

__all__ = ["MemoryCacheProvider", "RedisCacheProvider"]
