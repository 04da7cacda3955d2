"""View-counter stores (volatile tier).

RedisCounterStore shares counters across instances; MemoryCounterStore is
for a single worker and for tests.
"""

from src.providers.counter.memory_counter import MemoryCounterStore
from src.providers.counter.redis_counter import RedisCounterStore

__all__ = ["MemoryCounterStore", "RedisCounterStore"]
