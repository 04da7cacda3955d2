"""Public interface definitions for the stores behind Inkwell.

Every backing store is accessed exclusively through the abstract base
classes defined in this package.  Concrete adapters implement these
interfaces and are injected at startup by ``src/main.py`` (and by the
reconciliation CLI), so business logic never imports Redis or SQLite.

Swapping Redis for the in-process providers is a configuration change
(``REDIS_URL`` empty vs. set), and unit tests inject the memory providers
or mocks without any running servers.

CONCRETE PROVIDER MAP:
    Interface          →  Concrete implementations (in src/providers/)
    ─────────────────────────────────────────────────────────────────
    IPostStore         →  SQLitePostStore
    ICounterStore      →  RedisCounterStore, MemoryCounterStore
    ICacheProvider     →  RedisCacheProvider, MemoryCacheProvider
"""

from src.interfaces.cache_provider import ICacheProvider
from src.interfaces.counter_store import ICounterStore
from src.interfaces.post_store import IPostStore

__all__ = [
    "ICacheProvider",
    "ICounterStore",
    "IPostStore",
]
