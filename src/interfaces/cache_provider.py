"""Abstract base class for cache service providers.

Defines the contract for the cache-aside layer that holds computed query
results (single-post detail payloads and listing pages).  Implementations
may use an in-process TTL cache or Redis.  Entries are never authoritative
and are always safe to discard.

Pattern deletes exist because listing keys embed pagination and filter
parameters that cannot be enumerated when a post changes; the invalidator
drops the whole ``posts:list:*`` family instead.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any


class ICacheProvider(ABC):
    """Contract for key-value cache services.

    All operations are async to allow for network-backed stores (e.g. Redis)
    without blocking the event loop.  Implementations raise
    :class:`~src.utils.errors.TransientStoreError` on backend failures;
    swallowing them is the job of :class:`~src.services.cache_aside.CacheAside`.
    """

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier for this provider."""

    @abstractmethod
    async def get(self, key: str) -> Any | None:
        """Retrieve the value stored under *key*.

        Returns
        -------
        Any or None
            The cached value if present and not expired; ``None`` otherwise.
        """

    @abstractmethod
    async def set(self, key: str, value: Any, ttl: int | None = None) -> None:
        """Store *value* under *key* with an optional time-to-live.

        Parameters
        ----------
        key:
            The cache key.
        value:
            A JSON-compatible value (dict, list, str, int, float, bool).
        ttl:
            Time-to-live in seconds.  ``None`` falls back to the provider's
            default TTL.
        """

    @abstractmethod
    async def delete(self, key: str) -> None:
        """Remove the entry stored under *key* (no-op if absent)."""

    @abstractmethod
    async def delete_matching(self, pattern: str) -> int:
        """Remove every entry matching *pattern*.

        A pattern ending in ``*`` is a prefix match; any other pattern is
        an exact key.  A ``set`` racing with this call under the same
        prefix may survive until its TTL expires.

        Returns
        -------
        int
            Number of entries removed.
        """

    @abstractmethod
    async def exists(self, key: str) -> bool:
        """Return ``True`` if *key* is present in the cache and not expired."""
