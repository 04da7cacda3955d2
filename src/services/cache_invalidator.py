"""Cache invalidation after durable commits.

# ─── ARCHITECTURE ROLE ───────────────────────────────────────────────
#
# Layer: Services.
#
# Every durable mutation calls ``on_mutation`` with the post-commit record
# BEFORE the mutation is acknowledged to the client, so a reader that
# arrives after the acknowledgement cannot be served the pre-mutation
# entry.  The scopes that can go stale after an edit:
#
#   RECORD       post:{id}                  the detail entry
#   LISTS        posts:list:*               every all-owner listing page
#   OWNER_LISTS  posts:user:{owner}:*       the owner's own listing pages
#
# The reconciliation job calls ``on_view_count_committed`` instead: it
# raises the volatile counter to at least the committed value (it never
# lowers it, since the counter may already be ahead) and drops only the
# detail entry.  Listing entries carry their own short TTL and are left
# to expire.
#
# Failures here are logged and swallowed (see CacheAside); the durable
# commit has already happened and cannot be taken back.
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

import asyncio
from enum import Enum

import structlog

from src.interfaces.counter_store import ICounterStore
from src.models.post import Post
from src.services import cache_keys
from src.services.cache_aside import CacheAside
from src.utils.errors import TransientStoreError

logger = structlog.get_logger(logger_name=__name__)


class InvalidationScope(str, Enum):
    RECORD = "record"
    LISTS = "lists"
    OWNER_LISTS = "owner_lists"


ALL_SCOPES: frozenset[InvalidationScope] = frozenset(InvalidationScope)


class CacheInvalidator:
    """Drops the cache entries a committed change makes stale.

    Parameters
    ----------
    cache:
        Fail-open cache wrapper.
    counter_store:
        Volatile counters, re-seeded after a reconciliation commit.
    timeout_seconds:
        Upper bound on the counter re-seed.
    """

    def __init__(
        self,
        cache: CacheAside,
        counter_store: ICounterStore,
        timeout_seconds: float = 0.25,
    ) -> None:
        self._cache = cache
        self._counters = counter_store
        self._timeout = timeout_seconds

    async def on_mutation(
        self,
        post: Post,
        scopes: frozenset[InvalidationScope] | set[InvalidationScope] = ALL_SCOPES,
    ) -> None:
        """Invalidate every cache scope *post*'s new state makes stale."""
        if InvalidationScope.RECORD in scopes:
            await self._cache.delete(cache_keys.post_key(post.id))
        if InvalidationScope.LISTS in scopes:
            await self._cache.delete_matching(cache_keys.LIST_PATTERN)
        if InvalidationScope.OWNER_LISTS in scopes:
            await self._cache.delete_matching(cache_keys.owner_list_pattern(post.owner_id))

        logger.debug(
            "cache_invalidated",
            post_id=post.id,
            scopes=sorted(scope.value for scope in scopes),
        )

    async def on_like_toggled(self, post_id: str) -> None:
        """Likes change counts shown on the detail and listing entries."""
        await self._cache.delete(cache_keys.post_key(post_id))
        await self._cache.delete_matching(cache_keys.LIST_PATTERN)

    async def on_view_count_committed(self, post_id: str, committed: int) -> None:
        """Re-align volatile state after the job ratcheted *committed* in."""
        try:
            current = await asyncio.wait_for(
                self._counters.reseed(post_id, committed), self._timeout
            )
        except (TransientStoreError, asyncio.TimeoutError) as exc:
            # The next record_view re-seeds with SET NX anyway.
            logger.warning(
                "counter_reseed_failed",
                post_id=post_id,
                committed=committed,
                error=str(exc) or type(exc).__name__,
            )
        else:
            logger.debug("counter_reseeded", post_id=post_id, committed=committed, current=current)

        await self._cache.delete(cache_keys.post_key(post_id))
