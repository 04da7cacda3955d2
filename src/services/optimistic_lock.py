"""Optimistic-lock coordinator for post mutations.

# ─── ARCHITECTURE ROLE ───────────────────────────────────────────────
#
# Layer: Services.
#
# Every content mutation (edit, publish, soft delete) goes through
# ``mutate``.  The flow:
#
#   1. Read the current record.  Absent or tombstoned => NotFoundError.
#      The optional authorize hook runs here, before any version check,
#      so a caller who may not edit the post learns nothing about it.
#   2. If the caller supplied an expected version that no longer matches,
#      fail fast with ConflictError (no write attempted).
#   3. Ask the mutation function for the column changes.
#   4. Commit with ONE conditional statement
#        UPDATE ... SET ..., version = version + 1
#        WHERE id = ? AND version = <expected> AND deleted_at IS NULL
#      Zero rows affected means another writer got there first
#      (or deleted the post) => ConflictError.
#   5. Invalidate the affected cache scopes, then return.
#
# Conflicts are never retried here: the losing caller must re-read and
# decide again, which is the point of optimistic locking.  There is no
# in-process lock either, so the guarantee holds across any number of
# app instances sharing the durable store.
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

from typing import Any, Awaitable, Callable

import structlog

from src.interfaces.post_store import IPostStore
from src.models.post import Post, utc_now_iso
from src.services.cache_invalidator import ALL_SCOPES, CacheInvalidator, InvalidationScope
from src.utils.errors import ConflictError, NotFoundError

logger = structlog.get_logger(logger_name=__name__)

MutationFn = Callable[[Post], Awaitable[dict[str, Any]]]
AuthorizeFn = Callable[[Post], None]


class OptimisticLockCoordinator:
    """Versioned read-modify-write against an IPostStore."""

    def __init__(self, store: IPostStore, invalidator: CacheInvalidator) -> None:
        self._store = store
        self._invalidator = invalidator

    async def load_live(self, post_id: str) -> Post:
        """Return the non-deleted post or raise NotFoundError."""
        post = await self._store.get_post(post_id)
        if post is None or post.is_deleted:
            raise NotFoundError()
        return post

    async def mutate(
        self,
        post_id: str,
        expected_version: int | None,
        mutation_fn: MutationFn,
        scopes: frozenset[InvalidationScope] = ALL_SCOPES,
        authorize: AuthorizeFn | None = None,
    ) -> Post:
        """Apply *mutation_fn* to the post if it is still at *expected_version*.

        Parameters
        ----------
        post_id:
            The post to change.
        expected_version:
            The version the caller last read.  ``None`` means "whatever is
            current"; the commit is still conditional on the version read
            in step 1, so a concurrent writer still causes a conflict.
        mutation_fn:
            Receives the current record and returns the columns to change.
            It may raise to abort without a write.
        scopes:
            Cache scopes to invalidate after the commit.
        authorize:
            Called with the current record before the version comparison;
            raises (e.g. PermissionDeniedError) to refuse the caller.

        Returns
        -------
        Post
            The committed record with its new version.

        Raises
        ------
        NotFoundError
            The post is absent or soft-deleted.
        ConflictError
            The version moved before or during the commit.
        """
        current = await self.load_live(post_id)
        if authorize is not None:
            authorize(current)
        version = current.version if expected_version is None else expected_version

        if current.version != version:
            logger.info(
                "post_version_conflict",
                post_id=post_id,
                expected_version=version,
                current_version=current.version,
            )
            raise ConflictError()

        changes = dict(await mutation_fn(current))
        changes["updated_at"] = utc_now_iso()

        rows = await self._store.conditional_update(post_id, version, changes)
        if rows == 0:
            logger.info("post_commit_lost_race", post_id=post_id, expected_version=version)
            raise ConflictError()

        updated = current.model_copy(update={**changes, "version": version + 1})
        await self._invalidator.on_mutation(updated, scopes)

        logger.info(
            "post_mutated",
            post_id=post_id,
            version=updated.version,
            fields=sorted(changes),
        )
        return updated
