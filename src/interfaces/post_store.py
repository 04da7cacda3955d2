"""Abstract base class for the durable post store.

# ─── ADAPTER PATTERN ─────────────────────────────────────────────────
#
# IPostStore is the authoritative store for posts and their committed
# view counts.  The concrete implementation is SQLitePostStore
# (src/providers/post/sqlite_post_store.py); a PostgreSQL adapter would
# implement the same contract.
#
# The two write primitives the consistency engine depends on are single
# conditional statements executed by the database itself:
#
#   conditional_update  : UPDATE ... SET version = expected + 1, ...
#                         WHERE id = ? AND version = expected
#   ratchet_view_count  : UPDATE ... SET views = GREATEST(views, ?)
#
# Neither is ever expressed as read-then-write in application code; that
# is what makes them correct across many concurrent app instances.
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from src.models.post import LikeResult, PageRequest, Post, PostFilters


class IPostStore(ABC):
    """Contract for durable post persistence.

    Implementations raise :class:`~src.utils.errors.TransientStoreError`
    when the store times out or is unreachable; those always propagate.
    """

    # ── Lifecycle ──────────────────────────────────────────────────────

    @abstractmethod
    async def initialize(self) -> None:
        """Create tables/indices if they don't exist.  Called at startup."""

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier for this provider."""

    # ── Reads ──────────────────────────────────────────────────────────

    @abstractmethod
    async def get_post(self, post_id: str) -> Post | None:
        """Return the post row, tombstoned or not; ``None`` if absent."""

    @abstractmethod
    async def list_posts(
        self,
        filters: PostFilters,
        page: PageRequest,
    ) -> tuple[list[Post], int]:
        """Return one page of non-deleted posts plus the total match count.

        Ordered newest-published first, then newest-created.
        """

    @abstractmethod
    async def slug_exists(
        self,
        owner_id: str,
        slug: str,
        exclude_post_id: str | None = None,
    ) -> bool:
        """Return True if *owner_id* already has a post with *slug*.

        Parameters
        ----------
        exclude_post_id:
            Post to ignore (the one being renamed).
        """

    @abstractmethod
    async def get_posts(self, post_ids: list[str]) -> list[Post]:
        """Return the non-deleted posts among *post_ids*, in no particular order.

        Ids that are absent or tombstoned are silently left out.
        """

    @abstractmethod
    async def has_liked(self, post_id: str, user_id: str) -> bool:
        """Return True if *user_id* currently likes *post_id*."""

    # ── Writes ─────────────────────────────────────────────────────────

    @abstractmethod
    async def insert_post(self, post: Post) -> None:
        """Persist a brand-new post (version 1)."""

    @abstractmethod
    async def conditional_update(
        self,
        post_id: str,
        expected_version: int,
        changes: dict[str, Any],
    ) -> int:
        """Apply *changes* and bump the version, only at *expected_version*.

        One atomic statement conditioned on ``version = expected_version``
        and on the row not being tombstoned.

        Returns
        -------
        int
            Rows affected; ``0`` means another writer won the race.
        """

    @abstractmethod
    async def ratchet_view_count(self, post_id: str, candidate: int) -> bool:
        """Raise the persisted view count to *candidate* if it is higher.

        Idempotent and order-insensitive: replaying an old or duplicate
        candidate can never move the count backward.

        Returns
        -------
        bool
            ``True`` if the stored value changed.
        """

    @abstractmethod
    async def toggle_like(self, post_id: str, user_id: str) -> LikeResult:
        """Like or unlike *post_id* for *user_id* in one transaction.

        Raises
        ------
        NotFoundError
            If the post is absent or tombstoned.
        """
