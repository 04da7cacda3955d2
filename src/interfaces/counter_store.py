"""Abstract base class for the volatile view-counter store.

# ─── ADAPTER PATTERN ─────────────────────────────────────────────────
#
# ICounterStore sits next to ICacheProvider in the volatile tier.
# Concrete implementations: RedisCounterStore (shared across instances)
# and MemoryCounterStore (single process, development and tests).
#
# A counter's value is the persisted baseline it was seeded from plus
# every view observed since.  Counters only move up: ``increment`` adds
# one, ``reseed`` raises to at least a baseline, and nothing decrements.
# The reconciliation job reads counters through ``snapshot`` but never
# resets them, so increments that land mid-pass are picked up next pass.
#
# The same store also keeps the trending board: one score per post,
# moved by likes and unlikes, dropped when the post is deleted.  Unlike
# view counters, trending scores go both ways.
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

from abc import ABC, abstractmethod


class ICounterStore(ABC):
    """Contract for per-post atomic view counters."""

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier for this provider."""

    @abstractmethod
    async def increment(self, post_id: str) -> int:
        """Atomically add one view and return the post-increment value."""

    @abstractmethod
    async def read(self, post_id: str) -> int | None:
        """Return the current counter value, or ``None`` if never seeded."""

    @abstractmethod
    async def seed(self, post_id: str, baseline: int) -> bool:
        """Set the counter to *baseline* only if it does not exist yet.

        Must be a single atomic set-if-absent, never read-then-write:
        two instances seeding concurrently must not clobber increments
        that landed in between.

        Returns
        -------
        bool
            ``True`` if this call created the counter.
        """

    @abstractmethod
    async def reseed(self, post_id: str, baseline: int) -> int:
        """Atomically raise the counter to at least *baseline*.

        Creates the counter when absent.  Used after reconciliation has
        committed *baseline* to the durable store, so the volatile value
        can never fall below the persisted one.

        Returns
        -------
        int
            The counter value after the call.
        """

    @abstractmethod
    async def snapshot(self) -> dict[str, int]:
        """Return every non-zero counter as ``{post_id: value}``.

        Entries whose stored value is unreadable are skipped (and logged)
        by the implementation rather than failing the whole snapshot.
        """

    # ── Trending board ─────────────────────────────────────────────────

    @abstractmethod
    async def add_trending_score(self, post_id: str, delta: float) -> float:
        """Atomically add *delta* to the post's trending score.

        Creates the entry at *delta* when absent.  Returns the new score.
        """

    @abstractmethod
    async def remove_trending(self, post_id: str) -> None:
        """Drop the post from the trending board (no-op if absent)."""

    @abstractmethod
    async def top_trending(self, limit: int) -> list[str]:
        """Return up to *limit* post ids, highest score first."""
