"""Shared pytest fixtures for the Inkwell test suite."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import pytest

from src.models.post import Post, PostStatus, utc_now_iso
from src.providers.cache.memory_cache import MemoryCacheProvider
from src.providers.counter.memory_counter import MemoryCounterStore
from src.providers.post.sqlite_post_store import SQLitePostStore
from src.services.cache_aside import CacheAside
from src.services.cache_invalidator import CacheInvalidator
from src.services.optimistic_lock import OptimisticLockCoordinator
from src.services.post_service import PostService
from src.services.trending import TrendingBoard
from src.services.view_counter import ViewCounter


class FakeClock:
    """Manually advanced clock for TTL tests."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def make_post(**overrides: Any) -> Post:
    """Build a Post with sensible test defaults."""
    now = utc_now_iso()
    defaults: dict[str, Any] = {
        "id": "post-1",
        "owner_id": "alice",
        "title": "My Post",
        "slug": "my-post",
        "content": "Body text",
        "excerpt": "Body text",
        "status": PostStatus.PUBLISHED,
        "published_at": now,
        "created_at": now,
        "updated_at": now,
    }
    defaults.update(overrides)
    return Post(**defaults)


# ---------------------------------------------------------------------------
# Stores
# ---------------------------------------------------------------------------


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
async def post_store(tmp_path: Path) -> SQLitePostStore:
    """A freshly initialised SQLite store in a temp directory."""
    store = SQLitePostStore(db_path=tmp_path / "posts.db", timeout=5.0)
    await store.initialize()
    return store


@pytest.fixture
def counter_store() -> MemoryCounterStore:
    return MemoryCounterStore()


@pytest.fixture
def cache_provider(clock: FakeClock) -> MemoryCacheProvider:
    return MemoryCacheProvider(max_size=1000, ttl=900, timer=clock)


# ---------------------------------------------------------------------------
# Consistency engine
# ---------------------------------------------------------------------------


@pytest.fixture
def cache(cache_provider: MemoryCacheProvider) -> CacheAside:
    return CacheAside(cache_provider, timeout_seconds=0.25)


@pytest.fixture
def invalidator(cache: CacheAside, counter_store: MemoryCounterStore) -> CacheInvalidator:
    return CacheInvalidator(cache, counter_store, timeout_seconds=0.25)


@pytest.fixture
def coordinator(
    post_store: SQLitePostStore,
    invalidator: CacheInvalidator,
) -> OptimisticLockCoordinator:
    return OptimisticLockCoordinator(post_store, invalidator)


@pytest.fixture
def view_counter(counter_store: MemoryCounterStore) -> ViewCounter:
    return ViewCounter(counter_store, timeout_seconds=0.25)


@pytest.fixture
def trending_board(counter_store: MemoryCounterStore) -> TrendingBoard:
    return TrendingBoard(counter_store, timeout_seconds=0.25)


@pytest.fixture
def post_service(
    post_store: SQLitePostStore,
    view_counter: ViewCounter,
    cache: CacheAside,
    invalidator: CacheInvalidator,
    coordinator: OptimisticLockCoordinator,
    trending_board: TrendingBoard,
) -> PostService:
    return PostService(
        store=post_store,
        views=view_counter,
        cache=cache,
        invalidator=invalidator,
        coordinator=coordinator,
        trending=trending_board,
    )


@pytest.fixture
def post_factory():
    """Return the ``make_post`` builder for tests that need several posts."""
    return make_post
