"""Post service: read, list and mutate posts through the consistency engine.

# ─── ARCHITECTURE ROLE ───────────────────────────────────────────────
#
# Layer: Services (the only layer the API routes call).
#
# Dependencies are injected (store, view counter, trending board, cache,
# invalidator, coordinator), matching how every other service in the codebase is
# wired in ``main._build_all``.
#
# Read path (detail):
#   cache ``post:{id}`` -> durable store on miss -> fill cache
#   then count the view in the volatile counter and overlay the live
#   count.  The cached record always carries the *persisted* view count.
#
# Read path (listing):
#   cache ``posts:list:...`` / ``posts:user:{owner}:list:...`` -> durable
#   store on miss -> overlay live counts (seeding absent counters) ->
#   fill cache with the merged page (short TTL).
#
# Read path (trending):
#   top ids from the trending board -> durable hydration in one query
#   (tombstoned ids dropped) -> board order kept -> live counts overlaid.
#   Not cached: the board itself is the fast path.
#
# Write path: every content mutation goes through
# OptimisticLockCoordinator.mutate; likes are the one exception (a single
# durable transaction that does not move ``version``).
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

import uuid
from typing import Any

import structlog

from src.interfaces.post_store import IPostStore
from src.models.post import (
    LikeResult,
    NewPost,
    PageRequest,
    Pagination,
    Post,
    PostDisplay,
    PostFilters,
    PostPage,
    PostPatch,
    PostStatus,
    utc_now_iso,
)
from src.services import cache_keys
from src.services.cache_aside import CacheAside
from src.services.cache_invalidator import CacheInvalidator, InvalidationScope
from src.services.optimistic_lock import OptimisticLockCoordinator
from src.services.trending import TrendingBoard
from src.services.view_counter import ViewCounter
from src.utils.errors import NotFoundError, PermissionDeniedError
from src.utils.markdown import generate_excerpt
from src.utils.slug import slugify, unique_slug

logger = structlog.get_logger(logger_name=__name__)

_LIST_SCOPES = frozenset({InvalidationScope.LISTS, InvalidationScope.OWNER_LISTS})


class PostService:
    """Application-level operations on posts.

    Parameters
    ----------
    store:
        Durable post store.
    views:
        Fail-open view counter.
    cache:
        Fail-open cache wrapper.
    invalidator:
        Cache invalidator shared with the coordinator.
    coordinator:
        Optimistic-lock coordinator for content mutations.
    trending:
        Fail-open trending board (likes in, deletes out).
    post_ttl / list_ttl:
        Cache TTLs in seconds for detail and listing entries.
    slug_max_length / slug_max_attempts / excerpt_length:
        Derived-field limits (see Settings).
    """

    def __init__(
        self,
        store: IPostStore,
        views: ViewCounter,
        cache: CacheAside,
        invalidator: CacheInvalidator,
        coordinator: OptimisticLockCoordinator,
        trending: TrendingBoard,
        post_ttl: int = 900,
        list_ttl: int = 60,
        slug_max_length: int = 100,
        slug_max_attempts: int = 100,
        excerpt_length: int = 200,
    ) -> None:
        self._store = store
        self._views = views
        self._cache = cache
        self._invalidator = invalidator
        self._coordinator = coordinator
        self._trending = trending
        self._post_ttl = post_ttl
        self._list_ttl = list_ttl
        self._slug_max_length = slug_max_length
        self._slug_max_attempts = slug_max_attempts
        self._excerpt_length = excerpt_length

    # ── Reads ──────────────────────────────────────────────────────────

    async def read_post_for_display(
        self,
        post_id: str,
        viewer_id: str | None = None,
    ) -> PostDisplay:
        """Return a post with its live view count, counting this view.

        Raises
        ------
        NotFoundError
            The post is absent or soft-deleted.
        """
        post = await self._load_cached_post(post_id)
        live = await self._views.record_view(post.id, post.view_count)
        liked = await self._store.has_liked(post.id, viewer_id) if viewer_id else False
        return PostDisplay(post=post, live_view_count=live, liked_by_viewer=liked)

    async def list_posts(self, filters: PostFilters, page: PageRequest) -> PostPage:
        """Return one listing page with live view counts merged in."""
        key = cache_keys.list_key(filters, page)
        cached = await self._cache.get(key)
        if cached is not None:
            logger.debug("post_list_cache_hit", key=key)
            return PostPage.model_validate(cached)

        posts, total = await self._store.list_posts(filters, page)
        merged = [
            post.model_copy(
                update={"view_count": await self._views.live_count(post.id, post.view_count)}
            )
            for post in posts
        ]
        result = PostPage(posts=merged, pagination=Pagination.build(page, total))

        await self._cache.set(key, result.model_dump(mode="json"), self._list_ttl)
        logger.debug("post_list_fetched", key=key, count=len(merged), total=total)
        return result

    async def trending_posts(self, limit: int = 10) -> list[Post]:
        """Return up to *limit* trending posts, board order, live view counts."""
        ranked_ids = await self._trending.top(limit)
        if not ranked_ids:
            return []

        by_id = {post.id: post for post in await self._store.get_posts(ranked_ids)}
        result = [
            post.model_copy(
                update={"view_count": await self._views.live_count(post.id, post.view_count)}
            )
            for post in (by_id.get(post_id) for post_id in ranked_ids)
            if post is not None
        ]
        logger.debug("trending_posts_fetched", ranked=len(ranked_ids), returned=len(result))
        return result

    # ── Writes ─────────────────────────────────────────────────────────

    async def create_post(self, owner_id: str, data: NewPost) -> Post:
        """Insert a new post at version 1 with a fresh unique slug."""
        slug = await unique_slug(
            slugify(data.title, self._slug_max_length),
            lambda candidate: self._store.slug_exists(owner_id, candidate),
            self._slug_max_attempts,
        )
        now = utc_now_iso()
        post = Post(
            id=uuid.uuid4().hex,
            owner_id=owner_id,
            title=data.title,
            slug=slug,
            content=data.content,
            excerpt=generate_excerpt(data.content, self._excerpt_length) if data.content else None,
            cover_image=data.cover_image,
            status=data.status,
            published_at=now if data.status == PostStatus.PUBLISHED else None,
            created_at=now,
            updated_at=now,
        )
        await self._store.insert_post(post)
        # Nothing can have cached this id yet; only listings are stale.
        await self._invalidator.on_mutation(post, _LIST_SCOPES)

        logger.info("post_created", post_id=post.id, owner_id=owner_id, slug=slug)
        return post

    async def mutate_post(
        self,
        post_id: str,
        expected_version: int | None,
        patch: PostPatch,
        editor_id: str,
    ) -> Post:
        """Apply *patch* if the post is still at *expected_version*.

        Raises
        ------
        NotFoundError
            The post is absent or soft-deleted.
        PermissionDeniedError
            *editor_id* does not own the post.
        ConflictError
            Someone else committed first.
        SlugExhaustionError
            A draft retitle could not find a free slug.
        """

        async def _apply(current: Post) -> dict[str, Any]:
            return await self._changes_for(current, patch)

        return await self._coordinator.mutate(
            post_id,
            expected_version,
            _apply,
            authorize=lambda current: self._require_owner(current, editor_id),
        )

    async def delete_post(
        self,
        post_id: str,
        editor_id: str,
        expected_version: int | None = None,
    ) -> Post:
        """Soft-delete a post (tombstone plus version bump)."""

        async def _tombstone(current: Post) -> dict[str, Any]:
            return {"deleted_at": utc_now_iso()}

        deleted = await self._coordinator.mutate(
            post_id,
            expected_version,
            _tombstone,
            authorize=lambda current: self._require_owner(current, editor_id),
        )
        await self._trending.remove(post_id)
        logger.info("post_deleted", post_id=post_id, editor_id=editor_id)
        return deleted

    async def toggle_like(self, post_id: str, user_id: str) -> LikeResult:
        """Like or unlike a post for *user_id*."""
        result = await self._store.toggle_like(post_id, user_id)
        await self._invalidator.on_like_toggled(post_id)
        await self._trending.record_like(post_id, result.liked)
        return result

    # ── Private helpers ────────────────────────────────────────────────

    async def _load_cached_post(self, post_id: str) -> Post:
        key = cache_keys.post_key(post_id)
        cached = await self._cache.get(key)
        if cached is not None:
            logger.debug("post_cache_hit", post_id=post_id)
            return Post.model_validate(cached)

        post = await self._store.get_post(post_id)
        if post is None or post.is_deleted:
            raise NotFoundError()

        await self._cache.set(key, post.model_dump(mode="json"), self._post_ttl)
        return post

    @staticmethod
    def _require_owner(post: Post, editor_id: str) -> None:
        if post.owner_id != editor_id:
            raise PermissionDeniedError()

    async def _changes_for(self, current: Post, patch: PostPatch) -> dict[str, Any]:
        changes: dict[str, Any] = {}

        if patch.title is not None:
            changes["title"] = patch.title
            # Published URLs are permanent.
            if current.status == PostStatus.DRAFT:
                base = slugify(patch.title, self._slug_max_length)
                if base != current.slug:
                    changes["slug"] = await unique_slug(
                        base,
                        lambda candidate: self._store.slug_exists(
                            current.owner_id, candidate, exclude_post_id=current.id
                        ),
                        self._slug_max_attempts,
                    )

        if patch.content is not None:
            changes["content"] = patch.content
            changes["excerpt"] = generate_excerpt(patch.content, self._excerpt_length)

        if patch.cover_image is not None:
            changes["cover_image"] = patch.cover_image

        if patch.status is not None:
            changes["status"] = patch.status
            if patch.status == PostStatus.PUBLISHED and current.published_at is None:
                changes["published_at"] = utc_now_iso()

        return changes
