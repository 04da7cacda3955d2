"""Unit tests for PostService: read path, listings, edits, deletes, likes."""

from __future__ import annotations

import pytest

from src.models.post import NewPost, PageRequest, PostFilters, PostPatch, PostStatus
from src.services.reconciliation import ReconciliationJob
from src.utils.errors import ConflictError, NotFoundError, PermissionDeniedError


async def _create(service, owner: str = "alice", **fields):
    data = {"title": "My Post", "content": "Hello **world**"}
    data.update(fields)
    return await service.create_post(owner, NewPost(**data))


# ======================================================================
# Creation
# ======================================================================


class TestCreatePost:
    @pytest.mark.asyncio
    async def test_new_post_starts_at_version_one(self, post_service) -> None:
        post = await _create(post_service)
        assert post.version == 1
        assert post.view_count == 0
        assert post.status is PostStatus.DRAFT
        assert post.published_at is None
        assert post.excerpt == "Hello world"

    @pytest.mark.asyncio
    async def test_slug_disambiguation_per_owner(self, post_service) -> None:
        first = await _create(post_service)
        second = await _create(post_service)
        third = await _create(post_service)
        other_owner = await _create(post_service, owner="bob")

        assert [first.slug, second.slug, third.slug] == ["my-post", "my-post-1", "my-post-2"]
        assert other_owner.slug == "my-post"

    @pytest.mark.asyncio
    async def test_created_published_gets_published_at(self, post_service) -> None:
        post = await _create(post_service, status=PostStatus.PUBLISHED)
        assert post.published_at is not None

    @pytest.mark.asyncio
    async def test_creation_invalidates_listings(self, post_service, cache_provider) -> None:
        await cache_provider.set("posts:list:1:20:published:none", {"stale": 1}, ttl=60)
        await _create(post_service)
        assert await cache_provider.get("posts:list:1:20:published:none") is None


# ======================================================================
# Read path
# ======================================================================


class TestReadPostForDisplay:
    @pytest.mark.asyncio
    async def test_ten_reads_then_reconcile(
        self, post_service, post_store, counter_store, invalidator
    ) -> None:
        post = await _create(post_service, status=PostStatus.PUBLISHED)

        for _ in range(10):
            display = await post_service.read_post_for_display(post.id)

        assert display.live_view_count == 10
        assert (await post_store.get_post(post.id)).view_count == 0

        report = await ReconciliationJob(counter_store, post_store, invalidator).run()

        assert report.updated == 1
        assert (await post_store.get_post(post.id)).view_count == 10
        display = await post_service.read_post_for_display(post.id)
        assert display.post.view_count == 10
        assert display.live_view_count == 11

    @pytest.mark.asyncio
    async def test_detail_is_cached_after_first_read(
        self, post_service, post_store, cache_provider
    ) -> None:
        post = await _create(post_service)
        await post_service.read_post_for_display(post.id)
        assert await cache_provider.exists(f"post:{post.id}")

    @pytest.mark.asyncio
    async def test_cache_hit_still_counts_views(self, post_service) -> None:
        post = await _create(post_service)
        await post_service.read_post_for_display(post.id)
        display = await post_service.read_post_for_display(post.id)
        assert display.live_view_count == 2

    @pytest.mark.asyncio
    async def test_missing_post_is_not_found(self, post_service) -> None:
        with pytest.raises(NotFoundError):
            await post_service.read_post_for_display("ghost")

    @pytest.mark.asyncio
    async def test_deleted_post_is_not_found(self, post_service) -> None:
        post = await _create(post_service)
        await post_service.delete_post(post.id, "alice")
        with pytest.raises(NotFoundError):
            await post_service.read_post_for_display(post.id)

    @pytest.mark.asyncio
    async def test_liked_by_viewer(self, post_service) -> None:
        post = await _create(post_service)
        await post_service.toggle_like(post.id, "bob")

        assert (await post_service.read_post_for_display(post.id, "bob")).liked_by_viewer
        assert not (await post_service.read_post_for_display(post.id, "carol")).liked_by_viewer
        assert not (await post_service.read_post_for_display(post.id)).liked_by_viewer


# ======================================================================
# Listings
# ======================================================================


class TestListPosts:
    @pytest.mark.asyncio
    async def test_live_counts_are_merged(self, post_service) -> None:
        post = await _create(post_service, status=PostStatus.PUBLISHED)
        for _ in range(3):
            await post_service.read_post_for_display(post.id)

        page = await post_service.list_posts(PostFilters(), PageRequest())

        assert [p.id for p in page.posts] == [post.id]
        assert page.posts[0].view_count == 3
        assert page.pagination.total == 1
        assert page.pagination.total_pages == 1

    @pytest.mark.asyncio
    async def test_page_is_cached(self, post_service, cache_provider) -> None:
        await _create(post_service, status=PostStatus.PUBLISHED)
        await post_service.list_posts(PostFilters(), PageRequest())
        assert await cache_provider.exists("posts:list:1:20:published:none")

    @pytest.mark.asyncio
    async def test_cached_page_is_served_until_invalidated(
        self, post_service, post_store, post_factory
    ) -> None:
        await _create(post_service, status=PostStatus.PUBLISHED)
        first = await post_service.list_posts(PostFilters(), PageRequest())

        # Written behind the service's back: no invalidation.
        await post_store.insert_post(post_factory(id="sneaky", slug="sneaky"))
        second = await post_service.list_posts(PostFilters(), PageRequest())
        assert second == first

        await _create(post_service, status=PostStatus.PUBLISHED)
        third = await post_service.list_posts(PostFilters(), PageRequest())
        assert third.pagination.total == 3

    @pytest.mark.asyncio
    async def test_list_ttl_expiry_forces_durable_read(
        self, post_service, post_store, post_factory, clock
    ) -> None:
        await post_service.list_posts(PostFilters(), PageRequest())
        await post_store.insert_post(post_factory(id="late", slug="late"))

        clock.advance(61)
        page = await post_service.list_posts(PostFilters(), PageRequest())

        assert [p.id for p in page.posts] == ["late"]


# ======================================================================
# Edits
# ======================================================================


class TestMutatePost:
    @pytest.mark.asyncio
    async def test_edit_bumps_version_and_regenerates_excerpt(self, post_service) -> None:
        post = await _create(post_service)
        updated = await post_service.mutate_post(
            post.id, 1, PostPatch(content="# New body"), "alice"
        )
        assert updated.version == 2
        assert updated.excerpt == "New body"

    @pytest.mark.asyncio
    async def test_stale_version_conflicts(self, post_service) -> None:
        post = await _create(post_service)
        await post_service.mutate_post(post.id, 1, PostPatch(title="A"), "alice")
        with pytest.raises(ConflictError):
            await post_service.mutate_post(post.id, 1, PostPatch(title="B"), "alice")

    @pytest.mark.asyncio
    async def test_non_owner_is_denied(self, post_service, post_store) -> None:
        post = await _create(post_service)
        with pytest.raises(PermissionDeniedError):
            await post_service.mutate_post(post.id, 1, PostPatch(title="Mine now"), "mallory")
        assert (await post_store.get_post(post.id)).version == 1

    @pytest.mark.asyncio
    async def test_non_owner_with_stale_version_is_denied_not_conflict(
        self, post_service, post_store
    ) -> None:
        post = await _create(post_service)
        await post_service.mutate_post(post.id, 1, PostPatch(title="Edited"), "alice")

        with pytest.raises(PermissionDeniedError):
            await post_service.mutate_post(post.id, 1, PostPatch(title="Mine now"), "mallory")
        with pytest.raises(PermissionDeniedError):
            await post_service.delete_post(post.id, "mallory", expected_version=1)
        assert (await post_store.get_post(post.id)).version == 2

    @pytest.mark.asyncio
    async def test_draft_retitle_regenerates_slug(self, post_service) -> None:
        post = await _create(post_service, title="Untitled")
        updated = await post_service.mutate_post(
            post.id, 1, PostPatch(title="Hello World!!"), "alice"
        )
        assert updated.slug == "hello-world"

    @pytest.mark.asyncio
    async def test_draft_retitle_disambiguates_against_own_posts(self, post_service) -> None:
        await _create(post_service, title="Hello World")
        draft = await _create(post_service, title="Something else")
        updated = await post_service.mutate_post(
            draft.id, 1, PostPatch(title="Hello World"), "alice"
        )
        assert updated.slug == "hello-world-1"

    @pytest.mark.asyncio
    async def test_published_slug_never_changes(self, post_service) -> None:
        post = await _create(post_service, title="Original", status=PostStatus.PUBLISHED)
        updated = await post_service.mutate_post(
            post.id, 1, PostPatch(title="Renamed"), "alice"
        )
        assert updated.title == "Renamed"
        assert updated.slug == "original"

    @pytest.mark.asyncio
    async def test_first_publish_sets_published_at_once(self, post_service) -> None:
        post = await _create(post_service)
        published = await post_service.mutate_post(
            post.id, 1, PostPatch(status=PostStatus.PUBLISHED), "alice"
        )
        assert published.published_at is not None

        unpublished = await post_service.mutate_post(
            post.id, 2, PostPatch(status=PostStatus.DRAFT), "alice"
        )
        republished = await post_service.mutate_post(
            post.id, 3, PostPatch(status=PostStatus.PUBLISHED), "alice"
        )
        assert unpublished.published_at == published.published_at
        assert republished.published_at == published.published_at

    @pytest.mark.asyncio
    async def test_edit_invalidates_detail_and_owner_listing(
        self, post_service, cache_provider
    ) -> None:
        post = await _create(post_service, status=PostStatus.PUBLISHED)
        await post_service.read_post_for_display(post.id)
        await post_service.list_posts(PostFilters(owner_id="alice", status="all"), PageRequest())

        await post_service.mutate_post(post.id, 1, PostPatch(title="Changed"), "alice")

        display = await post_service.read_post_for_display(post.id)
        assert display.post.title == "Changed"
        page = await post_service.list_posts(
            PostFilters(owner_id="alice", status="all"), PageRequest()
        )
        assert page.posts[0].title == "Changed"


# ======================================================================
# Delete and likes
# ======================================================================


class TestDeleteAndLikes:
    @pytest.mark.asyncio
    async def test_delete_is_a_versioned_tombstone(self, post_service, post_store) -> None:
        post = await _create(post_service)
        deleted = await post_service.delete_post(post.id, "alice", expected_version=1)

        stored = await post_store.get_post(post.id)
        assert stored.is_deleted
        assert stored.version == 2
        assert deleted.version == 2

    @pytest.mark.asyncio
    async def test_delete_by_non_owner_is_denied(self, post_service) -> None:
        post = await _create(post_service)
        with pytest.raises(PermissionDeniedError):
            await post_service.delete_post(post.id, "mallory")

    @pytest.mark.asyncio
    async def test_delete_twice_is_not_found(self, post_service) -> None:
        post = await _create(post_service)
        await post_service.delete_post(post.id, "alice")
        with pytest.raises(NotFoundError):
            await post_service.delete_post(post.id, "alice")

    @pytest.mark.asyncio
    async def test_like_invalidates_detail(self, post_service) -> None:
        post = await _create(post_service)
        await post_service.read_post_for_display(post.id)

        result = await post_service.toggle_like(post.id, "bob")

        assert result.liked is True
        display = await post_service.read_post_for_display(post.id)
        assert display.post.likes_count == 1
        assert display.post.version == 1


# ======================================================================
# Trending
# ======================================================================


class TestTrendingPosts:
    @pytest.mark.asyncio
    async def test_empty_board(self, post_service) -> None:
        assert await post_service.trending_posts(10) == []

    @pytest.mark.asyncio
    async def test_likes_rank_posts(self, post_service) -> None:
        quiet = await _create(post_service, title="Quiet")
        popular = await _create(post_service, title="Popular")
        for user in ("bob", "carol"):
            await post_service.toggle_like(popular.id, user)
        await post_service.toggle_like(quiet.id, "bob")

        trending = await post_service.trending_posts(10)

        assert [p.id for p in trending] == [popular.id, quiet.id]
        assert await post_service.trending_posts(1) == trending[:1]

    @pytest.mark.asyncio
    async def test_unlike_lowers_score(self, post_service) -> None:
        first = await _create(post_service, title="First")
        second = await _create(post_service, title="Second")
        await post_service.toggle_like(first.id, "bob")
        await post_service.toggle_like(first.id, "carol")
        await post_service.toggle_like(second.id, "bob")
        await post_service.toggle_like(second.id, "carol")
        await post_service.toggle_like(second.id, "dave")

        await post_service.toggle_like(second.id, "carol")
        await post_service.toggle_like(second.id, "dave")

        assert [p.id for p in await post_service.trending_posts(10)] == [first.id, second.id]

    @pytest.mark.asyncio
    async def test_deleted_post_leaves_board(self, post_service, counter_store) -> None:
        post = await _create(post_service)
        await post_service.toggle_like(post.id, "bob")

        await post_service.delete_post(post.id, "alice")

        assert await counter_store.top_trending(10) == []
        assert await post_service.trending_posts(10) == []

    @pytest.mark.asyncio
    async def test_stale_board_entry_is_filtered(self, post_service, counter_store) -> None:
        post = await _create(post_service)
        await counter_store.add_trending_score("ghost", 10)
        await counter_store.add_trending_score(post.id, 1)

        trending = await post_service.trending_posts(10)

        assert [p.id for p in trending] == [post.id]

    @pytest.mark.asyncio
    async def test_live_view_counts_are_overlaid(self, post_service, post_store) -> None:
        post = await _create(post_service, status=PostStatus.PUBLISHED)
        await post_service.toggle_like(post.id, "bob")
        for _ in range(3):
            await post_service.read_post_for_display(post.id)

        trending = await post_service.trending_posts(10)

        assert trending[0].view_count == 3
        assert (await post_store.get_post(post.id)).view_count == 0
