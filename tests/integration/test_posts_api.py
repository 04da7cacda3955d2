"""Integration tests for the post API endpoints using TestClient.

The app is wired with a temp-file SQLite store and the in-memory counter
and cache providers; everything between the HTTP layer and the stores is
the real code.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import pytest
from fastapi.testclient import TestClient

from src.main import create_app
from src.providers.cache.memory_cache import MemoryCacheProvider
from src.providers.counter.memory_counter import MemoryCounterStore
from src.providers.post.sqlite_post_store import SQLitePostStore
from src.services.cache_aside import CacheAside
from src.services.cache_invalidator import CacheInvalidator
from src.services.optimistic_lock import OptimisticLockCoordinator
from src.services.post_service import PostService
from src.services.reconciliation import ReconciliationJob
from src.services.trending import TrendingBoard
from src.services.view_counter import ViewCounter

ALICE = {"X-User-Id": "alice"}
BOB = {"X-User-Id": "bob"}


def _build_components(db_path: Path) -> dict[str, Any]:
    post_store = SQLitePostStore(db_path=db_path)
    counter_store = MemoryCounterStore()
    cache_provider = MemoryCacheProvider(max_size=1000, ttl=900)
    cache = CacheAside(cache_provider)
    invalidator = CacheInvalidator(cache, counter_store)
    service = PostService(
        store=post_store,
        views=ViewCounter(counter_store),
        cache=cache,
        invalidator=invalidator,
        coordinator=OptimisticLockCoordinator(post_store, invalidator),
        trending=TrendingBoard(counter_store),
    )
    return {
        "post_store": post_store,
        "counter_store": counter_store,
        "cache_provider": cache_provider,
        "post_service": service,
        "reconciliation_job": ReconciliationJob(counter_store, post_store, invalidator),
    }


@pytest.fixture()
def components(tmp_path: Path) -> dict[str, Any]:
    return _build_components(tmp_path / "posts.db")


@pytest.fixture()
def client(components: dict[str, Any]):
    with TestClient(create_app(components)) as test_client:
        yield test_client


def _create(client: TestClient, headers=ALICE, **body) -> dict:
    payload = {"title": "My Post", "content": "Some *markdown* body", "status": "published"}
    payload.update(body)
    response = client.post("/api/v1/posts", json=payload, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()["post"]


class TestHealth:
    def test_health_reports_providers(self, client: TestClient) -> None:
        response = client.get("/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["providers"] == {
            "post_store": "sqlite_post",
            "counter_store": "memory_counter",
            "cache": "memory_cache",
        }


class TestCreateAndRead:
    def test_create_requires_identity(self, client: TestClient) -> None:
        response = client.post("/api/v1/posts", json={"title": "Anon"})
        assert response.status_code == 401

    def test_create_validates_title(self, client: TestClient) -> None:
        response = client.post("/api/v1/posts", json={"title": ""}, headers=ALICE)
        assert response.status_code == 422

    def test_create_returns_version_one(self, client: TestClient) -> None:
        post = _create(client, title="Hello World!!")
        assert post["version"] == 1
        assert post["slug"] == "hello-world"
        assert post["owner_id"] == "alice"
        assert post["excerpt"] == "Some markdown body"

    def test_each_read_counts_a_view(self, client: TestClient) -> None:
        post = _create(client)
        for expected in (1, 2, 3):
            response = client.get(f"/api/v1/posts/{post['id']}")
            assert response.status_code == 200
            assert response.json()["post"]["view_count"] == expected

    def test_missing_post_is_404(self, client: TestClient) -> None:
        response = client.get("/api/v1/posts/nope")
        assert response.status_code == 404
        assert response.json() == {"error": "NotFoundError", "detail": "Post not found"}


class TestListing:
    def test_list_defaults_to_published(self, client: TestClient) -> None:
        _create(client, title="Public")
        _create(client, title="Hidden", status="draft")

        data = client.get("/api/v1/posts").json()

        assert [p["title"] for p in data["posts"]] == ["Public"]
        assert data["pagination"] == {"page": 1, "limit": 20, "total": 1, "total_pages": 1}

    def test_list_filters_by_owner_and_status(self, client: TestClient) -> None:
        _create(client, title="A draft", status="draft")
        _create(client, headers=BOB, title="Bob's")

        data = client.get("/api/v1/posts", params={"user_id": "alice", "status": "all"}).json()

        assert [p["title"] for p in data["posts"]] == ["A draft"]

    @pytest.mark.parametrize(
        "params",
        [{"page": 0}, {"limit": 0}, {"limit": 101}, {"status": "archived"}],
    )
    def test_invalid_query_is_422(self, client: TestClient, params: dict) -> None:
        assert client.get("/api/v1/posts", params=params).status_code == 422

    def test_listing_shows_live_view_counts(self, client: TestClient) -> None:
        post = _create(client)
        client.get(f"/api/v1/posts/{post['id']}")
        client.get(f"/api/v1/posts/{post['id']}")

        data = client.get("/api/v1/posts").json()

        assert data["posts"][0]["view_count"] == 2


class TestUpdate:
    def test_versioned_edit(self, client: TestClient) -> None:
        post = _create(client)
        response = client.patch(
            f"/api/v1/posts/{post['id']}",
            json={"title": "Edited", "version": 1},
            headers=ALICE,
        )
        assert response.status_code == 200
        assert response.json()["post"]["version"] == 2

    def test_two_editors_second_gets_409(self, client: TestClient) -> None:
        post = _create(client)
        url = f"/api/v1/posts/{post['id']}"

        first = client.patch(url, json={"title": "A", "version": 1}, headers=ALICE)
        second = client.patch(url, json={"title": "B", "version": 1}, headers=ALICE)

        assert first.status_code == 200
        assert second.status_code == 409
        assert second.json()["error"] == "ConflictError"
        assert "refresh" in second.json()["detail"]

    def test_edit_requires_version(self, client: TestClient) -> None:
        post = _create(client)
        response = client.patch(
            f"/api/v1/posts/{post['id']}", json={"title": "No version"}, headers=ALICE
        )
        assert response.status_code == 422

    def test_non_owner_gets_403(self, client: TestClient) -> None:
        post = _create(client)
        response = client.patch(
            f"/api/v1/posts/{post['id']}", json={"title": "Mine", "version": 1}, headers=BOB
        )
        assert response.status_code == 403

    def test_non_owner_with_stale_version_gets_403(self, client: TestClient) -> None:
        post = _create(client)
        url = f"/api/v1/posts/{post['id']}"
        client.patch(url, json={"title": "Edited", "version": 1}, headers=ALICE)

        response = client.patch(url, json={"title": "Mine", "version": 1}, headers=BOB)

        assert response.status_code == 403

    def test_read_after_edit_sees_new_title(self, client: TestClient) -> None:
        post = _create(client)
        url = f"/api/v1/posts/{post['id']}"
        client.get(url)
        client.get("/api/v1/posts")

        client.patch(url, json={"title": "Fresh", "version": 1}, headers=ALICE)

        assert client.get(url).json()["post"]["title"] == "Fresh"
        assert client.get("/api/v1/posts").json()["posts"][0]["title"] == "Fresh"


class TestDeleteAndLike:
    def test_delete_then_read_is_404(self, client: TestClient) -> None:
        post = _create(client)
        url = f"/api/v1/posts/{post['id']}"
        client.get(url)

        response = client.delete(url, headers=ALICE)

        assert response.status_code == 200
        assert response.json()["success"] is True
        assert client.get(url).status_code == 404
        assert client.get("/api/v1/posts").json()["posts"] == []

    def test_delete_with_stale_version_is_409(self, client: TestClient) -> None:
        post = _create(client)
        url = f"/api/v1/posts/{post['id']}"
        client.patch(url, json={"title": "Edited", "version": 1}, headers=ALICE)

        response = client.delete(url, params={"version": 1}, headers=ALICE)

        assert response.status_code == 409

    def test_like_toggle(self, client: TestClient) -> None:
        post = _create(client)
        url = f"/api/v1/posts/{post['id']}/like"

        liked = client.post(url, headers=BOB).json()
        unliked = client.post(url, headers=BOB).json()

        assert liked == {"liked": True, "likes_count": 1, "message": "Post liked"}
        assert unliked == {"liked": False, "likes_count": 0, "message": "Post unliked"}

    def test_liked_by_viewer_flag(self, client: TestClient) -> None:
        post = _create(client)
        client.post(f"/api/v1/posts/{post['id']}/like", headers=BOB)

        as_bob = client.get(f"/api/v1/posts/{post['id']}", headers=BOB).json()
        as_anon = client.get(f"/api/v1/posts/{post['id']}").json()

        assert as_bob["liked_by_viewer"] is True
        assert as_bob["post"]["likes_count"] == 1
        assert as_anon["liked_by_viewer"] is False

    def test_like_missing_post_is_404(self, client: TestClient) -> None:
        assert client.post("/api/v1/posts/ghost/like", headers=BOB).status_code == 404


class TestTrending:
    def test_trending_orders_by_likes_with_live_views(self, client: TestClient) -> None:
        liked = _create(client, title="Liked")
        other = _create(client, title="Other")
        client.post(f"/api/v1/posts/{other['id']}/like", headers=BOB)
        for headers in (ALICE, BOB):
            client.post(f"/api/v1/posts/{liked['id']}/like", headers=headers)
        client.get(f"/api/v1/posts/{liked['id']}")

        response = client.get("/api/v1/posts/trending")

        assert response.status_code == 200
        posts = response.json()["posts"]
        assert [p["id"] for p in posts] == [liked["id"], other["id"]]
        assert posts[0]["view_count"] == 1

    def test_deleted_post_drops_out(self, client: TestClient) -> None:
        post = _create(client)
        client.post(f"/api/v1/posts/{post['id']}/like", headers=BOB)
        client.delete(f"/api/v1/posts/{post['id']}", headers=ALICE)

        assert client.get("/api/v1/posts/trending").json() == {"posts": []}

    @pytest.mark.parametrize("limit", [0, 51])
    def test_limit_bounds(self, client: TestClient, limit: int) -> None:
        response = client.get("/api/v1/posts/trending", params={"limit": limit})
        assert response.status_code == 422


class TestReconciliationThroughApi:
    def test_views_reach_durable_store_after_reconcile(
        self, client: TestClient, components: dict[str, Any]
    ) -> None:
        post = _create(client)
        for _ in range(10):
            client.get(f"/api/v1/posts/{post['id']}")

        report = client.portal.call(components["reconciliation_job"].run)
        stored = client.portal.call(components["post_store"].get_post, post["id"])

        assert report.updated == 1
        assert stored.view_count == 10
