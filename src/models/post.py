"""Post domain models: the records the consistency engine protects.

# ─── ARCHITECTURE ROLE ───────────────────────────────────────────────
#
# Layer: Models (bottom of the dependency graph, no imports from upper layers).
#
# Frozen Pydantic v2 models, same convention as the rest of the codebase.
# Mutations never edit a Post in place: the optimistic-lock coordinator
# produces the post-commit record with ``model_copy(update={...})``.
#
# Field notes:
#   - ``version`` starts at 1 and moves by exactly 1 per committed edit.
#   - ``view_count`` is the *persisted* count, the last value the
#     reconciliation job ratcheted into the durable store.  The live
#     count lives in the volatile counter store and is reported
#     separately (``PostDisplay.live_view_count``).
#   - ``deleted_at`` is a tombstone; rows are never physically removed.
#   - Timestamps are ISO-8601 UTC strings, as stored in SQLite.
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

import math
from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


def utc_now_iso() -> str:
    """Current UTC time as an ISO-8601 string (the stored timestamp format)."""
    return datetime.now(timezone.utc).isoformat()


# Inherits from (str, Enum) so it serialises as a plain string.
class PostStatus(str, Enum):
    """Publication state of a post."""

    DRAFT = "draft"
    PUBLISHED = "published"


class Post(BaseModel):
    """A single content record as stored in the durable store."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(description="Opaque unique key (uuid4 hex).")
    owner_id: str = Field(description="Author who owns the post.")
    title: str
    slug: str = Field(description="URL slug, unique per owner.")
    content: str = ""
    excerpt: str | None = None
    cover_image: str | None = None
    status: PostStatus = PostStatus.DRAFT
    version: int = Field(default=1, ge=1)
    view_count: int = Field(default=0, ge=0, description="Persisted view count.")
    likes_count: int = Field(default=0, ge=0)
    published_at: str | None = None
    created_at: str
    updated_at: str
    deleted_at: str | None = None

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None


class NewPost(BaseModel):
    """Fields supplied by an author when creating a post."""

    model_config = ConfigDict(frozen=True)

    title: str = Field(min_length=1, max_length=200)
    content: str = Field(default="", max_length=50_000)
    cover_image: str | None = None
    status: PostStatus = PostStatus.DRAFT


class PostPatch(BaseModel):
    """Partial update to a post's mutable fields; ``None`` means unchanged."""

    model_config = ConfigDict(frozen=True)

    title: str | None = Field(default=None, min_length=1, max_length=200)
    content: str | None = Field(default=None, max_length=50_000)
    cover_image: str | None = None
    status: PostStatus | None = None


class PostFilters(BaseModel):
    """Listing filters; part of the list cache key."""

    model_config = ConfigDict(frozen=True)

    status: str = Field(default="published", pattern="^(draft|published|all)$")
    owner_id: str | None = None
    search: str | None = None


class PageRequest(BaseModel):
    """Requested page of a listing (1-based)."""

    model_config = ConfigDict(frozen=True)

    page: int = Field(default=1, ge=1)
    limit: int = Field(default=20, ge=1, le=100)

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


class Pagination(BaseModel):
    model_config = ConfigDict(frozen=True)

    page: int
    limit: int
    total: int
    total_pages: int

    @classmethod
    def build(cls, page: PageRequest, total: int) -> Pagination:
        return cls(
            page=page.page,
            limit=page.limit,
            total=total,
            total_pages=math.ceil(total / page.limit),
        )


class PostPage(BaseModel):
    """One page of a listing.

    ``posts[*].view_count`` carries the *live* count merged in from the
    volatile counter store when the page was computed, not the persisted
    one.  The whole page is what gets cached.
    """

    model_config = ConfigDict(frozen=True)

    posts: list[Post] = Field(default_factory=list)
    pagination: Pagination


class PostDisplay(BaseModel):
    """Result of a detail read: the record plus per-request live data."""

    model_config = ConfigDict(frozen=True)

    post: Post
    live_view_count: int = Field(ge=0)
    liked_by_viewer: bool = False


class LikeResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    liked: bool
    likes_count: int = Field(ge=0)


class ReconciliationReport(BaseModel):
    """Outcome of one reconciliation pass."""

    job_run_id: str
    scanned: int = 0
    updated: int = 0
    unchanged: int = 0
    failed: int = 0
    failed_ids: list[str] = Field(default_factory=list)
    duration_ms: float = 0.0

    @property
    def ok(self) -> bool:
        return self.failed == 0
