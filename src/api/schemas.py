"""Pydantic request/response schemas for the Inkwell API.

Defines the public contract for the post endpoints, health and errors.

# ─── HOW SCHEMAS WORK ────────────────────────────────────────────────
#
# FastAPI uses these models to validate incoming JSON (invalid requests
# get a 422), to serialise responses (response_model=...), and to
# generate the OpenAPI docs at /docs.
#
# Convention: Request schemas end with "Request", response schemas end
# with "Response".  Domain models (Post, Pagination) are reused directly
# where the wire shape is the same.
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from src.models.post import NewPost, Pagination, Post, PostPatch


class CreatePostRequest(NewPost):
    """Body of ``POST /api/v1/posts``."""


class UpdatePostRequest(PostPatch):
    """Body of ``PATCH /api/v1/posts/{id}``.

    ``version`` is the version the client last read; a mismatch is a 409.
    """

    version: int = Field(..., ge=1)

    def to_patch(self) -> PostPatch:
        return PostPatch(**self.model_dump(exclude={"version"}))


class PostResponse(BaseModel):
    """A single post.

    ``post.view_count`` is the live count for detail reads; after a write
    it is the persisted count.
    """

    post: Post
    liked_by_viewer: bool = False


class PostListResponse(BaseModel):
    posts: list[Post]
    pagination: Pagination


class TrendingResponse(BaseModel):
    """Trending posts, highest score first; ``view_count`` is live."""

    posts: list[Post] = Field(default_factory=list)


class DeletePostResponse(BaseModel):
    success: bool = True
    message: str = "Post deleted successfully"


class LikeResponse(BaseModel):
    liked: bool
    likes_count: int
    message: str


class HealthResponse(BaseModel):
    """Application health check response."""

    status: str
    version: str
    providers: dict[str, Any]


class ErrorResponse(BaseModel):
    """Standard error response body."""

    error: str
    detail: str | None = None
