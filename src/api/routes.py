"""FastAPI API routes for Inkwell posts.

Thin handlers: validate input, resolve the caller, call PostService, shape
the response.  Consistency (version checks, cache-aside, view counting,
invalidation) lives entirely in the service layer.

# ─── API ROUTE MAP ───────────────────────────────────────────────────
#
# Endpoint                       Method  Description
# ─────────────────────────────────────────────────────────────────────
# /api/v1/posts                  GET     List posts (cached, live view counts)
# /api/v1/posts                  POST    Create a post            (auth)
# /api/v1/posts/trending         GET     Most-liked posts (live view counts)
# /api/v1/posts/{id}             GET     Read a post, count a view
# /api/v1/posts/{id}             PATCH   Versioned edit / publish (auth)
# /api/v1/posts/{id}             DELETE  Soft delete              (auth)
# /api/v1/posts/{id}/like        POST    Toggle like              (auth)
# /health                        GET     Health check + provider names
#
# AUTHENTICATION: identity is established upstream; the caller's id
# arrives in the ``X-User-Id`` header.  Mutating endpoints reject
# requests without it (401).
#
# DEPENDENCY INJECTION PATTERN:
# Route params typed with ``Annotated[T, Depends(helper)]`` are resolved
# from app.state (populated at startup by main.py's _build_all).
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Header, HTTPException, Query, Request

from src.api.schemas import (
    CreatePostRequest,
    DeletePostResponse,
    ErrorResponse,
    HealthResponse,
    LikeResponse,
    PostListResponse,
    PostResponse,
    TrendingResponse,
    UpdatePostRequest,
)
from src.models.post import PageRequest, PostFilters
from src.services.post_service import PostService


router = APIRouter(prefix="/api/v1")
health_router = APIRouter()

_ERROR_RESPONSES = {
    401: {"model": ErrorResponse},
    403: {"model": ErrorResponse},
    404: {"model": ErrorResponse},
    409: {"model": ErrorResponse},
    503: {"model": ErrorResponse},
}


# ---------------------------------------------------------------------------
# Dependencies
# ---------------------------------------------------------------------------


def _get_post_service(request: Request) -> PostService:
    """Return the post service from application state."""
    return request.app.state.post_service


def _get_viewer_id(
    x_user_id: Annotated[str | None, Header()] = None,
) -> str | None:
    return x_user_id or None


def _require_user_id(
    x_user_id: Annotated[str | None, Header()] = None,
) -> str:
    if not x_user_id:
        raise HTTPException(status_code=401, detail="Authentication required")
    return x_user_id


PostServiceDep = Annotated[PostService, Depends(_get_post_service)]
ViewerIdDep = Annotated[str | None, Depends(_get_viewer_id)]
UserIdDep = Annotated[str, Depends(_require_user_id)]


# ---------------------------------------------------------------------------
# Posts
# ---------------------------------------------------------------------------


@router.get("/posts", response_model=PostListResponse)
async def list_posts(
    service: PostServiceDep,
    page: Annotated[int, Query(ge=1)] = 1,
    limit: Annotated[int, Query(ge=1, le=100)] = 20,
    status: Annotated[str, Query(pattern="^(draft|published|all)$")] = "published",
    user_id: Annotated[str | None, Query()] = None,
    search: Annotated[str | None, Query(max_length=200)] = None,
) -> PostListResponse:
    """List posts, newest published first, with live view counts."""
    result = await service.list_posts(
        PostFilters(status=status, owner_id=user_id or None, search=search or None),
        PageRequest(page=page, limit=limit),
    )
    return PostListResponse(posts=result.posts, pagination=result.pagination)


@router.post(
    "/posts",
    response_model=PostResponse,
    status_code=201,
    responses=_ERROR_RESPONSES,
)
async def create_post(
    body: CreatePostRequest,
    service: PostServiceDep,
    user_id: UserIdDep,
) -> PostResponse:
    post = await service.create_post(user_id, body)
    return PostResponse(post=post)


# Registered before /posts/{post_id}, which would otherwise match "trending".
@router.get("/posts/trending", response_model=TrendingResponse)
async def trending_posts(
    service: PostServiceDep,
    limit: Annotated[int, Query(ge=1, le=50)] = 10,
) -> TrendingResponse:
    """Trending posts by like score, with live view counts."""
    return TrendingResponse(posts=await service.trending_posts(limit))


@router.get("/posts/{post_id}", response_model=PostResponse, responses=_ERROR_RESPONSES)
async def get_post(
    post_id: str,
    service: PostServiceDep,
    viewer_id: ViewerIdDep,
) -> PostResponse:
    """Read one post.  Every call counts a view."""
    display = await service.read_post_for_display(post_id, viewer_id)
    post = display.post.model_copy(update={"view_count": display.live_view_count})
    return PostResponse(post=post, liked_by_viewer=display.liked_by_viewer)


@router.patch("/posts/{post_id}", response_model=PostResponse, responses=_ERROR_RESPONSES)
async def update_post(
    post_id: str,
    body: UpdatePostRequest,
    service: PostServiceDep,
    user_id: UserIdDep,
) -> PostResponse:
    """Apply an edit if the post is still at ``body.version`` (else 409)."""
    post = await service.mutate_post(post_id, body.version, body.to_patch(), user_id)
    return PostResponse(post=post)


@router.delete(
    "/posts/{post_id}",
    response_model=DeletePostResponse,
    responses=_ERROR_RESPONSES,
)
async def delete_post(
    post_id: str,
    service: PostServiceDep,
    user_id: UserIdDep,
    version: Annotated[int | None, Query(ge=1)] = None,
) -> DeletePostResponse:
    await service.delete_post(post_id, user_id, expected_version=version)
    return DeletePostResponse()


@router.post(
    "/posts/{post_id}/like",
    response_model=LikeResponse,
    responses=_ERROR_RESPONSES,
)
async def toggle_like(
    post_id: str,
    service: PostServiceDep,
    user_id: UserIdDep,
) -> LikeResponse:
    result = await service.toggle_like(post_id, user_id)
    return LikeResponse(
        liked=result.liked,
        likes_count=result.likes_count,
        message="Post liked" if result.liked else "Post unliked",
    )


# ---------------------------------------------------------------------------
# Health
# ---------------------------------------------------------------------------


@health_router.get("/health", response_model=HealthResponse)
async def health(request: Request) -> HealthResponse:
    """Liveness check; reports which store backends are wired in."""
    state = request.app.state
    return HealthResponse(
        status="healthy",
        version=getattr(state, "app_version", "0.1.0"),
        providers={
            "post_store": state.post_store.get_provider_name(),
            "counter_store": state.counter_store.get_provider_name(),
            "cache": state.cache_provider.get_provider_name(),
        },
    )
