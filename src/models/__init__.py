"""Inkwell domain models: re-exports all public model classes.

Other parts of the codebase can import from ``src.models`` directly
(e.g. ``from src.models import Post``) instead of the submodule.

    - post.py : posts, listing filters and pages, likes, and the
                reconciliation report
"""

from __future__ import annotations

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
    ReconciliationReport,
    utc_now_iso,
)

__all__ = [
    "LikeResult",
    "NewPost",
    "PageRequest",
    "Pagination",
    "Post",
    "PostDisplay",
    "PostFilters",
    "PostPage",
    "PostPatch",
    "PostStatus",
    "ReconciliationReport",
    "utc_now_iso",
]
