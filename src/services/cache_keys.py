"""Deterministic cache keys for post queries.

Key families (each invalidated as a unit by CacheInvalidator):

    post:{id}                                          single-post detail
    posts:list:{page}:{limit}:{status}:{search}        all-owner listings
    posts:user:{owner}:list:{page}:{limit}:{status}:{search}
                                                       one owner's listings

Owner listings live under their own prefix so an edit can drop exactly
that owner's pages, and so ``posts:list:*`` does not have to match them.
Counter keys (``post:{id}:views``) never collide with ``post:{id}``
because the cache only ever deletes the exact detail key.
"""

from __future__ import annotations

import hashlib

from src.models.post import PageRequest, PostFilters

LIST_PATTERN = "posts:list:*"


def post_key(post_id: str) -> str:
    return f"post:{post_id}"


def owner_list_pattern(owner_id: str) -> str:
    return f"posts:user:{owner_id}:*"


def _search_token(search: str | None) -> str:
    if not search:
        return "none"
    # Free text can be long or contain ':'; hash it into a fixed-width token.
    return hashlib.sha1(search.encode("utf-8")).hexdigest()[:16]


def list_key(filters: PostFilters, page: PageRequest) -> str:
    suffix = f"{page.page}:{page.limit}:{filters.status}:{_search_token(filters.search)}"
    if filters.owner_id:
        return f"posts:user:{filters.owner_id}:list:{suffix}"
    return f"posts:list:{suffix}"
