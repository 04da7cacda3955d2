"""URL slug derivation and per-owner disambiguation.

Slugs are unique per owner (the ``posts`` table carries a unique index on
``(owner_id, slug)``), so two authors may both publish ``my-first-post``.
Disambiguation appends ``-1``, ``-2`` ... until the store reports a free
slug; the search is capped so a pathological title cannot spin forever.
"""

from __future__ import annotations

import re
from typing import Awaitable, Callable

from src.utils.errors import SlugExhaustionError

_STRIP_CHARS = re.compile(r"[^\w\s-]", re.ASCII)
_SEPARATOR_RUNS = re.compile(r"[\s_-]+", re.ASCII)

DEFAULT_MAX_LENGTH = 100
DEFAULT_MAX_ATTEMPTS = 100

# Used when a title has no sluggable characters at all (e.g. "!!!").
_FALLBACK_SLUG = "post"


def slugify(title: str, max_length: int = DEFAULT_MAX_LENGTH) -> str:
    """Derive a URL-friendly slug from *title*.

    >>> slugify("Hello World!!")
    'hello-world'
    """
    slug = _STRIP_CHARS.sub("", title.lower().strip())
    slug = _SEPARATOR_RUNS.sub("-", slug).strip("-")
    # Truncation can land on a separator.
    slug = slug[:max_length].rstrip("-")
    return slug or _FALLBACK_SLUG


async def unique_slug(
    base_slug: str,
    is_taken: Callable[[str], Awaitable[bool]],
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
) -> str:
    """Return the first of ``base``, ``base-1``, ``base-2`` ... not taken.

    Parameters
    ----------
    base_slug:
        Output of :func:`slugify`.
    is_taken:
        Async predicate backed by an owner-scoped uniqueness query.
    max_attempts:
        Total number of candidates tried before giving up.

    Raises
    ------
    SlugExhaustionError
        If every candidate within the cap is already taken.
    """
    for attempt in range(max_attempts):
        candidate = base_slug if attempt == 0 else f"{base_slug}-{attempt}"
        if not await is_taken(candidate):
            return candidate

    raise SlugExhaustionError(
        f"Unable to generate unique slug for '{base_slug}' after {max_attempts} attempts"
    )
