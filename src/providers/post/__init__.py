"""Durable post store providers.

SQLitePostStore keeps posts and per-user likes in data/posts.db.  It is
the source of truth for content, versions and committed view counts.
"""

from src.providers.post.sqlite_post_store import SQLitePostStore

__all__ = ["SQLitePostStore"]
