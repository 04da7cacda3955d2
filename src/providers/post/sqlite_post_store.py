"""SQLite-backed durable post store.

# ─── ARCHITECTURE ROLE ───────────────────────────────────────────────
#
# Layer: Providers (concrete adapter implementing IPostStore).
# Pattern: Adapter pattern; wraps SQLite behind the IPostStore ABC so the
#          durable backend can be swapped (e.g. PostgreSQL) without
#          touching the consistency engine.
#
# Database: ``data/posts.db`` (posts plus per-user likes).
#
# Concurrency contract:
#   - conditional_update is ONE statement:
#       UPDATE posts SET ..., version = version + 1
#       WHERE id = ? AND version = ? AND deleted_at IS NULL
#     SQLite serialises writers, so of N racing editors at the same
#     version exactly one sees rowcount == 1.
#   - ratchet_view_count uses SQLite's two-argument scalar MAX(), the
#     equivalent of PostgreSQL's GREATEST().
#   - ``timeout`` is SQLite's busy timeout; a writer that cannot get the
#     lock in time gets OperationalError, surfaced as TransientStoreError.
#   - Every public call is additionally capped by ``operation_timeout``
#     (asyncio.wait_for), so a hung disk or worker thread also ends in
#     TransientStoreError instead of an unbounded await.
#
# Uses ``aiosqlite`` for async I/O and ``PRAGMA journal_mode=WAL`` so
# readers are not blocked by the reconciliation job's writes.
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

import asyncio
import functools
import sqlite3
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, AsyncIterator, Awaitable, Callable, TypeVar

import aiosqlite
import structlog

from src.interfaces.post_store import IPostStore
from src.models.post import LikeResult, PageRequest, Post, PostFilters, PostStatus, utc_now_iso
from src.utils.errors import ConflictError, NotFoundError, TransientStoreError

logger = structlog.get_logger(logger_name=__name__)

_DEFAULT_DB_PATH = Path("data/posts.db")
_PROVIDER_NAME = "sqlite"

# ── Schema DDL ────────────────────────────────────────────────────────

_CREATE_POSTS_TABLE = """\
CREATE TABLE IF NOT EXISTS posts (
    id            TEXT    PRIMARY KEY,
    owner_id      TEXT    NOT NULL,
    title         TEXT    NOT NULL,
    slug          TEXT    NOT NULL,
    content       TEXT    NOT NULL DEFAULT '',
    excerpt       TEXT,
    cover_image   TEXT,
    status        TEXT    NOT NULL DEFAULT 'draft',
    views         INTEGER NOT NULL DEFAULT 0 CHECK (views >= 0),
    likes_count   INTEGER NOT NULL DEFAULT 0 CHECK (likes_count >= 0),
    version       INTEGER NOT NULL DEFAULT 1,
    published_at  TEXT,
    created_at    TEXT    NOT NULL,
    updated_at    TEXT    NOT NULL,
    deleted_at    TEXT
);
"""

_CREATE_LIKES_TABLE = """\
CREATE TABLE IF NOT EXISTS post_likes (
    id          INTEGER PRIMARY KEY AUTOINCREMENT,
    post_id     TEXT NOT NULL REFERENCES posts(id),
    user_id     TEXT NOT NULL,
    created_at  TEXT NOT NULL,
    UNIQUE(post_id, user_id)
);
"""

_CREATE_INDICES = [
    "CREATE INDEX IF NOT EXISTS idx_posts_owner ON posts(owner_id);",
    "CREATE UNIQUE INDEX IF NOT EXISTS idx_posts_owner_slug ON posts(owner_id, slug);",
    "CREATE INDEX IF NOT EXISTS idx_posts_status_published ON posts(status, published_at);",
    "CREATE INDEX IF NOT EXISTS idx_posts_deleted ON posts(deleted_at);",
    "CREATE INDEX IF NOT EXISTS idx_likes_user ON post_likes(user_id);",
]

# ── DML ───────────────────────────────────────────────────────────────

_POST_COLUMNS = """\
id, owner_id, title, slug, content, excerpt, cover_image, status, views,
likes_count, version, published_at, created_at, updated_at, deleted_at"""

_INSERT_POST = f"""\
INSERT INTO posts ({_POST_COLUMNS})
VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?);
"""

_SELECT_POST = f"SELECT {_POST_COLUMNS} FROM posts WHERE id = ?;"
_SELECT_LIVE_POSTS = "SELECT {columns} FROM posts WHERE id IN ({placeholders}) AND deleted_at IS NULL;"

_RATCHET_VIEWS = """\
UPDATE posts SET views = MAX(views, ?)
WHERE id = ? AND views < ?;
"""

_SLUG_EXISTS = "SELECT 1 FROM posts WHERE owner_id = ? AND slug = ? AND id != ? LIMIT 1;"

_SELECT_LIVE_POST_ID = "SELECT 1 FROM posts WHERE id = ? AND deleted_at IS NULL;"
_SELECT_LIKE = "SELECT id FROM post_likes WHERE post_id = ? AND user_id = ?;"
_INSERT_LIKE = "INSERT INTO post_likes (post_id, user_id, created_at) VALUES (?, ?, ?);"
_DELETE_LIKE = "DELETE FROM post_likes WHERE id = ?;"
_INCREMENT_LIKES = "UPDATE posts SET likes_count = likes_count + 1 WHERE id = ?;"
_DECREMENT_LIKES = "UPDATE posts SET likes_count = MAX(likes_count - 1, 0) WHERE id = ?;"
_SELECT_LIKES_COUNT = "SELECT likes_count FROM posts WHERE id = ?;"

# Columns a mutation may touch.  ``version`` is never in this set: the
# store bumps it itself as part of the conditional statement.
_MUTABLE_COLUMNS = frozenset({
    "title",
    "slug",
    "content",
    "excerpt",
    "cover_image",
    "status",
    "published_at",
    "updated_at",
    "deleted_at",
})


def _escape_like(term: str) -> str:
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


_R = TypeVar("_R")


def _bounded(method: Callable[..., Awaitable[_R]]) -> Callable[..., Awaitable[_R]]:
    """Cap a store coroutine at ``self._operation_timeout`` seconds."""

    @functools.wraps(method)
    async def wrapper(self: SQLitePostStore, *args: Any, **kwargs: Any) -> _R:
        try:
            return await asyncio.wait_for(
                method(self, *args, **kwargs), self._operation_timeout
            )
        except asyncio.TimeoutError as exc:
            logger.error(
                "post_store_timeout",
                operation=method.__name__,
                timeout=self._operation_timeout,
            )
            raise TransientStoreError(
                f"Post store {method.__name__} timed out after {self._operation_timeout}s",
                provider_name=_PROVIDER_NAME,
            ) from exc

    return wrapper


class SQLitePostStore(IPostStore):
    """SQLite-backed durable post store.

    Parameters
    ----------
    db_path:
        Location of the database file; parent directories are created.
    timeout:
        Busy timeout in seconds for acquiring the write lock.
    operation_timeout:
        Upper bound on a whole store call; defaults to twice *timeout* so
        lock waits report through the busy timeout first.
    """

    def __init__(
        self,
        db_path: str | Path = _DEFAULT_DB_PATH,
        timeout: float = 5.0,
        operation_timeout: float | None = None,
    ) -> None:
        self._db_path = Path(db_path)
        self._timeout = timeout
        self._operation_timeout = operation_timeout if operation_timeout is not None else 2 * timeout

    @asynccontextmanager
    async def _connect(self) -> AsyncIterator[aiosqlite.Connection]:
        """Open a connection, translating lock/IO failures to TransientStoreError."""
        try:
            async with aiosqlite.connect(str(self._db_path), timeout=self._timeout) as db:
                db.row_factory = aiosqlite.Row
                yield db
        except sqlite3.OperationalError as exc:
            logger.error("post_store_unavailable", path=str(self._db_path), error=str(exc))
            raise TransientStoreError(str(exc), provider_name=_PROVIDER_NAME) from exc

    @_bounded
    async def initialize(self) -> None:
        """Create all post tables and indices if they don't exist."""
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        async with self._connect() as db:
            await db.execute("PRAGMA journal_mode=WAL;")
            await db.execute(_CREATE_POSTS_TABLE)
            await db.execute(_CREATE_LIKES_TABLE)
            for idx_sql in _CREATE_INDICES:
                await db.execute(idx_sql)
            await db.commit()
        logger.info("post_db_initialized", path=str(self._db_path))

    def get_provider_name(self) -> str:
        return "sqlite_post"

    # ── Reads ──────────────────────────────────────────────────────────

    @_bounded
    async def get_post(self, post_id: str) -> Post | None:
        async with self._connect() as db:
            cursor = await db.execute(_SELECT_POST, (post_id,))
            row = await cursor.fetchone()
        return self._row_to_post(dict(row)) if row is not None else None

    @_bounded
    async def get_posts(self, post_ids: list[str]) -> list[Post]:
        if not post_ids:
            return []
        query = _SELECT_LIVE_POSTS.format(
            columns=_POST_COLUMNS, placeholders=", ".join("?" for _ in post_ids)
        )
        async with self._connect() as db:
            cursor = await db.execute(query, list(post_ids))
            rows = await cursor.fetchall()
        return [self._row_to_post(dict(r)) for r in rows]

    @_bounded
    async def list_posts(
        self,
        filters: PostFilters,
        page: PageRequest,
    ) -> tuple[list[Post], int]:
        """Return one page of live posts matching *filters*, plus the total."""
        conditions = ["deleted_at IS NULL"]
        params: list[Any] = []

        if filters.status != "all":
            conditions.append("status = ?")
            params.append(filters.status)
        if filters.owner_id:
            conditions.append("owner_id = ?")
            params.append(filters.owner_id)
        if filters.search:
            # LIKE is case-insensitive for ASCII in SQLite.
            term = f"%{_escape_like(filters.search)}%"
            conditions.append("(title LIKE ? ESCAPE '\\' OR content LIKE ? ESCAPE '\\')")
            params.extend([term, term])

        where_clause = " AND ".join(conditions)
        query = f"""\
            SELECT {_POST_COLUMNS}
            FROM posts
            WHERE {where_clause}
            ORDER BY published_at DESC, created_at DESC, id DESC
            LIMIT ? OFFSET ?;
        """
        count_query = f"SELECT COUNT(*) AS total FROM posts WHERE {where_clause};"

        async with self._connect() as db:
            cursor = await db.execute(query, [*params, page.limit, page.offset])
            rows = await cursor.fetchall()
            cursor = await db.execute(count_query, params)
            total_row = await cursor.fetchone()

        posts = [self._row_to_post(dict(r)) for r in rows]
        return posts, int(total_row["total"]) if total_row else 0

    @_bounded
    async def slug_exists(
        self,
        owner_id: str,
        slug: str,
        exclude_post_id: str | None = None,
    ) -> bool:
        # Tombstoned posts keep their slug (and their unique-index entry).
        async with self._connect() as db:
            cursor = await db.execute(_SLUG_EXISTS, (owner_id, slug, exclude_post_id or ""))
            row = await cursor.fetchone()
        return row is not None

    @_bounded
    async def has_liked(self, post_id: str, user_id: str) -> bool:
        async with self._connect() as db:
            cursor = await db.execute(_SELECT_LIKE, (post_id, user_id))
            row = await cursor.fetchone()
        return row is not None

    # ── Writes ─────────────────────────────────────────────────────────

    @_bounded
    async def insert_post(self, post: Post) -> None:
        try:
            async with self._connect() as db:
                await db.execute(_INSERT_POST, (
                    post.id,
                    post.owner_id,
                    post.title,
                    post.slug,
                    post.content,
                    post.excerpt,
                    post.cover_image,
                    post.status.value,
                    post.view_count,
                    post.likes_count,
                    post.version,
                    post.published_at,
                    post.created_at,
                    post.updated_at,
                    post.deleted_at,
                ))
                await db.commit()
        except sqlite3.IntegrityError as exc:
            # Another request claimed the same (owner, slug) after our check.
            raise ConflictError(
                f"Slug '{post.slug}' was taken concurrently; retry the request",
                provider_name=_PROVIDER_NAME,
            ) from exc
        logger.info("post_inserted", post_id=post.id, owner_id=post.owner_id, slug=post.slug)

    @_bounded
    async def conditional_update(
        self,
        post_id: str,
        expected_version: int,
        changes: dict[str, Any],
    ) -> int:
        unknown = set(changes) - _MUTABLE_COLUMNS
        if unknown:
            raise ValueError(f"Not a mutable post column: {sorted(unknown)}")

        assignments = [f"{column} = ?" for column in changes]
        params: list[Any] = [
            value.value if isinstance(value, PostStatus) else value
            for value in changes.values()
        ]
        assignments.append("version = version + 1")
        query = (
            f"UPDATE posts SET {', '.join(assignments)} "
            "WHERE id = ? AND version = ? AND deleted_at IS NULL;"
        )
        params.extend([post_id, expected_version])

        try:
            async with self._connect() as db:
                cursor = await db.execute(query, params)
                await db.commit()
                rows = cursor.rowcount
        except sqlite3.IntegrityError as exc:
            raise ConflictError(
                "Slug was taken concurrently; retry the request",
                provider_name=_PROVIDER_NAME,
            ) from exc

        logger.debug(
            "post_conditional_update",
            post_id=post_id,
            expected_version=expected_version,
            rows_affected=rows,
        )
        return rows

    @_bounded
    async def ratchet_view_count(self, post_id: str, candidate: int) -> bool:
        async with self._connect() as db:
            cursor = await db.execute(_RATCHET_VIEWS, (candidate, post_id, candidate))
            await db.commit()
            return cursor.rowcount > 0

    @_bounded
    async def toggle_like(self, post_id: str, user_id: str) -> LikeResult:
        async with self._connect() as db:
            # IMMEDIATE takes the write lock up front so the existence
            # check and the flip cannot interleave with another toggle.
            await db.execute("BEGIN IMMEDIATE;")
            try:
                cursor = await db.execute(_SELECT_LIVE_POST_ID, (post_id,))
                if await cursor.fetchone() is None:
                    raise NotFoundError()

                cursor = await db.execute(_SELECT_LIKE, (post_id, user_id))
                existing = await cursor.fetchone()
                if existing is not None:
                    await db.execute(_DELETE_LIKE, (existing["id"],))
                    await db.execute(_DECREMENT_LIKES, (post_id,))
                    liked = False
                else:
                    await db.execute(_INSERT_LIKE, (post_id, user_id, utc_now_iso()))
                    await db.execute(_INCREMENT_LIKES, (post_id,))
                    liked = True

                cursor = await db.execute(_SELECT_LIKES_COUNT, (post_id,))
                count_row = await cursor.fetchone()
                await db.commit()
            except BaseException:
                await db.rollback()
                raise

        likes_count = int(count_row["likes_count"]) if count_row else 0
        logger.debug("post_like_toggled", post_id=post_id, liked=liked, likes_count=likes_count)
        return LikeResult(liked=liked, likes_count=likes_count)

    # ── Private helpers ────────────────────────────────────────────────

    @staticmethod
    def _row_to_post(row: dict[str, Any]) -> Post:
        """Convert a ``posts`` row into a Post model."""
        return Post(
            id=row["id"],
            owner_id=row["owner_id"],
            title=row["title"],
            slug=row["slug"],
            content=row["content"],
            excerpt=row.get("excerpt"),
            cover_image=row.get("cover_image"),
            status=PostStatus(row["status"]),
            version=row["version"],
            view_count=row["views"],
            likes_count=row["likes_count"],
            published_at=row.get("published_at"),
            created_at=row["created_at"],
            updated_at=row["updated_at"],
            deleted_at=row.get("deleted_at"),
        )
