"""
Attach comment counts and comment lists to posts, read-through Redis.

All cache keys for a batch of posts are fetched with a single MGET. Misses are
filled from the database one post at a time and written back with a TTL. Nothing
invalidates these entries when a comment is added; feeds may lag new comments until
the entries expire.

Comment lists are cached in display order (oldest first), the same order they are
attached to feed items, so the hit and miss paths return identical lists.
"""
import logging
from collections.abc import Sequence

from pydantic import ValidationError
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from core.redis import CacheUnavailableError, RedisClient
from models.comment import Comment
from models.user import User
from schemas.post import CommentView, FeedItem, PostRow, comment_list_adapter

logger = logging.getLogger(__name__)

# Number of comments shown per post outside the post detail view
COMMENT_PREVIEW_LIMIT = 3
DEFAULT_COMMENT_CACHE_TTL = 60


class MalformedCacheValueError(Exception):
    """Raised when a cached comment count or comment list cannot be decoded."""

    def __init__(self, key: str, reason: str) -> None:
        self.key = key
        super().__init__(f"Malformed cache value for {key}: {reason}")


def comment_count_key(post_id: int) -> str:
    """Redis key holding a post's comment count."""
    return f"post:{post_id}:comment_count"


def comments_key(post_id: int, full: bool) -> str:
    """Redis key holding a post's comment list (all comments or the latest few)."""
    suffix = ":all" if full else ""
    return f"post:{post_id}:comments{suffix}"


def parse_comment_count(key: str, raw: bytes) -> int:
    """Decode a cached count. Anything but a non-negative integer is an error."""
    try:
        count = int(raw)
    except ValueError as e:
        raise MalformedCacheValueError(key, "not an integer") from e
    if count < 0:
        raise MalformedCacheValueError(key, "negative count")
    return count


def parse_comment_list(key: str, raw: bytes, post_id: int) -> list[CommentView]:
    """Decode a cached comment list and check every comment belongs to the post."""
    try:
        comments = comment_list_adapter.validate_json(raw)
    except ValidationError as e:
        raise MalformedCacheValueError(key, "invalid comment list") from e
    if any(c.post_id != post_id for c in comments):
        raise MalformedCacheValueError(key, "comment from another post")
    return comments


class CommentAggregator:
    """Batch-populates comment data for posts from Redis, falling back to the database."""

    def __init__(
        self,
        cache: RedisClient,
        db: AsyncSession,
        ttl: int = DEFAULT_COMMENT_CACHE_TTL,
        fallback_on_cache_error: bool = False,
    ) -> None:
        self._cache = cache
        self._db = db
        self._ttl = ttl
        self._fallback_on_cache_error = fallback_on_cache_error

    async def enrich(self, posts: Sequence[PostRow], full: bool) -> list[FeedItem]:
        """
        Return one FeedItem per post, in input order.

        Args:
            posts: Posts already selected and ordered by the caller.
            full: Attach every comment (post detail view) instead of the latest
                COMMENT_PREVIEW_LIMIT.

        Raises:
            CacheUnavailableError: The batch cache read failed and fallback is off.
            MalformedCacheValueError: A cached value could not be decoded.
            SQLAlchemyError: Any database query failed.
        """
        if not posts:
            return []

        keys: list[str] = []
        for post in posts:
            keys.append(comment_count_key(post.id))
            keys.append(comments_key(post.id, full))

        try:
            cached = await self._cache.mget(keys)
        except CacheUnavailableError:
            if not self._fallback_on_cache_error:
                raise
            logger.warning(
                "comment_cache_unavailable",
                extra={"operation": "enrich", "posts": len(posts)},
            )
            cached = {}

        items = []
        for post in posts:
            comment_count = await self._resolve_count(post.id, cached)
            comments = await self._resolve_comments(post.id, full, cached)
            items.append(
                FeedItem(
                    **{name: getattr(post, name) for name in PostRow.model_fields},
                    comment_count=comment_count,
                    comments=comments,
                ),
            )
        return items

    async def _resolve_count(self, post_id: int, cached: dict[str, bytes]) -> int:
        key = comment_count_key(post_id)
        raw = cached.get(key)
        if raw is not None:
            return parse_comment_count(key, raw)

        result = await self._db.execute(
            select(func.count()).select_from(Comment).where(Comment.post_id == post_id),
        )
        count = result.scalar_one()
        await self._cache.setex(key, self._ttl, str(count))
        return count

    async def _resolve_comments(
        self, post_id: int, full: bool, cached: dict[str, bytes],
    ) -> list[CommentView]:
        key = comments_key(post_id, full)
        raw = cached.get(key)
        if raw is not None:
            return parse_comment_list(key, raw, post_id)

        # Newest first so LIMIT keeps the most recent comments
        query = (
            select(
                Comment.id,
                Comment.post_id,
                Comment.user_id,
                Comment.comment,
                Comment.created_at,
                User.account_name,
            )
            .join(User, Comment.user_id == User.id)
            .where(Comment.post_id == post_id)
            .order_by(Comment.created_at.desc(), Comment.id.desc())
        )
        if not full:
            query = query.limit(COMMENT_PREVIEW_LIMIT)
        rows = (await self._db.execute(query)).all()

        comments = [CommentView.model_validate(row) for row in reversed(rows)]
        await self._cache.setex(key, self._ttl, comment_list_adapter.dump_json(comments))
        return comments
