"""Select candidate posts for a feed and assemble them into render-ready items."""
from collections.abc import Sequence
from datetime import datetime

from sqlalchemy import Select, select
from sqlalchemy.ext.asyncio import AsyncSession

from models.post import Post
from models.user import User
from schemas.post import FeedItem, PostRow
from services.comment_service import CommentAggregator

DEFAULT_POSTS_PER_PAGE = 20


def _visible_posts_query() -> Select:
    """Posts joined with their author, excluding banned authors, newest first."""
    return (
        select(
            Post.id,
            Post.user_id,
            Post.mime,
            Post.body,
            Post.created_at,
            User.account_name,
        )
        .join(User, Post.user_id == User.id)
        .where(User.deleted.is_(False))
        .order_by(Post.created_at.desc(), Post.id.desc())
    )


async def _fetch_rows(db: AsyncSession, query: Select) -> list[PostRow]:
    rows = (await db.execute(query)).all()
    return [PostRow.model_validate(row) for row in rows]


async def list_recent_posts(
    db: AsyncSession, limit: int = DEFAULT_POSTS_PER_PAGE,
) -> list[PostRow]:
    """Newest posts across all active users."""
    return await _fetch_rows(db, _visible_posts_query().limit(limit))


async def list_posts_before(
    db: AsyncSession,
    max_created_at: datetime,
    limit: int = DEFAULT_POSTS_PER_PAGE,
) -> list[PostRow]:
    """
    Posts created at or before `max_created_at` (pagination of the index feed).

    The cursor is inclusive: passing the oldest `created_at` of one page returns
    that post again as the first item of the next, so clients de-duplicate by id.
    """
    query = _visible_posts_query().where(Post.created_at <= max_created_at).limit(limit)
    return await _fetch_rows(db, query)


async def list_user_posts(
    db: AsyncSession, user_id: int, limit: int = DEFAULT_POSTS_PER_PAGE,
) -> list[PostRow]:
    """Newest posts by a single user."""
    query = _visible_posts_query().where(Post.user_id == user_id).limit(limit)
    return await _fetch_rows(db, query)


async def get_post_rows(db: AsyncSession, post_id: int) -> list[PostRow]:
    """The post with `post_id` as a one-element list, or empty if missing or hidden."""
    return await _fetch_rows(db, _visible_posts_query().where(Post.id == post_id))


class FeedAssembler:
    """Turns selected post rows into feed items stamped with the caller's CSRF token."""

    def __init__(self, aggregator: CommentAggregator) -> None:
        self._aggregator = aggregator

    async def assemble(
        self, rows: Sequence[PostRow], csrf_token: str, full: bool = False,
    ) -> list[FeedItem]:
        """Enrich `rows` with comment data. Errors from enrichment propagate unchanged."""
        items = await self._aggregator.enrich(rows, full)
        for item in items:
            item.csrf_token = csrf_token
        return items
