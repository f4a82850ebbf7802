"""Feed endpoints: index, pagination, post detail and user profiles."""
from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import (
    get_app_settings,
    get_async_session,
    get_current_user,
    get_feed_assembler,
)
from core.config import Settings
from core.session import csrf_token
from schemas.cached_user import CachedUser
from schemas.post import FeedItem, FeedResponse, ProfileResponse
from schemas.user import UserResponse
from services import feed_service, user_service
from services.feed_service import FeedAssembler

router = APIRouter(tags=["feed"])


def _me(current_user: CachedUser | None) -> UserResponse | None:
    if current_user is None:
        return None
    return UserResponse.model_validate(current_user)


@router.get("/", response_model=FeedResponse)
async def index(
    request: Request,
    current_user: CachedUser | None = Depends(get_current_user),
    assembler: FeedAssembler = Depends(get_feed_assembler),
    settings: Settings = Depends(get_app_settings),
    db: AsyncSession = Depends(get_async_session),
) -> FeedResponse:
    """Newest posts with their latest comments."""
    rows = await feed_service.list_recent_posts(db, settings.posts_per_page)
    token = csrf_token(request)
    posts = await assembler.assemble(rows, token)
    return FeedResponse(posts=posts, me=_me(current_user), csrf_token=token)


@router.get("/posts", response_model=list[FeedItem])
async def list_posts(
    request: Request,
    max_created_at: datetime | None = Query(
        default=None, description="Only posts created at or before this ISO 8601 time",
    ),
    assembler: FeedAssembler = Depends(get_feed_assembler),
    settings: Settings = Depends(get_app_settings),
    db: AsyncSession = Depends(get_async_session),
) -> list[FeedItem]:
    """Next page of the index feed."""
    if max_created_at is None:
        return []
    rows = await feed_service.list_posts_before(db, max_created_at, settings.posts_per_page)
    posts = await assembler.assemble(rows, csrf_token(request))
    if not posts:
        raise HTTPException(status_code=404, detail="No posts")
    return posts


@router.get("/posts/{post_id}", response_model=FeedItem)
async def get_post(
    post_id: int,
    request: Request,
    assembler: FeedAssembler = Depends(get_feed_assembler),
    db: AsyncSession = Depends(get_async_session),
) -> FeedItem:
    """A single post with all of its comments."""
    rows = await feed_service.get_post_rows(db, post_id)
    posts = await assembler.assemble(rows, csrf_token(request), full=True)
    if not posts:
        raise HTTPException(status_code=404, detail="Post not found")
    return posts[0]


@router.get("/@{account_name}", response_model=ProfileResponse)
async def get_profile(
    account_name: str,
    request: Request,
    current_user: CachedUser | None = Depends(get_current_user),
    assembler: FeedAssembler = Depends(get_feed_assembler),
    settings: Settings = Depends(get_app_settings),
    db: AsyncSession = Depends(get_async_session),
) -> ProfileResponse:
    """A user's recent posts and activity counters."""
    user = await user_service.get_user_by_account_name(db, account_name)
    if user is None:
        raise HTTPException(status_code=404, detail="User not found")

    rows = await feed_service.list_user_posts(db, user.id, settings.posts_per_page)
    posts = await assembler.assemble(rows, csrf_token(request))
    stats = await user_service.get_profile_stats(db, user.id)
    return ProfileResponse(
        user=UserResponse.model_validate(user),
        posts=posts,
        post_count=stats.post_count,
        comment_count=stats.comment_count,
        commented_count=stats.commented_count,
        me=_me(current_user),
    )
