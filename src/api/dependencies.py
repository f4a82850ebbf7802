"""FastAPI dependencies for injection."""
from fastapi import Depends, HTTPException, Request
from sqlalchemy.ext.asyncio import AsyncSession

from core.config import Settings
from core.redis import RedisClient
from core.security import csrf_token_matches
from core.session import csrf_token, current_user_id
from db.session import get_async_session
from schemas.cached_user import CachedUser
from services.comment_service import CommentAggregator
from services.feed_service import FeedAssembler
from services.identity_service import IdentityResolver
from services.image_storage import ImageStorage


def get_app_settings(request: Request) -> Settings:
    """Settings the app was created with."""
    return request.app.state.settings


def get_redis_client(request: Request) -> RedisClient:
    """Process-wide Redis client created in the app lifespan."""
    return request.app.state.redis


def get_image_storage(request: Request) -> ImageStorage:
    """Image storage configured for the app."""
    return request.app.state.image_storage


def get_identity_resolver(
    cache: RedisClient = Depends(get_redis_client),
    db: AsyncSession = Depends(get_async_session),
    settings: Settings = Depends(get_app_settings),
) -> IdentityResolver:
    """Identity resolver bound to this request's database session."""
    return IdentityResolver(cache, db, ttl=settings.user_cache_ttl)


def get_feed_assembler(
    cache: RedisClient = Depends(get_redis_client),
    db: AsyncSession = Depends(get_async_session),
    settings: Settings = Depends(get_app_settings),
) -> FeedAssembler:
    """Feed assembler bound to this request's database session."""
    aggregator = CommentAggregator(
        cache,
        db,
        ttl=settings.comment_cache_ttl,
        fallback_on_cache_error=settings.comment_cache_fallback,
    )
    return FeedAssembler(aggregator)


async def get_current_user(
    request: Request,
    resolver: IdentityResolver = Depends(get_identity_resolver),
) -> CachedUser | None:
    """
    The logged-in user, or None.

    Anonymous sessions never reach the resolver. Resolution failures also yield None,
    so the caller simply sees a logged-out request.
    """
    user_id = current_user_id(request)
    if user_id is None:
        return None
    return await resolver.resolve(user_id)


async def require_user(
    current_user: CachedUser | None = Depends(get_current_user),
) -> CachedUser:
    """Reject anonymous requests with 401."""
    if current_user is None:
        raise HTTPException(status_code=401, detail="Login required")
    return current_user


async def require_admin(current_user: CachedUser = Depends(require_user)) -> CachedUser:
    """Reject non-admin users with 403."""
    if not current_user.is_admin:
        raise HTTPException(status_code=403, detail="Admin only")
    return current_user


def verify_csrf(request: Request, submitted: str | None) -> None:
    """Raise 422 unless `submitted` matches the session's CSRF token."""
    if not csrf_token_matches(csrf_token(request), submitted):
        raise HTTPException(status_code=422, detail="Invalid CSRF token")


__all__ = [
    "get_app_settings",
    "get_async_session",
    "get_current_user",
    "get_feed_assembler",
    "get_identity_resolver",
    "get_image_storage",
    "get_redis_client",
    "require_admin",
    "require_user",
    "verify_csrf",
]
