"""Resolve a session's user id to a user snapshot, read-through Redis."""
import logging

from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from core.redis import RedisClient
from models.user import User
from schemas.cached_user import CachedUser, decode_cached_user, encode_cached_user

logger = logging.getLogger(__name__)

DEFAULT_USER_CACHE_TTL = 300


def user_cache_key(user_id: int) -> str:
    """Redis key holding the cached snapshot of a user."""
    return f"user:{user_id}"


class IdentityResolver:
    """
    Cache-aside lookup of users by id.

    Entries are written on miss and expire by TTL; nothing invalidates them, so a
    ban takes effect for an already-cached user only once the entry expires.
    """

    def __init__(
        self,
        cache: RedisClient,
        db: AsyncSession,
        ttl: int = DEFAULT_USER_CACHE_TTL,
    ) -> None:
        self._cache = cache
        self._db = db
        self._ttl = ttl

    async def resolve(self, user_id: int) -> CachedUser | None:
        """
        Return the user for `user_id`, or None.

        None covers an unknown id, an undecodable cache entry and an unreachable
        database. Callers treat all three as an anonymous request.
        """
        key = user_cache_key(user_id)
        raw = await self._cache.get(key)
        if raw is not None:
            try:
                return decode_cached_user(raw)
            except ValidationError as e:
                logger.warning(
                    "cached_user_undecodable",
                    extra={"user_id": user_id, "error": str(e)},
                )
                return None

        try:
            user = await self._db.get(User, user_id)
        except SQLAlchemyError:
            logger.exception("user_lookup_failed", extra={"user_id": user_id})
            # A failed statement aborts the request's transaction on PostgreSQL
            await self._db.rollback()
            return None
        if user is None:
            return None

        cached = CachedUser.from_model(user)
        # Failure only costs a cache miss on the next request
        await self._cache.setex(key, self._ttl, encode_cached_user(cached))
        return cached
