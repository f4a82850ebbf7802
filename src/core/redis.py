"""Redis client with connection pooling and graceful fallback."""
import logging
from collections.abc import Sequence

from redis.asyncio import ConnectionPool, Redis
from redis.exceptions import RedisError

logger = logging.getLogger(__name__)


class CacheUnavailableError(Exception):
    """Raised when a read that cannot degrade to a miss fails to reach Redis."""


class RedisClient:
    """
    Async Redis client with connection pooling and graceful fallback.

    Single-key reads and all writes never raise: failures are logged and reported as
    a miss (None) or False. Batch reads via mget() are the exception, they raise
    CacheUnavailableError so the caller can decide whether an outage is fatal.

    A client created with enabled=False behaves as an always-empty cache.
    """

    def __init__(self, url: str, enabled: bool = True) -> None:
        self._url = url
        self._enabled = enabled
        self._pool: ConnectionPool | None = None
        self._client: Redis | None = None

    async def connect(self) -> None:
        """Initialize connection pool and verify connectivity."""
        if not self._enabled:
            logger.info("Redis disabled by configuration")
            return
        try:
            self._pool = ConnectionPool.from_url(self._url, max_connections=10)
            self._client = Redis(connection_pool=self._pool)
            # Verify connection
            await self._client.ping()
            logger.info("Redis connected successfully")
        except RedisError as e:
            logger.warning("Redis connection failed: %s", e)
            self._client = None
            self._pool = None

    async def close(self) -> None:
        """Close connection pool."""
        if self._client:
            await self._client.aclose()
            self._client = None
            self._pool = None
            logger.info("Redis connection closed")

    @property
    def enabled(self) -> bool:
        """Whether caching is turned on by configuration."""
        return self._enabled

    @property
    def is_connected(self) -> bool:
        """Check if client is connected."""
        return self._client is not None

    async def ping(self) -> bool:
        """Check Redis connectivity."""
        if not self._client:
            return False
        try:
            return await self._client.ping()
        except RedisError:
            return False

    async def get(self, key: str) -> bytes | None:
        """Get value, returns None if Redis unavailable."""
        if not self._client:
            return None
        try:
            return await self._client.get(key)
        except RedisError as e:
            logger.warning("Redis GET failed: %s", e)
            return None

    async def mget(self, keys: Sequence[str]) -> dict[str, bytes]:
        """
        Fetch many keys in one round trip.

        Returns a mapping containing only the keys that were present.
        Raises CacheUnavailableError if Redis is enabled but cannot be reached.
        """
        if not keys or not self._enabled:
            return {}
        if not self._client:
            raise CacheUnavailableError("Redis is not connected")
        try:
            values = await self._client.mget(list(keys))
        except RedisError as e:
            logger.warning("Redis MGET failed: %s", e)
            raise CacheUnavailableError(str(e)) from e
        return {
            key: value
            for key, value in zip(keys, values, strict=True)
            if value is not None
        }

    async def setex(self, key: str, seconds: int, value: str | bytes) -> bool:
        """Set value with expiry, returns False if Redis unavailable."""
        if not self._client:
            return False
        try:
            await self._client.setex(key, seconds, value)
            return True
        except RedisError as e:
            logger.warning("Redis SETEX failed: %s", e)
            return False

    async def delete(self, *keys: str) -> bool:
        """Delete key(s), returns False if Redis unavailable."""
        if not self._client:
            return False
        try:
            await self._client.delete(*keys)
            return True
        except RedisError as e:
            logger.warning("Redis DELETE failed: %s", e)
            return False
