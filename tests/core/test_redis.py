"""
Tests for the Redis client module.

Note: Basic Redis operations (get/set/delete/ping) are not tested against a live
server as they just wrap the redis.asyncio library. We test the batch read contract
and fallback behavior which contain actual logic.
"""
from unittest.mock import AsyncMock

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from core.redis import CacheUnavailableError, RedisClient


class TestRedisClientDisabled:
    """Tests for disabled Redis client."""

    async def test__disabled_client__returns_false_on_ping(self) -> None:
        """Disabled client returns False on ping."""
        client = RedisClient("redis://localhost:6379", enabled=False)
        await client.connect()

        assert client.is_connected is False
        assert await client.ping() is False

        await client.close()

    async def test__disabled_client__returns_none_on_get(self) -> None:
        """Disabled client returns None on get."""
        client = RedisClient("redis://localhost:6379", enabled=False)
        await client.connect()

        result = await client.get("any:key")
        assert result is None

        await client.close()

    async def test__disabled_client__returns_false_on_setex(self) -> None:
        """Disabled client returns False on setex."""
        client = RedisClient("redis://localhost:6379", enabled=False)
        await client.connect()

        result = await client.setex("any:key", 60, "value")
        assert result is False

        await client.close()

    async def test__disabled_client__mget_is_all_misses(self) -> None:
        """Disabled client treats a batch read as all misses rather than an outage."""
        client = RedisClient("redis://localhost:6379", enabled=False)
        await client.connect()

        assert await client.mget(["a", "b"]) == {}

        await client.close()


class TestRedisClientUnavailable:
    """Tests for Redis client when server is unavailable."""

    async def test__unavailable_server__connect_fails_gracefully(self) -> None:
        """Client handles unavailable server gracefully."""
        # Use invalid port
        client = RedisClient("redis://localhost:59999", enabled=True)
        await client.connect()

        # Should not be connected but should not raise
        assert client.is_connected is False

        await client.close()

    async def test__unavailable_server__operations_fail_gracefully(self) -> None:
        """Single-key operations return safe defaults when server unavailable."""
        client = RedisClient("redis://localhost:59999", enabled=True)
        await client.connect()

        assert await client.ping() is False
        assert await client.get("key") is None
        assert await client.setex("key", 60, "value") is False
        assert await client.delete("key") is False

        await client.close()

    async def test__unavailable_server__mget_raises(self) -> None:
        """Batch reads surface the outage to the caller."""
        client = RedisClient("redis://localhost:59999", enabled=True)
        await client.connect()

        with pytest.raises(CacheUnavailableError):
            await client.mget(["key"])

        await client.close()


class TestRedisClientMget:
    """Tests for the batch read against a mocked connection."""

    @pytest.fixture
    def mocked_client(self) -> tuple[RedisClient, AsyncMock]:
        client = RedisClient("redis://localhost:6379", enabled=True)
        redis_mock = AsyncMock()
        client._client = redis_mock  # noqa: SLF001
        return client, redis_mock

    async def test__mget__returns_only_present_keys(
        self, mocked_client: tuple[RedisClient, AsyncMock],
    ) -> None:
        redis_client, redis_mock = mocked_client
        redis_mock.mget.return_value = [b"3", None, b"[]"]

        result = await redis_client.mget(["a", "b", "c"])

        assert result == {"a": b"3", "c": b"[]"}
        redis_mock.mget.assert_awaited_once_with(["a", "b", "c"])

    async def test__mget__empty_keys_skips_round_trip(
        self, mocked_client: tuple[RedisClient, AsyncMock],
    ) -> None:
        redis_client, redis_mock = mocked_client

        assert await redis_client.mget([]) == {}
        redis_mock.mget.assert_not_awaited()

    async def test__mget__redis_error_becomes_cache_unavailable(
        self, mocked_client: tuple[RedisClient, AsyncMock],
    ) -> None:
        redis_client, redis_mock = mocked_client
        redis_mock.mget.side_effect = RedisConnectionError("connection reset")

        with pytest.raises(CacheUnavailableError):
            await redis_client.mget(["a"])

    async def test__get__redis_error_is_a_miss(
        self, mocked_client: tuple[RedisClient, AsyncMock],
    ) -> None:
        redis_client, redis_mock = mocked_client
        redis_mock.get.side_effect = RedisConnectionError("connection reset")

        assert await redis_client.get("a") is None

    async def test__setex__redis_error_returns_false(
        self, mocked_client: tuple[RedisClient, AsyncMock],
    ) -> None:
        redis_client, redis_mock = mocked_client
        redis_mock.setex.side_effect = RedisConnectionError("connection reset")

        assert await redis_client.setex("a", 60, b"1") is False
