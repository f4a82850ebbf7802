"""
Shared fixtures.

Tests run against an in-memory SQLite database (aiosqlite) and an in-memory stand-in
for RedisClient that records how it was called, so cache round trips and database
queries can be counted.
"""
from collections.abc import AsyncGenerator, Awaitable, Callable, Generator
from datetime import datetime, timedelta
from pathlib import Path

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from api.main import create_app
from core.config import Settings
from core.redis import CacheUnavailableError
from core.security import calculate_passhash
from models import Base, Comment, Post, User
from models.user import AUTHORITY_ADMIN, AUTHORITY_NORMAL

BASE_TIME = datetime(2026, 1, 1, 12, 0, 0)
DEFAULT_PASSWORD = "password_123"


class InMemoryCache:
    """Dict-backed replacement for RedisClient with call counters and failure switches."""

    def __init__(self, enabled: bool = True) -> None:
        self.data: dict[str, bytes] = {}
        self.ttls: dict[str, int] = {}
        self.enabled = enabled
        self.get_calls = 0
        self.mget_calls = 0
        self.setex_calls = 0
        self.fail_get = False
        self.fail_mget = False
        self.fail_setex = False

    @property
    def is_connected(self) -> bool:
        return True

    async def ping(self) -> bool:
        return True

    async def get(self, key: str) -> bytes | None:
        self.get_calls += 1
        if self.fail_get:
            return None
        return self.data.get(key)

    async def mget(self, keys: list[str]) -> dict[str, bytes]:
        self.mget_calls += 1
        if self.fail_mget:
            raise CacheUnavailableError("simulated outage")
        return {key: self.data[key] for key in keys if key in self.data}

    async def setex(self, key: str, seconds: int, value: str | bytes) -> bool:
        self.setex_calls += 1
        if self.fail_setex:
            return False
        self.data[key] = value.encode() if isinstance(value, str) else value
        self.ttls[key] = seconds
        return True

    async def delete(self, *keys: str) -> bool:
        for key in keys:
            self.data.pop(key, None)
        return True


class QueryCounter:
    """Counts SQL statements sent to the database."""

    def __init__(self) -> None:
        self.count = 0


@pytest.fixture
async def engine() -> AsyncGenerator[AsyncEngine]:
    """Fresh in-memory database per test."""
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncSession]:
    async with session_factory() as session:
        yield session


@pytest.fixture
def cache() -> InMemoryCache:
    return InMemoryCache()


@pytest.fixture
def query_counter(engine: AsyncEngine) -> Generator[QueryCounter]:
    counter = QueryCounter()

    def _count(*args: object) -> None:  # noqa: ARG001
        counter.count += 1

    event.listen(engine.sync_engine, "before_cursor_execute", _count)
    yield counter
    event.remove(engine.sync_engine, "before_cursor_execute", _count)


@pytest.fixture
def create_user(db: AsyncSession) -> Callable[..., Awaitable[User]]:
    """Factory inserting a committed user."""

    async def _create(
        account_name: str,
        password: str = DEFAULT_PASSWORD,
        admin: bool = False,
        deleted: bool = False,
    ) -> User:
        user = User(
            account_name=account_name,
            passhash=calculate_passhash(account_name, password),
            authority=AUTHORITY_ADMIN if admin else AUTHORITY_NORMAL,
            deleted=deleted,
        )
        db.add(user)
        await db.commit()
        await db.refresh(user)
        return user

    return _create


@pytest.fixture
def create_post(db: AsyncSession) -> Callable[..., Awaitable[Post]]:
    """Factory inserting a committed post, `minutes` after BASE_TIME."""

    async def _create(
        user: User,
        minutes: int = 0,
        body: str = "caption",
        mime: str = "image/jpeg",
    ) -> Post:
        post = Post(
            user_id=user.id,
            mime=mime,
            body=body,
            created_at=BASE_TIME + timedelta(minutes=minutes),
        )
        db.add(post)
        await db.commit()
        return post

    return _create


@pytest.fixture
def create_comment(db: AsyncSession) -> Callable[..., Awaitable[Comment]]:
    """Factory inserting a committed comment, `minutes` after BASE_TIME."""

    async def _create(post: Post, user: User, text: str, minutes: int = 0) -> Comment:
        comment = Comment(
            post_id=post.id,
            user_id=user.id,
            comment=text,
            created_at=BASE_TIME + timedelta(minutes=minutes),
        )
        db.add(comment)
        await db.commit()
        return comment

    return _create


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return Settings(
        _env_file=None,
        database_url="sqlite+aiosqlite://",
        redis_enabled=False,
        session_secret="test-secret",
        image_dir=str(tmp_path / "images"),
    )


@pytest.fixture
def app(
    settings: Settings,
    session_factory: async_sessionmaker[AsyncSession],
    cache: InMemoryCache,
) -> FastAPI:
    """App wired to the test database and cache (the lifespan is not run)."""
    app = create_app(settings)
    app.state.session_factory = session_factory
    app.state.redis = cache
    return app


@pytest.fixture
async def client(app: FastAPI) -> AsyncGenerator[AsyncClient]:
    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test",
    ) as client:
        yield client


@pytest.fixture
def login(client: AsyncClient) -> Callable[..., Awaitable[str]]:
    """Log the client in and return the session's CSRF token."""

    async def _login(account_name: str, password: str = DEFAULT_PASSWORD) -> str:
        response = await client.post(
            "/login", json={"account_name": account_name, "password": password},
        )
        assert response.status_code == 200, response.text
        return response.json()["csrf_token"]

    return _login
