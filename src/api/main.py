"""FastAPI application entry point."""
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from starlette.middleware.sessions import SessionMiddleware

from api.routers import admin, auth, feed, health, posts
from core.config import Settings, get_settings
from core.redis import RedisClient
from db.session import create_engine, create_session_factory
from services.image_storage import ImageStorage


logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Open the database pool and Redis client for the lifetime of the app."""
    settings: Settings = app.state.settings
    engine = create_engine(settings)
    app.state.session_factory = create_session_factory(engine)
    app.state.redis = RedisClient(settings.redis_url, enabled=settings.redis_enabled)
    await app.state.redis.connect()
    try:
        yield
    finally:
        await app.state.redis.close()
        await engine.dispose()


def create_app(settings: Settings | None = None) -> FastAPI:
    """Build the app. Shared clients are attached to app.state by the lifespan."""
    settings = settings or get_settings()
    app = FastAPI(
        title="Photo Feed API",
        description="Image posts with comments and a cached reverse-chronological feed.",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.image_storage = ImageStorage(settings.image_dir)
    app.add_middleware(SessionMiddleware, secret_key=settings.session_secret)

    app.include_router(health.router)
    app.include_router(auth.router)
    app.include_router(admin.router)
    app.include_router(posts.router)
    app.include_router(feed.router)
    return app


def main() -> None:
    """Run the app under uvicorn."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    uvicorn.run(create_app(), host="0.0.0.0", port=8080)


if __name__ == "__main__":
    main()
