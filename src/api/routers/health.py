"""Health check endpoints."""
import logging

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import get_async_session, get_redis_client
from core.redis import RedisClient


logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    database: str
    redis: str


async def check_redis_health(redis_client: RedisClient) -> str:
    """Check Redis connectivity. Returns 'connected', 'disabled' or 'unavailable'."""
    if not redis_client.enabled:
        return "disabled"
    if await redis_client.ping():
        return "connected"
    return "unavailable"


@router.get("/health", response_model=HealthResponse)
async def health_check(
    db: AsyncSession = Depends(get_async_session),
    redis_client: RedisClient = Depends(get_redis_client),
) -> HealthResponse:
    """
    Check application, database and Redis health.

    Note: Redis being unreachable makes the app 'degraded', not unhealthy: sessions
    still resolve from the database, but feeds fail unless the comment cache
    fallback is enabled.
    """
    db_status = "healthy"
    try:
        await db.execute(text("SELECT 1"))
    except SQLAlchemyError:
        logger.exception("Database health check failed")
        db_status = "unhealthy"

    redis_status = await check_redis_health(redis_client)

    if db_status != "healthy" or redis_status == "unavailable":
        status = "degraded"
    else:
        status = "healthy"
    return HealthResponse(status=status, database=db_status, redis=redis_status)
