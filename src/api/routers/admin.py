"""Admin endpoints for banning users."""
from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import get_async_session, require_admin, verify_csrf
from core.session import csrf_token
from schemas.cached_user import CachedUser
from schemas.user import BannableUsersResponse, BanRequest, UserResponse
from services import user_service

router = APIRouter(prefix="/admin", tags=["admin"])


@router.get("/banned", response_model=BannableUsersResponse)
async def list_bannable_users(
    request: Request,
    current_user: CachedUser = Depends(require_admin),  # noqa: ARG001
    db: AsyncSession = Depends(get_async_session),
) -> BannableUsersResponse:
    """Active normal users, newest first."""
    users = await user_service.list_active_users(db)
    return BannableUsersResponse(
        users=[UserResponse.model_validate(u) for u in users],
        csrf_token=csrf_token(request),
    )


@router.post("/banned", status_code=204)
async def ban_users(
    data: BanRequest,
    request: Request,
    current_user: CachedUser = Depends(require_admin),  # noqa: ARG001
    db: AsyncSession = Depends(get_async_session),
) -> None:
    """
    Ban users.

    Banned users disappear from feeds and listings right away, but a banned user who
    is already cached keeps resolving as active until their cache entry expires.
    """
    verify_csrf(request, data.csrf_token)
    await user_service.ban_users(db, data.user_ids)
