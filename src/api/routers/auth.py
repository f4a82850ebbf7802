"""Registration, login and logout endpoints."""
from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import get_async_session
from core.security import validate_credentials
from core.session import end_session, start_session
from schemas.user import Credentials, SessionResponse, UserResponse
from services import user_service
from services.user_service import AccountNameTakenError

router = APIRouter(tags=["auth"])


@router.post("/register", response_model=SessionResponse, status_code=201)
async def register(
    data: Credentials,
    request: Request,
    db: AsyncSession = Depends(get_async_session),
) -> SessionResponse:
    """Create an account and log it in."""
    if not validate_credentials(data.account_name, data.password):
        raise HTTPException(
            status_code=400,
            detail=(
                "Account names need at least 3 characters and passwords at least 6 "
                "(letters, digits and underscores)"
            ),
        )
    try:
        user = await user_service.register_user(db, data.account_name, data.password)
    except AccountNameTakenError as e:
        raise HTTPException(status_code=409, detail="Account name already in use") from e

    token = start_session(request, user.id)
    return SessionResponse(user=UserResponse.model_validate(user), csrf_token=token)


@router.post("/login", response_model=SessionResponse)
async def login(
    data: Credentials,
    request: Request,
    db: AsyncSession = Depends(get_async_session),
) -> SessionResponse:
    """Log in with account name and password."""
    user = await user_service.try_login(db, data.account_name, data.password)
    if user is None:
        raise HTTPException(status_code=401, detail="Wrong account name or password")

    token = start_session(request, user.id)
    return SessionResponse(user=UserResponse.model_validate(user), csrf_token=token)


@router.post("/logout", status_code=204)
async def logout(request: Request) -> None:
    """Forget the session's user."""
    end_session(request)
