"""Pydantic schemas for account endpoints."""
from datetime import datetime

from pydantic import BaseModel, ConfigDict


class Credentials(BaseModel):
    """Login and registration payload."""

    account_name: str
    password: str


class UserResponse(BaseModel):
    """Public view of a user. Never includes the password hash."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    account_name: str
    authority: int
    created_at: datetime


class SessionResponse(BaseModel):
    """Returned after login or registration."""

    user: UserResponse
    csrf_token: str


class BanRequest(BaseModel):
    """Admin request to ban a set of users."""

    user_ids: list[int]
    csrf_token: str


class BannableUsersResponse(BaseModel):
    """Users an admin can ban."""

    users: list[UserResponse]
    csrf_token: str
