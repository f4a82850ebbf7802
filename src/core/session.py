"""
Session collaborator.

The session itself is a signed cookie managed by Starlette's SessionMiddleware.
Only these helpers read or write it, so the rest of the app never touches cookie
contents directly.
"""
from fastapi import Request

from core.security import generate_csrf_token

USER_ID_KEY = "user_id"
CSRF_TOKEN_KEY = "csrf_token"


def current_user_id(request: Request) -> int | None:
    """User id stored at login, or None for anonymous requests."""
    value = request.session.get(USER_ID_KEY)
    if value is None:
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def csrf_token(request: Request) -> str:
    """Anti-forgery token for the session, empty when not logged in."""
    return request.session.get(CSRF_TOKEN_KEY, "")


def start_session(request: Request, user_id: int) -> str:
    """Bind the session to a user and issue a fresh CSRF token."""
    token = generate_csrf_token()
    request.session[USER_ID_KEY] = user_id
    request.session[CSRF_TOKEN_KEY] = token
    return token


def end_session(request: Request) -> None:
    """Forget the logged-in user."""
    request.session.clear()
