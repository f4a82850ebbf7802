"""Account registration, login, banning and profile statistics."""
import logging
from dataclasses import dataclass

from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from core.security import calculate_passhash
from models.comment import Comment
from models.post import Post
from models.user import AUTHORITY_NORMAL, User

logger = logging.getLogger(__name__)


class AccountNameTakenError(Exception):
    """Raised when registering an account name that already exists."""

    def __init__(self, account_name: str) -> None:
        self.account_name = account_name
        super().__init__(f"Account name already in use: {account_name}")


@dataclass
class ProfileStats:
    """Activity counters shown on a user's profile."""

    post_count: int
    comment_count: int  # comments the user wrote
    commented_count: int  # comments other users (or the user) left on their posts


async def get_user_by_account_name(
    db: AsyncSession, account_name: str, include_deleted: bool = False,
) -> User | None:
    """Look up a user by account name. Banned users are hidden unless asked for."""
    query = select(User).where(User.account_name == account_name)
    if not include_deleted:
        query = query.where(User.deleted.is_(False))
    result = await db.execute(query)
    return result.scalar_one_or_none()


async def register_user(db: AsyncSession, account_name: str, password: str) -> User:
    """
    Create a new normal user.

    Credentials must already be validated with core.security.validate_credentials.

    Raises:
        AccountNameTakenError: The account name exists, including banned accounts.
    """
    existing = await get_user_by_account_name(db, account_name, include_deleted=True)
    if existing is not None:
        raise AccountNameTakenError(account_name)

    user = User(
        account_name=account_name,
        passhash=calculate_passhash(account_name, password),
        authority=AUTHORITY_NORMAL,
        deleted=False,
    )
    db.add(user)
    try:
        await db.flush()
    except IntegrityError as e:
        # Lost a race with a concurrent registration
        raise AccountNameTakenError(account_name) from e
    await db.refresh(user)
    logger.info("user_registered", extra={"user_id": user.id})
    return user


async def try_login(db: AsyncSession, account_name: str, password: str) -> User | None:
    """Return the active user if the password matches, otherwise None."""
    user = await get_user_by_account_name(db, account_name)
    if user is None:
        return None
    if calculate_passhash(user.account_name, password) != user.passhash:
        return None
    return user


async def list_active_users(db: AsyncSession) -> list[User]:
    """Normal (non-admin) users who are not banned, newest first."""
    result = await db.execute(
        select(User)
        .where(User.authority == AUTHORITY_NORMAL, User.deleted.is_(False))
        .order_by(User.created_at.desc(), User.id.desc()),
    )
    return list(result.scalars().all())


async def ban_users(db: AsyncSession, user_ids: list[int]) -> None:
    """
    Soft-delete the given users.

    Cached user snapshots are left alone; they keep reading as active until they
    expire.
    """
    if not user_ids:
        return
    await db.execute(
        update(User).where(User.id.in_(user_ids)).values(deleted=True),
    )
    logger.info("users_banned", extra={"user_ids": user_ids})


async def get_profile_stats(db: AsyncSession, user_id: int) -> ProfileStats:
    """Count a user's posts, the comments they wrote and the comments on their posts."""
    post_count = (
        await db.execute(select(func.count()).select_from(Post).where(Post.user_id == user_id))
    ).scalar_one()
    comment_count = (
        await db.execute(
            select(func.count()).select_from(Comment).where(Comment.user_id == user_id),
        )
    ).scalar_one()
    commented_count = (
        await db.execute(
            select(func.count())
            .select_from(Comment)
            .where(Comment.post_id.in_(select(Post.id).where(Post.user_id == user_id))),
        )
    ).scalar_one()
    return ProfileStats(
        post_count=post_count,
        comment_count=comment_count,
        commented_count=commented_count,
    )
