"""User model."""
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, SmallInteger, String, false
from sqlalchemy.orm import Mapped, mapped_column, relationship

from models.base import Base, TimestampMixin

if TYPE_CHECKING:
    from models.comment import Comment
    from models.post import Post


AUTHORITY_NORMAL = 0
AUTHORITY_ADMIN = 1


class User(Base, TimestampMixin):
    """Registered account. Banned accounts are soft-deleted via `deleted`."""

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(primary_key=True)
    account_name: Mapped[str] = mapped_column(String(64), unique=True, index=True)
    passhash: Mapped[str] = mapped_column(String(128))
    authority: Mapped[int] = mapped_column(SmallInteger, default=AUTHORITY_NORMAL)
    deleted: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        server_default=false(),
        comment="Soft delete flag set when an admin bans the account",
    )

    posts: Mapped[list["Post"]] = relationship(back_populates="user")
    comments: Mapped[list["Comment"]] = relationship(back_populates="user")
