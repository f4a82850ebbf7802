"""Cached user representation for session identity caching."""
from dataclasses import dataclass
from datetime import datetime

from pydantic import TypeAdapter

from models.user import AUTHORITY_ADMIN, User


@dataclass
class CachedUser:
    """
    Snapshot of a User row as stored in Redis.

    Avoids ORM reconstruction on every request - the session's user id resolves to
    this snapshot for as long as the cache entry lives. The snapshot is not refreshed
    when the row changes, so `deleted` can read False for an account that was banned
    after the entry was written.

    WARNING: Do NOT access ORM relationships like .posts or .comments on CachedUser.
    Those only exist on User ORM objects.
    """

    id: int
    account_name: str
    passhash: str
    authority: int
    deleted: bool
    created_at: datetime

    @property
    def is_admin(self) -> bool:
        """Whether the account may use the admin endpoints."""
        return self.authority == AUTHORITY_ADMIN

    @classmethod
    def from_model(cls, user: User) -> "CachedUser":
        """Build a snapshot from an ORM row."""
        return cls(
            id=user.id,
            account_name=user.account_name,
            passhash=user.passhash,
            authority=user.authority,
            deleted=user.deleted,
            created_at=user.created_at,
        )


cached_user_adapter = TypeAdapter(CachedUser)


def encode_cached_user(user: CachedUser) -> bytes:
    """Serialize for Redis."""
    return cached_user_adapter.dump_json(user)


def decode_cached_user(raw: bytes | str) -> CachedUser:
    """Deserialize from Redis. Raises pydantic.ValidationError on bad data."""
    return cached_user_adapter.validate_json(raw)
