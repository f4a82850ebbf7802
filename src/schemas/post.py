"""Pydantic schemas for posts, comments and feed items."""
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, computed_field

from schemas.user import UserResponse

MIME_EXTENSIONS: dict[str, str] = {
    "image/jpeg": "jpg",
    "image/png": "png",
    "image/gif": "gif",
}


def image_extension(mime: str) -> str:
    """File extension for a supported mime type, empty string otherwise."""
    return MIME_EXTENSIONS.get(mime, "")


class CommentView(BaseModel):
    """A comment joined with its author's account name."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    post_id: int
    user_id: int
    comment: str
    created_at: datetime
    account_name: str


# Comment lists are cached as JSON arrays in display (ascending) order
comment_list_adapter = TypeAdapter(list[CommentView])


class PostRow(BaseModel):
    """A post joined with its author's account name, as selected for a feed."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    mime: str
    body: str
    created_at: datetime
    account_name: str


class FeedItem(PostRow):
    """A post ready to render: comment data attached, plus the caller's CSRF token."""

    comment_count: int = Field(ge=0)
    comments: list[CommentView]
    csrf_token: str = ""

    @computed_field
    @property
    def image_url(self) -> str:
        """Path the image is served from."""
        ext = image_extension(self.mime)
        return f"/image/{self.id}.{ext}" if ext else f"/image/{self.id}"


class FeedResponse(BaseModel):
    """Response for the index feed."""

    posts: list[FeedItem]
    me: UserResponse | None
    csrf_token: str


class PostCreated(BaseModel):
    """Response after a successful upload."""

    id: int
    image_url: str


class CommentCreated(BaseModel):
    """Response after a successful comment."""

    id: int
    post_id: int


class ProfileResponse(BaseModel):
    """A user's page: their recent posts and activity counters."""

    user: UserResponse
    posts: list[FeedItem]
    post_count: int
    comment_count: int
    commented_count: int
    me: UserResponse | None
