"""Creating posts and comments."""
import logging

from fastapi import UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from models.comment import Comment
from models.post import Post
from schemas.post import image_extension
from services.image_storage import ImageStorage

logger = logging.getLogger(__name__)

DEFAULT_UPLOAD_LIMIT = 10 * 1024 * 1024  # 10MB
UPLOAD_CHUNK_SIZE = 1024 * 1024


class InvalidUploadError(Exception):
    """Raised when an uploaded image is missing, too large or of an unsupported type."""


def mime_from_content_type(content_type: str | None) -> str:
    """
    Map an upload's Content-Type to one of the supported image mime types.

    Raises:
        InvalidUploadError: The type is not jpeg, png or gif.
    """
    content_type = (content_type or "").lower()
    if "jpeg" in content_type:
        return "image/jpeg"
    if "png" in content_type:
        return "image/png"
    if "gif" in content_type:
        return "image/gif"
    raise InvalidUploadError("Only jpg, png and gif images can be posted")


async def read_upload(file: UploadFile, upload_limit: int = DEFAULT_UPLOAD_LIMIT) -> bytes:
    """
    Read an uploaded file in chunks, stopping once it exceeds `upload_limit`.

    Raises:
        InvalidUploadError: The upload is larger than `upload_limit` bytes.
    """
    chunks: list[bytes] = []
    size = 0
    while chunk := await file.read(UPLOAD_CHUNK_SIZE):
        size += len(chunk)
        if size > upload_limit:
            logger.info("upload_rejected", extra={"reason": "too_large", "limit": upload_limit})
            raise InvalidUploadError("File is too large")
        chunks.append(chunk)
    return b"".join(chunks)


async def create_post(
    db: AsyncSession,
    storage: ImageStorage,
    user_id: int,
    content_type: str | None,
    data: bytes,
    body: str,
    upload_limit: int = DEFAULT_UPLOAD_LIMIT,
) -> Post:
    """
    Insert a post and store its image.

    Raises:
        InvalidUploadError: Empty, oversized or unsupported image.
    """
    if not data:
        raise InvalidUploadError("An image is required")
    mime = mime_from_content_type(content_type)
    if len(data) > upload_limit:
        raise InvalidUploadError("File is too large")

    post = Post(user_id=user_id, mime=mime, body=body)
    db.add(post)
    await db.flush()
    await storage.save(post.id, image_extension(mime), data)
    logger.info("post_created", extra={"post_id": post.id, "user_id": user_id})
    return post


async def create_comment(
    db: AsyncSession, post_id: int, user_id: int, text: str,
) -> Comment:
    """Insert a comment. Cached comment data for the post is left to expire."""
    comment = Comment(post_id=post_id, user_id=user_id, comment=text)
    db.add(comment)
    await db.flush()
    return comment


async def get_post(db: AsyncSession, post_id: int) -> Post | None:
    """Fetch a post by id regardless of its author's status."""
    return await db.get(Post, post_id)
