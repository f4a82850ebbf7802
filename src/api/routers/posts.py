"""Post upload, commenting and image serving endpoints."""
from fastapi import APIRouter, Depends, File, Form, HTTPException, Request, UploadFile
from fastapi.responses import FileResponse
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import (
    get_app_settings,
    get_async_session,
    get_image_storage,
    require_user,
    verify_csrf,
)
from core.config import Settings
from schemas.cached_user import CachedUser
from schemas.post import CommentCreated, PostCreated, image_extension
from services import post_service
from services.image_storage import ImageStorage
from services.post_service import InvalidUploadError

router = APIRouter(tags=["posts"])


class CommentCreate(BaseModel):
    """Payload for adding a comment."""

    post_id: int
    comment: str
    csrf_token: str


@router.post("/", response_model=PostCreated, status_code=201)
async def create_post(
    request: Request,
    file: UploadFile = File(...),
    body: str = Form(default=""),
    csrf_token: str = Form(...),
    current_user: CachedUser = Depends(require_user),
    storage: ImageStorage = Depends(get_image_storage),
    settings: Settings = Depends(get_app_settings),
    db: AsyncSession = Depends(get_async_session),
) -> PostCreated:
    """Upload an image post."""
    verify_csrf(request, csrf_token)
    try:
        data = await post_service.read_upload(file, settings.upload_limit)
        post = await post_service.create_post(
            db,
            storage,
            current_user.id,
            file.content_type,
            data,
            body,
            upload_limit=settings.upload_limit,
        )
    except InvalidUploadError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    return PostCreated(
        id=post.id, image_url=f"/image/{post.id}.{image_extension(post.mime)}",
    )


@router.post("/comment", response_model=CommentCreated, status_code=201)
async def create_comment(
    data: CommentCreate,
    request: Request,
    current_user: CachedUser = Depends(require_user),
    db: AsyncSession = Depends(get_async_session),
) -> CommentCreated:
    """Comment on a post."""
    verify_csrf(request, data.csrf_token)
    if await post_service.get_post(db, data.post_id) is None:
        raise HTTPException(status_code=404, detail="Post not found")
    comment = await post_service.create_comment(
        db, data.post_id, current_user.id, data.comment,
    )
    return CommentCreated(id=comment.id, post_id=comment.post_id)


@router.get("/image/{post_id:int}.{ext}")
async def get_image(
    post_id: int,
    ext: str,
    storage: ImageStorage = Depends(get_image_storage),
    db: AsyncSession = Depends(get_async_session),
) -> FileResponse:
    """Serve a post's image if the extension matches its mime type."""
    post = await post_service.get_post(db, post_id)
    if post is None or image_extension(post.mime) != ext:
        raise HTTPException(status_code=404, detail="Image not found")
    if not await storage.exists(post.id, ext):
        raise HTTPException(status_code=404, detail="Image not found")
    return FileResponse(storage.path_for(post.id, ext), media_type=post.mime)
