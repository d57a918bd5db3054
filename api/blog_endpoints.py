"""
Blog Post and Comment Endpoints.

This module exposes blog posts, their reader comments and the image upload
proxy used by the admin editor.

Endpoints Provided:
- `GET /blogs`, `GET /blogs/{post_id}`: Public reads. A post id may be either
  a native id (24 hex characters) or a legacy string id.
- `POST /blogs`, `PATCH /blogs/{post_id}`, `DELETE /blogs/{post_id}`: Admin
  post management, requiring a session cookie.
- `POST /blogs/upload`: Forwards multipart `file` parts to the media host and
  returns their public URLs. Requires a session cookie.
- `POST /blogs/{post_id}/comments`: Adds a reader comment. Public.
- `DELETE /blogs/{post_id}/comments/{index}`: Removes the comment at a
  zero-based position. Public.

Comment endpoints answer with the post's full comment sequence so clients can
re-render without another request.
"""

from datetime import datetime
from typing import Any, List, Optional

from fastapi import APIRouter, Depends, File, Query, UploadFile

from core.auth import SessionSubject
from core.logging_config import get_logger, log_function_call
from core.models import CamelModel, Post, PostComment
from providers.media_provider import MediaFile, MediaProvider
from services.moderation_service import ModerationService
from services.post_service import MEDIA_FOLDER, PostService
from .dependencies import (
    get_media_provider,
    get_moderation_service,
    get_post_service,
    require_admin,
)

logger = get_logger(__name__)
router = APIRouter(prefix="/blogs", tags=["Blogs"])


# Request/Response Models
class CommentResponse(CamelModel):
    text: str
    created_at: datetime


class CommentsResponse(CamelModel):
    comments: List[CommentResponse]


class PostResponse(CamelModel):
    id: str
    title: str
    description: str
    paragraph: str
    short_text: str
    main_photo: str
    images: List[str]
    visible: bool
    comments_allowed: bool
    created_at: datetime
    updated_at: datetime
    comments: Optional[List[CommentResponse]] = None


class PostCreateRequest(CamelModel):
    title: Optional[str] = None
    description: Optional[str] = None
    paragraph: Optional[str] = None
    short_text: Optional[str] = None
    main_photo: Optional[str] = None
    images: Optional[List[str]] = None


class PostUpdateRequest(PostCreateRequest):
    visible: Optional[bool] = None
    comments_allowed: Optional[bool] = None


class CommentRequest(CamelModel):
    comment: Optional[Any] = None


class UploadResponse(CamelModel):
    urls: List[str]


class MessageResponse(CamelModel):
    message: str


def post_response(
    post: Post, comments: Optional[List[PostComment]] = None
) -> PostResponse:
    return PostResponse(
        id=post.public_id,
        title=post.title,
        description=post.description,
        paragraph=post.paragraph,
        short_text=post.short_text,
        main_photo=post.main_photo,
        images=list(post.images or []),
        visible=post.visible,
        comments_allowed=post.comments_allowed,
        created_at=post.created_at,
        updated_at=post.updated_at,
        comments=None if comments is None else comments_payload(comments).comments,
    )


def comments_payload(comments: List[PostComment]) -> CommentsResponse:
    return CommentsResponse(
        comments=[
            CommentResponse(text=comment.text, created_at=comment.created_at)
            for comment in comments
        ]
    )


@router.get("", response_model=List[PostResponse])
async def list_posts(
    visible_only: bool = Query(False, alias="visibleOnly"),
    post_service: PostService = Depends(get_post_service),
):
    posts = await post_service.list_posts(visible_only=visible_only)
    return [post_response(post) for post in posts]


@router.post("", response_model=PostResponse, status_code=201)
@log_function_call(logger)
async def create_post(
    body: PostCreateRequest,
    subject: SessionSubject = Depends(require_admin),
    post_service: PostService = Depends(get_post_service),
):
    post = await post_service.create_post(body.model_dump(exclude_none=True))
    return post_response(post, [])


@router.post("/upload", response_model=UploadResponse)
@log_function_call(logger)
async def upload_images(
    file: List[UploadFile] = File(...),
    subject: SessionSubject = Depends(require_admin),
    media: MediaProvider = Depends(get_media_provider),
):
    """Forward uploaded images to the media host"""
    files = [
        MediaFile(
            filename=upload.filename or "upload",
            content=await upload.read(),
            content_type=upload.content_type or "application/octet-stream",
        )
        for upload in file
    ]
    urls = await media.upload(files, MEDIA_FOLDER)
    logger.info(f"{subject.username} uploaded {len(urls)} image(s)")
    return UploadResponse(urls=urls)


@router.get("/{post_id}", response_model=PostResponse)
async def get_post(
    post_id: str, post_service: PostService = Depends(get_post_service)
):
    post = await post_service.get_post(post_id)
    comments = await post_service.list_comments(post_id)
    return post_response(post, comments)


@router.patch("/{post_id}", response_model=PostResponse)
@log_function_call(logger)
async def update_post(
    post_id: str,
    body: PostUpdateRequest,
    subject: SessionSubject = Depends(require_admin),
    post_service: PostService = Depends(get_post_service),
):
    fields = body.model_dump(exclude_unset=True, exclude_none=True)
    post = await post_service.update_post(post_id, fields)
    return post_response(post)


@router.delete("/{post_id}", response_model=MessageResponse)
@log_function_call(logger)
async def delete_post(
    post_id: str,
    subject: SessionSubject = Depends(require_admin),
    post_service: PostService = Depends(get_post_service),
):
    await post_service.delete_post(post_id)
    return MessageResponse(message="Post deleted")


@router.post("/{post_id}/comments", response_model=CommentsResponse)
@log_function_call(logger)
async def add_comment(
    post_id: str,
    body: CommentRequest,
    moderation: ModerationService = Depends(get_moderation_service),
):
    comments = await moderation.add_comment(post_id, body.comment)
    return comments_payload(comments)


@router.delete("/{post_id}/comments/{index}", response_model=CommentsResponse)
@log_function_call(logger)
async def delete_comment(
    post_id: str,
    index: str,
    moderation: ModerationService = Depends(get_moderation_service),
):
    comments = await moderation.delete_comment(post_id, index)
    return comments_payload(comments)
