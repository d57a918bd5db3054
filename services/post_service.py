"""
Blog Post Service.

This module defines the `PostService`, which owns blog posts and their stored
comment sequences. It is also the single place where a client-supplied post
identifier is turned into a stored post.

Key Components:
- `PostService.resolve()`: Looks a post up by every encoding the identifier
  could have. A 24-hex-character string may be either a native id or a legacy
  string id, so both are tried; anything else is only a legacy id.
- CRUD: `list_posts`, `create_post`, `get_post`, `update_post`, `delete_post`.
- `list_comments`: A post's comments in insertion order.

Architectural Design:
- Explicit Collaborators: The service receives the `Database` and the
  `MediaProvider` from the application factory.
- Best-effort Media Cleanup: Removing images from the media host never fails
  the operation that triggered it; failures are logged.
- Error Translation: `SQLAlchemyError` is logged with its cause and re-raised
  as `UpstreamError`.
"""

from typing import Any, Dict, List, Optional

from sqlalchemy import delete, or_
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from core.database import Database
from core.exceptions import PostNotFoundError, UpstreamError, ValidationError
from core.identifiers import NativeId, candidates, new_native_id
from core.logging_config import get_logger
from core.models import Post, PostComment, utcnow
from core.validation import InputValidator
from providers.media_provider import MediaProvider

logger = get_logger(__name__)

MEDIA_FOLDER = "blogs"

# Fields a client may change on an existing post
UPDATABLE_FIELDS = (
    "title",
    "description",
    "paragraph",
    "short_text",
    "main_photo",
    "images",
    "visible",
    "comments_allowed",
)
REQUIRED_TEXT_FIELDS = ("title", "description", "main_photo")
OPTIONAL_TEXT_FIELDS = ("paragraph", "short_text")


class PostService:
    """Service for blog posts and their comment sequences"""

    def __init__(self, database: Database, media: Optional[MediaProvider] = None):
        self.database = database
        self.media = media

    async def find_post(self, session: AsyncSession, raw_id: str) -> Post:
        """Resolve a post inside an open session, trying every id encoding"""
        conditions = []
        for candidate in candidates(raw_id):
            if isinstance(candidate, NativeId):
                conditions.append(Post.native_id == candidate.value)
            else:
                conditions.append(Post.legacy_id == candidate.value)

        if not conditions:
            raise PostNotFoundError(str(raw_id))

        result = await session.exec(select(Post).where(or_(*conditions)))
        matches = list(result.all())
        if not matches:
            raise PostNotFoundError(str(raw_id))

        # A native match wins over a legacy row that happens to share the text
        matches.sort(key=lambda post: post.native_id is None)
        return matches[0]

    async def fetch_comments(
        self, session: AsyncSession, post: Post
    ) -> List[PostComment]:
        result = await session.exec(
            select(PostComment)
            .where(PostComment.post_pk == post.pk)
            .order_by(PostComment.id)
        )
        return list(result.all())

    async def resolve(self, raw_id: str) -> Post:
        try:
            async with self.database.session() as session:
                return await self.find_post(session, raw_id)
        except SQLAlchemyError as e:
            logger.error(f"Failed to resolve post {raw_id}: {e}")
            raise UpstreamError("database", str(e)) from e

    async def list_posts(self, visible_only: bool = False) -> List[Post]:
        """All posts, newest first"""
        statement = select(Post).order_by(Post.created_at.desc(), Post.pk.desc())
        if visible_only:
            statement = statement.where(Post.visible == True)  # noqa: E712

        try:
            async with self.database.session() as session:
                result = await session.exec(statement)
                return list(result.all())
        except SQLAlchemyError as e:
            logger.error(f"Failed to list posts: {e}")
            raise UpstreamError("database", str(e)) from e

    async def get_post(self, raw_id: str) -> Post:
        return await self.resolve(raw_id)

    async def create_post(self, fields: Dict[str, Any]) -> Post:
        values = self._clean_fields(fields)
        for name in REQUIRED_TEXT_FIELDS:
            values[name] = InputValidator.require_text(
                values.get(name), name, max_length=100000
            )

        post = Post(
            native_id=new_native_id().value,
            title=values["title"],
            description=values["description"],
            main_photo=values["main_photo"],
            paragraph=values.get("paragraph") or "",
            short_text=values.get("short_text") or "",
            images=list(values.get("images") or []),
            visible=True,
            comments_allowed=True,
        )

        try:
            async with self.database.session() as session:
                session.add(post)
                await session.commit()
                await session.refresh(post)
        except SQLAlchemyError as e:
            logger.error(f"Failed to create post: {e}")
            raise UpstreamError("database", str(e)) from e

        logger.info(f"Created post {post.public_id}: {post.title}")
        return post

    async def update_post(self, raw_id: str, fields: Dict[str, Any]) -> Post:
        """Apply a partial update; a replaced main photo is removed from the host"""
        values = self._clean_fields(fields)
        for name in REQUIRED_TEXT_FIELDS:
            if name in values:
                values[name] = InputValidator.require_text(
                    values[name], name, max_length=100000
                )

        try:
            async with self.database.session() as session:
                post = await self.find_post(session, raw_id)
                old_photo = post.main_photo

                for name, value in values.items():
                    setattr(post, name, value)
                post.updated_at = utcnow()

                session.add(post)
                await session.commit()
                await session.refresh(post)
        except SQLAlchemyError as e:
            logger.error(f"Failed to update post {raw_id}: {e}")
            raise UpstreamError("database", str(e)) from e

        if "main_photo" in values and old_photo and old_photo != post.main_photo:
            await self._remove_media([old_photo])

        logger.info(f"Updated post {post.public_id}: {sorted(values)}")
        return post

    async def delete_post(self, raw_id: str) -> None:
        """Delete a post with its comments and remove its images from the host"""
        try:
            async with self.database.session() as session:
                post = await self.find_post(session, raw_id)
                urls = [post.main_photo] + list(post.images or [])

                await session.execute(
                    delete(PostComment).where(PostComment.post_pk == post.pk)
                )
                await session.delete(post)
                await session.commit()
        except SQLAlchemyError as e:
            logger.error(f"Failed to delete post {raw_id}: {e}")
            raise UpstreamError("database", str(e)) from e

        logger.info(f"Deleted post {raw_id}")
        await self._remove_media([url for url in urls if url])

    async def list_comments(self, raw_id: str) -> List[PostComment]:
        try:
            async with self.database.session() as session:
                post = await self.find_post(session, raw_id)
                return await self.fetch_comments(session, post)
        except SQLAlchemyError as e:
            logger.error(f"Failed to list comments for {raw_id}: {e}")
            raise UpstreamError("database", str(e)) from e

    def _clean_fields(self, fields: Dict[str, Any]) -> Dict[str, Any]:
        values = {}
        for name, value in fields.items():
            if name not in UPDATABLE_FIELDS:
                continue
            if name == "images":
                if not isinstance(value, list) or not all(
                    isinstance(url, str) for url in value
                ):
                    raise ValidationError(name, value, "Must be a list of URLs")
            elif name in OPTIONAL_TEXT_FIELDS:
                value = InputValidator.optional_text(value, name)
            values[name] = value
        return values

    async def _remove_media(self, urls: List[str]) -> None:
        if self.media is None:
            return
        for url in urls:
            try:
                await self.media.destroy(url, MEDIA_FOLDER)
            except UpstreamError as e:
                logger.warning(f"Could not remove {url} from media host: {e.message}")
