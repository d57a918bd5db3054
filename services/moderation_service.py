"""
Comment Moderation Service.

This module defines the `ModerationService`, which accepts or rejects reader
comments on blog posts and deletes comments by their position.

Key Components:
- `add_comment`: Trims the text, resolves the post, enforces the post's
  comments switch, screens the text against the blocklist and appends it. The
  checks run in that order, so the first failing rule decides the error.
- `delete_comment`: Removes the comment at a zero-based position after a range
  check against the current sequence.

Architectural Design:
- Typed Rejections: Every rejection is a `CMSAPIException` subclass
  (`EmptyInputError`, `PostNotFoundError`, `CommentsDisabledError`,
  `ForbiddenContentError`, `IndexOutOfRangeError`); no HTTP knowledge here.
- Atomic Append: A comment is one inserted row, so concurrent appends never
  lose each other. Positional deletion reads the sequence and then deletes one
  row, so a concurrent structural change between the two can shift which
  comment a position refers to.
- Substring Matching: The blocklist check is a case-insensitive substring
  test, not a whole-word match.
"""

from typing import Any, List

from sqlalchemy.exc import SQLAlchemyError

from core.exceptions import (
    CommentsDisabledError,
    ForbiddenContentError,
    IndexOutOfRangeError,
    PostNotFoundError,
    UpstreamError,
)
from core.logging_config import get_logger
from core.models import Post, PostComment, utcnow
from core.validation import parse_index, validate_comment_text
from services.blocklist_service import BlocklistService
from services.post_service import PostService

logger = get_logger(__name__)


class ModerationService:
    """Service that validates, stores and removes post comments"""

    def __init__(self, posts: PostService, blocklist: BlocklistService):
        self.posts = posts
        self.blocklist = blocklist
        self.database = posts.database

    async def add_comment(self, post_id: str, raw_text: Any) -> List[PostComment]:
        """
        Append a comment to a post and return the post's full comment sequence.

        Raises:
            EmptyInputError: text is missing or whitespace only
            PostNotFoundError: no post matches either id encoding
            CommentsDisabledError: the post does not accept comments
            ForbiddenContentError: the text contains a blocklisted substring
            UpstreamError: storage failed
        """
        text = validate_comment_text(raw_text)

        post = await self.posts.resolve(post_id)
        if not post.comments_allowed:
            logger.info(f"Rejected comment on {post_id}: comments disabled")
            raise CommentsDisabledError(post_id)

        matched = await self.blocklist.find_match(text)
        if matched is not None:
            logger.info(f"Rejected comment on {post_id}: blocklisted content")
            raise ForbiddenContentError(matched)

        try:
            async with self.database.session() as session:
                # The post may have been deleted since it was resolved
                if await session.get(Post, post.pk) is None:
                    raise PostNotFoundError(post_id)
                session.add(PostComment(post_pk=post.pk, text=text, created_at=utcnow()))
                await session.commit()
                comments = await self.posts.fetch_comments(session, post)
        except SQLAlchemyError as e:
            logger.error(f"Failed to store comment on {post_id}: {e}")
            raise UpstreamError("database", str(e)) from e

        logger.info(f"Comment added to {post_id} ({len(comments)} total)")
        return comments

    async def delete_comment(self, post_id: str, raw_index: Any) -> List[PostComment]:
        """Remove the comment at a zero-based position and return what remains"""
        try:
            async with self.database.session() as session:
                post = await self.posts.find_post(session, post_id)
                index = parse_index(raw_index)

                comments = await self.posts.fetch_comments(session, post)
                if index < 0 or index >= len(comments):
                    raise IndexOutOfRangeError(index, len(comments))

                await session.delete(comments[index])
                await session.commit()
                remaining = await self.posts.fetch_comments(session, post)
        except SQLAlchemyError as e:
            logger.error(f"Failed to delete comment {raw_index} on {post_id}: {e}")
            raise UpstreamError("database", str(e)) from e

        logger.info(f"Comment {index} removed from {post_id} ({len(remaining)} left)")
        return remaining
