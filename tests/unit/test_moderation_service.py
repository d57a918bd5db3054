"""
Unit tests for comment moderation.

Covers the ordered rejection rules of `add_comment` and positional deletion,
including the guarantee that rejected requests leave storage untouched.
"""
import pytest
from unittest.mock import AsyncMock, patch

from core.exceptions import (
    CommentsDisabledError,
    EmptyInputError,
    ForbiddenContentError,
    ForbiddenError,
    IndexOutOfRangeError,
    PostNotFoundError,
    ValidationError,
)


async def comment_texts(post_service, post_id):
    return [comment.text for comment in await post_service.list_comments(post_id)]


@pytest.mark.unit
class TestAddComment:
    """Test accepting and rejecting comments."""

    async def test_comment_is_trimmed_and_appended(
        self, moderation_service, post_service, sample_post_data
    ):
        post = await post_service.create_post(sample_post_data)

        comments = await moderation_service.add_comment(post.public_id, "  Great news!  ")

        assert [comment.text for comment in comments] == ["Great news!"]
        assert comments[0].created_at is not None

    async def test_returns_full_sequence_in_order(
        self, moderation_service, post_service, sample_post_data
    ):
        post = await post_service.create_post(sample_post_data)

        await moderation_service.add_comment(post.public_id, "A")
        await moderation_service.add_comment(post.public_id, "B")
        comments = await moderation_service.add_comment(post.public_id, "C")

        assert [comment.text for comment in comments] == ["A", "B", "C"]

    @pytest.mark.parametrize("text", ["", "   ", "\n\t", None])
    async def test_empty_text_is_rejected_without_storing(
        self, moderation_service, post_service, sample_post_data, text
    ):
        post = await post_service.create_post(sample_post_data)

        with pytest.raises(EmptyInputError):
            await moderation_service.add_comment(post.public_id, text)

        assert await comment_texts(post_service, post.public_id) == []

    async def test_empty_text_is_checked_before_post_lookup(self, moderation_service):
        with pytest.raises(EmptyInputError):
            await moderation_service.add_comment("no-such-post", "   ")

    async def test_unknown_post(self, moderation_service):
        with pytest.raises(PostNotFoundError):
            await moderation_service.add_comment("65a1b2c3d4e5f60718293a4b", "Hello")

    async def test_post_deleted_after_lookup(
        self, moderation_service, post_service, sample_post_data
    ):
        post = await post_service.create_post(sample_post_data)
        stale = await post_service.resolve(post.public_id)
        await post_service.delete_post(post.public_id)

        with patch.object(post_service, "resolve", AsyncMock(return_value=stale)):
            with pytest.raises(PostNotFoundError):
                await moderation_service.add_comment(post.public_id, "Too late")

    async def test_disabled_comments_are_forbidden(
        self, moderation_service, post_service, sample_post_data
    ):
        post = await post_service.create_post(sample_post_data)
        await post_service.update_post(post.public_id, {"comments_allowed": False})

        with pytest.raises(CommentsDisabledError) as exc_info:
            await moderation_service.add_comment(post.public_id, "Hello")

        assert isinstance(exc_info.value, ForbiddenError)
        assert await comment_texts(post_service, post.public_id) == []

    async def test_disabled_check_runs_before_blocklist(
        self, moderation_service, post_service, blocklist_service, sample_post_data
    ):
        post = await post_service.create_post(sample_post_data)
        await post_service.update_post(post.public_id, {"comments_allowed": False})
        await blocklist_service.add_word("kelime")

        with pytest.raises(CommentsDisabledError):
            await moderation_service.add_comment(post.public_id, "kelime")

    @pytest.mark.parametrize(
        "text",
        ["Bu bir KELIME testi", "kelimeler", "xKeLiMex", "kelime"],
    )
    async def test_blocklisted_substring_is_rejected(
        self, moderation_service, post_service, blocklist_service, sample_post_data, text
    ):
        post = await post_service.create_post(sample_post_data)
        await blocklist_service.add_word("kelime")

        with pytest.raises(ForbiddenContentError):
            await moderation_service.add_comment(post.public_id, text)

        assert await comment_texts(post_service, post.public_id) == []

    async def test_split_word_is_accepted(
        self, moderation_service, post_service, blocklist_service, sample_post_data
    ):
        post = await post_service.create_post(sample_post_data)
        await blocklist_service.add_word("kelime")

        comments = await moderation_service.add_comment(post.public_id, "kel ime")

        assert [comment.text for comment in comments] == ["kel ime"]

    async def test_comment_on_legacy_post(self, moderation_service, store_legacy_post):
        await store_legacy_post("welcome-post")

        comments = await moderation_service.add_comment("welcome-post", "Hi")

        assert [comment.text for comment in comments] == ["Hi"]

    async def test_native_and_legacy_forms_reach_the_same_post(
        self, moderation_service, post_service, sample_post_data
    ):
        post = await post_service.create_post(sample_post_data)
        upper = post.public_id.upper()

        await moderation_service.add_comment(post.public_id, "lower")
        comments = await moderation_service.add_comment(upper, "upper")

        assert [comment.text for comment in comments] == ["lower", "upper"]

    async def test_hex_shaped_legacy_id_resolves(
        self, moderation_service, store_legacy_post
    ):
        legacy = "0123456789abcdef01234567"
        await store_legacy_post(legacy)

        comments = await moderation_service.add_comment(legacy, "found by legacy id")

        assert len(comments) == 1


@pytest.mark.unit
class TestDeleteComment:
    """Test positional comment deletion."""

    async def seed(self, moderation_service, post_service, sample_post_data):
        post = await post_service.create_post(sample_post_data)
        for text in ["A", "B", "C"]:
            await moderation_service.add_comment(post.public_id, text)
        return post

    async def test_delete_middle_comment(
        self, moderation_service, post_service, sample_post_data
    ):
        post = await self.seed(moderation_service, post_service, sample_post_data)

        comments = await moderation_service.delete_comment(post.public_id, "1")

        assert [comment.text for comment in comments] == ["A", "C"]
        assert await comment_texts(post_service, post.public_id) == ["A", "C"]

    async def test_delete_first_and_last(
        self, moderation_service, post_service, sample_post_data
    ):
        post = await self.seed(moderation_service, post_service, sample_post_data)

        await moderation_service.delete_comment(post.public_id, 2)
        comments = await moderation_service.delete_comment(post.public_id, 0)

        assert [comment.text for comment in comments] == ["B"]

    @pytest.mark.parametrize("index", ["3", "5", "-1"])
    async def test_out_of_range_leaves_storage_unchanged(
        self, moderation_service, post_service, sample_post_data, index
    ):
        post = await self.seed(moderation_service, post_service, sample_post_data)

        with pytest.raises(IndexOutOfRangeError):
            await moderation_service.delete_comment(post.public_id, index)

        assert await comment_texts(post_service, post.public_id) == ["A", "B", "C"]

    async def test_non_integer_index(
        self, moderation_service, post_service, sample_post_data
    ):
        post = await self.seed(moderation_service, post_service, sample_post_data)

        with pytest.raises(ValidationError) as exc_info:
            await moderation_service.delete_comment(post.public_id, "first")

        assert not isinstance(exc_info.value, IndexOutOfRangeError)

    async def test_unknown_post(self, moderation_service):
        with pytest.raises(PostNotFoundError):
            await moderation_service.delete_comment("missing", "0")

    async def test_delete_on_empty_sequence(
        self, moderation_service, post_service, sample_post_data
    ):
        post = await post_service.create_post(sample_post_data)

        with pytest.raises(IndexOutOfRangeError):
            await moderation_service.delete_comment(post.public_id, "0")
