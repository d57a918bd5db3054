import pytest
from core.exceptions import (
    AdminNotConfiguredError,
    AuthenticationError,
    CMSAPIException,
    CommentsDisabledError,
    EmptyInputError,
    ForbiddenContentError,
    ForbiddenError,
    IndexOutOfRangeError,
    NotFoundError,
    PostNotFoundError,
    UpstreamError,
    ValidationError,
    status_code_for,
)


class TestCustomExceptions:
    """Test custom exception classes."""

    def test_validation_error(self):
        """Test ValidationError creation and properties."""
        error = ValidationError("title", "", "Must not be empty")
        assert str(error) == "Validation failed for field 'title': Must not be empty"
        assert error.status_code == 400
        assert error.error_code == "VALIDATION_ERROR"
        assert error.details["field"] == "title"

    def test_empty_input_error_is_a_validation_error(self):
        error = EmptyInputError("comment")
        assert isinstance(error, ValidationError)
        assert error.error_code == "EMPTY_INPUT"
        assert status_code_for(error) == 400

    def test_index_out_of_range_error(self):
        error = IndexOutOfRangeError(5, 3)
        assert isinstance(error, ValidationError)
        assert error.error_code == "INDEX_OUT_OF_RANGE"
        assert error.details["length"] == 3
        assert status_code_for(error) == 400

    def test_post_not_found_error(self):
        error = PostNotFoundError("missing-post")
        assert isinstance(error, NotFoundError)
        assert error.message == "Post not found"
        assert error.details["identifier"] == "missing-post"
        assert status_code_for(error) == 404

    def test_admin_not_configured_error(self):
        error = AdminNotConfiguredError()
        assert isinstance(error, NotFoundError)
        assert error.error_code == "ADMIN_NOT_CONFIGURED"
        assert status_code_for(error) == 404

    def test_comments_disabled_error(self):
        error = CommentsDisabledError("abc")
        assert isinstance(error, ForbiddenError)
        assert status_code_for(error) == 403

    def test_forbidden_content_error_maps_to_400(self):
        """Blocklist hits are forbidden content but answered as bad requests."""
        error = ForbiddenContentError("kelime")
        assert isinstance(error, ForbiddenError)
        assert error.error_code == "FORBIDDEN_CONTENT"
        assert status_code_for(error) == 400
        assert "kelime" not in error.message

    def test_authentication_error(self):
        """Test AuthenticationError creation and properties."""
        error = AuthenticationError("Invalid username or password", "username mismatch")
        assert str(error) == "Invalid username or password"
        assert error.status_code == 401
        assert error.details["cause"] == "username mismatch"

    def test_authentication_error_cause_defaults_to_reason(self):
        error = AuthenticationError("Token missing")
        assert error.details["cause"] == "Token missing"

    def test_upstream_error_hides_reason_from_message(self):
        error = UpstreamError("database", "connection refused on 10.0.0.5")
        assert error.message == "Service 'database' failed"
        assert error.details["reason"] == "connection refused on 10.0.0.5"
        assert status_code_for(error) == 500


class TestStatusCodeMapping:
    """Test the single error-code to status mapping."""

    @pytest.mark.parametrize(
        "error,expected",
        [
            (ValidationError("f", "v", "r"), 400),
            (NotFoundError("Thing"), 404),
            (ForbiddenError("nope"), 403),
            (AuthenticationError("no"), 401),
            (UpstreamError("media", "down"), 500),
        ],
    )
    def test_known_codes(self, error, expected):
        assert status_code_for(error) == expected

    def test_unknown_code_falls_back_to_class_status(self):
        error = CMSAPIException("odd", "SOMETHING_ELSE")
        assert status_code_for(error) == 500
