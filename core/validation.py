"""
Input Validation and Normalization Utilities.

Validators shared by the CMS services. Each one either returns the normalized
value or raises a `ValidationError` subclass that the HTTP boundary turns into
a 400 response.

Key Components:
- `InputValidator`: Static helpers for required text, bounded strings and
  integer path segments.
- Domain validators: `validate_comment_text`, `validate_blocklist_word`,
  `validate_admin_username`, `validate_admin_password`, `parse_index`.

Text is trimmed but otherwise stored as submitted. Comments are not
HTML-escaped here; escaping belongs to whatever renders them.
"""

import re
from typing import Any, Optional

from core.exceptions import EmptyInputError, ValidationError

INDEX_PATTERN = re.compile(r"^-?\d+$")

COMMENT_MAX_LENGTH = 2000
BLOCKLIST_WORD_MAX_LENGTH = 100
USERNAME_MIN_LENGTH = 3
USERNAME_MAX_LENGTH = 64
PASSWORD_MIN_LENGTH = 6


class InputValidator:
    """Input validation and normalization"""

    @staticmethod
    def require_text(value: Any, field: str, max_length: int = 1000) -> str:
        """Trim a text value, rejecting missing, empty and oversized input"""
        if value is None:
            raise EmptyInputError(field)
        if not isinstance(value, str):
            raise ValidationError(field, value, "Must be a string")

        value = value.strip()
        if not value:
            raise EmptyInputError(field)

        if len(value) > max_length:
            raise ValidationError(
                field, value[:50], f"Must be no more than {max_length} characters"
            )

        return value

    @staticmethod
    def optional_text(
        value: Optional[str], field: str, max_length: int = 100000
    ) -> Optional[str]:
        """Trim an optional text value; None stays None"""
        if value is None:
            return None
        if not isinstance(value, str):
            raise ValidationError(field, value, "Must be a string")
        value = value.strip()
        if len(value) > max_length:
            raise ValidationError(
                field, value[:50], f"Must be no more than {max_length} characters"
            )
        return value

    @staticmethod
    def validate_integer(value: Any, field: str) -> int:
        """Parse an integer from a path segment or JSON value"""
        if isinstance(value, bool):
            raise ValidationError(field, value, "Invalid integer")
        if isinstance(value, int):
            return value
        if isinstance(value, str) and INDEX_PATTERN.match(value.strip()):
            return int(value.strip())
        raise ValidationError(field, value, "Invalid integer")


def validate_comment_text(text: Any) -> str:
    """Validate comment text"""
    return InputValidator.require_text(text, "comment", max_length=COMMENT_MAX_LENGTH)


def validate_blocklist_word(word: Any, field: str = "word") -> str:
    """Validate a blocklist entry and normalize it to lowercase"""
    word = InputValidator.require_text(
        word, field, max_length=BLOCKLIST_WORD_MAX_LENGTH
    )
    return word.lower()


def validate_admin_username(username: Any) -> str:
    """Validate the admin username; case is preserved"""
    username = InputValidator.require_text(
        username, "username", max_length=USERNAME_MAX_LENGTH
    )
    if len(username) < USERNAME_MIN_LENGTH:
        raise ValidationError(
            "username",
            username,
            f"Username must be at least {USERNAME_MIN_LENGTH} characters",
        )
    return username


def validate_admin_password(password: Any) -> str:
    """Validate the admin password; surrounding whitespace is significant"""
    if password is None or password == "":
        raise EmptyInputError("password")
    if not isinstance(password, str):
        raise ValidationError("password", "***", "Must be a string")
    if len(password) < PASSWORD_MIN_LENGTH:
        raise ValidationError(
            "password",
            "***",
            f"Password must be at least {PASSWORD_MIN_LENGTH} characters",
        )
    return password


def parse_index(raw: Any) -> int:
    """Parse a comment position from a path segment"""
    return InputValidator.validate_integer(raw, "index")
