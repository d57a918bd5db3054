"""
Custom Exception Classes for the CMS API.

This module defines the exception hierarchy used by every service in the CMS
API. Services raise these exceptions and never build HTTP responses themselves;
the HTTP boundary maps each exception to a status code and a JSON body.

Key Components:
- `CMSAPIException`: The base class. It carries a user-facing message, a
  machine-readable error code, and an optional `details` dictionary that is
  logged but never sent to clients.
- Error kinds: `ValidationError` (400), `NotFoundError` (404),
  `ForbiddenError` (403), `AuthenticationError` (401) and `UpstreamError` (500),
  each with narrower subclasses for the specific rejection reasons raised by
  comment moderation and the session gate.
- `status_code_for`: Resolves the HTTP status for an exception through a single
  error-code table.

Architectural Design:
- Hierarchy of Exceptions: Callers can catch a whole error kind
  (`ForbiddenError`) or one specific reason (`CommentsDisabledError`).
- Centralized Error Mapping: The status code is resolved from the error code in
  one place, so services stay unaware of HTTP.
"""

from typing import Optional, Dict, Any


class CMSAPIException(Exception):
    """Base exception class for the CMS API"""

    status_code = 500

    def __init__(
        self,
        message: str,
        error_code: str = "CMS_API_ERROR",
        details: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        super().__init__(self.message)


class ValidationError(CMSAPIException):
    """Raised when input validation fails"""

    status_code = 400

    def __init__(self, field: str, value: Any, reason: str):
        super().__init__(
            f"Validation failed for field '{field}': {reason}",
            "VALIDATION_ERROR",
            {"field": field, "value": str(value), "reason": reason},
        )


class EmptyInputError(ValidationError):
    """Raised when a text field is empty after trimming"""

    def __init__(self, field: str):
        super().__init__(field, "", "Must not be empty")
        self.error_code = "EMPTY_INPUT"


class IndexOutOfRangeError(ValidationError):
    """Raised when a positional index falls outside a sequence"""

    def __init__(self, index: int, length: int):
        super().__init__("index", index, f"Index must be in [0, {length})")
        self.error_code = "INDEX_OUT_OF_RANGE"
        self.details["length"] = length


class NotFoundError(CMSAPIException):
    """Raised when a resource does not exist"""

    status_code = 404

    def __init__(self, resource: str, identifier: str = ""):
        super().__init__(
            f"{resource} not found",
            "NOT_FOUND",
            {"resource": resource, "identifier": identifier},
        )


class PostNotFoundError(NotFoundError):
    """Raised when no post matches an identifier in either encoding"""

    def __init__(self, identifier: str):
        super().__init__("Post", identifier)
        self.error_code = "POST_NOT_FOUND"


class AdminNotConfiguredError(NotFoundError):
    """Raised when the admin credential record has not been created"""

    def __init__(self):
        super().__init__("Admin record")
        self.error_code = "ADMIN_NOT_CONFIGURED"


class ForbiddenError(CMSAPIException):
    """Raised when an operation is refused by a moderation rule"""

    status_code = 403

    def __init__(self, message: str, error_code: str = "FORBIDDEN", details=None):
        super().__init__(message, error_code, details)


class CommentsDisabledError(ForbiddenError):
    """Raised when a post does not accept comments"""

    def __init__(self, post_id: str):
        super().__init__(
            "Comments are disabled for this post",
            "COMMENTS_DISABLED",
            {"post_id": post_id},
        )


class ForbiddenContentError(ForbiddenError):
    """Raised when comment text contains a blocklisted substring"""

    status_code = 400

    def __init__(self, matched: str):
        super().__init__(
            "Comment contains forbidden content",
            "FORBIDDEN_CONTENT",
            {"matched": matched},
        )


class AuthenticationError(CMSAPIException):
    """Raised when authentication fails"""

    status_code = 401

    def __init__(self, reason: str, cause: str = ""):
        super().__init__(
            reason,
            "AUTHENTICATION_ERROR",
            {"reason": reason, "cause": cause or reason},
        )


class UpstreamError(CMSAPIException):
    """Raised when the database or the media host fails"""

    status_code = 500

    def __init__(self, service: str, reason: str):
        super().__init__(
            f"Service '{service}' failed",
            "UPSTREAM_ERROR",
            {"service": service, "reason": reason},
        )


STATUS_CODE_MAP = {
    "VALIDATION_ERROR": 400,
    "EMPTY_INPUT": 400,
    "INDEX_OUT_OF_RANGE": 400,
    "FORBIDDEN_CONTENT": 400,
    "AUTHENTICATION_ERROR": 401,
    "FORBIDDEN": 403,
    "COMMENTS_DISABLED": 403,
    "NOT_FOUND": 404,
    "POST_NOT_FOUND": 404,
    "ADMIN_NOT_CONFIGURED": 404,
    "UPSTREAM_ERROR": 500,
}


def status_code_for(exc: CMSAPIException) -> int:
    """Resolve the HTTP status for an exception from its error code"""
    return STATUS_CODE_MAP.get(exc.error_code, exc.status_code)
