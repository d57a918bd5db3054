"""
Session Credentials and Password Hashing.

This module provides the primitives behind the single-admin session scheme of
the CMS API: a signed, short-lived credential carried in an HTTP-only cookie,
and bcrypt password hashing for the stored admin record.

Key Components:
- `SessionTokenManager`: Issues and verifies JWTs over `{id, username}` with a
  fixed lifetime (10 minutes by default), and produces the cookie directives
  that set or clear the `auth_token` cookie.
- `PasswordManager`: bcrypt hashing and verification, plus a dummy
  verification used to keep failed logins on the same code path.
- `SessionSubject`: The identity carried by a valid credential.

Architectural Design:
- Stateless Credentials: Nothing is stored server-side. A credential is valid
  exactly when its signature checks out and it has not expired, so there is
  nothing to revoke and nothing to retry on failure.
- Single Failure Kind: Every verification failure raises `AuthenticationError`.
  The message differs (expired vs. invalid) but the kind, and therefore the
  HTTP status, does not.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

import bcrypt
import jwt
from starlette.responses import Response

from core.logging_config import get_logger
from core.exceptions import AuthenticationError, ValidationError

logger = get_logger(__name__)

# bcrypt ignores (or rejects) anything past 72 bytes
BCRYPT_MAX_BYTES = 72


@dataclass(frozen=True)
class SessionSubject:
    """Identity carried by a session credential"""

    id: str
    username: str

    def to_dict(self) -> Dict[str, str]:
        return {"id": self.id, "username": self.username}


class SessionTokenManager:
    """Signed session credential management"""

    def __init__(
        self,
        secret_key: str,
        algorithm: str = "HS256",
        ttl_seconds: int = 600,
        cookie_name: str = "auth_token",
        secure_cookie: bool = False,
    ):
        self.secret_key = secret_key
        self.algorithm = algorithm
        self.ttl = timedelta(seconds=ttl_seconds)
        self.cookie_name = cookie_name
        self.secure_cookie = secure_cookie

    def issue(self, subject: SessionSubject, issued_at: Optional[datetime] = None) -> str:
        """Create a credential for the subject, valid for the configured lifetime"""
        issued_at = issued_at or datetime.now(timezone.utc)
        payload = {
            "id": subject.id,
            "username": subject.username,
            "iat": issued_at,
            "exp": issued_at + self.ttl,
        }
        token = jwt.encode(payload, self.secret_key, algorithm=self.algorithm)
        logger.info(f"Issued session credential for {subject.username}")
        return token

    def verify(self, token: str) -> SessionSubject:
        """Verify signature and expiry, returning the identity it carries"""
        try:
            payload = jwt.decode(
                token,
                self.secret_key,
                algorithms=[self.algorithm],
                options={"require": ["exp", "iat"]},
            )
        except jwt.ExpiredSignatureError:
            raise AuthenticationError("Token has expired", "expired")
        except jwt.InvalidTokenError as e:
            raise AuthenticationError("Invalid token", f"invalid: {e}")

        if not payload.get("id") or not payload.get("username"):
            raise AuthenticationError("Invalid token", "missing subject claims")

        return SessionSubject(id=str(payload["id"]), username=str(payload["username"]))

    def cookie_directive(self, token: str) -> Dict[str, Any]:
        """Keyword arguments for `Response.set_cookie` that store a credential"""
        return {
            "key": self.cookie_name,
            "value": token,
            "max_age": int(self.ttl.total_seconds()),
            "path": "/",
            "httponly": True,
            "secure": self.secure_cookie,
            "samesite": "lax",
        }

    def clear(self) -> Dict[str, Any]:
        """Keyword arguments for `Response.set_cookie` that drop the credential"""
        return {
            "key": self.cookie_name,
            "value": "",
            "max_age": 0,
            "expires": datetime(1970, 1, 1, tzinfo=timezone.utc),
            "path": "/",
            "httponly": True,
            "secure": self.secure_cookie,
            "samesite": "lax",
        }

    def set_cookie(self, response: Response, token: str) -> None:
        response.set_cookie(**self.cookie_directive(token))

    def clear_cookie(self, response: Response) -> None:
        response.set_cookie(**self.clear())


class PasswordManager:
    """Password hashing and verification"""

    _dummy_hash: Optional[bytes] = None

    @staticmethod
    def hash_password(password: str) -> str:
        """Hash password using bcrypt"""
        if len(password.encode("utf-8")) > BCRYPT_MAX_BYTES:
            raise ValidationError(
                "password", "***", f"Password must be at most {BCRYPT_MAX_BYTES} bytes"
            )
        hashed = bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt())
        return hashed.decode("utf-8")

    @staticmethod
    def verify_password(password: str, hashed: str) -> bool:
        """Verify password against hash"""
        try:
            return bcrypt.checkpw(password.encode("utf-8"), hashed.encode("utf-8"))
        except ValueError as e:
            logger.error(f"Password verification error: {e}")
            return False

    @classmethod
    def burn_verification(cls, password: str) -> None:
        """Run a bcrypt check against a throwaway hash and discard the result"""
        if cls._dummy_hash is None:
            cls._dummy_hash = bcrypt.hashpw(b"not-the-admin-password", bcrypt.gensalt())
        bcrypt.checkpw(password.encode("utf-8")[:BCRYPT_MAX_BYTES], cls._dummy_hash)
