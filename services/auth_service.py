"""
Admin Authentication Service.

This module defines the `AdminAuthService`, which manages the single admin
account of the CMS and the session credentials issued for it.

Key Components:
- `login`: Checks a username/password pair against the stored admin record and
  issues a session credential. Username and password mismatches are
  indistinguishable to the caller; only the logs tell them apart.
- `identify`: Turns the credential from a request cookie into the admin
  identity, or raises `AuthenticationError`.
- Admin record management: `get_admin`, `upsert_admin`, `delete_admin` and
  `seed_admin` for bootstrapping from the environment.

Architectural Design:
- Uniform Failure Path: The username is compared in constant time and a bcrypt
  check runs even when the username is wrong, so both mismatches take the same
  path and raise the same error.
- Bootstrap Exemption: While no admin record exists, the record may be created
  without a credential. Once one exists, replacing it requires a credential.
"""

import hmac
from typing import Optional, Tuple

from sqlalchemy.exc import SQLAlchemyError

from core.auth import PasswordManager, SessionSubject, SessionTokenManager
from core.database import Database
from core.exceptions import (
    AdminNotConfiguredError,
    AuthenticationError,
    EmptyInputError,
    UpstreamError,
)
from core.logging_config import get_logger
from core.models import SINGLETON_ID, AdminCredential
from core.validation import (
    InputValidator,
    validate_admin_password,
    validate_admin_username,
)

logger = get_logger(__name__)

INVALID_CREDENTIALS = "Invalid username or password"


class AdminAuthService:
    """Login, credential checks and admin record management"""

    def __init__(
        self,
        database: Database,
        token_manager: SessionTokenManager,
        password_manager: Optional[PasswordManager] = None,
    ):
        self.database = database
        self.token_manager = token_manager
        self.password_manager = password_manager or PasswordManager()

    async def _load_admin(self) -> Optional[AdminCredential]:
        try:
            async with self.database.session() as session:
                return await session.get(AdminCredential, SINGLETON_ID)
        except SQLAlchemyError as e:
            logger.error(f"Failed to load admin record: {e}")
            raise UpstreamError("database", str(e)) from e

    async def login(self, username: str, password: str) -> Tuple[SessionSubject, str]:
        """Authenticate the admin and return the identity with a fresh credential"""
        username = InputValidator.require_text(username, "username", max_length=255)
        if not password:
            raise EmptyInputError("password")

        admin = await self._load_admin()
        if admin is None:
            logger.warning("Login attempted before an admin record exists")
            raise AdminNotConfiguredError()

        username_ok = hmac.compare_digest(
            username.encode("utf-8"), admin.username.encode("utf-8")
        )
        if not username_ok:
            self.password_manager.burn_verification(password)
            logger.warning(
                "Login failed: unknown username",
                extra={"action": "login_failed", "cause": "username"},
            )
            raise AuthenticationError(INVALID_CREDENTIALS, "username mismatch")

        if not self.password_manager.verify_password(password, admin.password_hash):
            logger.warning(
                "Login failed: wrong password",
                extra={"action": "login_failed", "cause": "password"},
            )
            raise AuthenticationError(INVALID_CREDENTIALS, "password mismatch")

        subject = SessionSubject(id=admin.id, username=admin.username)
        token = self.token_manager.issue(subject)
        logger.info(f"Admin {admin.username} logged in", extra={"action": "login"})
        return subject, token

    def identify(self, token: Optional[str]) -> SessionSubject:
        """Identity behind a request credential"""
        if not token:
            raise AuthenticationError("Token missing", "missing")

        try:
            return self.token_manager.verify(token)
        except AuthenticationError as e:
            raise AuthenticationError(
                "Invalid or expired token", e.details.get("cause", "")
            ) from e

    async def get_admin(self) -> AdminCredential:
        admin = await self._load_admin()
        if admin is None:
            raise AdminNotConfiguredError()
        return admin

    async def upsert_admin(
        self, username: str, password: str, token: Optional[str] = None
    ) -> AdminCredential:
        """Create or replace the admin record"""
        username = validate_admin_username(username)
        password = validate_admin_password(password)

        existing = await self._load_admin()
        if existing is not None:
            self.identify(token)

        password_hash = self.password_manager.hash_password(password)

        try:
            async with self.database.session() as session:
                admin = await session.get(AdminCredential, SINGLETON_ID)
                if admin is None:
                    admin = AdminCredential(id=SINGLETON_ID, username=username, password_hash="")
                admin.username = username
                admin.password_hash = password_hash
                session.add(admin)
                await session.commit()
                await session.refresh(admin)
        except SQLAlchemyError as e:
            logger.error(f"Failed to store admin record: {e}")
            raise UpstreamError("database", str(e)) from e

        action = "replaced" if existing is not None else "created"
        logger.info(f"Admin record {action} for {username}")
        return admin

    async def delete_admin(self) -> bool:
        """Remove the admin record. Returns False when there was none."""
        try:
            async with self.database.session() as session:
                admin = await session.get(AdminCredential, SINGLETON_ID)
                if admin is None:
                    return False
                await session.delete(admin)
                await session.commit()
        except SQLAlchemyError as e:
            logger.error(f"Failed to delete admin record: {e}")
            raise UpstreamError("database", str(e)) from e

        logger.info("Admin record deleted")
        return True

    async def seed_admin(self, username: Optional[str], password: Optional[str]) -> bool:
        """Create the admin record from startup configuration if none exists"""
        if not username or not password:
            return False
        if await self._load_admin() is not None:
            logger.debug("Admin record already present, skipping seed")
            return False

        await self.upsert_admin(username, password)
        return True
