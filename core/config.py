"""
Runtime Configuration for the CMS API.

All settings are read from environment variables once, when the application
factory builds the app. Components receive the values they need explicitly
instead of reading the environment themselves, which keeps tests free to build
their own `Settings` without touching `os.environ`.
"""

import os
import secrets
from dataclasses import dataclass, field
from typing import List, Optional

from core.logging_config import get_logger

logger = get_logger(__name__)

DEFAULT_PROTECTED_PREFIXES = [
    "/adminacademics",
    "/adminevents",
    "/adminmainmenu",
    "/adminpersons",
    "/adminpodcast",
    "/blogs",
]

DEFAULT_CORS_ORIGINS = [
    "http://localhost:3000",
    "http://localhost:3001",
]


def _split_csv(value: Optional[str], default: List[str]) -> List[str]:
    if not value:
        return list(default)
    return [item.strip() for item in value.split(",") if item.strip()]


@dataclass
class Settings:
    """Application settings"""

    environment: str = "development"
    database_url: str = "sqlite+aiosqlite:///./cms_api.db"
    jwt_secret: str = ""
    jwt_algorithm: str = "HS256"
    session_ttl_seconds: int = 600
    cookie_name: str = "auth_token"
    login_path: str = "/admin"
    protected_prefixes: List[str] = field(
        default_factory=lambda: list(DEFAULT_PROTECTED_PREFIXES)
    )
    cors_origins: List[str] = field(
        default_factory=lambda: list(DEFAULT_CORS_ORIGINS)
    )
    admin_username: Optional[str] = None
    admin_password: Optional[str] = None
    cloudinary_cloud_name: Optional[str] = None
    cloudinary_api_key: Optional[str] = None
    cloudinary_api_secret: Optional[str] = None

    def __post_init__(self):
        if not self.jwt_secret:
            self.jwt_secret = secrets.token_urlsafe(32)
            logger.warning(
                "Generated new JWT secret. Sessions will not survive a restart; "
                "set JWT_SECRET to keep them."
            )

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from environment variables"""
        return cls(
            environment=os.getenv("ENVIRONMENT", "development").lower(),
            database_url=os.getenv(
                "DATABASE_URL", "sqlite+aiosqlite:///./cms_api.db"
            ),
            jwt_secret=os.getenv("JWT_SECRET", ""),
            login_path=os.getenv("LOGIN_PATH", "/admin"),
            protected_prefixes=_split_csv(
                os.getenv("PROTECTED_PREFIXES"), DEFAULT_PROTECTED_PREFIXES
            ),
            cors_origins=_split_csv(os.getenv("CORS_ORIGINS"), DEFAULT_CORS_ORIGINS),
            admin_username=os.getenv("ADMIN_USERNAME"),
            admin_password=os.getenv("ADMIN_PASSWORD"),
            cloudinary_cloud_name=os.getenv("CLOUDINARY_CLOUD_NAME"),
            cloudinary_api_key=os.getenv("CLOUDINARY_API_KEY"),
            cloudinary_api_secret=os.getenv("CLOUDINARY_API_SECRET"),
        )
