import pytest
import os
import sys
from typing import AsyncGenerator, Generator, List
from unittest.mock import AsyncMock, MagicMock

from fastapi.testclient import TestClient

# Add the parent directory to the path so we can import our modules
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from main import create_app
from core.auth import PasswordManager, SessionTokenManager
from core.config import Settings
from core.database import Database
from core.models import Post
from providers.media_provider import MediaFile, MediaProvider
from services.blocklist_service import BlocklistService
from services.moderation_service import ModerationService
from services.post_service import PostService

IN_MEMORY_DB = "sqlite+aiosqlite://"
TEST_SECRET = "test-secret-key-for-session-tokens"
ADMIN_USERNAME = "admin"
ADMIN_PASSWORD = "s3cret-pass"


class FakeMediaProvider(MediaProvider):
    """Records uploads and removals instead of talking to the media host"""

    def __init__(self):
        self.uploaded: List[MediaFile] = []
        self.destroyed: List[str] = []

    @property
    def source_name(self) -> str:
        return "fake"

    async def upload(self, files: List[MediaFile], folder: str) -> List[str]:
        self.uploaded.extend(files)
        return [f"https://media.test/{folder}/{media.filename}" for media in files]

    async def destroy(self, url: str, folder: str) -> bool:
        self.destroyed.append(url)
        return True


def make_media_host_session(status=200, body=None, post_error=None, json_error=None):
    """aiohttp.ClientSession stand-in whose post() yields one canned response"""
    response = MagicMock()
    response.status = status
    if json_error is not None:
        response.json = AsyncMock(side_effect=json_error)
    else:
        response.json = AsyncMock(return_value={} if body is None else body)

    post_ctx = MagicMock()
    post_ctx.__aenter__ = AsyncMock(return_value=response)
    post_ctx.__aexit__ = AsyncMock(return_value=False)

    session = MagicMock()
    if post_error is not None:
        session.post = MagicMock(side_effect=post_error)
    else:
        session.post = MagicMock(return_value=post_ctx)

    session_ctx = MagicMock()
    session_ctx.__aenter__ = AsyncMock(return_value=session)
    session_ctx.__aexit__ = AsyncMock(return_value=False)
    return session_ctx, session

@pytest.fixture(autouse=True)
def setup_test_environment(monkeypatch):
    """Set up test environment variables."""
    monkeypatch.setenv("ENVIRONMENT", "test")
    monkeypatch.setenv("LOG_LEVEL", "DEBUG")
    monkeypatch.delenv("LOG_FILE", raising=False)


@pytest.fixture
def settings() -> Settings:
    """Settings for an app without an admin record."""
    return Settings(
        environment="test",
        database_url=IN_MEMORY_DB,
        jwt_secret=TEST_SECRET,
    )


@pytest.fixture
def admin_settings(settings) -> Settings:
    """Settings that seed the admin record on startup."""
    settings.admin_username = ADMIN_USERNAME
    settings.admin_password = ADMIN_PASSWORD
    return settings


@pytest.fixture
def media_provider() -> FakeMediaProvider:
    return FakeMediaProvider()


@pytest.fixture
def test_client(settings, media_provider) -> Generator[TestClient, None, None]:
    """Client for an app with no admin record."""
    app = create_app(settings, media=media_provider)
    with TestClient(app) as client:
        yield client


@pytest.fixture
def admin_client(admin_settings, media_provider) -> Generator[TestClient, None, None]:
    """Client for an app with a seeded admin record, not logged in."""
    app = create_app(admin_settings, media=media_provider)
    with TestClient(app) as client:
        yield client


@pytest.fixture
def logged_in_client(admin_client) -> TestClient:
    """Client holding a valid session cookie."""
    response = admin_client.post(
        "/api/auth", json={"username": ADMIN_USERNAME, "password": ADMIN_PASSWORD}
    )
    assert response.status_code == 200
    return admin_client


@pytest.fixture
def token_manager() -> SessionTokenManager:
    return SessionTokenManager(TEST_SECRET)


@pytest.fixture
def password_manager() -> PasswordManager:
    return PasswordManager()


@pytest.fixture
async def database() -> AsyncGenerator[Database, None]:
    """Isolated in-memory database with tables created."""
    db = Database(IN_MEMORY_DB)
    await db.create_tables()
    yield db
    await db.dispose()


@pytest.fixture
def post_service(database, media_provider) -> PostService:
    return PostService(database, media_provider)


@pytest.fixture
def blocklist_service(database) -> BlocklistService:
    return BlocklistService(database)


@pytest.fixture
def moderation_service(post_service, blocklist_service) -> ModerationService:
    return ModerationService(post_service, blocklist_service)


@pytest.fixture
def sample_post_data():
    """Sample post fields for testing."""
    return {
        "title": "Open day",
        "description": "Campus open day announcement",
        "main_photo": "https://media.test/blogs/open-day.jpg",
        "images": ["https://media.test/blogs/hall.jpg"],
    }


@pytest.fixture
def store_legacy_post(database):
    """Insert a migrated post that only has a legacy string id."""

    async def _store(legacy_id: str, **fields) -> Post:
        values = {
            "title": "Migrated post",
            "description": "Imported from the old store",
            "main_photo": "https://media.test/blogs/old.jpg",
        }
        values.update(fields)
        post = Post(legacy_id=legacy_id, **values)
        async with database.session() as session:
            session.add(post)
            await session.commit()
            await session.refresh(post)
        return post

    return _store


@pytest.fixture
def media_host_session():
    """Factory for canned media host sessions; returns (session_ctx, session)."""
    return make_media_host_session
