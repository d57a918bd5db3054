"""
Database Management and Configuration.

This module owns the asynchronous storage client for the CMS API. It wraps a
SQLAlchemy async engine and a SQLModel session factory in a `Database` object
that the application factory builds once and hands to every service.

Key Components:
- `Database`: Engine, session factory, table creation, health information and
  shutdown. SQLite (via `aiosqlite`) is used in development and tests,
  PostgreSQL (via `asyncpg`) in production.
- `Database.session()`: An async context manager yielding a SQLModel
  `AsyncSession`; each service operation opens its own session.

Architectural Design:
- Explicit Lifecycle: The engine is created by the application factory and
  disposed by the lifespan handler, so there is no module-level connection
  state and tests can build an isolated in-memory database per test.
- Connection Pooling: PostgreSQL uses `AsyncAdaptedQueuePool` with pre-ping.
  In-memory SQLite uses `StaticPool` so every session sees the same database.
- Referential Integrity: SQLite connections switch on `PRAGMA foreign_keys`, so
  a comment can never outlive its post.
"""

from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict

from sqlalchemy import event, text
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import AsyncAdaptedQueuePool, StaticPool
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession

from core.logging_config import get_logger

# Tables must be registered on the metadata before create_all
import core.models  # noqa: F401

logger = get_logger(__name__)


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


class Database:
    """Async storage client shared by all services"""

    def __init__(self, url: str, echo: bool = False):
        self.url = url

        if url.startswith("sqlite"):
            in_memory = ":memory:" in url or url.rstrip("/").endswith("aiosqlite:")
            self.engine = create_async_engine(
                url,
                connect_args={"check_same_thread": False},
                echo=echo,
                poolclass=StaticPool if in_memory else AsyncAdaptedQueuePool,
            )
            event.listen(self.engine.sync_engine, "connect", _enable_sqlite_foreign_keys)
        else:
            self.engine = create_async_engine(
                url,
                poolclass=AsyncAdaptedQueuePool,
                pool_size=5,
                max_overflow=10,
                pool_pre_ping=True,  # Validate connections before use
                echo=echo,
            )

        self._sessionmaker = async_sessionmaker(
            self.engine, class_=AsyncSession, expire_on_commit=False
        )

    @property
    def database_type(self) -> str:
        return "postgresql" if "postgresql" in self.url else "sqlite"

    async def create_tables(self) -> None:
        """Create all tables. Called during application startup."""
        try:
            async with self.engine.begin() as conn:
                await conn.run_sync(SQLModel.metadata.create_all)
            logger.info("CMS database tables created successfully")
        except Exception as e:
            logger.error(f"Failed to create CMS database tables: {e}")
            raise

    @asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        async with self._sessionmaker() as session:
            yield session

    async def dispose(self) -> None:
        await self.engine.dispose()
        logger.info("Database engine disposed")

    async def info(self) -> Dict[str, Any]:
        """Basic database information for health checks"""
        try:
            async with self.session() as session:
                result = await session.execute(text("SELECT 1"))
                result.scalar()
            connection_healthy = True
        except Exception as e:
            logger.error(f"Database health check failed: {e}")
            connection_healthy = False

        return {
            "database_url": self.url.split("@")[1]
            if "@" in self.url
            else "masked",  # Hide credentials
            "connection_healthy": connection_healthy,
            "database_type": self.database_type,
        }
