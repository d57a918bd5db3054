"""
Institute CMS API - Main Application Entry Point.

This module builds and configures the FastAPI application for the institute's
content management backend: blog posts with reader comments, comment
moderation against a blocklist, image uploads to the media host, and the
single-admin session that guards the admin pages.

Key Responsibilities:
- Build every component once, in `create_app()`, from a `Settings` object and
  attach them to `app.state` for the request dependencies.
- Set up middleware for CORS, correlation IDs, error handling, request logging
  and the session gate on admin page prefixes.
- Mount the routers: health and monitoring at the root, everything else under
  `/api` so that API paths never fall under a protected page prefix.
- Manage the lifecycle: create tables and seed the admin record on startup,
  dispose the database engine on shutdown.
"""

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api.auth_endpoints import router as auth_router
from api.blocklist_endpoints import router as blocklist_router
from api.blog_endpoints import router as blog_router
from api.health_router import health_router, monitoring_router
from core.auth import PasswordManager, SessionTokenManager
from core.config import Settings
from core.database import Database
from core.logging_config import get_logger, setup_logging
from core.middleware import (
    CorrelationMiddleware,
    ErrorHandlingMiddleware,
    RequestLoggingMiddleware,
    SessionGateMiddleware,
    register_exception_handlers,
)
from providers.media_provider import CloudinaryMediaProvider, MediaProvider
from services.auth_service import AdminAuthService
from services.blocklist_service import BlocklistService
from services.moderation_service import ModerationService
from services.post_service import PostService

API_PREFIX = "/api"


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    settings: Settings = app.state.settings
    setup_logging(settings.environment)
    logger = get_logger("api.startup")

    await app.state.database.create_tables()
    logger.info(f"Database ready ({app.state.database.database_type})")

    seeded = await app.state.auth_service.seed_admin(
        settings.admin_username, settings.admin_password
    )
    if seeded:
        logger.info("Admin record seeded from environment")

    logger.info("Service startup completed")
    yield

    # Cleanup on shutdown
    logger.info("Shutting down CMS API")
    await app.state.database.dispose()
    logger.info("Cleanup completed")


def create_app(
    settings: Optional[Settings] = None, media: Optional[MediaProvider] = None
) -> FastAPI:
    """Build the application and its components from settings"""
    settings = settings or Settings.from_env()

    app = FastAPI(
        title="Institute CMS API",
        description="Blog, comment moderation and admin session backend",
        version="1.0.0",
        lifespan=lifespan,
    )

    database = Database(settings.database_url)
    token_manager = SessionTokenManager(
        settings.jwt_secret,
        algorithm=settings.jwt_algorithm,
        ttl_seconds=settings.session_ttl_seconds,
        cookie_name=settings.cookie_name,
        secure_cookie=settings.is_production,
    )
    media = media or CloudinaryMediaProvider(
        settings.cloudinary_cloud_name,
        settings.cloudinary_api_key,
        settings.cloudinary_api_secret,
    )
    post_service = PostService(database, media)
    blocklist_service = BlocklistService(database)

    app.state.settings = settings
    app.state.database = database
    app.state.token_manager = token_manager
    app.state.media_provider = media
    app.state.auth_service = AdminAuthService(database, token_manager, PasswordManager())
    app.state.post_service = post_service
    app.state.blocklist_service = blocklist_service
    app.state.moderation_service = ModerationService(post_service, blocklist_service)

    # Last added runs first: CORS, correlation, errors, logging, then the gate
    app.add_middleware(
        SessionGateMiddleware,
        protected_prefixes=settings.protected_prefixes,
        login_path=settings.login_path,
    )
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(ErrorHandlingMiddleware)
    app.add_middleware(CorrelationMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)

    # Health routers at the root for probes
    app.include_router(health_router)
    app.include_router(monitoring_router)

    app.include_router(auth_router, prefix=API_PREFIX)
    app.include_router(blog_router, prefix=API_PREFIX)
    app.include_router(blocklist_router, prefix=API_PREFIX)

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=8002,
        reload=True,
        log_level="info",
    )
