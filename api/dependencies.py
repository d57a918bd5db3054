from typing import Optional

from fastapi import Request

from core.auth import SessionSubject
from core.database import Database
from providers.media_provider import MediaProvider
from services.auth_service import AdminAuthService
from services.blocklist_service import BlocklistService
from services.moderation_service import ModerationService
from services.post_service import PostService


def get_database(request: Request) -> Database:
    return request.app.state.database


def get_auth_service(request: Request) -> AdminAuthService:
    return request.app.state.auth_service


def get_post_service(request: Request) -> PostService:
    return request.app.state.post_service


def get_moderation_service(request: Request) -> ModerationService:
    return request.app.state.moderation_service


def get_blocklist_service(request: Request) -> BlocklistService:
    return request.app.state.blocklist_service


def get_media_provider(request: Request) -> MediaProvider:
    return request.app.state.media_provider


def get_session_token(request: Request) -> Optional[str]:
    """Raw credential from the session cookie, if any"""
    return request.cookies.get(request.app.state.token_manager.cookie_name)


def require_admin(request: Request) -> SessionSubject:
    """Reject the request with 401 unless it carries a valid session credential"""
    return get_auth_service(request).identify(get_session_token(request))
