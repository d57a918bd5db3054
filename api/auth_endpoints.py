"""
Authentication Endpoints.

Login, logout and session inspection for the single CMS admin, plus management
of the stored admin credential record.

Endpoints Provided:
- `POST /auth`: Verifies username and password and sets the `auth_token`
  session cookie.
- `GET /auth/me`: The identity behind the current session cookie.
- `POST /logout`: Clears the session cookie. Always succeeds.
- `GET /auth/admin`: The stored admin username (never the password hash).
- `PUT /auth/admin`: Creates or replaces the admin record. Open while no
  record exists; requires a session afterwards.
- `DELETE /auth/admin`: Removes the admin record. Requires a session.

Failures are raised as `CMSAPIException` subclasses and turned into responses
by the exception handlers registered in `core.middleware`.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Request, Response

from core.auth import SessionSubject
from core.logging_config import get_logger, log_function_call
from core.models import CamelModel
from services.auth_service import AdminAuthService
from .dependencies import get_auth_service, get_session_token, require_admin

logger = get_logger(__name__)
router = APIRouter(tags=["Authentication"])


# Request/Response Models
class LoginRequest(CamelModel):
    username: Optional[str] = None
    password: Optional[str] = None


class AdminRecordRequest(CamelModel):
    username: Optional[str] = None
    password: Optional[str] = None


class SessionResponse(CamelModel):
    id: str
    username: str


class MessageResponse(CamelModel):
    message: str


@router.post("/auth", response_model=SessionResponse)
@log_function_call(logger)
async def login(
    body: LoginRequest,
    response: Response,
    auth_service: AdminAuthService = Depends(get_auth_service),
):
    """Log the admin in and set the session cookie"""
    subject, token = await auth_service.login(body.username, body.password)
    auth_service.token_manager.set_cookie(response, token)
    return SessionResponse(**subject.to_dict())


@router.get("/auth/me", response_model=SessionResponse)
async def current_session(subject: SessionSubject = Depends(require_admin)):
    return SessionResponse(**subject.to_dict())


@router.post("/logout", response_model=MessageResponse)
async def logout(
    response: Response, auth_service: AdminAuthService = Depends(get_auth_service)
):
    auth_service.token_manager.clear_cookie(response)
    logger.info("Session cookie cleared", extra={"action": "logout"})
    return MessageResponse(message="Logged out")


@router.get("/auth/admin", response_model=SessionResponse)
async def get_admin_record(auth_service: AdminAuthService = Depends(get_auth_service)):
    admin = await auth_service.get_admin()
    return SessionResponse(id=admin.id, username=admin.username)


@router.put("/auth/admin", response_model=SessionResponse)
@log_function_call(logger)
async def put_admin_record(
    body: AdminRecordRequest,
    request: Request,
    auth_service: AdminAuthService = Depends(get_auth_service),
):
    """Create or replace the admin record"""
    admin = await auth_service.upsert_admin(
        body.username, body.password, token=get_session_token(request)
    )
    return SessionResponse(id=admin.id, username=admin.username)


@router.delete("/auth/admin", response_model=MessageResponse)
async def delete_admin_record(
    subject: SessionSubject = Depends(require_admin),
    auth_service: AdminAuthService = Depends(get_auth_service),
):
    removed = await auth_service.delete_admin()
    if not removed:
        return MessageResponse(message="No admin record to delete")
    logger.info(f"Admin record deleted by {subject.username}")
    return MessageResponse(message="Admin record deleted")
