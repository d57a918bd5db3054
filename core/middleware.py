"""
Application Middleware for the CMS API.

This module defines the middleware and exception handlers that every request
passes through, and the edge session gate that guards admin pages.

Key Middleware Components:
- `CorrelationMiddleware`: Assigns a correlation ID to every request and echoes
  it in the `X-Correlation-ID` response header.
- `ErrorHandlingMiddleware`: Last line of defense. Any exception that escapes
  the routers becomes a generic 500 JSON response; the cause is only logged.
- `RequestLoggingMiddleware`: Logs each request with its status and timing and
  flags slow ones.
- `SessionGateMiddleware`: For paths under a protected prefix, requires a valid
  session cookie and redirects to the login page otherwise. Paths outside the
  protected list are never inspected.
- `register_exception_handlers`: Installs the single mapping from
  `CMSAPIException` kinds to HTTP responses.

All error responses share one shape:
`{"error": {"type", "code", "message", "correlation_id"}}`.
"""

import time
import uuid
from typing import Any, Callable, Dict, List, Optional
from fastapi import FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, RedirectResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from .logging_config import set_correlation_id, get_logger
from .exceptions import AuthenticationError, CMSAPIException, status_code_for

logger = get_logger("core.middleware")

SLOW_REQUEST_SECONDS = 1.0


class CorrelationMiddleware(BaseHTTPMiddleware):
    """Middleware to add correlation IDs to requests"""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        correlation_id = (
            request.headers.get("X-Correlation-ID")
            or request.headers.get("X-Request-ID")
            or str(uuid.uuid4())
        )

        set_correlation_id(correlation_id)
        request.state.correlation_id = correlation_id

        response = await call_next(request)
        response.headers["X-Correlation-ID"] = correlation_id
        return response


class ErrorHandlingMiddleware(BaseHTTPMiddleware):
    """Turns unexpected exceptions into a generic 500 response"""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        try:
            return await call_next(request)
        except Exception as e:
            logger.error(
                f"Unexpected error: {str(e)}",
                extra={
                    "error_type": type(e).__name__,
                    "path": request.url.path,
                    "method": request.method,
                },
                exc_info=True,
            )
            return create_error_response(
                "InternalServerError",
                "INTERNAL_ERROR",
                "An unexpected error occurred",
                status_code=500,
                correlation_id=getattr(request.state, "correlation_id", None),
            )


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Middleware for request logging and timing"""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        start_time = time.time()

        response = await call_next(request)

        process_time = time.time() - start_time
        response.headers["X-Process-Time"] = str(round(process_time * 1000, 2))

        logger.info(
            f"{request.method} {request.url.path} - {response.status_code}",
            extra={
                "method": request.method,
                "path": request.url.path,
                "status_code": response.status_code,
                "process_time_ms": round(process_time * 1000, 2),
                "client_ip": get_client_ip(request),
            },
        )

        if process_time > SLOW_REQUEST_SECONDS:
            logger.warning(
                f"Slow request detected: {request.method} {request.url.path}",
                extra={
                    "method": request.method,
                    "path": request.url.path,
                    "process_time_ms": round(process_time * 1000, 2),
                },
            )

        return response


class SessionGateMiddleware(BaseHTTPMiddleware):
    """Redirects unauthenticated navigation to admin pages to the login page"""

    def __init__(
        self, app: ASGIApp, protected_prefixes: List[str], login_path: str = "/admin"
    ):
        super().__init__(app)
        self.protected_prefixes = list(protected_prefixes)
        self.login_path = login_path

    def is_protected(self, path: str) -> bool:
        return any(path.startswith(prefix) for prefix in self.protected_prefixes)

    def login_redirect(self, request: Request) -> RedirectResponse:
        return RedirectResponse(
            str(request.url.replace(path=self.login_path, query=""))
        )

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        path = request.url.path
        if not self.is_protected(path):
            return await call_next(request)

        token_manager = request.app.state.token_manager
        token = request.cookies.get(token_manager.cookie_name)

        if not token:
            logger.info(
                f"No session credential for protected path {path}",
                extra={"path": path, "action": "gate_redirect"},
            )
            return self.login_redirect(request)

        try:
            subject = token_manager.verify(token)
        except AuthenticationError as e:
            logger.warning(
                f"Rejected session credential for {path}: {e.details.get('cause')}",
                extra={"path": path, "action": "gate_redirect_clear"},
            )
            response = self.login_redirect(request)
            token_manager.clear_cookie(response)
            return response

        logger.debug(f"Session gate passed for {subject.username} on {path}")
        return await call_next(request)


async def cms_exception_handler(request: Request, exc: CMSAPIException) -> JSONResponse:
    """Map a CMSAPIException to its HTTP response"""
    status_code = status_code_for(exc)
    log = logger.error if status_code >= 500 else logger.warning
    log(
        f"Application error: {exc.message}",
        extra={
            "error_type": type(exc).__name__,
            "error_code": exc.error_code,
            "details": exc.details,
            "path": request.url.path,
            "method": request.method,
        },
    )

    return create_error_response(
        type(exc).__name__,
        exc.error_code,
        exc.message,
        status_code=status_code,
        correlation_id=getattr(request.state, "correlation_id", None),
    )


async def request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Malformed request bodies are plain validation errors (400)"""
    fields = [".".join(str(part) for part in err.get("loc", ())) for err in exc.errors()]
    logger.warning(
        f"Request validation failed on {request.url.path}",
        extra={"fields": fields, "path": request.url.path},
    )
    return create_error_response(
        "ValidationError",
        "VALIDATION_ERROR",
        "Request body is invalid",
        status_code=400,
        correlation_id=getattr(request.state, "correlation_id", None),
        details={"fields": fields},
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(CMSAPIException, cms_exception_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)


def get_client_ip(request: Request) -> str:
    """Extract client IP from request, considering proxy headers"""
    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        return forwarded_for.split(",")[0].strip()

    real_ip = request.headers.get("X-Real-IP")
    if real_ip:
        return real_ip

    return request.client.host if request.client else "unknown"


def create_error_response(
    error_type: str,
    error_code: str,
    message: str,
    status_code: int = 400,
    correlation_id: Optional[str] = None,
    details: Optional[Dict[str, Any]] = None,
) -> JSONResponse:
    """Create standardized error response"""

    error_data = {"error": {"type": error_type, "code": error_code, "message": message}}

    if correlation_id:
        error_data["error"]["correlation_id"] = correlation_id

    if details:
        error_data["error"]["details"] = details

    return JSONResponse(status_code=status_code, content=error_data)
