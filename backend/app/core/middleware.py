"""
Hindustan Founders Network - HTTP Middleware

Request logging with correlation ids, security headers and a body size cap.
"""

import time
from typing import Callable
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response, JSONResponse
from starlette.types import ASGIApp

from app.core.exceptions import FileTooLargeError, error_response
from app.core.logging_config import logger, bind_log_context, bind_member, clear_log_context, new_request_id


# Probes, docs and static files are not worth a log line each
QUIET_PATHS = ("/health", "/favicon.ico", "/docs", "/redoc", "/openapi.json")
QUIET_PREFIXES = ("/uploads/",)


def is_quiet(path: str) -> bool:
    return path == "/" or path in QUIET_PATHS or path.startswith(QUIET_PREFIXES)


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Tags the request with an id (the caller's X-Request-ID when given) and
    logs one line when it finishes, attributed to the member the auth
    dependencies resolved, if any.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get("X-Request-ID") or new_request_id()
        bind_log_context(request_id=request_id)
        start = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception:
            self._attribute(request)
            logger.error(f"{request.method} {request.url.path} raised", exc_info=True)
            raise
        else:
            duration_ms = (time.perf_counter() - start) * 1000
            response.headers["X-Request-ID"] = request_id
            response.headers["X-Response-Time"] = f"{duration_ms:.2f}ms"
            if not is_quiet(request.url.path):
                self._attribute(request)
                logger.log_request(request.method, request.url.path, response.status_code, duration_ms)
            return response
        finally:
            clear_log_context()

    @staticmethod
    def _attribute(request: Request) -> None:
        # Dependencies run in a child task; request.state is what they share with us
        member_id = getattr(request.state, "user_id", None)
        if member_id:
            bind_member(member_id, getattr(request.state, "user_role", None))


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Adds security headers to all responses"""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        response = await call_next(request)
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        return response


class RequestSizeLimitMiddleware(BaseHTTPMiddleware):
    """Answers 413 before reading a body whose declared length exceeds max_size"""

    def __init__(self, app: ASGIApp, max_size: int = 10 * 1024 * 1024):
        super().__init__(app)
        self.max_size = max_size

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        declared = request.headers.get("content-length", "")
        if declared.isdigit() and int(declared) > self.max_size:
            error = FileTooLargeError(int(declared), self.max_size)
            logger.warning(f"{request.method} {request.url.path} refused: {error.message}",
                           extra={"event_type": "request_too_large", **error.details})
            return JSONResponse(status_code=error.status_code, content=error_response(error))
        return await call_next(request)


__all__ = [
    "RequestLoggingMiddleware",
    "SecurityHeadersMiddleware",
    "RequestSizeLimitMiddleware",
    "is_quiet",
]
