"""
Rate Limiting for the Hindustan Founders Network API
====================================================
slowapi limiter, in-memory by default. Point RATE_LIMIT_STORAGE_URI at
redis:// to share counters between workers.

Limits:
- Default: RATE_LIMIT_PER_MINUTE per client on every route (SlowAPIMiddleware)
- Health checks and the websocket are not limited
- POST /login: 10/minute (brute force protection)
- POST /register: 5/minute
"""

from slowapi import Limiter
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded
from fastapi import Request
from fastapi.responses import JSONResponse

from app.core.config import settings
from app.core.logging_config import logger

LOGIN_RATE_LIMIT = "10/minute"
REGISTER_RATE_LIMIT = "5/minute"


def get_user_identifier(request: Request) -> str:
    """
    Rate limit key.

    Priority:
    1. Authenticated user ID (stored on request.state by the auth dependency)
    2. Client IP address
    """
    user_id = getattr(request.state, 'user_id', None)
    if user_id:
        return f"user:{user_id}"
    return f"ip:{get_remote_address(request)}"


def build_limiter(per_minute: int, enabled: bool = True) -> Limiter:
    """Limiter with a per-client default; SlowAPIMiddleware applies it to undecorated routes"""
    return Limiter(
        key_func=get_user_identifier,
        default_limits=[f"{per_minute}/minute"],
        storage_uri=settings.RATE_LIMIT_STORAGE_URI,
        strategy="fixed-window",
        enabled=enabled,
    )


limiter = build_limiter(settings.RATE_LIMIT_PER_MINUTE, enabled=settings.RATE_LIMIT_ENABLED)


def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded):
    """JSON 429 with a Retry-After header"""
    retry_after = "60"
    limit = getattr(exc, "limit", None)
    if limit is not None and getattr(limit, "limit", None) is not None:
        retry_after = str(limit.limit.get_expiry())

    logger.warning(
        f"[RateLimit] Exceeded for {get_user_identifier(request)}: {exc.detail}",
        extra={"event_type": "rate_limit", "path": request.url.path}
    )

    return JSONResponse(
        status_code=429,
        content={
            "success": False,
            "detail": "Too many requests. Please slow down.",
            "error": {
                "code": "RATE_LIMIT_EXCEEDED",
                "message": str(exc.detail),
                "details": {"retry_after_seconds": int(retry_after)},
            },
        },
        headers={"Retry-After": retry_after},
    )


def login_rate_limit():
    return limiter.limit(LOGIN_RATE_LIMIT)


def register_rate_limit():
    return limiter.limit(REGISTER_RATE_LIMIT)
