from fastapi import Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional, Dict

from app.core.config import settings
from app.core.database import get_db
from app.core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    InactiveUserError,
    InvalidTokenError,
    MaintenanceModeError,
)
from app.core.logging_config import bind_member
from app.core.security import decode_token
from app.models.user import User
from app.services.site_settings_service import get_site_settings

# The session cookie is the primary credential, so a missing header is not an error
security = HTTPBearer(auto_error=False)

# Mutations still allowed while the site is in maintenance mode
MAINTENANCE_EXEMPT_PATHS = ("/login", "/logout", "/refresh")


def extract_token(request: Request, credentials: Optional[HTTPAuthorizationCredentials]) -> Optional[str]:
    """Bearer header wins over the session cookie"""
    if credentials and credentials.credentials:
        return credentials.credentials
    return request.cookies.get(settings.SESSION_COOKIE_NAME)


async def resolve_user(token: str, db: AsyncSession) -> User:
    """User for an access token; inactive members are refused"""
    payload = decode_token(token, expected_type="access")

    user = await db.get(User, str(payload["sub"]))
    if user is None:
        raise InvalidTokenError("User not found")
    if not user.is_active:
        raise InactiveUserError()
    return user


async def get_current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: AsyncSession = Depends(get_db)
) -> User:
    """Get current authenticated user"""
    token = extract_token(request, credentials)
    if not token:
        raise AuthenticationError("Not authenticated")

    user = await resolve_user(token, db)

    # Rate limiting keys and log lines use the member, not the IP
    request.state.user_id = str(user.id)
    request.state.user_role = user.role.value
    bind_member(str(user.id), user.role.value)
    return user


async def get_optional_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: AsyncSession = Depends(get_db)
) -> Optional[User]:
    """Get current user (optional). Bad or missing credentials mean anonymous."""
    token = extract_token(request, credentials)
    if not token:
        return None
    try:
        user = await resolve_user(token, db)
    except (AuthenticationError, AuthorizationError):
        return None
    request.state.user_id = str(user.id)
    request.state.user_role = user.role.value
    bind_member(str(user.id), user.role.value)
    return user


async def get_current_admin(
    current_user: User = Depends(get_current_user)
) -> User:
    """Get current admin user"""
    if not current_user.is_admin:
        raise AuthorizationError("Admin access required")
    return current_user


async def enforce_maintenance_mode(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: AsyncSession = Depends(get_db)
) -> None:
    """While maintenance mode is on, only admins may change anything"""
    if request.method in ("GET", "HEAD", "OPTIONS"):
        return
    if request.url.path.endswith(MAINTENANCE_EXEMPT_PATHS):
        return

    site = await get_site_settings(db)
    if not site.maintenance_mode:
        return

    user = await get_optional_user(request, credentials, db)
    if user is None or not user.is_admin:
        raise MaintenanceModeError()


def get_request_info(request: Request) -> Dict[str, Optional[str]]:
    """Client address and agent, recorded with admin actions"""
    return {
        "ip_address": request.client.host if request.client else None,
        "user_agent": request.headers.get("user-agent"),
    }
