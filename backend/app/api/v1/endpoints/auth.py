from fastapi import APIRouter, Depends, Request, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.database import get_db
from app.core.exceptions import InvalidTokenError, InactiveUserError
from app.core.logging_config import logger, bind_member
from app.core.rate_limiter import login_rate_limit, register_rate_limit
from app.core.security import create_token_pair, decode_token
from app.models.user import User
from app.modules.auth.dependencies import get_current_user
from app.schemas.auth import (
    UserRegister,
    UserLogin,
    Token,
    LoginResponse,
    RefreshRequest,
    ChangePasswordRequest,
    MessageResponse,
)
from app.schemas.user import UserResponse
from app.services.auth_service import AuthService

router = APIRouter(tags=["Authentication"])


def set_session_cookie(response: Response, access_token: str) -> None:
    response.set_cookie(
        key=settings.SESSION_COOKIE_NAME,
        value=access_token,
        max_age=settings.SESSION_COOKIE_MAX_AGE,
        httponly=True,
        secure=settings.SESSION_COOKIE_SECURE,
        samesite=settings.SESSION_COOKIE_SAMESITE,
        path="/",
    )


def clear_session_cookie(response: Response) -> None:
    response.delete_cookie(
        key=settings.SESSION_COOKIE_NAME,
        path="/",
        secure=settings.SESSION_COOKIE_SECURE,
        httponly=True,
        samesite=settings.SESSION_COOKIE_SAMESITE,
    )


def session_payload(user: User, response: Response) -> dict:
    tokens = create_token_pair(str(user.id), user.role.value)
    set_session_cookie(response, tokens["access_token"])
    return {**tokens, "user": UserResponse.model_validate(user)}


@router.post("/register", response_model=LoginResponse, status_code=status.HTTP_201_CREATED)
@register_rate_limit()
async def register(
    request: Request,
    response: Response,
    user_data: UserRegister,
    db: AsyncSession = Depends(get_db)
):
    """Create an account and start a session (rate limited)"""
    user = await AuthService(db).register_user(user_data)
    bind_member(str(user.id), user.role.value)
    return session_payload(user, response)


@router.post("/login", response_model=LoginResponse)
@login_rate_limit()
async def login(
    request: Request,
    response: Response,
    credentials: UserLogin,
    db: AsyncSession = Depends(get_db)
):
    """Login with username or email (rate limited)"""
    client_ip = request.client.host if request.client else "unknown"
    user = await AuthService(db).authenticate(credentials.username, credentials.password, client_ip)
    bind_member(str(user.id), user.role.value)
    return session_payload(user, response)


@router.post("/logout", response_model=MessageResponse)
async def logout(request: Request, response: Response):
    """Clear the session cookie. Tokens are stateless, so there is nothing to revoke."""
    clear_session_cookie(response)
    logger.log_auth_event(
        event="logout",
        success=True,
        client_ip=request.client.host if request.client else "unknown",
    )
    return {"success": True, "message": "Logged out"}


@router.get("/user", response_model=UserResponse)
async def get_current_user_info(current_user: User = Depends(get_current_user)):
    """The signed-in member"""
    return current_user


@router.post("/refresh", response_model=Token)
async def refresh_token(
    body: RefreshRequest,
    response: Response,
    db: AsyncSession = Depends(get_db)
):
    """Exchange a refresh token for a new token pair"""
    payload = decode_token(body.refresh_token, expected_type="refresh")
    user = await db.get(User, str(payload["sub"]))
    if user is None:
        raise InvalidTokenError("User not found")
    if not user.is_active:
        raise InactiveUserError()

    tokens = create_token_pair(str(user.id), user.role.value)
    set_session_cookie(response, tokens["access_token"])
    return tokens


@router.post("/change-password", response_model=MessageResponse)
async def change_password(
    body: ChangePasswordRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    await AuthService(db).change_password(current_user, body.current_password, body.new_password)
    return {"success": True, "message": "Password updated"}
