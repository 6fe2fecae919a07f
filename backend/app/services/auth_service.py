"""
Auth Service - registration, credential checks and password changes.

Passwords are verified with bcrypt only. There is no shared or demo
password that bypasses the hash check.
"""

from typing import Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, or_

from app.core.exceptions import (
    DuplicateUsernameError,
    DuplicateEmailError,
    InvalidCredentialsError,
    InactiveUserError,
    SignupDisabledError,
    ValidationError,
)
from app.core.logging_config import logger
from app.core.security import get_password_hash, verify_password, validate_password_strength
from app.core.types import utcnow
from app.models.user import User, Experience
from app.schemas.auth import UserRegister
from app.services.site_settings_service import get_site_settings

# Share of profile_completed contributed by each optional profile field.
# Required signup fields (username, name, email, role) account for the base.
PROFILE_BASE_COMPLETION = 20
PROFILE_FIELD_WEIGHTS = {
    "title": 15,
    "company": 15,
    "location": 10,
    "bio": 15,
    "avatar_url": 15,
}
PROFILE_EXPERIENCE_WEIGHT = 10


def compute_profile_completion(user: User, experience_count: int = 0) -> int:
    """Percentage (0-100) of the profile that is filled in"""
    score = PROFILE_BASE_COMPLETION
    for field_name, weight in PROFILE_FIELD_WEIGHTS.items():
        value = getattr(user, field_name, None)
        if value is not None and str(value).strip():
            score += weight
    if experience_count > 0:
        score += PROFILE_EXPERIENCE_WEIGHT
    return min(score, 100)


async def refresh_profile_completion(db: AsyncSession, user: User) -> int:
    """Recompute and store user.profile_completed"""
    result = await db.execute(
        select(func.count(Experience.id)).where(Experience.user_id == str(user.id))
    )
    user.profile_completed = compute_profile_completion(user, result.scalar() or 0)
    return user.profile_completed


class AuthService:

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_by_username_or_email(self, identifier: str) -> Optional[User]:
        """Case-insensitive lookup on username or email"""
        ident = identifier.strip().lower()
        result = await self.db.execute(
            select(User).where(
                or_(func.lower(User.username) == ident, func.lower(User.email) == ident)
            )
        )
        return result.scalars().first()

    async def register_user(self, data: UserRegister) -> User:
        site = await get_site_settings(self.db)
        if not site.signup_enabled:
            raise SignupDisabledError()

        validate_password_strength(data.password)

        username = data.username.strip()
        email = str(data.email).strip().lower()

        existing = await self.db.execute(
            select(User.id).where(func.lower(User.username) == username.lower())
        )
        if existing.first():
            raise DuplicateUsernameError()

        existing = await self.db.execute(select(User.id).where(func.lower(User.email) == email))
        if existing.first():
            raise DuplicateEmailError()

        user = User(
            username=username,
            email=email,
            hashed_password=get_password_hash(data.password),
            name=data.name.strip(),
            role=data.role,
            title=data.title,
            company=data.company,
            location=data.location,
            bio=data.bio,
            is_active=True,
            is_verified=False,
            last_login=utcnow(),
        )
        user.profile_completed = compute_profile_completion(user)
        self.db.add(user)
        await self.db.flush()

        logger.log_auth_event("register", success=True, username=username, user_role=data.role.value)
        return user

    async def authenticate(self, identifier: str, password: str, client_ip: Optional[str] = None) -> User:
        user = await self.get_by_username_or_email(identifier)

        if user is None or not verify_password(password, user.hashed_password):
            logger.log_auth_event(
                "login", success=False, username=identifier,
                reason="Invalid credentials", client_ip=client_ip
            )
            raise InvalidCredentialsError()

        if not user.is_active:
            logger.log_auth_event(
                "login", success=False, username=identifier,
                reason="Account inactive", client_ip=client_ip
            )
            raise InactiveUserError()

        user.last_login = utcnow()
        await self.db.flush()

        logger.log_auth_event(
            "login", success=True, username=user.username,
            client_ip=client_ip, user_role=user.role.value
        )
        return user

    async def change_password(self, user: User, current_password: str, new_password: str) -> None:
        if not verify_password(current_password, user.hashed_password):
            logger.log_auth_event("change_password", success=False, username=user.username,
                                  reason="Wrong current password")
            raise ValidationError("Current password is incorrect", field="current_password")
        if current_password == new_password:
            raise ValidationError("New password must be different from the current password",
                                  field="new_password")
        validate_password_strength(new_password)

        user.hashed_password = get_password_hash(new_password)
        await self.db.flush()
        logger.log_auth_event("change_password", success=True, username=user.username)
