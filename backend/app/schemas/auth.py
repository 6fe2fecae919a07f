from pydantic import BaseModel, EmailStr, Field, field_validator
from typing import Optional
import re

from app.models.user import UserRole
from app.schemas.user import UserResponse

USERNAME_PATTERN = re.compile(r"^[A-Za-z0-9_.-]{3,50}$")


class UserRegister(BaseModel):
    username: str
    password: str
    name: str = Field(..., min_length=1, max_length=255)
    email: EmailStr
    role: UserRole
    title: Optional[str] = Field(None, max_length=255)
    company: Optional[str] = Field(None, max_length=255)
    location: Optional[str] = Field(None, max_length=255)
    bio: Optional[str] = None

    @field_validator("username")
    @classmethod
    def validate_username(cls, v: str) -> str:
        v = v.strip()
        if not USERNAME_PATTERN.match(v):
            raise ValueError("Username must be 3-50 characters: letters, digits, '_', '.' or '-'")
        return v

    @field_validator("role")
    @classmethod
    def validate_role(cls, v: UserRole) -> UserRole:
        if v == UserRole.ADMIN:
            raise ValueError("Admin accounts cannot be self-registered")
        return v


class UserLogin(BaseModel):
    """Username or email plus password"""
    username: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class Token(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"


class LoginResponse(Token):
    user: UserResponse


class RefreshRequest(BaseModel):
    refresh_token: str


class ChangePasswordRequest(BaseModel):
    current_password: str
    new_password: str


class MessageResponse(BaseModel):
    success: bool = True
    message: str
