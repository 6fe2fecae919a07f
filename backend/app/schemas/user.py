from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import datetime

from app.models.user import UserRole


class UserSummary(BaseModel):
    """Compact author/participant card embedded in other responses"""
    id: str
    username: str
    name: str
    role: UserRole
    title: Optional[str] = None
    company: Optional[str] = None
    location: Optional[str] = None
    avatar_url: Optional[str] = None
    is_verified: bool = False

    class Config:
        from_attributes = True


class UserResponse(UserSummary):
    """Full profile of a member. Never includes the password hash."""
    email: str
    bio: Optional[str] = None
    profile_completed: int = 0
    is_active: bool = True
    email_notifications: bool = True
    connection_notifications: bool = True
    message_notifications: bool = True
    created_at: datetime
    last_login: Optional[datetime] = None


class UserProfileResponse(UserResponse):
    """Profile page payload: profile plus network counters and the viewer's relation"""
    connection_count: int = 0
    follower_count: int = 0
    following_count: int = 0
    is_following: bool = False
    connection_status: Optional[str] = None  # None, 'pending', 'accepted', 'rejected'


class UserUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    title: Optional[str] = Field(None, max_length=255)
    company: Optional[str] = Field(None, max_length=255)
    location: Optional[str] = Field(None, max_length=255)
    bio: Optional[str] = Field(None, max_length=5000)
    avatar_url: Optional[str] = None


class NotificationPreferences(BaseModel):
    email_notifications: Optional[bool] = None
    connection_notifications: Optional[bool] = None
    message_notifications: Optional[bool] = None


class ExperienceCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    company: str = Field(..., min_length=1, max_length=255)
    start_date: str = Field(..., min_length=1, max_length=50)
    end_date: Optional[str] = Field(None, max_length=50)
    description: Optional[str] = None
    current: bool = False


class ExperienceResponse(BaseModel):
    id: str
    user_id: str
    title: str
    company: str
    start_date: str
    end_date: Optional[str] = None
    description: Optional[str] = None
    current: bool = False

    class Config:
        from_attributes = True


class UserListResponse(BaseModel):
    items: List[UserSummary]
    total: int
    page: int
    page_size: int
    total_pages: int
    has_next: bool
    has_previous: bool


class AvatarResponse(BaseModel):
    avatar_url: str


__all__ = [
    "UserSummary",
    "UserResponse",
    "UserProfileResponse",
    "UserUpdate",
    "NotificationPreferences",
    "ExperienceCreate",
    "ExperienceResponse",
    "UserListResponse",
    "AvatarResponse",
]
