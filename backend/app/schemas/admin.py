from pydantic import BaseModel, EmailStr, Field
from typing import Optional, List, Dict, Any
from datetime import datetime

from app.models.user import UserRole
from app.schemas.user import UserSummary


# ==================== Dashboard Schemas ====================

class DashboardStats(BaseModel):
    """Dashboard KPI statistics"""
    total_users: int
    users_by_role: Dict[str, int]
    new_users_this_week: int
    verified_users: int
    total_posts: int
    total_jobs: int
    active_jobs: int
    total_applications: int
    total_events: int
    upcoming_events: int
    total_articles: int
    total_pitches: int
    active_conversations: int
    total_messages: int


# ==================== User Management Schemas ====================

class AdminUserResponse(BaseModel):
    """User as shown in the admin table"""
    id: str
    username: str
    email: str
    name: str
    role: UserRole
    is_active: bool
    is_verified: bool
    profile_completed: int = 0
    created_at: datetime
    last_login: Optional[datetime] = None

    class Config:
        from_attributes = True


class AdminUserListResponse(BaseModel):
    items: List[AdminUserResponse]
    total: int
    page: int
    page_size: int
    total_pages: int
    has_next: bool
    has_previous: bool


class AdminUserUpdate(BaseModel):
    role: Optional[UserRole] = None
    is_active: Optional[bool] = None
    is_verified: Optional[bool] = None


# ==================== Settings Schemas ====================

class SiteSettingsResponse(BaseModel):
    site_name: str
    contact_email: str
    maintenance_mode: bool
    signup_enabled: bool
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class SiteSettingsUpdate(BaseModel):
    site_name: Optional[str] = Field(None, min_length=1, max_length=255)
    contact_email: Optional[EmailStr] = None
    maintenance_mode: Optional[bool] = None
    signup_enabled: Optional[bool] = None


# ==================== Audit Log Schemas ====================

class AuditLogResponse(BaseModel):
    id: str
    action: str
    target_type: Optional[str] = None
    target_id: Optional[str] = None
    details: Optional[Dict[str, Any]] = None
    ip_address: Optional[str] = None
    created_at: datetime
    user: Optional[UserSummary] = None

    class Config:
        from_attributes = True


class AuditLogListResponse(BaseModel):
    items: List[AuditLogResponse]
    total: int
    page: int
    page_size: int
    total_pages: int
    has_next: bool
    has_previous: bool


# ==================== Broadcast Schemas ====================

class BroadcastNotification(BaseModel):
    content: str = Field(..., min_length=1, max_length=2000)
    role: Optional[UserRole] = None  # None means every active member


class BroadcastResponse(BaseModel):
    recipients: int
