"""
Admin API endpoints.
All endpoints require the admin role.
"""
from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional

from app.core.database import get_db
from app.models.user import User, UserRole
from app.modules.auth.dependencies import get_current_admin, get_request_info
from app.schemas.admin import (
    DashboardStats,
    AdminUserResponse,
    AdminUserListResponse,
    AdminUserUpdate,
    SiteSettingsResponse,
    SiteSettingsUpdate,
    AuditLogListResponse,
    BroadcastNotification,
    BroadcastResponse,
)
from app.services.admin_service import AdminService

router = APIRouter(prefix="/admin", tags=["Admin"])


@router.get("/stats", response_model=DashboardStats)
async def get_dashboard_stats(
    db: AsyncSession = Depends(get_db),
    current_admin: User = Depends(get_current_admin)
):
    """Get dashboard KPI statistics"""
    return await AdminService(db).dashboard_stats()


@router.get("/users", response_model=AdminUserListResponse)
async def list_users(
    search: Optional[str] = None,
    role: Optional[UserRole] = None,
    is_active: Optional[bool] = None,
    page: int = Query(1, ge=1),
    page_size: int = Query(10, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
    current_admin: User = Depends(get_current_admin)
):
    """List all users with filtering and pagination"""
    return await AdminService(db).list_users(
        search=search, role=role, is_active=is_active, page=page, page_size=page_size
    )


@router.patch("/users/{user_id}", response_model=AdminUserResponse)
async def update_user(
    user_id: str,
    update_data: AdminUserUpdate,
    request: Request,
    db: AsyncSession = Depends(get_db),
    current_admin: User = Depends(get_current_admin)
):
    """Change a member's role, verification or active flag"""
    return await AdminService(db).update_user(
        user_id, current_admin, update_data.model_dump(exclude_unset=True), get_request_info(request)
    )


@router.delete("/users/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_user(
    user_id: str,
    request: Request,
    db: AsyncSession = Depends(get_db),
    current_admin: User = Depends(get_current_admin)
):
    """Delete a member and everything they own"""
    await AdminService(db).delete_user(user_id, current_admin, get_request_info(request))


@router.get("/settings", response_model=SiteSettingsResponse)
async def get_settings(
    db: AsyncSession = Depends(get_db),
    current_admin: User = Depends(get_current_admin)
):
    return await AdminService(db).get_settings()


@router.put("/settings", response_model=SiteSettingsResponse)
async def update_settings(
    changes: SiteSettingsUpdate,
    request: Request,
    db: AsyncSession = Depends(get_db),
    current_admin: User = Depends(get_current_admin)
):
    return await AdminService(db).update_settings(
        current_admin, changes.model_dump(exclude_unset=True), get_request_info(request)
    )


@router.get("/audit-logs", response_model=AuditLogListResponse)
async def list_audit_logs(
    action: Optional[str] = None,
    target_type: Optional[str] = None,
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
    current_admin: User = Depends(get_current_admin)
):
    """List audit logs with filtering and pagination"""
    return await AdminService(db).list_audit_logs(action, target_type, page, page_size)


@router.post("/notifications", response_model=BroadcastResponse)
async def broadcast_notification(
    body: BroadcastNotification,
    request: Request,
    db: AsyncSession = Depends(get_db),
    current_admin: User = Depends(get_current_admin)
):
    """Send a system notification to everyone, or to one role"""
    recipients = await AdminService(db).broadcast(
        current_admin, body.content, body.role, get_request_info(request)
    )
    return {"recipients": recipients}
