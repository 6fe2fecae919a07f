"""
Admin Service - dashboard numbers, member management, site settings,
audit trail and broadcast notifications.
"""

from datetime import timedelta
from typing import Optional, Dict, Any
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func

from app.core.exceptions import UserNotFoundError, ValidationError
from app.core.logging_config import logger
from app.core.types import utcnow
from app.models.article import Article
from app.models.audit_log import AuditLog
from app.models.event import Event
from app.models.job import Job, JobApplication
from app.models.message import Conversation, Message
from app.models.notification import NotificationType
from app.models.pitch import Pitch
from app.models.post import Post
from app.models.user import User, UserRole
from app.services.notification_service import NotificationService
from app.services.site_settings_service import get_site_settings
from app.services.user_service import UserService
from app.utils.pagination import paginate

# A conversation with a message inside this window counts as active
ACTIVE_CONVERSATION_DAYS = 30


class AdminService:

    def __init__(self, db: AsyncSession):
        self.db = db

    # ==================== Dashboard ====================

    async def _count(self, column, *conditions) -> int:
        query = select(func.count(column))
        if conditions:
            query = query.where(*conditions)
        return (await self.db.scalar(query)) or 0

    async def dashboard_stats(self) -> Dict[str, Any]:
        """Get dashboard KPI statistics"""
        now = utcnow()
        week_start = now - timedelta(days=7)

        result = await self.db.execute(select(User.role, func.count(User.id)).group_by(User.role))
        users_by_role = {role.value: 0 for role in UserRole}
        for role, count in result.all():
            key = role.value if isinstance(role, UserRole) else str(role)
            users_by_role[key] = count

        return {
            "total_users": await self._count(User.id),
            "users_by_role": users_by_role,
            "new_users_this_week": await self._count(User.id, User.created_at >= week_start),
            "verified_users": await self._count(User.id, User.is_verified.is_(True)),
            "total_posts": await self._count(Post.id),
            "total_jobs": await self._count(Job.id),
            "active_jobs": await self._count(
                Job.id,
                Job.is_active.is_(True),
                (Job.expires_at.is_(None)) | (Job.expires_at > now),
            ),
            "total_applications": await self._count(JobApplication.id),
            "total_events": await self._count(Event.id),
            "upcoming_events": await self._count(Event.id, Event.start_date >= now),
            "total_articles": await self._count(Article.id),
            "total_pitches": await self._count(Pitch.id),
            "active_conversations": await self._count(
                Conversation.id,
                Conversation.last_activity_at >= now - timedelta(days=ACTIVE_CONVERSATION_DAYS),
            ),
            "total_messages": await self._count(Message.id),
        }

    # ==================== Users ====================

    async def list_users(
        self,
        search: Optional[str] = None,
        role: Optional[UserRole] = None,
        is_active: Optional[bool] = None,
        page: int = 1,
        page_size: Optional[int] = None
    ) -> dict:
        return await UserService(self.db).list_users(
            search=search,
            role=role,
            page=page,
            page_size=page_size,
            include_inactive=True,
            is_active=is_active,
        )

    async def update_user(
        self,
        user_id: str,
        admin: User,
        changes: Dict[str, Any],
        request_info: Optional[Dict[str, Optional[str]]] = None
    ) -> User:
        user = await self.db.get(User, str(user_id))
        if user is None:
            raise UserNotFoundError(user_id)

        is_self = str(user.id) == str(admin.id)
        if is_self and changes.get("role") not in (None, UserRole.ADMIN):
            raise ValidationError("You cannot remove your own admin role", field="role")
        if is_self and changes.get("is_active") is False:
            raise ValidationError("You cannot deactivate your own account", field="is_active")

        # Track changes for audit log
        tracked = {}
        for field_name in ("role", "is_active", "is_verified"):
            new_value = changes.get(field_name)
            if new_value is None:
                continue
            old_value = getattr(user, field_name)
            if new_value != old_value:
                tracked[field_name] = {
                    "old": old_value.value if isinstance(old_value, UserRole) else old_value,
                    "new": new_value.value if isinstance(new_value, UserRole) else new_value,
                }
                setattr(user, field_name, new_value)

        if tracked:
            await self.db.flush()
            await self.log_action(
                admin, "user_updated", "user", user.id, {"changes": tracked}, request_info
            )
        return user

    async def delete_user(
        self,
        user_id: str,
        admin: User,
        request_info: Optional[Dict[str, Optional[str]]] = None
    ) -> None:
        user = await self.db.get(User, str(user_id))
        if user is None:
            raise UserNotFoundError(user_id)
        if str(user.id) == str(admin.id):
            raise ValidationError("You cannot delete your own account")

        details = {"username": user.username, "email": user.email}
        await self.db.delete(user)
        await self.db.flush()
        await self.log_action(admin, "user_deleted", "user", user_id, details, request_info)
        logger.info(f"Admin {admin.username} deleted user {details['username']}")

    # ==================== Settings ====================

    async def get_settings(self):
        return await get_site_settings(self.db)

    async def update_settings(
        self,
        admin: User,
        changes: Dict[str, Any],
        request_info: Optional[Dict[str, Optional[str]]] = None
    ):
        row = await get_site_settings(self.db)
        tracked = {}
        for field_name in ("site_name", "contact_email", "maintenance_mode", "signup_enabled"):
            new_value = changes.get(field_name)
            if new_value is None or new_value == getattr(row, field_name):
                continue
            tracked[field_name] = {"old": getattr(row, field_name), "new": new_value}
            setattr(row, field_name, new_value)

        if tracked:
            row.updated_by = str(admin.id)
            await self.db.flush()
            await self.db.refresh(row)
            await self.log_action(
                admin, "settings_updated", "settings", row.id, {"changes": tracked}, request_info
            )
        return row

    # ==================== Audit log ====================

    async def log_action(
        self,
        admin: User,
        action: str,
        target_type: Optional[str] = None,
        target_id: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        request_info: Optional[Dict[str, Optional[str]]] = None
    ) -> AuditLog:
        """Log an admin action to audit log"""
        request_info = request_info or {}
        entry = AuditLog(
            user_id=str(admin.id),
            action=action,
            target_type=target_type,
            target_id=str(target_id) if target_id else None,
            details=details,
            ip_address=request_info.get("ip_address"),
            user_agent=request_info.get("user_agent"),
        )
        self.db.add(entry)
        await self.db.flush()
        return entry

    async def list_audit_logs(
        self,
        action: Optional[str] = None,
        target_type: Optional[str] = None,
        page: int = 1,
        page_size: Optional[int] = None
    ) -> dict:
        query = select(AuditLog)
        if action:
            query = query.where(AuditLog.action == action)
        if target_type:
            query = query.where(AuditLog.target_type == target_type)
        query = query.order_by(AuditLog.created_at.desc(), AuditLog.id)
        return await paginate(self.db, query, page, page_size)

    # ==================== Broadcast ====================

    async def broadcast(
        self,
        admin: User,
        content: str,
        role: Optional[UserRole] = None,
        request_info: Optional[Dict[str, Optional[str]]] = None
    ) -> int:
        """Send a system notification to every active member, or to one role"""
        query = select(User.id).where(User.is_active.is_(True))
        if role is not None:
            query = query.where(User.role == role)
        result = await self.db.execute(query)
        user_ids = [str(r[0]) for r in result.all()]

        created = await NotificationService(self.db).create_many(
            user_ids, NotificationType.SYSTEM, content, related_type="announcement"
        )
        await self.log_action(
            admin,
            "notification_broadcast",
            "notification",
            None,
            {"role": role.value if role else None, "recipients": len(created)},
            request_info,
        )
        return len(created)
