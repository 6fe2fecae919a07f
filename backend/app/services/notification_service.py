"""
Notification Service - in-app notifications, persisted and pushed live.
"""

from typing import Optional, Iterable, List
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update, func

from app.core.exceptions import NotificationNotFoundError
from app.core.logging_config import logger
from app.models.notification import Notification, NotificationType
from app.models.user import User
from app.schemas.notification import NotificationResponse
from app.services.realtime import notification_hub, EventType
from app.utils.pagination import paginate


class NotificationService:

    def __init__(self, db: AsyncSession):
        self.db = db

    @staticmethod
    def _wants(user: User, notification_type: str) -> bool:
        """Honour the member's per-type preferences"""
        if notification_type == NotificationType.CONNECTION.value:
            return bool(user.connection_notifications)
        if notification_type == NotificationType.MESSAGE.value:
            return bool(user.message_notifications)
        return True

    async def create(
        self,
        user_id: str,
        notification_type: NotificationType,
        content: str,
        related_id: Optional[str] = None,
        related_type: Optional[str] = None,
        push: bool = True
    ) -> Optional[Notification]:
        """
        Store a notification for user_id and push it to their open sockets.

        Returns None when the recipient has switched this type off.
        """
        type_value = notification_type.value if isinstance(notification_type, NotificationType) else str(notification_type)

        user = await self.db.get(User, str(user_id))
        if user is None or not user.is_active:
            return None
        if not self._wants(user, type_value):
            logger.debug(f"Notification '{type_value}' suppressed by preferences of {user_id}")
            return None

        notification = Notification(
            user_id=str(user_id),
            type=type_value,
            content=content,
            related_id=str(related_id) if related_id else None,
            related_type=related_type,
        )
        self.db.add(notification)
        await self.db.flush()

        if push:
            notification_hub.broadcast_after_commit(
                self.db,
                [str(user_id)],
                EventType.NOTIFICATION,
                NotificationResponse.model_validate(notification).model_dump(mode="json"),
            )
        return notification

    async def create_many(
        self,
        user_ids: Iterable[str],
        notification_type: NotificationType,
        content: str,
        related_id: Optional[str] = None,
        related_type: Optional[str] = None
    ) -> List[Notification]:
        created = []
        for user_id in user_ids:
            notification = await self.create(user_id, notification_type, content, related_id, related_type)
            if notification is not None:
                created.append(notification)
        return created

    async def list_for_user(
        self,
        user_id: str,
        page: int = 1,
        page_size: Optional[int] = None,
        unread_only: bool = False
    ) -> dict:
        query = select(Notification).where(Notification.user_id == str(user_id))
        if unread_only:
            query = query.where(Notification.is_read.is_(False))
        query = query.order_by(Notification.created_at.desc(), Notification.id.desc())
        return await paginate(self.db, query, page, page_size)

    async def unread_count(self, user_id: str) -> int:
        result = await self.db.execute(
            select(func.count(Notification.id)).where(
                Notification.user_id == str(user_id),
                Notification.is_read.is_(False)
            )
        )
        return result.scalar() or 0

    async def mark_read(self, notification_id: str, user_id: str) -> Notification:
        notification = await self.db.get(Notification, str(notification_id))
        # Someone else's notification is reported as missing
        if notification is None or str(notification.user_id) != str(user_id):
            raise NotificationNotFoundError(notification_id)
        notification.is_read = True
        await self.db.flush()
        return notification

    async def mark_all_read(self, user_id: str) -> int:
        result = await self.db.execute(
            update(Notification)
            .where(Notification.user_id == str(user_id), Notification.is_read.is_(False))
            .values(is_read=True)
            .execution_options(synchronize_session=False)
        )
        await self.db.flush()
        return result.rowcount or 0
