from sqlalchemy import Column, String, Boolean, DateTime, Text, ForeignKey, Index
import enum

from app.core.database import Base
from app.core.types import GUID, generate_uuid, utcnow


class NotificationType(str, enum.Enum):
    CONNECTION = "connection"
    MESSAGE = "message"
    LIKE = "like"
    COMMENT = "comment"
    SHARE = "share"
    JOB = "job"
    EVENT = "event"
    SYSTEM = "system"


class Notification(Base):
    __tablename__ = "notifications"
    __table_args__ = (
        Index("ix_notifications_user_read", "user_id", "is_read"),
    )

    id = Column(GUID, primary_key=True, default=generate_uuid)
    user_id = Column(GUID, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    type = Column(String(30), nullable=False)  # NotificationType value
    content = Column(Text, nullable=False)
    is_read = Column(Boolean, default=False, nullable=False)
    related_id = Column(GUID, nullable=True)
    related_type = Column(String(50), nullable=True)  # 'connection', 'conversation', 'post', 'job', ...
    created_at = Column(DateTime, default=utcnow, nullable=False, index=True)

    def __repr__(self):
        return f"<Notification {self.type} for {self.user_id}>"
