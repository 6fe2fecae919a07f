from sqlalchemy import Column, String, DateTime, Text, ForeignKey, JSON
from sqlalchemy.orm import relationship

from app.core.database import Base
from app.core.types import GUID, generate_uuid, utcnow


class AuditLog(Base):
    """Record of an admin action"""
    __tablename__ = "audit_logs"

    id = Column(GUID, primary_key=True, default=generate_uuid)
    user_id = Column(GUID, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)

    action = Column(String(100), nullable=False)  # e.g. 'user_updated', 'settings_updated'
    target_type = Column(String(50), nullable=True)  # 'user', 'settings', 'notification'
    target_id = Column(GUID, nullable=True)
    details = Column(JSON, nullable=True)

    ip_address = Column(String(45), nullable=True)
    user_agent = Column(Text, nullable=True)

    created_at = Column(DateTime, default=utcnow, nullable=False, index=True)

    user = relationship("User", lazy="joined")

    def __repr__(self):
        return f"<AuditLog {self.action} by {self.user_id}>"
