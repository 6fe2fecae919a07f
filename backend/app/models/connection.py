from sqlalchemy import Column, DateTime, Enum as SQLEnum, ForeignKey, CheckConstraint, Index
from sqlalchemy.orm import relationship
import enum

from app.core.database import Base
from app.core.types import GUID, generate_uuid, utcnow, enum_values


class ConnectionStatus(str, enum.Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"


class Connection(Base):
    """
    Connection request between two members.

    One row per unordered pair; network_service checks both directions
    before inserting.
    """
    __tablename__ = "connections"
    __table_args__ = (
        CheckConstraint("requester_id <> receiver_id", name="ck_connection_not_self"),
        Index("ix_connections_pair", "requester_id", "receiver_id", unique=True),
    )

    id = Column(GUID, primary_key=True, default=generate_uuid)
    requester_id = Column(GUID, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    receiver_id = Column(GUID, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    status = Column(
        SQLEnum(ConnectionStatus, name="connection_status", values_callable=enum_values),
        default=ConnectionStatus.PENDING,
        nullable=False,
    )

    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    requester = relationship("User", foreign_keys=[requester_id], lazy="joined")
    receiver = relationship("User", foreign_keys=[receiver_id], lazy="joined")

    def other_user_id(self, user_id: str) -> str:
        return self.receiver_id if str(self.requester_id) == str(user_id) else self.requester_id

    def other_user(self, user_id: str):
        return self.receiver if str(self.requester_id) == str(user_id) else self.requester

    def __repr__(self):
        return f"<Connection {self.requester_id} -> {self.receiver_id} ({self.status})>"
