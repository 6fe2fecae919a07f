from sqlalchemy import (
    Column, String, Boolean, DateTime, Enum as SQLEnum, Integer, Text, ForeignKey,
    UniqueConstraint, CheckConstraint,
)
from sqlalchemy.orm import relationship
import enum

from app.core.database import Base
from app.core.types import GUID, generate_uuid, utcnow, enum_values


class UserRole(str, enum.Enum):
    """Member roles chosen at signup"""
    FOUNDER = "founder"
    STUDENT = "student"
    JOB_SEEKER = "job_seeker"
    INVESTOR = "investor"
    EXPLORER = "explorer"
    ADMIN = "admin"


class User(Base):
    """Member profile and credentials"""
    __tablename__ = "users"

    id = Column(GUID, primary_key=True, default=generate_uuid)
    username = Column(String(100), unique=True, index=True, nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)
    hashed_password = Column(String(255), nullable=False)
    name = Column(String(255), nullable=False)

    role = Column(
        SQLEnum(UserRole, name="user_role", values_callable=enum_values),
        default=UserRole.EXPLORER,
        nullable=False,
    )
    is_active = Column(Boolean, default=True, nullable=False)
    is_verified = Column(Boolean, default=False, nullable=False)

    # Profile fields
    title = Column(String(255), nullable=True)
    company = Column(String(255), nullable=True)
    location = Column(String(255), nullable=True)
    bio = Column(Text, nullable=True)
    avatar_url = Column(Text, nullable=True)
    profile_completed = Column(Integer, default=0, nullable=False)  # 0-100

    # Notification preferences
    email_notifications = Column(Boolean, default=True, nullable=False)
    connection_notifications = Column(Boolean, default=True, nullable=False)
    message_notifications = Column(Boolean, default=True, nullable=False)

    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)
    last_login = Column(DateTime, nullable=True)

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    def __repr__(self):
        return f"<User {self.username}>"


class Experience(Base):
    """Work history entry on a profile"""
    __tablename__ = "experiences"

    id = Column(GUID, primary_key=True, default=generate_uuid)
    user_id = Column(GUID, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    company = Column(String(255), nullable=False)
    start_date = Column(String(50), nullable=False)  # free text, e.g. "Jan 2021"
    end_date = Column(String(50), nullable=True)
    description = Column(Text, nullable=True)
    current = Column(Boolean, default=False, nullable=False)

    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    def __repr__(self):
        return f"<Experience {self.title} @ {self.company}>"


class Follow(Base):
    """One-directional follow; independent of connections"""
    __tablename__ = "follows"
    __table_args__ = (
        UniqueConstraint("follower_id", "followed_id", name="uq_follow_pair"),
        CheckConstraint("follower_id <> followed_id", name="ck_follow_not_self"),
    )

    id = Column(GUID, primary_key=True, default=generate_uuid)
    follower_id = Column(GUID, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    followed_id = Column(GUID, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    follower = relationship("User", foreign_keys=[follower_id], lazy="joined")
    followed = relationship("User", foreign_keys=[followed_id], lazy="joined")
