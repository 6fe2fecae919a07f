from sqlalchemy import Column, String, DateTime, Enum as SQLEnum, Text, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
import enum

from app.core.database import Base
from app.core.types import GUID, generate_uuid, utcnow, enum_values


class PitchStatus(str, enum.Enum):
    """Startup stage"""
    IDEA = "idea"
    REGISTERED = "registered"
    FUNDED = "funded"
    ACQUIRED = "acquired"


class Pitch(Base):
    """Startup listed in the pitch room"""
    __tablename__ = "pitches"

    id = Column(GUID, primary_key=True, default=generate_uuid)
    user_id = Column(GUID, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=False)
    logo = Column(Text, nullable=True)
    location = Column(String(255), nullable=True, index=True)
    status = Column(
        SQLEnum(PitchStatus, name="pitch_status", values_callable=enum_values),
        default=PitchStatus.IDEA,
        nullable=False,
    )
    category = Column(String(100), nullable=True, index=True)
    funding_goal = Column(String(100), nullable=True)
    website = Column(Text, nullable=True)

    created_at = Column(DateTime, default=utcnow, nullable=False, index=True)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    owner = relationship("User", lazy="joined")

    def __repr__(self):
        return f"<Pitch {self.name}>"


class PitchUpvote(Base):
    __tablename__ = "pitch_upvotes"
    __table_args__ = (UniqueConstraint("user_id", "pitch_id", name="uq_pitch_upvote"),)

    id = Column(GUID, primary_key=True, default=generate_uuid)
    pitch_id = Column(GUID, ForeignKey("pitches.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(GUID, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)
