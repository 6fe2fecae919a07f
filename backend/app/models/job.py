from sqlalchemy import (
    Column, String, Boolean, DateTime, Enum as SQLEnum, Text, ForeignKey, UniqueConstraint,
)
from sqlalchemy.orm import relationship
import enum

from app.core.database import Base
from app.core.types import GUID, generate_uuid, utcnow, enum_values


class JobType(str, enum.Enum):
    FULL_TIME = "full_time"
    PART_TIME = "part_time"
    CONTRACT = "contract"
    INTERNSHIP = "internship"
    FREELANCE = "freelance"


class JobLocationType(str, enum.Enum):
    REMOTE = "remote"
    HYBRID = "hybrid"
    ON_SITE = "on-site"


class ApplicationStatus(str, enum.Enum):
    SUBMITTED = "submitted"
    REVIEWED = "reviewed"
    SHORTLISTED = "shortlisted"
    REJECTED = "rejected"
    HIRED = "hired"


class AlertFrequency(str, enum.Enum):
    DAILY = "daily"
    WEEKLY = "weekly"


class Job(Base):
    """Job listing posted by a member"""
    __tablename__ = "jobs"

    id = Column(GUID, primary_key=True, default=generate_uuid)
    user_id = Column(GUID, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    title = Column(String(255), nullable=False, index=True)
    company = Column(String(255), nullable=False, index=True)
    location = Column(String(255), nullable=False)
    location_type = Column(
        SQLEnum(JobLocationType, name="job_location_type", values_callable=enum_values),
        nullable=False,
    )
    job_type = Column(
        SQLEnum(JobType, name="job_type", values_callable=enum_values),
        nullable=False,
    )
    description = Column(Text, nullable=False)
    responsibilities = Column(Text, nullable=True)
    requirements = Column(Text, nullable=True)
    skills = Column(Text, nullable=True)  # comma-separated
    salary = Column(String(100), nullable=True)
    application_link = Column(Text, nullable=True)
    logo = Column(Text, nullable=True)
    is_easy_apply = Column(Boolean, default=True, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)

    created_at = Column(DateTime, default=utcnow, nullable=False, index=True)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)
    expires_at = Column(DateTime, nullable=True)

    poster = relationship("User", lazy="joined")

    @property
    def skill_list(self):
        if not self.skills:
            return []
        return [s.strip() for s in self.skills.split(",") if s.strip()]

    def is_open(self, now=None) -> bool:
        now = now or utcnow()
        return bool(self.is_active) and (self.expires_at is None or self.expires_at > now)

    def __repr__(self):
        return f"<Job {self.title} @ {self.company}>"


class SavedJob(Base):
    __tablename__ = "saved_jobs"
    __table_args__ = (UniqueConstraint("user_id", "job_id", name="uq_saved_job"),)

    id = Column(GUID, primary_key=True, default=generate_uuid)
    user_id = Column(GUID, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    job_id = Column(GUID, ForeignKey("jobs.id", ondelete="CASCADE"), nullable=False, index=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    job = relationship("Job", lazy="joined")


class JobApplication(Base):
    __tablename__ = "job_applications"
    __table_args__ = (UniqueConstraint("user_id", "job_id", name="uq_job_application"),)

    id = Column(GUID, primary_key=True, default=generate_uuid)
    job_id = Column(GUID, ForeignKey("jobs.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(GUID, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    cover_letter = Column(Text, nullable=True)
    resume_url = Column(Text, nullable=True)
    phone = Column(String(30), nullable=True)
    status = Column(
        SQLEnum(ApplicationStatus, name="application_status", values_callable=enum_values),
        default=ApplicationStatus.SUBMITTED,
        nullable=False,
    )

    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    job = relationship("Job", lazy="joined")
    applicant = relationship("User", lazy="joined")


class JobAlert(Base):
    """Saved search a member wants to be told about"""
    __tablename__ = "job_alerts"

    id = Column(GUID, primary_key=True, default=generate_uuid)
    user_id = Column(GUID, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    keywords = Column(String(255), nullable=True)
    location = Column(String(255), nullable=True)
    job_type = Column(SQLEnum(JobType, name="job_type", values_callable=enum_values), nullable=True)
    frequency = Column(
        SQLEnum(AlertFrequency, name="alert_frequency", values_callable=enum_values),
        default=AlertFrequency.DAILY,
        nullable=False,
    )
    created_at = Column(DateTime, default=utcnow, nullable=False)
