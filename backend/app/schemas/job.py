from pydantic import BaseModel, Field, field_validator
from typing import Optional, List
from datetime import datetime

from app.models.job import JobType, JobLocationType, ApplicationStatus, AlertFrequency
from app.core.types import to_naive_utc
from app.schemas.user import UserSummary


class JobBase(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    company: str = Field(..., min_length=1, max_length=255)
    location: str = Field(..., min_length=1, max_length=255)
    location_type: JobLocationType
    job_type: JobType
    description: str = Field(..., min_length=1)
    responsibilities: Optional[str] = None
    requirements: Optional[str] = None
    skills: Optional[List[str]] = None
    salary: Optional[str] = Field(None, max_length=100)
    application_link: Optional[str] = None
    logo: Optional[str] = None
    is_easy_apply: bool = True
    expires_at: Optional[datetime] = None

    @field_validator("expires_at")
    @classmethod
    def normalize_expiry(cls, v: Optional[datetime]) -> Optional[datetime]:
        return to_naive_utc(v)


class JobCreate(JobBase):
    pass


class JobUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    company: Optional[str] = Field(None, min_length=1, max_length=255)
    location: Optional[str] = Field(None, min_length=1, max_length=255)
    location_type: Optional[JobLocationType] = None
    job_type: Optional[JobType] = None
    description: Optional[str] = Field(None, min_length=1)
    responsibilities: Optional[str] = None
    requirements: Optional[str] = None
    skills: Optional[List[str]] = None
    salary: Optional[str] = Field(None, max_length=100)
    application_link: Optional[str] = None
    logo: Optional[str] = None
    is_easy_apply: Optional[bool] = None
    is_active: Optional[bool] = None
    expires_at: Optional[datetime] = None

    @field_validator("expires_at")
    @classmethod
    def normalize_expiry(cls, v: Optional[datetime]) -> Optional[datetime]:
        return to_naive_utc(v)


class JobResponse(BaseModel):
    id: str
    title: str
    company: str
    location: str
    location_type: JobLocationType
    job_type: JobType
    description: str
    responsibilities: Optional[str] = None
    requirements: Optional[str] = None
    skills: List[str] = []
    salary: Optional[str] = None
    application_link: Optional[str] = None
    logo: Optional[str] = None
    is_easy_apply: bool = True
    is_active: bool = True
    created_at: datetime
    expires_at: Optional[datetime] = None
    poster: UserSummary
    applicant_count: int = 0
    saved_by_me: bool = False
    applied_by_me: bool = False


class JobListResponse(BaseModel):
    items: List[JobResponse]
    total: int
    page: int
    page_size: int
    total_pages: int
    has_next: bool
    has_previous: bool


class JobApplicationCreate(BaseModel):
    cover_letter: Optional[str] = Field(None, max_length=10000)
    resume_url: Optional[str] = None
    phone: Optional[str] = Field(None, max_length=30)

    @field_validator("phone")
    @classmethod
    def validate_phone(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        digits = [c for c in v if c.isdigit()]
        if len(digits) < 7:
            raise ValueError("Phone number looks too short")
        return v


class JobApplicationStatusUpdate(BaseModel):
    status: ApplicationStatus


class JobSummary(BaseModel):
    id: str
    title: str
    company: str
    location: str

    class Config:
        from_attributes = True


class JobApplicationResponse(BaseModel):
    id: str
    job_id: str
    status: ApplicationStatus
    cover_letter: Optional[str] = None
    resume_url: Optional[str] = None
    phone: Optional[str] = None
    created_at: datetime
    updated_at: Optional[datetime] = None
    job: JobSummary
    applicant: UserSummary

    class Config:
        from_attributes = True


class JobAlertCreate(BaseModel):
    keywords: Optional[str] = Field(None, max_length=255)
    location: Optional[str] = Field(None, max_length=255)
    job_type: Optional[JobType] = None
    frequency: AlertFrequency = AlertFrequency.DAILY


class JobAlertResponse(BaseModel):
    id: str
    keywords: Optional[str] = None
    location: Optional[str] = None
    job_type: Optional[JobType] = None
    frequency: AlertFrequency
    created_at: datetime

    class Config:
        from_attributes = True
