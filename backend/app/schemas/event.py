from pydantic import BaseModel, Field, field_validator, model_validator
from typing import Optional, List
from datetime import datetime, date

from app.core.types import to_naive_utc
from app.schemas.user import UserSummary


class EventBase(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    description: str = Field(..., min_length=1)
    location: Optional[str] = Field(None, max_length=255)
    start_date: datetime
    end_date: Optional[datetime] = None
    is_virtual: bool = False
    registration_link: Optional[str] = None
    image_url: Optional[str] = None
    category: Optional[str] = Field(None, max_length=100)
    capacity: Optional[int] = Field(None, ge=1)

    @field_validator("start_date", "end_date")
    @classmethod
    def normalize_dates(cls, v: Optional[datetime]) -> Optional[datetime]:
        return to_naive_utc(v)

    @model_validator(mode="after")
    def check_dates(self):
        if self.end_date is not None and self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        return self


class EventCreate(EventBase):
    pass


class EventUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = Field(None, min_length=1)
    location: Optional[str] = Field(None, max_length=255)
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    is_virtual: Optional[bool] = None
    registration_link: Optional[str] = None
    image_url: Optional[str] = None
    category: Optional[str] = Field(None, max_length=100)
    capacity: Optional[int] = Field(None, ge=1)

    @field_validator("start_date", "end_date")
    @classmethod
    def normalize_dates(cls, v: Optional[datetime]) -> Optional[datetime]:
        return to_naive_utc(v)


class EventResponse(BaseModel):
    id: str
    title: str
    description: str
    location: Optional[str] = None
    start_date: datetime
    end_date: Optional[datetime] = None
    is_virtual: bool = False
    registration_link: Optional[str] = None
    image_url: Optional[str] = None
    category: Optional[str] = None
    capacity: Optional[int] = None
    created_at: datetime
    creator: Optional[UserSummary] = None
    attendee_count: int = 0
    registered_by_me: bool = False


class EventListResponse(BaseModel):
    items: List[EventResponse]
    total: int
    page: int
    page_size: int
    total_pages: int
    has_next: bool
    has_previous: bool


class CalendarEvent(BaseModel):
    id: str
    title: str
    start_date: datetime
    end_date: Optional[datetime] = None
    is_virtual: bool = False
    category: Optional[str] = None

    class Config:
        from_attributes = True


class CalendarDay(BaseModel):
    date: date
    in_month: bool
    is_today: bool
    events: List[CalendarEvent] = []


class CalendarMonth(BaseModel):
    year: int
    month: int
    first_weekday: int
    weeks: List[List[CalendarDay]]


class RegistrationResponse(BaseModel):
    event_id: str
    registered: bool
    attendee_count: int
