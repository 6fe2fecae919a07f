from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import datetime

from app.models.pitch import PitchStatus
from app.schemas.user import UserSummary


class PitchCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: str = Field(..., min_length=1)
    logo: Optional[str] = None
    location: Optional[str] = Field(None, max_length=255)
    status: PitchStatus = PitchStatus.IDEA
    category: Optional[str] = Field(None, max_length=100)
    funding_goal: Optional[str] = Field(None, max_length=100)
    website: Optional[str] = None


class PitchUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = Field(None, min_length=1)
    logo: Optional[str] = None
    location: Optional[str] = Field(None, max_length=255)
    status: Optional[PitchStatus] = None
    category: Optional[str] = Field(None, max_length=100)
    funding_goal: Optional[str] = Field(None, max_length=100)
    website: Optional[str] = None


class PitchResponse(BaseModel):
    id: str
    name: str
    description: str
    logo: Optional[str] = None
    location: Optional[str] = None
    status: PitchStatus
    category: Optional[str] = None
    funding_goal: Optional[str] = None
    website: Optional[str] = None
    created_at: datetime
    owner: UserSummary
    upvote_count: int = 0
    upvoted_by_me: bool = False


class PitchListResponse(BaseModel):
    items: List[PitchResponse]
    total: int
    page: int
    page_size: int
    total_pages: int
    has_next: bool
    has_previous: bool


class FacetCount(BaseModel):
    value: str
    count: int


class PitchFacets(BaseModel):
    categories: List[FacetCount]
    locations: List[FacetCount]
    statuses: List[FacetCount]


class UpvoteResponse(BaseModel):
    pitch_id: str
    upvoted: bool
    upvote_count: int
