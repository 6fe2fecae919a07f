from pydantic import BaseModel
from typing import Optional, List
from datetime import datetime


class NotificationResponse(BaseModel):
    id: str
    type: str
    content: str
    is_read: bool
    related_id: Optional[str] = None
    related_type: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True


class NotificationListResponse(BaseModel):
    items: List[NotificationResponse]
    total: int
    page: int
    page_size: int
    total_pages: int
    has_next: bool
    has_previous: bool
    unread_count: int = 0


class UnreadCountResponse(BaseModel):
    unread_count: int
