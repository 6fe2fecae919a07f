from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import datetime

from app.schemas.user import UserSummary


class ConversationCreate(BaseModel):
    participant_ids: List[str] = Field(..., min_length=1)
    initial_message: Optional[str] = Field(None, max_length=10000)


class MessageCreate(BaseModel):
    content: str = Field(..., min_length=1, max_length=10000)


class MessageResponse(BaseModel):
    id: str
    conversation_id: str
    content: str
    created_at: datetime
    sender: UserSummary
    is_read: bool = False

    class Config:
        from_attributes = True


class ConversationResponse(BaseModel):
    id: str
    created_at: datetime
    last_activity_at: datetime
    participants: List[UserSummary]
    last_message: Optional[MessageResponse] = None
    unread_count: int = 0


class ConversationDetail(ConversationResponse):
    messages: List[MessageResponse] = []


class ReadResponse(BaseModel):
    success: bool = True
    marked: int
