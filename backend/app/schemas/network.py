from pydantic import BaseModel
from typing import Optional, List, Literal
from datetime import datetime

from app.models.connection import ConnectionStatus
from app.schemas.user import UserSummary


class ConnectionCreate(BaseModel):
    receiver_id: str


class ConnectionUpdate(BaseModel):
    """Receiver's answer to a pending request"""
    status: Literal["accepted", "rejected"]


class ConnectionResponse(BaseModel):
    id: str
    status: ConnectionStatus
    created_at: datetime
    updated_at: Optional[datetime] = None
    requester: UserSummary
    receiver: UserSummary

    class Config:
        from_attributes = True


class ConnectionWithUser(BaseModel):
    """A connection seen from one side: the other member plus the row's state"""
    id: str
    status: ConnectionStatus
    created_at: datetime
    user: UserSummary


class ConnectionSuggestion(BaseModel):
    user: UserSummary
    mutual_connections: int = 0
    reason: Optional[str] = None


class ConnectionStatusResponse(BaseModel):
    user_id: str
    status: Optional[ConnectionStatus] = None
    direction: Optional[Literal["sent", "received"]] = None
    connection_id: Optional[str] = None


class MutualConnectionsResponse(BaseModel):
    user_id: str
    count: int
    users: List[UserSummary]
