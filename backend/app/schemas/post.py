from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import datetime

from app.schemas.user import UserSummary


class PostCreate(BaseModel):
    content: str = Field(..., min_length=1, max_length=10000)
    media_url: Optional[str] = None


class ShareCreate(BaseModel):
    """Optional commentary added when resharing a post"""
    content: Optional[str] = Field(None, max_length=10000)


class SharedPostPreview(BaseModel):
    id: str
    content: str
    media_url: Optional[str] = None
    created_at: datetime
    author: UserSummary

    class Config:
        from_attributes = True


class PostResponse(BaseModel):
    id: str
    content: str
    media_url: Optional[str] = None
    created_at: datetime
    author: UserSummary
    shared_post: Optional[SharedPostPreview] = None
    like_count: int = 0
    comment_count: int = 0
    share_count: int = 0
    liked_by_me: bool = False
    saved_by_me: bool = False


class PostListResponse(BaseModel):
    items: List[PostResponse]
    total: int
    page: int
    page_size: int
    total_pages: int
    has_next: bool
    has_previous: bool


class CommentCreate(BaseModel):
    content: str = Field(..., min_length=1, max_length=5000)


class CommentResponse(BaseModel):
    id: str
    post_id: str
    content: str
    created_at: datetime
    author: UserSummary

    class Config:
        from_attributes = True


class LikeResponse(BaseModel):
    post_id: str
    liked: bool
    like_count: int


class SaveResponse(BaseModel):
    saved: bool
