from pydantic import BaseModel
from typing import Optional, List, Dict
from datetime import datetime


class SearchResult(BaseModel):
    """One hit, shaped the way the global search box renders it"""
    id: str
    type: str  # 'user', 'job', 'event', 'article', 'pitch', 'post'
    title: str
    description: Optional[str] = None
    url: str
    image_url: Optional[str] = None
    tags: List[str] = []
    date: Optional[datetime] = None
    score: int = 0


class SearchResponse(BaseModel):
    query: str
    total: int
    results: List[SearchResult]
    counts: Dict[str, int] = {}


class SuggestionResponse(BaseModel):
    query: str
    suggestions: List[str]
