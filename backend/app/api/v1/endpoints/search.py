from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional, List

from app.core.database import get_db
from app.schemas.search import SearchResponse, SuggestionResponse
from app.services.search_service import SearchService

router = APIRouter(prefix="/search", tags=["Search"])


@router.get("", response_model=SearchResponse)
async def search(
    q: str = Query("", max_length=200),
    types: Optional[List[str]] = Query(None),
    limit: Optional[int] = Query(None, ge=1, le=50),
    db: AsyncSession = Depends(get_db)
):
    """
    Global search.

    `types` filters result kinds (user, job, event, article, pitch, post) and
    may be repeated or comma-separated. `limit` caps results per kind.
    """
    return await SearchService(db).search(q, types, limit)


@router.get("/suggestions", response_model=SuggestionResponse)
async def suggestions(
    q: str = Query("", max_length=200),
    db: AsyncSession = Depends(get_db)
):
    """Title completions for the search box"""
    return {"query": q.strip(), "suggestions": await SearchService(db).suggest(q)}
