"""
Pagination Utility Module

Every list endpoint returns the same envelope:
{items, total, page, page_size, total_pages, has_next, has_previous}
"""
from typing import TypeVar, Generic, List, Optional, Any, Tuple
from pydantic import BaseModel, ConfigDict
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import Select

from app.core.config import settings

T = TypeVar('T')


class PaginatedResponse(BaseModel, Generic[T]):
    """Standard paginated response"""
    model_config = ConfigDict(from_attributes=True)

    items: List[T]
    total: int
    page: int
    page_size: int
    total_pages: int
    has_next: bool
    has_previous: bool


def normalize_page(page: Optional[int], page_size: Optional[int]) -> Tuple[int, int]:
    """Clamp page to >= 1 and page_size to 1..MAX_PAGE_SIZE"""
    page = max(1, page or 1)
    page_size = page_size or settings.DEFAULT_PAGE_SIZE
    page_size = max(1, min(settings.MAX_PAGE_SIZE, page_size))
    return page, page_size


async def paginate(
    db: AsyncSession,
    query: Select,
    page: int = 1,
    page_size: Optional[int] = None,
    count_query: Optional[Select] = None
) -> dict:
    """
    Apply pagination to a SQLAlchemy select and return the envelope.

    Items are ORM objects; callers map them to response schemas.
    """
    page, page_size = normalize_page(page, page_size)
    offset = (page - 1) * page_size

    if count_query is None:
        count_query = select(func.count()).select_from(query.order_by(None).subquery())
    total = (await db.execute(count_query)).scalar() or 0

    result = await db.execute(query.offset(offset).limit(page_size))
    items = list(result.scalars().unique().all())

    return create_paginated_response(items, total, page, page_size)


def create_paginated_response(
    items: List[Any],
    total: int,
    page: int,
    page_size: int
) -> dict:
    """Build the envelope for items that were already sliced"""
    total_pages = (total + page_size - 1) // page_size if total > 0 else 1

    return {
        "items": items,
        "total": total,
        "page": page,
        "page_size": page_size,
        "total_pages": total_pages,
        "has_next": page < total_pages,
        "has_previous": page > 1
    }


def paginate_list(items: List[Any], page: int = 1, page_size: Optional[int] = None) -> dict:
    """Paginate an in-memory list (ranked results that were computed in Python)"""
    page, page_size = normalize_page(page, page_size)
    start = (page - 1) * page_size
    return create_paginated_response(items[start:start + page_size], len(items), page, page_size)
