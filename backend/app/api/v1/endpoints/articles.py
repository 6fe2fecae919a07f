"""
Resources: articles written by members.
"""
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional

from app.core.database import get_db
from app.models.user import User
from app.modules.auth.dependencies import get_current_user, get_optional_user
from app.schemas.article import ArticleCreate, ArticleUpdate, ArticleResponse, ArticleListResponse
from app.services.article_service import ArticleService, article_to_dict

router = APIRouter(prefix="/articles", tags=["Articles"])


@router.get("", response_model=ArticleListResponse)
async def list_articles(
    search: Optional[str] = None,
    category: Optional[str] = None,
    page: int = Query(1, ge=1),
    page_size: int = Query(10, ge=1, le=100),
    db: AsyncSession = Depends(get_db)
):
    service = ArticleService(db)
    page_data = await service.list_articles(search=search, category=category, page=page, page_size=page_size)
    page_data["items"] = service.to_dicts(page_data["items"])
    return page_data


@router.post("", response_model=ArticleResponse, status_code=status.HTTP_201_CREATED)
async def create_article(
    data: ArticleCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    article = await ArticleService(db).create_article(current_user, data.model_dump())
    return article_to_dict(article)


@router.get("/{article_id}", response_model=ArticleResponse)
async def get_article(
    article_id: str,
    db: AsyncSession = Depends(get_db),
    viewer: Optional[User] = Depends(get_optional_user)
):
    """Article detail; every fetch counts as a view"""
    return article_to_dict(await ArticleService(db).view_article(article_id, viewer))


@router.patch("/{article_id}", response_model=ArticleResponse)
async def update_article(
    article_id: str,
    changes: ArticleUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    article = await ArticleService(db).update_article(
        article_id, current_user, changes.model_dump(exclude_unset=True)
    )
    return article_to_dict(article)


@router.delete("/{article_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_article(
    article_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    await ArticleService(db).delete_article(article_id, current_user)
