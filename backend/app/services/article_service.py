from typing import Optional, Dict, Any, List, Iterable
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, update

from app.core.exceptions import ArticleNotFoundError, AuthorizationError
from app.models.article import Article
from app.models.user import User
from app.schemas.user import UserSummary
from app.utils.pagination import paginate
from app.utils.text_search import contains_any

EDITABLE_FIELDS = ("title", "content", "summary", "image_url", "category", "is_published")


def join_tags(tags: Optional[Iterable[str]]) -> Optional[str]:
    if not tags:
        return None
    cleaned = [t.strip() for t in tags if t and t.strip()]
    return ",".join(cleaned) or None


def article_to_dict(article: Article) -> Dict[str, Any]:
    return {
        "id": str(article.id),
        "title": article.title,
        "content": article.content,
        "summary": article.summary,
        "image_url": article.image_url,
        "category": article.category,
        "tags": article.tag_list,
        "is_published": article.is_published,
        "view_count": article.view_count or 0,
        "created_at": article.created_at,
        "updated_at": article.updated_at,
        "author": UserSummary.model_validate(article.author) if article.author is not None else None,
    }


class ArticleService:
    """Resource articles. Drafts are visible to their author and admins only."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_article(self, article_id: str, viewer: Optional[User] = None) -> Article:
        article = await self.db.get(Article, str(article_id))
        if article is None:
            raise ArticleNotFoundError(article_id)
        if not article.is_published and not self._can_edit(article, viewer):
            raise ArticleNotFoundError(article_id)
        return article

    @staticmethod
    def _can_edit(article: Article, user: Optional[User]) -> bool:
        return user is not None and (str(article.author_id) == str(user.id) or user.is_admin)

    async def view_article(self, article_id: str, viewer: Optional[User] = None) -> Article:
        """Fetch for the detail page and bump the view counter"""
        article = await self.get_article(article_id, viewer)
        await self.db.execute(
            update(Article)
            .where(Article.id == str(article.id))
            .values(view_count=Article.view_count + 1)
            .execution_options(synchronize_session=False)
        )
        article.view_count = (article.view_count or 0) + 1
        await self.db.flush()
        return article

    async def create_article(self, user: User, data: Dict[str, Any]) -> Article:
        data = dict(data)
        tags = data.pop("tags", None)
        article = Article(author_id=str(user.id), tags=join_tags(tags), **data)
        self.db.add(article)
        await self.db.flush()
        await self.db.refresh(article)
        return article

    async def update_article(self, article_id: str, user: User, changes: Dict[str, Any]) -> Article:
        article = await self.get_article(article_id, user)
        if not self._can_edit(article, user):
            raise AuthorizationError("Only the author can edit this article")
        for field_name in EDITABLE_FIELDS:
            if field_name not in changes:
                continue
            if changes[field_name] is None and field_name in ("title", "content", "is_published"):
                continue
            setattr(article, field_name, changes[field_name])
        if "tags" in changes:
            article.tags = join_tags(changes["tags"])
        await self.db.flush()
        return article

    async def delete_article(self, article_id: str, user: User) -> None:
        article = await self.get_article(article_id, user)
        if not self._can_edit(article, user):
            raise AuthorizationError("Only the author can delete this article")
        await self.db.delete(article)
        await self.db.flush()

    async def list_articles(
        self,
        search: Optional[str] = None,
        category: Optional[str] = None,
        page: int = 1,
        page_size: Optional[int] = None
    ) -> dict:
        query = select(Article).where(Article.is_published.is_(True))
        if search and search.strip():
            query = query.where(contains_any(
                search, Article.title, Article.summary, Article.content, Article.tags
            ))
        if category:
            query = query.where(func.lower(Article.category) == category.strip().lower())
        query = query.order_by(Article.created_at.desc(), Article.id)
        return await paginate(self.db, query, page, page_size)

    def to_dicts(self, articles: Iterable[Article]) -> List[Dict[str, Any]]:
        return [article_to_dict(a) for a in articles]
