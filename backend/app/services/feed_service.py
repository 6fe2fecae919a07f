"""
Feed Service - posts, likes, comments, shares and saved posts.

Listing endpoints return ORM posts enriched with per-viewer state
(`liked_by_me`, `saved_by_me`) and counters computed in one grouped
query per counter rather than per post.
"""

from typing import Optional, List, Dict, Any, Iterable, Tuple
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, delete

from app.core.exceptions import (
    PostNotFoundError,
    CommentNotFoundError,
    AuthorizationError,
    ValidationError,
)
from app.core.logging_config import logger
from app.models.notification import NotificationType
from app.models.post import Post, PostLike, Comment, SavedPost
from app.models.user import User
from app.schemas.post import SharedPostPreview
from app.schemas.user import UserSummary
from app.services.network_service import NetworkService
from app.services.notification_service import NotificationService
from app.services.user_service import UserService
from app.utils.pagination import paginate

FEED_SCOPES = ("all", "network")


async def _count_by(db: AsyncSession, column, ids: List[str]) -> Dict[str, int]:
    if not ids:
        return {}
    result = await db.execute(
        select(column, func.count()).where(column.in_(ids)).group_by(column)
    )
    return {str(key): count for key, count in result.all()}


class FeedService:

    def __init__(self, db: AsyncSession):
        self.db = db
        self.notifications = NotificationService(db)

    async def get_post(self, post_id: str) -> Post:
        post = await self.db.get(Post, str(post_id))
        if post is None or post.author is None or not post.author.is_active:
            raise PostNotFoundError(post_id)
        return post

    async def create_post(self, user: User, content: str, media_url: Optional[str] = None) -> Post:
        content = (content or "").strip()
        if not content and not media_url:
            raise ValidationError("A post needs text or media", field="content")
        post = Post(user_id=str(user.id), content=content, media_url=media_url)
        self.db.add(post)
        await self.db.flush()
        await self.db.refresh(post)
        logger.info(f"Post {post.id} created by {user.id}")
        return post

    async def share_post(self, user: User, post_id: str, content: Optional[str] = None) -> Post:
        """Reshare a post. Sharing a share points at the original post."""
        source = await self.get_post(post_id)
        root_id = source.shared_post_id or source.id

        share = Post(user_id=str(user.id), content=(content or "").strip(), shared_post_id=str(root_id))
        self.db.add(share)
        await self.db.flush()
        await self.db.refresh(share)

        root = source if str(root_id) == str(source.id) else await self.db.get(Post, str(root_id))
        if root is not None and str(root.user_id) != str(user.id):
            await self.notifications.create(
                root.user_id,
                NotificationType.SHARE,
                f"{user.name} shared your post",
                related_id=root.id,
                related_type="post",
            )
        return share

    async def delete_post(self, post_id: str, user: User) -> None:
        post = await self.get_post(post_id)
        if str(post.user_id) != str(user.id) and not user.is_admin:
            raise AuthorizationError("You can only delete your own posts")
        await self.db.delete(post)
        await self.db.flush()

    def _feed_query(self):
        return (
            select(Post)
            .join(User, User.id == Post.user_id)
            .where(User.is_active.is_(True))
            .order_by(Post.created_at.desc(), Post.id.desc())
        )

    async def feed(
        self,
        viewer: Optional[User],
        page: int = 1,
        page_size: Optional[int] = None,
        scope: str = "all"
    ) -> dict:
        """
        Newest-first feed.

        scope="network" limits it to the viewer, their accepted connections
        and the members they follow.
        """
        if scope not in FEED_SCOPES:
            raise ValidationError(f"scope must be one of {', '.join(FEED_SCOPES)}", field="scope")

        query = self._feed_query()
        if scope == "network" and viewer is not None:
            authors = {str(viewer.id)}
            authors |= await NetworkService(self.db).connected_user_ids(viewer.id)
            authors |= set(await UserService(self.db).following_ids(viewer.id))
            query = query.where(Post.user_id.in_(authors))

        page_data = await paginate(self.db, query, page, page_size)
        page_data["items"] = await self.enrich(page_data["items"], viewer)
        return page_data

    async def posts_by_user(self, user_id: str, viewer: Optional[User], page: int = 1,
                            page_size: Optional[int] = None) -> dict:
        await UserService(self.db).get_user(user_id)
        query = self._feed_query().where(Post.user_id == str(user_id))
        page_data = await paginate(self.db, query, page, page_size)
        page_data["items"] = await self.enrich(page_data["items"], viewer)
        return page_data

    async def enrich(self, posts: Iterable[Post], viewer: Optional[User]) -> List[Dict[str, Any]]:
        """Attach counters, per-viewer flags and the shared original to each post"""
        posts = list(posts)
        ids = [str(p.id) for p in posts]

        like_counts = await _count_by(self.db, PostLike.post_id, ids)
        comment_counts = await _count_by(self.db, Comment.post_id, ids)
        share_counts = await _count_by(self.db, Post.shared_post_id, ids)

        liked, saved = set(), set()
        if viewer is not None and ids:
            result = await self.db.execute(
                select(PostLike.post_id).where(PostLike.user_id == str(viewer.id), PostLike.post_id.in_(ids))
            )
            liked = {str(r[0]) for r in result.all()}
            result = await self.db.execute(
                select(SavedPost.post_id).where(SavedPost.user_id == str(viewer.id), SavedPost.post_id.in_(ids))
            )
            saved = {str(r[0]) for r in result.all()}

        shared_ids = {str(p.shared_post_id) for p in posts if p.shared_post_id}
        originals: Dict[str, Post] = {}
        if shared_ids:
            result = await self.db.execute(select(Post).where(Post.id.in_(shared_ids)))
            originals = {str(p.id): p for p in result.scalars().unique().all()}

        enriched = []
        for post in posts:
            pid = str(post.id)
            original = originals.get(str(post.shared_post_id)) if post.shared_post_id else None
            enriched.append({
                "id": pid,
                "content": post.content,
                "media_url": post.media_url,
                "created_at": post.created_at,
                "author": UserSummary.model_validate(post.author),
                "shared_post": SharedPostPreview.model_validate(original) if original is not None else None,
                "like_count": like_counts.get(pid, 0),
                "comment_count": comment_counts.get(pid, 0),
                "share_count": share_counts.get(pid, 0),
                "liked_by_me": pid in liked,
                "saved_by_me": pid in saved,
            })
        return enriched

    # ==================== Likes ====================

    async def like_count(self, post_id: str) -> int:
        return (await _count_by(self.db, PostLike.post_id, [str(post_id)])).get(str(post_id), 0)

    async def like(self, post_id: str, user: User) -> Tuple[bool, int]:
        """Like a post. Liking twice keeps a single like."""
        post = await self.get_post(post_id)
        existing = await self.db.execute(
            select(PostLike.id).where(PostLike.post_id == str(post.id), PostLike.user_id == str(user.id))
        )
        if existing.first() is None:
            self.db.add(PostLike(post_id=str(post.id), user_id=str(user.id)))
            await self.db.flush()
            if str(post.user_id) != str(user.id):
                await self.notifications.create(
                    post.user_id,
                    NotificationType.LIKE,
                    f"{user.name} liked your post",
                    related_id=post.id,
                    related_type="post",
                )
        return True, await self.like_count(post.id)

    async def unlike(self, post_id: str, user: User) -> Tuple[bool, int]:
        post = await self.get_post(post_id)
        await self.db.execute(
            delete(PostLike).where(PostLike.post_id == str(post.id), PostLike.user_id == str(user.id))
        )
        await self.db.flush()
        return False, await self.like_count(post.id)

    # ==================== Comments ====================

    async def add_comment(self, post_id: str, user: User, content: str) -> Comment:
        post = await self.get_post(post_id)
        comment = Comment(post_id=str(post.id), user_id=str(user.id), content=content.strip())
        self.db.add(comment)
        await self.db.flush()
        await self.db.refresh(comment)

        if str(post.user_id) != str(user.id):
            await self.notifications.create(
                post.user_id,
                NotificationType.COMMENT,
                f"{user.name} commented on your post",
                related_id=post.id,
                related_type="post",
            )
        return comment

    async def list_comments(self, post_id: str) -> List[Comment]:
        post = await self.get_post(post_id)
        result = await self.db.execute(
            select(Comment)
            .where(Comment.post_id == str(post.id))
            .order_by(Comment.created_at.asc(), Comment.id)
        )
        return list(result.scalars().all())

    async def delete_comment(self, comment_id: str, user: User) -> None:
        """Comment author, post author or an admin may delete"""
        comment = await self.db.get(Comment, str(comment_id))
        if comment is None:
            raise CommentNotFoundError(comment_id)
        post = await self.db.get(Post, str(comment.post_id))
        allowed = {str(comment.user_id)}
        if post is not None:
            allowed.add(str(post.user_id))
        if str(user.id) not in allowed and not user.is_admin:
            raise AuthorizationError("You can only delete your own comments")
        await self.db.delete(comment)
        await self.db.flush()

    # ==================== Saved posts ====================

    async def save_post(self, post_id: str, user: User) -> bool:
        post = await self.get_post(post_id)
        existing = await self.db.execute(
            select(SavedPost.id).where(SavedPost.post_id == str(post.id), SavedPost.user_id == str(user.id))
        )
        if existing.first() is None:
            self.db.add(SavedPost(post_id=str(post.id), user_id=str(user.id)))
            await self.db.flush()
        return True

    async def unsave_post(self, post_id: str, user: User) -> bool:
        await self.db.execute(
            delete(SavedPost).where(SavedPost.post_id == str(post_id), SavedPost.user_id == str(user.id))
        )
        await self.db.flush()
        return False

    async def saved_posts(self, user: User, page: int = 1, page_size: Optional[int] = None) -> dict:
        query = (
            select(Post)
            .join(SavedPost, SavedPost.post_id == Post.id)
            .where(SavedPost.user_id == str(user.id))
            .order_by(SavedPost.created_at.desc())
        )
        page_data = await paginate(self.db, query, page, page_size)
        page_data["items"] = await self.enrich(page_data["items"], user)
        return page_data


