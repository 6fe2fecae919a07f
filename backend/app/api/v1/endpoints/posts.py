"""
Feed endpoints: posts, likes, comments, shares and saved posts.
"""
from fastapi import APIRouter, Depends, Query, UploadFile, File, Form, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional, List

from app.core.database import get_db
from app.models.user import User
from app.modules.auth.dependencies import get_current_user, get_optional_user
from app.schemas.post import (
    PostCreate,
    PostResponse,
    PostListResponse,
    ShareCreate,
    CommentCreate,
    CommentResponse,
    LikeResponse,
    SaveResponse,
)
from app.services.feed_service import FeedService
from app.services.storage import save_image

router = APIRouter(tags=["Posts"])


async def _single(service: FeedService, post, viewer: Optional[User]) -> dict:
    return (await service.enrich([post], viewer))[0]


@router.post("/posts", response_model=PostResponse, status_code=status.HTTP_201_CREATED)
async def create_post(
    data: PostCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    service = FeedService(db)
    post = await service.create_post(current_user, data.content, data.media_url)
    return await _single(service, post, current_user)


@router.post("/posts/with-image", response_model=PostResponse, status_code=status.HTTP_201_CREATED)
async def create_post_with_image(
    content: str = Form(""),
    image: UploadFile = File(...),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Create a post with an attached image (multipart form)"""
    media_url = await save_image(image)
    service = FeedService(db)
    post = await service.create_post(current_user, content, media_url)
    return await _single(service, post, current_user)


@router.get("/posts", response_model=PostListResponse)
async def get_feed(
    page: int = Query(1, ge=1),
    page_size: int = Query(10, ge=1, le=100),
    scope: str = Query("all", pattern="^(all|network)$"),
    db: AsyncSession = Depends(get_db),
    viewer: Optional[User] = Depends(get_optional_user)
):
    """Newest-first feed; scope=network limits it to your connections and follows"""
    return await FeedService(db).feed(viewer, page=page, page_size=page_size, scope=scope)


@router.get("/posts/saved", response_model=PostListResponse)
async def saved_posts(
    page: int = Query(1, ge=1),
    page_size: int = Query(10, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return await FeedService(db).saved_posts(current_user, page, page_size)


@router.get("/posts/{post_id}", response_model=PostResponse)
async def get_post(
    post_id: str,
    db: AsyncSession = Depends(get_db),
    viewer: Optional[User] = Depends(get_optional_user)
):
    service = FeedService(db)
    return await _single(service, await service.get_post(post_id), viewer)


@router.delete("/posts/{post_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_post(
    post_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    await FeedService(db).delete_post(post_id, current_user)


@router.post("/posts/{post_id}/like", response_model=LikeResponse)
async def like_post(
    post_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    liked, count = await FeedService(db).like(post_id, current_user)
    return {"post_id": post_id, "liked": liked, "like_count": count}


@router.delete("/posts/{post_id}/like", response_model=LikeResponse)
async def unlike_post(
    post_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    liked, count = await FeedService(db).unlike(post_id, current_user)
    return {"post_id": post_id, "liked": liked, "like_count": count}


@router.get("/posts/{post_id}/comments", response_model=List[CommentResponse])
async def list_comments(post_id: str, db: AsyncSession = Depends(get_db)):
    """Comments oldest first"""
    return await FeedService(db).list_comments(post_id)


@router.post("/posts/{post_id}/comments", response_model=CommentResponse, status_code=status.HTTP_201_CREATED)
async def add_comment(
    post_id: str,
    data: CommentCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return await FeedService(db).add_comment(post_id, current_user, data.content)


@router.delete("/comments/{comment_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_comment(
    comment_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    await FeedService(db).delete_comment(comment_id, current_user)


@router.post("/posts/{post_id}/share", response_model=PostResponse, status_code=status.HTTP_201_CREATED)
async def share_post(
    post_id: str,
    data: Optional[ShareCreate] = None,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    service = FeedService(db)
    post = await service.share_post(current_user, post_id, data.content if data else None)
    return await _single(service, post, current_user)


@router.post("/posts/{post_id}/save", response_model=SaveResponse)
async def save_post(
    post_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return {"saved": await FeedService(db).save_post(post_id, current_user)}


@router.delete("/posts/{post_id}/save", response_model=SaveResponse)
async def unsave_post(
    post_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return {"saved": await FeedService(db).unsave_post(post_id, current_user)}
