"""
Member profiles, experience entries and follows.
"""
from fastapi import APIRouter, Depends, Query, UploadFile, File, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional, List

from app.core.database import get_db
from app.core.exceptions import AuthorizationError
from app.models.user import User, UserRole
from app.modules.auth.dependencies import get_current_user, get_optional_user
from app.schemas.auth import MessageResponse
from app.schemas.job import JobResponse
from app.schemas.pitch import PitchListResponse
from app.schemas.post import PostListResponse
from app.schemas.user import (
    UserResponse,
    UserProfileResponse,
    UserUpdate,
    UserListResponse,
    NotificationPreferences,
    ExperienceCreate,
    ExperienceResponse,
    AvatarResponse,
)
from app.services.feed_service import FeedService
from app.services.job_service import JobService
from app.services.pitch_service import PitchService
from app.services.storage import save_image, delete_upload
from app.services.user_service import UserService

router = APIRouter(tags=["Users"])


def _ensure_self_or_admin(user_id: str, current_user: User) -> None:
    if str(user_id) != str(current_user.id) and not current_user.is_admin:
        raise AuthorizationError("You can only change your own profile")


@router.get("/users", response_model=UserListResponse)
async def list_users(
    search: Optional[str] = None,
    role: Optional[UserRole] = None,
    page: int = Query(1, ge=1),
    page_size: int = Query(10, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Member directory with search and role filter"""
    return await UserService(db).list_users(search=search, role=role, page=page, page_size=page_size)


@router.get("/users/{user_id}", response_model=UserProfileResponse)
async def get_profile(
    user_id: str,
    db: AsyncSession = Depends(get_db),
    viewer: Optional[User] = Depends(get_optional_user)
):
    service = UserService(db)
    user = await service.get_user(user_id)
    profile = UserResponse.model_validate(user).model_dump()
    profile.update(await service.build_profile(user, viewer))
    return profile


@router.patch("/users/{user_id}", response_model=UserResponse)
async def update_profile(
    user_id: str,
    changes: UserUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    _ensure_self_or_admin(user_id, current_user)
    service = UserService(db)
    user = current_user if str(user_id) == str(current_user.id) else await service.get_user(user_id, include_inactive=True)
    return await service.update_profile(user, changes.model_dump(exclude_unset=True))


@router.post("/users/{user_id}/avatar", response_model=AvatarResponse)
async def upload_avatar(
    user_id: str,
    file: UploadFile = File(...),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Replace the profile picture"""
    _ensure_self_or_admin(user_id, current_user)
    service = UserService(db)
    user = current_user if str(user_id) == str(current_user.id) else await service.get_user(user_id, include_inactive=True)

    previous = user.avatar_url
    url = await save_image(file)
    await service.set_avatar(user, url)
    if previous and previous != url:
        delete_upload(previous)
    return {"avatar_url": url}


@router.patch("/users/{user_id}/notifications", response_model=UserResponse)
async def update_notification_preferences(
    user_id: str,
    preferences: NotificationPreferences,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    if str(user_id) != str(current_user.id):
        raise AuthorizationError("You can only change your own notification settings")
    return await UserService(db).update_notification_preferences(
        current_user, preferences.model_dump(exclude_unset=True)
    )


@router.get("/users/{user_id}/posts", response_model=PostListResponse)
async def user_posts(
    user_id: str,
    page: int = Query(1, ge=1),
    page_size: int = Query(10, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
    viewer: Optional[User] = Depends(get_optional_user)
):
    return await FeedService(db).posts_by_user(user_id, viewer, page, page_size)


@router.get("/users/{user_id}/pitches", response_model=PitchListResponse)
async def user_pitches(
    user_id: str,
    page: int = Query(1, ge=1),
    page_size: int = Query(10, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
    viewer: Optional[User] = Depends(get_optional_user)
):
    await UserService(db).get_user(user_id)
    service = PitchService(db)
    page_data = await service.list_pitches(user_id=user_id, page=page, page_size=page_size)
    page_data["items"] = await service.enrich(page_data["items"], viewer)
    return page_data


@router.get("/users/{user_id}/jobs", response_model=List[JobResponse])
async def user_jobs(
    user_id: str,
    db: AsyncSession = Depends(get_db),
    viewer: Optional[User] = Depends(get_optional_user)
):
    """Jobs posted by a member"""
    await UserService(db).get_user(user_id)
    service = JobService(db)
    return await service.enrich(await service.jobs_by_user(user_id), viewer)


@router.get("/users/{user_id}/experiences", response_model=List[ExperienceResponse])
async def user_experiences(user_id: str, db: AsyncSession = Depends(get_db)):
    service = UserService(db)
    await service.get_user(user_id)
    return await service.list_experiences(user_id)


@router.post("/experiences", response_model=ExperienceResponse, status_code=status.HTTP_201_CREATED)
async def add_experience(
    data: ExperienceCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return await UserService(db).add_experience(current_user, data.model_dump())


@router.delete("/experiences/{experience_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_experience(
    experience_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    await UserService(db).delete_experience(experience_id, current_user)


@router.post("/users/{user_id}/follow", response_model=MessageResponse)
async def follow_user(
    user_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    await UserService(db).follow(current_user, user_id)
    return {"success": True, "message": "Following"}


@router.delete("/users/{user_id}/follow", response_model=MessageResponse)
async def unfollow_user(
    user_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    await UserService(db).unfollow(current_user, user_id)
    return {"success": True, "message": "Unfollowed"}
