"""
User Service - profiles, experiences and follows.
"""

from typing import Optional, List, Dict, Any
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, delete

from app.core.exceptions import UserNotFoundError, ExperienceNotFoundError, ValidationError
from app.models.user import User, UserRole, Experience, Follow
from app.services.auth_service import refresh_profile_completion
from app.services.network_service import NetworkService
from app.utils.pagination import paginate
from app.utils.text_search import contains_any

PROFILE_FIELDS = ("name", "title", "company", "location", "bio", "avatar_url")
PREFERENCE_FIELDS = ("email_notifications", "connection_notifications", "message_notifications")


class UserService:

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_user(self, user_id: str, include_inactive: bool = False) -> User:
        user = await self.db.get(User, str(user_id))
        if user is None or (not user.is_active and not include_inactive):
            raise UserNotFoundError(user_id)
        return user

    async def list_users(
        self,
        search: Optional[str] = None,
        role: Optional[UserRole] = None,
        page: int = 1,
        page_size: Optional[int] = None,
        include_inactive: bool = False,
        is_active: Optional[bool] = None
    ) -> dict:
        query = select(User)
        if not include_inactive:
            query = query.where(User.is_active.is_(True))
        elif is_active is not None:
            query = query.where(User.is_active.is_(is_active))
        if role:
            query = query.where(User.role == role)
        if search and search.strip():
            query = query.where(contains_any(
                search, User.name, User.username, User.title, User.company, User.location
            ))
        query = query.order_by(User.created_at.desc(), User.id)
        return await paginate(self.db, query, page, page_size)

    async def update_profile(self, user: User, changes: Dict[str, Any]) -> User:
        for field_name in PROFILE_FIELDS:
            if field_name in changes:
                value = changes[field_name]
                if field_name == "name":
                    if not value or not str(value).strip():
                        raise ValidationError("Name cannot be empty", field="name")
                    value = str(value).strip()
                setattr(user, field_name, value)
        await refresh_profile_completion(self.db, user)
        await self.db.flush()
        return user

    async def set_avatar(self, user: User, avatar_url: str) -> User:
        return await self.update_profile(user, {"avatar_url": avatar_url})

    async def update_notification_preferences(self, user: User, changes: Dict[str, Any]) -> User:
        for field_name in PREFERENCE_FIELDS:
            if changes.get(field_name) is not None:
                setattr(user, field_name, bool(changes[field_name]))
        await self.db.flush()
        return user

    # ==================== Experiences ====================

    async def list_experiences(self, user_id: str) -> List[Experience]:
        result = await self.db.execute(
            select(Experience)
            .where(Experience.user_id == str(user_id))
            .order_by(Experience.current.desc(), Experience.created_at.desc())
        )
        return list(result.scalars().all())

    async def add_experience(self, user: User, data: Dict[str, Any]) -> Experience:
        experience = Experience(user_id=str(user.id), **data)
        if experience.current:
            experience.end_date = None
        self.db.add(experience)
        await self.db.flush()
        await refresh_profile_completion(self.db, user)
        await self.db.flush()
        return experience

    async def delete_experience(self, experience_id: str, user: User) -> None:
        experience = await self.db.get(Experience, str(experience_id))
        if experience is None or str(experience.user_id) != str(user.id):
            raise ExperienceNotFoundError(experience_id)
        await self.db.delete(experience)
        await self.db.flush()
        await refresh_profile_completion(self.db, user)
        await self.db.flush()

    # ==================== Follows ====================

    async def follow(self, follower: User, target_id: str) -> bool:
        """Follow target_id. Following twice is a no-op."""
        if str(follower.id) == str(target_id):
            raise ValidationError("You cannot follow yourself", field="user_id")
        await self.get_user(target_id)

        if await self.is_following(follower.id, target_id):
            return True
        self.db.add(Follow(follower_id=str(follower.id), followed_id=str(target_id)))
        await self.db.flush()
        return True

    async def unfollow(self, follower: User, target_id: str) -> bool:
        await self.db.execute(
            delete(Follow).where(
                Follow.follower_id == str(follower.id),
                Follow.followed_id == str(target_id),
            )
        )
        await self.db.flush()
        return False

    async def is_following(self, follower_id: str, target_id: str) -> bool:
        result = await self.db.execute(
            select(Follow.id).where(
                Follow.follower_id == str(follower_id),
                Follow.followed_id == str(target_id),
            )
        )
        return result.first() is not None

    async def following_ids(self, user_id: str) -> List[str]:
        result = await self.db.execute(
            select(Follow.followed_id).where(Follow.follower_id == str(user_id))
        )
        return [str(row[0]) for row in result.all()]

    async def follower_count(self, user_id: str) -> int:
        result = await self.db.execute(
            select(func.count(Follow.id)).where(Follow.followed_id == str(user_id))
        )
        return result.scalar() or 0

    async def following_count(self, user_id: str) -> int:
        result = await self.db.execute(
            select(func.count(Follow.id)).where(Follow.follower_id == str(user_id))
        )
        return result.scalar() or 0

    async def build_profile(self, user: User, viewer: Optional[User] = None) -> Dict[str, Any]:
        """Fields for UserProfileResponse"""
        network = NetworkService(self.db)
        profile = {
            "connection_count": await network.connection_count(user.id),
            "follower_count": await self.follower_count(user.id),
            "following_count": await self.following_count(user.id),
            "is_following": False,
            "connection_status": None,
        }
        if viewer is not None and str(viewer.id) != str(user.id):
            profile["is_following"] = await self.is_following(viewer.id, user.id)
            status = await network.status_between(viewer.id, user.id)
            profile["connection_status"] = status["status"].value if status["status"] else None
        return profile
