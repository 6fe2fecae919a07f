"""
Pitch Service - the pitch room: startups, upvotes and browse facets.
"""

from typing import Optional, Dict, Any, List, Iterable, Tuple
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, delete

from app.core.exceptions import PitchNotFoundError, AuthorizationError
from app.models.pitch import Pitch, PitchStatus, PitchUpvote
from app.models.user import User
from app.schemas.user import UserSummary
from app.utils.pagination import paginate
from app.utils.text_search import contains, contains_any

EDITABLE_FIELDS = (
    "name", "description", "logo", "location", "status", "category", "funding_goal", "website",
)
REQUIRED_FIELDS = ("name", "description", "status")


class PitchService:

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_pitch(self, pitch_id: str) -> Pitch:
        pitch = await self.db.get(Pitch, str(pitch_id))
        if pitch is None:
            raise PitchNotFoundError(pitch_id)
        return pitch

    def _ensure_owner(self, pitch: Pitch, user: User) -> None:
        if str(pitch.user_id) != str(user.id) and not user.is_admin:
            raise AuthorizationError("Only the founder who listed this startup can change it")

    async def create_pitch(self, user: User, data: Dict[str, Any]) -> Pitch:
        pitch = Pitch(user_id=str(user.id), **data)
        self.db.add(pitch)
        await self.db.flush()
        await self.db.refresh(pitch)
        return pitch

    async def update_pitch(self, pitch_id: str, user: User, changes: Dict[str, Any]) -> Pitch:
        pitch = await self.get_pitch(pitch_id)
        self._ensure_owner(pitch, user)
        for field_name in EDITABLE_FIELDS:
            if field_name not in changes:
                continue
            if changes[field_name] is None and field_name in REQUIRED_FIELDS:
                continue
            setattr(pitch, field_name, changes[field_name])
        await self.db.flush()
        return pitch

    async def delete_pitch(self, pitch_id: str, user: User) -> None:
        pitch = await self.get_pitch(pitch_id)
        self._ensure_owner(pitch, user)
        await self.db.delete(pitch)
        await self.db.flush()

    async def list_pitches(
        self,
        status: Optional[PitchStatus] = None,
        category: Optional[str] = None,
        location: Optional[str] = None,
        search: Optional[str] = None,
        user_id: Optional[str] = None,
        page: int = 1,
        page_size: Optional[int] = None
    ) -> dict:
        query = select(Pitch)
        if status:
            query = query.where(Pitch.status == status)
        if category:
            query = query.where(func.lower(Pitch.category) == category.strip().lower())
        if location:
            query = query.where(contains(Pitch.location, location))
        if search and search.strip():
            query = query.where(contains_any(
                search, Pitch.name, Pitch.description
            ))
        if user_id:
            query = query.where(Pitch.user_id == str(user_id))
        query = query.order_by(Pitch.created_at.desc(), Pitch.id)
        return await paginate(self.db, query, page, page_size)

    # ==================== Upvotes ====================

    async def upvote_count(self, pitch_id: str) -> int:
        result = await self.db.execute(
            select(func.count(PitchUpvote.id)).where(PitchUpvote.pitch_id == str(pitch_id))
        )
        return result.scalar() or 0

    async def upvote(self, pitch_id: str, user: User) -> Tuple[bool, int]:
        pitch = await self.get_pitch(pitch_id)
        existing = await self.db.execute(
            select(PitchUpvote.id).where(PitchUpvote.pitch_id == str(pitch.id), PitchUpvote.user_id == str(user.id))
        )
        if existing.first() is None:
            self.db.add(PitchUpvote(pitch_id=str(pitch.id), user_id=str(user.id)))
            await self.db.flush()
        return True, await self.upvote_count(pitch.id)

    async def remove_upvote(self, pitch_id: str, user: User) -> Tuple[bool, int]:
        pitch = await self.get_pitch(pitch_id)
        await self.db.execute(
            delete(PitchUpvote).where(PitchUpvote.pitch_id == str(pitch.id), PitchUpvote.user_id == str(user.id))
        )
        await self.db.flush()
        return False, await self.upvote_count(pitch.id)

    # ==================== Facets ====================

    async def _facet(self, column) -> List[Dict[str, Any]]:
        result = await self.db.execute(
            select(column, func.count(Pitch.id))
            .where(column.is_not(None))
            .group_by(column)
            .order_by(func.count(Pitch.id).desc(), column)
        )
        return [
            {"value": value.value if isinstance(value, PitchStatus) else value, "count": count}
            for value, count in result.all()
            if value != ""
        ]

    async def facets(self) -> Dict[str, List[Dict[str, Any]]]:
        """Category, location and status values with how many pitches use each"""
        return {
            "categories": await self._facet(Pitch.category),
            "locations": await self._facet(Pitch.location),
            "statuses": await self._facet(Pitch.status),
        }

    async def enrich(self, pitches: Iterable[Pitch], viewer: Optional[User]) -> List[Dict[str, Any]]:
        pitches = list(pitches)
        ids = [str(p.id) for p in pitches]
        counts: Dict[str, int] = {}
        mine = set()
        if ids:
            result = await self.db.execute(
                select(PitchUpvote.pitch_id, func.count())
                .where(PitchUpvote.pitch_id.in_(ids))
                .group_by(PitchUpvote.pitch_id)
            )
            counts = {str(k): c for k, c in result.all()}
            if viewer is not None:
                result = await self.db.execute(
                    select(PitchUpvote.pitch_id).where(
                        PitchUpvote.user_id == str(viewer.id), PitchUpvote.pitch_id.in_(ids)
                    )
                )
                mine = {str(r[0]) for r in result.all()}

        return [
            {
                "id": str(p.id),
                "name": p.name,
                "description": p.description,
                "logo": p.logo,
                "location": p.location,
                "status": p.status,
                "category": p.category,
                "funding_goal": p.funding_goal,
                "website": p.website,
                "created_at": p.created_at,
                "owner": UserSummary.model_validate(p.owner),
                "upvote_count": counts.get(str(p.id), 0),
                "upvoted_by_me": str(p.id) in mine,
            }
            for p in pitches
        ]
