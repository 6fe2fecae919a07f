"""
Pitch room: startups looking for backers, with upvotes and browse facets.
"""
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional

from app.core.database import get_db
from app.models.pitch import PitchStatus
from app.models.user import User
from app.modules.auth.dependencies import get_current_user, get_optional_user
from app.schemas.pitch import (
    PitchCreate,
    PitchUpdate,
    PitchResponse,
    PitchListResponse,
    PitchFacets,
    UpvoteResponse,
)
from app.services.pitch_service import PitchService

router = APIRouter(prefix="/pitches", tags=["Pitch Room"])


@router.get("", response_model=PitchListResponse)
async def list_pitches(
    status_filter: Optional[PitchStatus] = Query(None, alias="status"),
    category: Optional[str] = None,
    location: Optional[str] = None,
    search: Optional[str] = None,
    page: int = Query(1, ge=1),
    page_size: int = Query(10, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
    viewer: Optional[User] = Depends(get_optional_user)
):
    service = PitchService(db)
    page_data = await service.list_pitches(
        status=status_filter,
        category=category,
        location=location,
        search=search,
        page=page,
        page_size=page_size,
    )
    page_data["items"] = await service.enrich(page_data["items"], viewer)
    return page_data


@router.get("/facets", response_model=PitchFacets)
async def pitch_facets(db: AsyncSession = Depends(get_db)):
    """Filter values with pitch counts, for the browse sidebar"""
    return await PitchService(db).facets()


@router.post("", response_model=PitchResponse, status_code=status.HTTP_201_CREATED)
async def create_pitch(
    data: PitchCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    service = PitchService(db)
    pitch = await service.create_pitch(current_user, data.model_dump())
    return (await service.enrich([pitch], current_user))[0]


@router.get("/{pitch_id}", response_model=PitchResponse)
async def get_pitch(
    pitch_id: str,
    db: AsyncSession = Depends(get_db),
    viewer: Optional[User] = Depends(get_optional_user)
):
    service = PitchService(db)
    return (await service.enrich([await service.get_pitch(pitch_id)], viewer))[0]


@router.patch("/{pitch_id}", response_model=PitchResponse)
async def update_pitch(
    pitch_id: str,
    changes: PitchUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    service = PitchService(db)
    pitch = await service.update_pitch(pitch_id, current_user, changes.model_dump(exclude_unset=True))
    return (await service.enrich([pitch], current_user))[0]


@router.delete("/{pitch_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_pitch(
    pitch_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    await PitchService(db).delete_pitch(pitch_id, current_user)


@router.post("/{pitch_id}/upvote", response_model=UpvoteResponse)
async def upvote_pitch(
    pitch_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    upvoted, count = await PitchService(db).upvote(pitch_id, current_user)
    return {"pitch_id": pitch_id, "upvoted": upvoted, "upvote_count": count}


@router.delete("/{pitch_id}/upvote", response_model=UpvoteResponse)
async def remove_upvote(
    pitch_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    upvoted, count = await PitchService(db).remove_upvote(pitch_id, current_user)
    return {"pitch_id": pitch_id, "upvoted": upvoted, "upvote_count": count}
