"""
Events: listings, the month calendar and registrations.
"""
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional

from app.core.database import get_db
from app.core.types import utcnow
from app.models.user import User
from app.modules.auth.dependencies import get_current_user, get_optional_user
from app.schemas.event import (
    EventCreate,
    EventUpdate,
    EventResponse,
    EventListResponse,
    CalendarMonth,
    RegistrationResponse,
)
from app.services.event_service import EventService

router = APIRouter(prefix="/events", tags=["Events"])


@router.get("", response_model=EventListResponse)
async def list_events(
    when: str = Query("upcoming", pattern="^(upcoming|past|all)$"),
    category: Optional[str] = None,
    is_virtual: Optional[bool] = Query(None, alias="virtual"),
    page: int = Query(1, ge=1),
    page_size: int = Query(10, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
    viewer: Optional[User] = Depends(get_optional_user)
):
    """Upcoming events soonest first; past events most recent first"""
    service = EventService(db)
    page_data = await service.list_events(
        when=when, category=category, is_virtual=is_virtual, page=page, page_size=page_size
    )
    page_data["items"] = await service.enrich(page_data["items"], viewer)
    return page_data


@router.get("/calendar", response_model=CalendarMonth)
async def month_calendar(
    year: Optional[int] = Query(None, ge=1, le=9999),
    month: Optional[int] = Query(None, ge=1, le=12),
    first_weekday: int = Query(0, ge=0, le=6),
    db: AsyncSession = Depends(get_db)
):
    """Month grid of weeks; defaults to the current month"""
    today = utcnow()
    return await EventService(db).month_calendar(
        year or today.year, month or today.month, first_weekday
    )


@router.post("", response_model=EventResponse, status_code=status.HTTP_201_CREATED)
async def create_event(
    data: EventCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    service = EventService(db)
    event = await service.create_event(current_user, data.model_dump())
    return (await service.enrich([event], current_user))[0]


@router.get("/{event_id}", response_model=EventResponse)
async def get_event(
    event_id: str,
    db: AsyncSession = Depends(get_db),
    viewer: Optional[User] = Depends(get_optional_user)
):
    service = EventService(db)
    return (await service.enrich([await service.get_event(event_id)], viewer))[0]


@router.patch("/{event_id}", response_model=EventResponse)
async def update_event(
    event_id: str,
    changes: EventUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    service = EventService(db)
    event = await service.update_event(event_id, current_user, changes.model_dump(exclude_unset=True))
    return (await service.enrich([event], current_user))[0]


@router.delete("/{event_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_event(
    event_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    await EventService(db).delete_event(event_id, current_user)


@router.post("/{event_id}/register", response_model=RegistrationResponse)
async def register_for_event(
    event_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    count = await EventService(db).register(event_id, current_user)
    return {"event_id": event_id, "registered": True, "attendee_count": count}


@router.delete("/{event_id}/register", response_model=RegistrationResponse)
async def unregister_from_event(
    event_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    count = await EventService(db).unregister(event_id, current_user)
    return {"event_id": event_id, "registered": False, "attendee_count": count}
