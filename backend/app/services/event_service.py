"""
Event Service - events, registrations and the month calendar grid.
"""

import calendar
from datetime import date, datetime, timedelta
from typing import Optional, List, Dict, Any, Iterable
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, delete, or_, and_

from app.core.exceptions import (
    EventNotFoundError,
    EventFullError,
    AuthorizationError,
    ValidationError,
)
from app.core.logging_config import logger
from app.core.types import utcnow
from app.models.event import Event, EventRegistration
from app.models.user import User
from app.schemas.user import UserSummary
from app.utils.pagination import paginate

EVENT_WHEN = ("upcoming", "past", "all")
EDITABLE_FIELDS = (
    "title", "description", "location", "start_date", "end_date", "is_virtual",
    "registration_link", "image_url", "category", "capacity",
)


def build_month_calendar(
    year: int,
    month: int,
    events: Iterable[Any],
    first_weekday: int = 0,
    today: Optional[date] = None
) -> List[List[Dict[str, Any]]]:
    """
    Month view as a list of weeks, each a list of 7 day cells.

    Cells before the 1st and after the last day belong to the adjacent
    months and have in_month=False. An event appears in every cell from
    its start date to its end date inclusive. first_weekday follows the
    calendar module: 0 is Monday, 6 is Sunday.
    """
    if not 1 <= month <= 12:
        raise ValidationError("month must be between 1 and 12", field="month")
    if not 0 <= first_weekday <= 6:
        raise ValidationError("first_weekday must be between 0 and 6", field="first_weekday")

    today = today or utcnow().date()
    weeks = month_weeks(year, month, first_weekday)

    grid_start, grid_end = weeks[0][0], weeks[-1][-1]
    by_day: Dict[date, List[Any]] = {}
    for event in sorted(events, key=lambda e: e.start_date):
        start = event.start_date.date()
        end = (event.end_date or event.start_date).date()
        if end < start:
            end = start
        day = max(start, grid_start)
        last = min(end, grid_end)
        while day <= last:
            by_day.setdefault(day, []).append(event)
            day += timedelta(days=1)

    return [
        [
            {
                "date": day,
                "in_month": day.month == month,
                "is_today": day == today,
                "events": by_day.get(day, []),
            }
            for day in week
        ]
        for week in weeks
    ]


def month_weeks(year: int, month: int, first_weekday: int = 0) -> List[List[date]]:
    """Dates of the month grid; spill-over days must stay inside years 1..9999"""
    try:
        return calendar.Calendar(firstweekday=first_weekday).monthdatescalendar(year, month)
    except (ValueError, OverflowError):
        raise ValidationError(f"{year}-{month:02d} is outside the supported calendar range", field="year")


def month_bounds(year: int, month: int, first_weekday: int = 0):
    """Datetime range covered by the month grid, including spill-over days"""
    weeks = month_weeks(year, month, first_weekday)
    start = datetime.combine(weeks[0][0], datetime.min.time())
    try:
        end = datetime.combine(weeks[-1][-1] + timedelta(days=1), datetime.min.time())
    except OverflowError:
        end = datetime.max
    return start, end


class EventService:

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_event(self, event_id: str) -> Event:
        event = await self.db.get(Event, str(event_id))
        if event is None:
            raise EventNotFoundError(event_id)
        return event

    def _ensure_can_edit(self, event: Event, user: User) -> None:
        if str(event.creator_id) != str(user.id) and not user.is_admin:
            raise AuthorizationError("Only the event organiser can change this event")

    async def create_event(self, user: User, data: Dict[str, Any]) -> Event:
        event = Event(creator_id=str(user.id), **data)
        self.db.add(event)
        await self.db.flush()
        await self.db.refresh(event)
        logger.info(f"Event {event.id} '{event.title}' created by {user.id}")
        return event

    async def update_event(self, event_id: str, user: User, changes: Dict[str, Any]) -> Event:
        event = await self.get_event(event_id)
        self._ensure_can_edit(event, user)
        for field_name in EDITABLE_FIELDS:
            if field_name in changes:
                setattr(event, field_name, changes[field_name])
        if event.end_date is not None and event.end_date < event.start_date:
            raise ValidationError("end_date must not be before start_date", field="end_date")
        await self.db.flush()
        return event

    async def delete_event(self, event_id: str, user: User) -> None:
        event = await self.get_event(event_id)
        self._ensure_can_edit(event, user)
        await self.db.delete(event)
        await self.db.flush()

    async def list_events(
        self,
        when: str = "upcoming",
        category: Optional[str] = None,
        is_virtual: Optional[bool] = None,
        page: int = 1,
        page_size: Optional[int] = None
    ) -> dict:
        """
        upcoming: not yet finished, soonest first
        past: finished, most recent first
        """
        if when not in EVENT_WHEN:
            raise ValidationError(f"when must be one of {', '.join(EVENT_WHEN)}", field="when")

        now = utcnow()
        finished = or_(
            and_(Event.end_date.is_not(None), Event.end_date < now),
            and_(Event.end_date.is_(None), Event.start_date < now),
        )
        query = select(Event)
        if when == "upcoming":
            query = query.where(~finished).order_by(Event.start_date.asc())
        elif when == "past":
            query = query.where(finished).order_by(Event.start_date.desc())
        else:
            query = query.order_by(Event.start_date.asc())

        if category:
            query = query.where(func.lower(Event.category) == category.strip().lower())
        if is_virtual is not None:
            query = query.where(Event.is_virtual.is_(is_virtual))
        return await paginate(self.db, query, page, page_size)

    async def events_between(self, start: datetime, end: datetime) -> List[Event]:
        """Events overlapping [start, end)"""
        result = await self.db.execute(
            select(Event)
            .where(
                Event.start_date < end,
                or_(
                    and_(Event.end_date.is_not(None), Event.end_date >= start),
                    and_(Event.end_date.is_(None), Event.start_date >= start),
                ),
            )
            .order_by(Event.start_date.asc())
        )
        return list(result.scalars().all())

    async def month_calendar(self, year: int, month: int, first_weekday: int = 0) -> Dict[str, Any]:
        if not 1 <= month <= 12:
            raise ValidationError("month must be between 1 and 12", field="month")
        if not 0 <= first_weekday <= 6:
            raise ValidationError("first_weekday must be between 0 and 6", field="first_weekday")
        start, end = month_bounds(year, month, first_weekday)
        events = await self.events_between(start, end)
        return {
            "year": year,
            "month": month,
            "first_weekday": first_weekday,
            "weeks": build_month_calendar(year, month, events, first_weekday),
        }

    # ==================== Registrations ====================

    async def attendee_count(self, event_id: str) -> int:
        result = await self.db.execute(
            select(func.count(EventRegistration.id)).where(EventRegistration.event_id == str(event_id))
        )
        return result.scalar() or 0

    async def is_registered(self, event_id: str, user_id: str) -> bool:
        result = await self.db.execute(
            select(EventRegistration.id).where(
                EventRegistration.event_id == str(event_id), EventRegistration.user_id == str(user_id)
            )
        )
        return result.first() is not None

    async def register(self, event_id: str, user: User) -> int:
        """Register for an event. Registering twice is a no-op."""
        event = await self.get_event(event_id)
        if event.ends_at < utcnow():
            raise ValidationError("This event has already taken place", field="event_id")
        if await self.is_registered(event.id, user.id):
            return await self.attendee_count(event.id)

        count = await self.attendee_count(event.id)
        if event.capacity is not None and count >= event.capacity:
            raise EventFullError(event.id)

        self.db.add(EventRegistration(event_id=str(event.id), user_id=str(user.id)))
        await self.db.flush()
        return count + 1

    async def unregister(self, event_id: str, user: User) -> int:
        event = await self.get_event(event_id)
        await self.db.execute(
            delete(EventRegistration).where(
                EventRegistration.event_id == str(event.id), EventRegistration.user_id == str(user.id)
            )
        )
        await self.db.flush()
        return await self.attendee_count(event.id)

    async def enrich(self, events: Iterable[Event], viewer: Optional[User]) -> List[Dict[str, Any]]:
        events = list(events)
        ids = [str(e.id) for e in events]
        counts: Dict[str, int] = {}
        mine = set()
        if ids:
            result = await self.db.execute(
                select(EventRegistration.event_id, func.count())
                .where(EventRegistration.event_id.in_(ids))
                .group_by(EventRegistration.event_id)
            )
            counts = {str(k): c for k, c in result.all()}
            if viewer is not None:
                result = await self.db.execute(
                    select(EventRegistration.event_id).where(
                        EventRegistration.user_id == str(viewer.id), EventRegistration.event_id.in_(ids)
                    )
                )
                mine = {str(r[0]) for r in result.all()}

        return [
            {
                "id": str(e.id),
                "title": e.title,
                "description": e.description,
                "location": e.location,
                "start_date": e.start_date,
                "end_date": e.end_date,
                "is_virtual": e.is_virtual,
                "registration_link": e.registration_link,
                "image_url": e.image_url,
                "category": e.category,
                "capacity": e.capacity,
                "created_at": e.created_at,
                "creator": UserSummary.model_validate(e.creator) if e.creator is not None else None,
                "attendee_count": counts.get(str(e.id), 0),
                "registered_by_me": str(e.id) in mine,
            }
            for e in events
        ]
