"""
Event management used by the allocation engine
"""

from typing import Optional
from uuid import UUID
from datetime import date, datetime
import logging

from sqlalchemy.ext.asyncio import AsyncSession

from waitlist_lottery.core.database import DatabaseManager
from waitlist_lottery.core.exceptions import (
    EventNotFound,
    InvalidDate,
    NotAuthorized,
    StateConflictError,
    UserNotFound,
    ValidationError,
)
from waitlist_lottery.models.event import Event, EventStatus
from waitlist_lottery.repositories.event_repository import EventRepository
from waitlist_lottery.repositories.user_repository import UserRepository

logger = logging.getLogger(__name__)

DATE_FORMAT = "%Y-%m-%d"


def parse_date(value: str) -> date:
    return datetime.strptime(value, DATE_FORMAT).date()


def is_valid_date_format(value: Optional[str]) -> bool:
    if not value:
        return False
    try:
        parse_date(value)
        return True
    except ValueError:
        return False


def date_range_valid(start: str, end: str) -> bool:
    if not is_valid_date_format(start) or not is_valid_date_format(end):
        return False
    return parse_date(start) <= parse_date(end)


def _validate_date_pair(start: Optional[str], end: Optional[str], label: str) -> None:
    if start is None and end is None:
        return
    for field, value in ((f"{label}_start", start), (f"{label}_end", end)):
        if not is_valid_date_format(value):
            raise InvalidDate(f"{field} must be a YYYY-MM-DD date", field=field)
    if not date_range_valid(start, end):
        raise InvalidDate(f"{label} start must not be after its end", field=f"{label}_end")


class EventService:

    def __init__(self, db: AsyncSession):
        self.db = db
        self.db_manager = DatabaseManager()
        self.event_repo = EventRepository(db)
        self.user_repo = UserRepository(db)

    async def get_event(self, event_id: UUID) -> Event:
        event = await self.event_repo.get_by_id(event_id)
        if event is None:
            raise EventNotFound(event_id)
        return event

    async def get_owned_event(self, organizer_id: UUID, event_id: UUID) -> Event:
        """Load an event and check the caller organizes it"""
        event = await self.get_event(event_id)
        if event.organizer_id != organizer_id:
            raise NotAuthorized()
        return event

    async def create_event(
        self,
        organizer_id: UUID,
        title: str,
        max_capacity: int,
        description: Optional[str] = None,
        location: Optional[str] = None,
        event_start_date: Optional[str] = None,
        event_end_date: Optional[str] = None,
        waitlist_capacity: Optional[int] = None,
        registration_start: Optional[str] = None,
        registration_end: Optional[str] = None,
        requires_geolocation: bool = False,
    ) -> Event:
        if max_capacity is None or max_capacity < 1:
            raise ValidationError("max_capacity must be at least 1", field="max_capacity")
        if waitlist_capacity is not None and waitlist_capacity < 0:
            raise ValidationError("waitlist_capacity must not be negative", field="waitlist_capacity")
        _validate_date_pair(event_start_date, event_end_date, "event")
        _validate_date_pair(registration_start, registration_end, "registration")

        async with self.db_manager.transaction(self.db):
            organizer = await self.user_repo.get_by_id(organizer_id)
            if organizer is None:
                raise UserNotFound(organizer_id)

            event = await self.event_repo.create(Event(
                organizer_id=organizer_id,
                title=title,
                description=description,
                location=location,
                max_capacity=max_capacity,
                current_capacity=0,
                waitlist_capacity=waitlist_capacity,
                status=EventStatus.OPEN,
                event_start_date=event_start_date,
                event_end_date=event_end_date,
                registration_start=registration_start,
                registration_end=registration_end,
                requires_geolocation=requires_geolocation,
            ))
            organizer.add_membership("events_created_ids", event.id)

        logger.info(f"Event {event.id} created by organizer {organizer_id}")
        return event

    async def set_geolocation_requirement(
        self,
        organizer_id: UUID,
        event_id: UUID,
        required: bool
    ) -> Event:
        async with self.db_manager.transaction(self.db):
            event = await self.get_owned_event(organizer_id, event_id)
            event.requires_geolocation = required
        return event

    # Status

    async def _set_status(self, organizer_id: UUID, event_id: UUID, target: EventStatus) -> Event:
        async with self.db_manager.transaction(self.db):
            event = await self.get_owned_event(organizer_id, event_id)
            if event.status == EventStatus.CANCELLED and target != EventStatus.CANCELLED:
                raise StateConflictError("Event has been cancelled", code="EVENT_CANCELLED")
            previous = event.status
            event.status = target
        logger.info(f"Event {event_id} status {previous.value} -> {target.value}")
        return event

    async def publish_event(self, organizer_id: UUID, event_id: UUID) -> Event:
        """Open the waiting list to entrants"""
        return await self._set_status(organizer_id, event_id, EventStatus.OPEN)

    async def close_event(self, organizer_id: UUID, event_id: UUID) -> Event:
        """Stop new joins; existing entries and invitations are untouched"""
        return await self._set_status(organizer_id, event_id, EventStatus.CLOSED)

    async def cancel_event(self, organizer_id: UUID, event_id: UUID) -> Event:
        return await self._set_status(organizer_id, event_id, EventStatus.CANCELLED)
