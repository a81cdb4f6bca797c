"""
Event creation rules used by the allocation engine
"""

from uuid import uuid4

import pytest

from waitlist_lottery.core.exceptions import (
    InvalidDate,
    NotAuthorized,
    StateConflictError,
    UserNotFound,
    ValidationError,
)
from waitlist_lottery.models import Event, EventStatus, User
from waitlist_lottery.services.event_service import EventService, date_range_valid, is_valid_date_format

from factories import fetch, make_event


class TestDates:

    def test_format(self):
        assert is_valid_date_format("2026-03-01")
        assert not is_valid_date_format("01/03/2026")
        assert not is_valid_date_format("2026-02-30")
        assert not is_valid_date_format(None)

    def test_range(self):
        assert date_range_valid("2026-03-01", "2026-03-01")
        assert not date_range_valid("2026-03-02", "2026-03-01")


class TestCreateEvent:

    @pytest.mark.asyncio
    async def test_defaults(self, session_factory, organizer):
        event = await make_event(
            session_factory,
            organizer.id,
            event_start_date="2026-06-01",
            event_end_date="2026-06-02",
            registration_start="2026-05-01",
            registration_end="2026-05-15",
        )

        assert event.current_capacity == 0
        assert event.status == EventStatus.OPEN
        assert event.waitlist_capacity is None
        stored = await fetch(session_factory, User, organizer.id)
        assert stored.events_created_ids == [str(event.id)]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("kwargs", [
        {"max_capacity": 0},
        {"waitlist_capacity": -1},
    ])
    async def test_rejects_bad_capacity(self, session_factory, organizer, kwargs):
        with pytest.raises(ValidationError):
            await make_event(session_factory, organizer.id, **kwargs)

    @pytest.mark.asyncio
    async def test_rejects_reversed_dates(self, session_factory, organizer):
        with pytest.raises(InvalidDate) as exc_info:
            await make_event(
                session_factory, organizer.id,
                event_start_date="2026-06-02", event_end_date="2026-06-01"
            )
        assert exc_info.value.details["field"] == "event_end"

    @pytest.mark.asyncio
    async def test_rejects_half_window(self, session_factory, organizer):
        with pytest.raises(InvalidDate):
            await make_event(session_factory, organizer.id, registration_start="2026-05-01")

    @pytest.mark.asyncio
    async def test_unknown_organizer(self, session_factory):
        with pytest.raises(UserNotFound):
            await make_event(session_factory, uuid4())

    @pytest.mark.asyncio
    async def test_geolocation_flag_owner_only(self, session_factory, organizer, event, entrant):
        async with session_factory() as session:
            updated = await EventService(session).set_geolocation_requirement(organizer.id, event.id, True)
        assert updated.requires_geolocation is True

        async with session_factory() as session:
            with pytest.raises(NotAuthorized):
                await EventService(session).set_geolocation_requirement(entrant.id, event.id, False)


class TestEventStatus:

    @pytest.mark.asyncio
    async def test_close_and_publish(self, session_factory, organizer, event):
        async with session_factory() as session:
            closed = await EventService(session).close_event(organizer.id, event.id)
        assert closed.status == EventStatus.CLOSED

        async with session_factory() as session:
            await EventService(session).publish_event(organizer.id, event.id)
        stored = await fetch(session_factory, Event, event.id)
        assert stored.status == EventStatus.OPEN

    @pytest.mark.asyncio
    async def test_cancelled_event_stays_cancelled(self, session_factory, organizer, event):
        async with session_factory() as session:
            await EventService(session).cancel_event(organizer.id, event.id)

        async with session_factory() as session:
            with pytest.raises(StateConflictError) as exc_info:
                await EventService(session).publish_event(organizer.id, event.id)
        assert exc_info.value.code == "EVENT_CANCELLED"
        stored = await fetch(session_factory, Event, event.id)
        assert stored.status == EventStatus.CANCELLED

    @pytest.mark.asyncio
    async def test_organizer_only(self, session_factory, event, entrant):
        async with session_factory() as session:
            with pytest.raises(NotAuthorized):
                await EventService(session).cancel_event(entrant.id, event.id)
