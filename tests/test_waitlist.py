"""
Waiting list admission and entry state machine
"""

from datetime import datetime, timedelta, timezone
from uuid import uuid4

import pytest

from waitlist_lottery.core.exceptions import (
    AlreadyOnWaitlist,
    CannotLeaveAfterAccepting,
    CapacityNotSet,
    ConcurrentUpdate,
    DeadlinePending,
    EntryNotFound,
    EventFull,
    EventNotFound,
    EventNotOpen,
    InvalidLocation,
    InviteNotPending,
    LocationRequired,
    NotAuthorized,
    NotOnWaitlist,
    UserNotFound,
    WaitlistFull,
)
from waitlist_lottery.models import Event, EntryStatus, User
from waitlist_lottery.models.waitlist import ALLOWED_TRANSITIONS, TERMINAL_STATUSES
from waitlist_lottery.services.event_service import EventService
from waitlist_lottery.services.waitlist_service import WaitlistService, validate_location

from factories import fetch, fetch_entry, join_users, make_event, make_user


class TestStateMachine:

    def test_terminal_statuses(self):
        assert TERMINAL_STATUSES == {EntryStatus.ACCEPTED, EntryStatus.DECLINED, EntryStatus.CANCELLED}

    def test_nothing_returns_to_waiting(self):
        for targets in ALLOWED_TRANSITIONS.values():
            assert EntryStatus.WAITING not in targets

    def test_location_bounds(self):
        validate_location(None)
        validate_location((90.0, -180.0))
        with pytest.raises(InvalidLocation):
            validate_location((90.5, 0.0))
        with pytest.raises(InvalidLocation):
            validate_location((0.0, 181.0))


class TestJoin:

    @pytest.mark.asyncio
    async def test_join_creates_waiting_entry(self, session_factory, event, entrant):
        async with session_factory() as session:
            entry = await WaitlistService(session).join(entrant.id, event.id)

        assert entry.status == EntryStatus.WAITING
        assert entry.joined_at is not None
        assert entry.invited_at is None

        user = await fetch(session_factory, User, entrant.id)
        assert str(event.id) in user.waiting_lists_joined_ids
        assert str(event.id) in user.registration_history_ids

    @pytest.mark.asyncio
    async def test_join_twice_fails(self, session_factory, event, entrant):
        async with session_factory() as session:
            await WaitlistService(session).join(entrant.id, event.id)

        async with session_factory() as session:
            with pytest.raises(AlreadyOnWaitlist):
                await WaitlistService(session).join(entrant.id, event.id)

    @pytest.mark.asyncio
    async def test_zero_waitlist_capacity_is_full(self, session_factory, organizer, entrant):
        event = await make_event(session_factory, organizer.id, waitlist_capacity=0)

        async with session_factory() as session:
            with pytest.raises(WaitlistFull):
                await WaitlistService(session).join(entrant.id, event.id)

        assert await fetch_entry(session_factory, event.id, entrant.id) is None

    @pytest.mark.asyncio
    async def test_waitlist_capacity_counts_waiting_only(self, session_factory, organizer):
        event = await make_event(session_factory, organizer.id, waitlist_capacity=2)
        first, second = await join_users(session_factory, event.id, 2)
        late = await make_user(session_factory, "late")

        async with session_factory() as session:
            with pytest.raises(WaitlistFull):
                await WaitlistService(session).join(late.id, event.id)

        # An invited entry no longer occupies a waiting place
        async with session_factory() as session:
            await WaitlistService(session).invite(organizer.id, event.id, first.id)
        async with session_factory() as session:
            entry = await WaitlistService(session).join(late.id, event.id)
        assert entry.status == EntryStatus.WAITING

    @pytest.mark.asyncio
    async def test_unknown_event(self, session_factory, entrant):
        async with session_factory() as session:
            with pytest.raises(EventNotFound):
                await WaitlistService(session).join(entrant.id, uuid4())

    @pytest.mark.asyncio
    async def test_unknown_user(self, session_factory, event):
        async with session_factory() as session:
            with pytest.raises(UserNotFound):
                await WaitlistService(session).join(uuid4(), event.id)

    @pytest.mark.asyncio
    async def test_geolocation_required(self, session_factory, organizer, entrant):
        event = await make_event(session_factory, organizer.id, requires_geolocation=True)

        async with session_factory() as session:
            with pytest.raises(LocationRequired):
                await WaitlistService(session).join(entrant.id, event.id)

        async with session_factory() as session:
            entry = await WaitlistService(session).join(entrant.id, event.id, (53.5, -113.5))
        assert entry.join_location == (53.5, -113.5)

        async with session_factory() as session:
            located = await WaitlistService(session).get_waitlist_entries_with_location(event.id)
        assert [e.user_id for e in located] == [entrant.id]

    @pytest.mark.asyncio
    async def test_invalid_location_rejected(self, session_factory, event, entrant):
        async with session_factory() as session:
            with pytest.raises(InvalidLocation):
                await WaitlistService(session).join(entrant.id, event.id, (120.0, 0.0))


class TestLeave:

    @pytest.mark.asyncio
    async def test_leave_deletes_entry(self, session_factory, event, entrant):
        async with session_factory() as session:
            await WaitlistService(session).join(entrant.id, event.id)
        async with session_factory() as session:
            await WaitlistService(session).leave(entrant.id, event.id)

        assert await fetch_entry(session_factory, event.id, entrant.id) is None
        user = await fetch(session_factory, User, entrant.id)
        assert str(event.id) not in user.waiting_lists_joined_ids
        assert str(event.id) in user.registration_history_ids

    @pytest.mark.asyncio
    async def test_leave_without_entry(self, session_factory, event, entrant):
        async with session_factory() as session:
            with pytest.raises(NotOnWaitlist):
                await WaitlistService(session).leave(entrant.id, event.id)

    @pytest.mark.asyncio
    async def test_cannot_leave_after_accepting(self, session_factory, organizer, event, entrant):
        async with session_factory() as session:
            service = WaitlistService(session)
            await service.join(entrant.id, event.id)
            await service.invite(organizer.id, event.id, entrant.id)
            await service.accept_invite(entrant.id, event.id)

        async with session_factory() as session:
            with pytest.raises(CannotLeaveAfterAccepting):
                await WaitlistService(session).leave(entrant.id, event.id)

        entry = await fetch_entry(session_factory, event.id, entrant.id)
        assert entry.status == EntryStatus.ACCEPTED


class TestInvitations:

    @pytest.mark.asyncio
    async def test_invite_requires_organizer(self, session_factory, event, entrant):
        async with session_factory() as session:
            await WaitlistService(session).join(entrant.id, event.id)
        async with session_factory() as session:
            with pytest.raises(NotAuthorized):
                await WaitlistService(session).invite(entrant.id, event.id, entrant.id)

    @pytest.mark.asyncio
    async def test_accept_takes_a_slot(self, session_factory, organizer, event, entrant):
        async with session_factory() as session:
            service = WaitlistService(session)
            await service.join(entrant.id, event.id)
            await service.invite(organizer.id, event.id, entrant.id)
        async with session_factory() as session:
            entry = await WaitlistService(session).accept_invite(entrant.id, event.id)

        assert entry.status == EntryStatus.ACCEPTED
        assert entry.accepted_at is not None
        stored = await fetch(session_factory, Event, event.id)
        assert stored.current_capacity == 1
        user = await fetch(session_factory, User, entrant.id)
        assert str(event.id) in user.attending_lists_ids
        assert str(event.id) not in user.waiting_lists_joined_ids

    @pytest.mark.asyncio
    async def test_accept_when_full(self, session_factory, organizer):
        event = await make_event(session_factory, organizer.id, max_capacity=1)
        first, second = await join_users(session_factory, event.id, 2)
        async with session_factory() as session:
            service = WaitlistService(session)
            await service.invite(organizer.id, event.id, first.id)
            await service.invite(organizer.id, event.id, second.id)
            await service.accept_invite(first.id, event.id)

        async with session_factory() as session:
            with pytest.raises(EventFull):
                await WaitlistService(session).accept_invite(second.id, event.id)

        entry = await fetch_entry(session_factory, event.id, second.id)
        assert entry.status == EntryStatus.INVITED
        stored = await fetch(session_factory, Event, event.id)
        assert stored.current_capacity == 1

    @pytest.mark.asyncio
    async def test_accept_without_capacity(self, session_factory, organizer, event, entrant):
        async with session_factory() as session:
            service = WaitlistService(session)
            await service.join(entrant.id, event.id)
            await service.invite(organizer.id, event.id, entrant.id)
            stored = await session.get(Event, event.id)
            stored.max_capacity = None
            await session.commit()

        async with session_factory() as session:
            with pytest.raises(CapacityNotSet):
                await WaitlistService(session).accept_invite(entrant.id, event.id)

    @pytest.mark.asyncio
    async def test_accept_requires_pending_invite(self, session_factory, event, entrant):
        async with session_factory() as session:
            await WaitlistService(session).join(entrant.id, event.id)
        async with session_factory() as session:
            with pytest.raises(InviteNotPending):
                await WaitlistService(session).accept_invite(entrant.id, event.id)

    @pytest.mark.asyncio
    async def test_decline_then_accept_fails(self, session_factory, organizer, event, entrant):
        async with session_factory() as session:
            service = WaitlistService(session)
            await service.join(entrant.id, event.id)
            await service.invite(organizer.id, event.id, entrant.id)
            entry = await service.decline_invite(entrant.id, event.id)
        assert entry.declined_at is not None

        async with session_factory() as session:
            with pytest.raises(InviteNotPending):
                await WaitlistService(session).accept_invite(entrant.id, event.id)

    @pytest.mark.asyncio
    async def test_missing_entry(self, session_factory, event, entrant):
        async with session_factory() as session:
            with pytest.raises(EntryNotFound):
                await WaitlistService(session).decline_invite(entrant.id, event.id)


class TestCancelNonRegistered:

    @pytest.mark.asyncio
    async def test_before_deadline(self, session_factory, event):
        deadline = datetime.now(timezone.utc) + timedelta(days=1)
        async with session_factory() as session:
            with pytest.raises(DeadlinePending):
                await WaitlistService(session).cancel_non_registered(event.id, deadline)

    @pytest.mark.asyncio
    async def test_cancels_unanswered_invites(self, session_factory, organizer, event):
        accepted, pending, waiting = await join_users(session_factory, event.id, 3)
        async with session_factory() as session:
            service = WaitlistService(session)
            await service.invite(organizer.id, event.id, accepted.id)
            await service.invite(organizer.id, event.id, pending.id)
            await service.accept_invite(accepted.id, event.id)

        deadline = datetime.now(timezone.utc) - timedelta(minutes=1)
        async with session_factory() as session:
            cancelled = await WaitlistService(session).cancel_non_registered(event.id, deadline)

        assert [entry.user_id for entry in cancelled] == [pending.id]
        assert (await fetch_entry(session_factory, event.id, pending.id)).status == EntryStatus.CANCELLED
        assert (await fetch_entry(session_factory, event.id, accepted.id)).status == EntryStatus.ACCEPTED
        assert (await fetch_entry(session_factory, event.id, waiting.id)).status == EntryStatus.WAITING

    @pytest.mark.asyncio
    async def test_deadline_without_offset(self, session_factory, organizer, event):
        (user,) = await join_users(session_factory, event.id, 1)
        async with session_factory() as session:
            await WaitlistService(session).invite(organizer.id, event.id, user.id)

        async with session_factory() as session:
            with pytest.raises(DeadlinePending):
                await WaitlistService(session).cancel_non_registered(event.id, datetime.now() + timedelta(days=1))

        async with session_factory() as session:
            cancelled = await WaitlistService(session).cancel_non_registered(event.id, datetime(2020, 1, 1))
        assert [entry.user_id for entry in cancelled] == [user.id]


class TestListings:

    @pytest.mark.asyncio
    async def test_counts_and_lists(self, session_factory, organizer, event):
        users = await join_users(session_factory, event.id, 4)
        async with session_factory() as session:
            service = WaitlistService(session)
            await service.invite(organizer.id, event.id, users[0].id)
            await service.invite(organizer.id, event.id, users[1].id)
            await service.decline_invite(users[1].id, event.id)

        async with session_factory() as session:
            service = WaitlistService(session)
            counts = await service.get_waitlist_counts(event.id)
            waiting = await service.get_waitlist_entries(event.id)
            invited = await service.get_invited_list(event.id)
            declined = await service.get_declined_list(event.id)
            size = await service.get_waitlist_size(event.id)
            history = await service.get_history(users[0].id)

        assert counts[EntryStatus.WAITING] == 2
        assert counts[EntryStatus.INVITED] == 1
        assert counts[EntryStatus.DECLINED] == 1
        assert counts[EntryStatus.ACCEPTED] == 0
        assert size == 2
        assert [e.user_id for e in waiting] == [users[2].id, users[3].id]
        assert [e.user_id for e in invited] == [users[0].id]
        assert [e.user_id for e in declined] == [users[1].id]
        assert [e.event_id for e in history] == [event.id]


class TestConcurrentTransitions:

    @pytest.mark.asyncio
    async def test_stale_write_raises_concurrent_update(self, session_factory, organizer, event):
        (user,) = await join_users(session_factory, event.id, 1)
        async with session_factory() as session:
            await WaitlistService(session).invite(organizer.id, event.id, user.id)

        async with session_factory() as first, session_factory() as second:
            # Both requests read the entry while it is still INVITED
            await WaitlistService(second).get_entry(event.id, user.id)
            await WaitlistService(first).decline_invite(user.id, event.id)

            with pytest.raises(ConcurrentUpdate) as exc_info:
                await WaitlistService(second).cancel_invite(user.id, event.id)

        assert exc_info.value.code == "CONCURRENT_UPDATE"
        stored = await fetch_entry(session_factory, event.id, user.id)
        assert stored.status == EntryStatus.DECLINED
        assert exc_info.value.details["entry_id"] == str(stored.id)


class TestEventStatus:

    @pytest.mark.asyncio
    @pytest.mark.parametrize("change", ["close_event", "cancel_event"])
    async def test_join_requires_open_event(self, session_factory, organizer, event, entrant, change):
        async with session_factory() as session:
            await getattr(EventService(session), change)(organizer.id, event.id)

        async with session_factory() as session:
            with pytest.raises(EventNotOpen):
                await WaitlistService(session).join(entrant.id, event.id)
        assert await fetch_entry(session_factory, event.id, entrant.id) is None

    @pytest.mark.asyncio
    async def test_reopened_event_accepts_joins(self, session_factory, organizer, event, entrant):
        async with session_factory() as session:
            await EventService(session).close_event(organizer.id, event.id)
        async with session_factory() as session:
            await EventService(session).publish_event(organizer.id, event.id)

        async with session_factory() as session:
            entry = await WaitlistService(session).join(entrant.id, event.id)
        assert entry.status == EntryStatus.WAITING
