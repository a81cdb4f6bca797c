"""
Waiting list lifecycle: admission, status transitions and listings

Every transition reads the entry, checks the current status permits the
move, then writes the new status together with its timestamp. Entries carry
a version counter, so a write that lost a race with another request fails
instead of overwriting it.
"""

from typing import Dict, List, Optional, Tuple
from uuid import UUID
from datetime import datetime, timezone
import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.exc import StaleDataError

from waitlist_lottery.core.database import DatabaseManager
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
from waitlist_lottery.core.metrics import ENTRY_TRANSITIONS, INVITATIONS_ISSUED
from waitlist_lottery.models.event import EventStatus
from waitlist_lottery.models.waitlist import (
    WaitingListEntry,
    EntryStatus,
    TRANSITION_TIMESTAMPS,
)
from waitlist_lottery.repositories.event_repository import EventRepository
from waitlist_lottery.repositories.user_repository import UserRepository
from waitlist_lottery.repositories.waitlist_repository import WaitlistRepository

logger = logging.getLogger(__name__)

Location = Tuple[float, float]


def validate_location(location: Optional[Location]) -> None:
    if location is None:
        return
    latitude, longitude = location
    if not -90.0 <= latitude <= 90.0:
        raise InvalidLocation("Latitude must be between -90 and 90")
    if not -180.0 <= longitude <= 180.0:
        raise InvalidLocation("Longitude must be between -180 and 180")


class WaitlistService:

    def __init__(self, db: AsyncSession):
        self.db = db
        self.db_manager = DatabaseManager()
        self.waitlist_repo = WaitlistRepository(db)
        self.event_repo = EventRepository(db)
        self.user_repo = UserRepository(db)

    # Transitions

    async def _transition(self, entry: WaitingListEntry, target: EntryStatus) -> WaitingListEntry:
        """Validate and apply one state machine move; the caller commits"""
        if not entry.can_transition_to(target):
            raise InviteNotPending(current_status=entry.status, expected_status=target)

        # Read before the flush; a stale write expires every loaded attribute
        entry_id = entry.id
        previous = entry.status
        entry.status = target
        setattr(entry, TRANSITION_TIMESTAMPS[target], datetime.now(timezone.utc))
        try:
            await self.db.flush()
        except StaleDataError as e:
            raise ConcurrentUpdate(entry_id) from e

        ENTRY_TRANSITIONS.labels(from_status=previous.value, to_status=target.value).inc()
        logger.debug(f"Entry {entry_id} moved {previous.value} -> {target.value}")
        return entry

    async def _get_entry(self, event_id: UUID, user_id: UUID) -> WaitingListEntry:
        entry = await self.waitlist_repo.get(event_id, user_id)
        if entry is None:
            raise EntryNotFound(event_id, user_id)
        return entry

    async def _update_memberships(self, user_id: UUID, event_id: UUID, add=(), remove=()) -> None:
        user = await self.user_repo.get_by_id(user_id)
        if user is None:
            return
        for list_name in remove:
            user.remove_membership(list_name, event_id)
        for list_name in add:
            user.add_membership(list_name, event_id)

    # Admission

    async def join(
        self,
        user_id: UUID,
        event_id: UUID,
        location: Optional[Location] = None
    ) -> WaitingListEntry:
        """
        Add a user to an event's waiting list.

        The event row is locked for the count-then-insert so two joins near
        the waitlist capacity cannot both pass the check; the unique
        (event_id, user_id) constraint backs up the duplicate check.
        """
        async with self.db_manager.transaction(self.db):
            if await self.waitlist_repo.get(event_id, user_id) is not None:
                raise AlreadyOnWaitlist(event_id, user_id)

            event = await self.event_repo.get_by_id(event_id, for_update=True)
            if event is None:
                raise EventNotFound(event_id)
            if event.status != EventStatus.OPEN:
                raise EventNotOpen(event_id, event.status)

            if event.requires_geolocation and location is None:
                raise LocationRequired()
            validate_location(location)

            if event.waitlist_capacity is not None:
                waiting = await self.waitlist_repo.count_by_event_and_status(event_id, EntryStatus.WAITING)
                if waiting >= event.waitlist_capacity:
                    raise WaitlistFull(event.waitlist_capacity)

            user = await self.user_repo.get_by_id(user_id)
            if user is None:
                raise UserNotFound(user_id)

            entry = WaitingListEntry(
                event_id=event_id,
                user_id=user_id,
                status=EntryStatus.WAITING,
                joined_at=datetime.now(timezone.utc),
                join_latitude=location[0] if location else None,
                join_longitude=location[1] if location else None,
            )
            try:
                await self.waitlist_repo.put(entry)
            except IntegrityError as e:
                raise AlreadyOnWaitlist(event_id, user_id) from e

            user.add_membership("waiting_lists_joined_ids", event_id)
            user.add_membership("registration_history_ids", event_id)

        logger.info(f"User {user_id} joined waitlist for event {event_id}")
        return entry

    async def leave(self, user_id: UUID, event_id: UUID) -> None:
        """Withdraw from a waiting list; the entry is deleted, not kept as CANCELLED"""
        async with self.db_manager.transaction(self.db):
            entry = await self.waitlist_repo.get(event_id, user_id)
            if entry is None:
                raise NotOnWaitlist(event_id, user_id)
            if entry.has_status(EntryStatus.ACCEPTED):
                raise CannotLeaveAfterAccepting()

            await self.waitlist_repo.delete(event_id, user_id)
            await self._update_memberships(user_id, event_id, remove=("waiting_lists_joined_ids",))

        logger.info(f"User {user_id} left waitlist for event {event_id}")

    # Invitations

    async def mark_invited(self, event_id: UUID, user_id: UUID, source: str) -> WaitingListEntry:
        """WAITING -> INVITED without committing; used inside larger units of work"""
        entry = await self._get_entry(event_id, user_id)
        await self._transition(entry, EntryStatus.INVITED)
        INVITATIONS_ISSUED.labels(source=source).inc()
        return entry

    async def invite(self, organizer_id: UUID, event_id: UUID, user_id: UUID) -> WaitingListEntry:
        async with self.db_manager.transaction(self.db):
            event = await self.event_repo.get_by_id(event_id)
            if event is None:
                raise EventNotFound(event_id)
            if event.organizer_id != organizer_id:
                raise NotAuthorized()
            entry = await self.mark_invited(event_id, user_id, source="manual")
        return entry

    async def accept_invite(self, user_id: UUID, event_id: UUID) -> WaitingListEntry:
        """
        INVITED -> ACCEPTED. The slot is taken with a conditional increment
        that commits together with the status change.
        """
        async with self.db_manager.transaction(self.db):
            entry = await self._get_entry(event_id, user_id)
            if not entry.has_status(EntryStatus.INVITED):
                raise InviteNotPending(current_status=entry.status, expected_status=EntryStatus.ACCEPTED)

            event = await self.event_repo.get_by_id(event_id)
            if event is None:
                raise EventNotFound(event_id)
            if event.max_capacity is None:
                raise CapacityNotSet(event_id)
            if not await self.event_repo.increment_capacity(event_id):
                raise EventFull(event.max_capacity)

            await self._transition(entry, EntryStatus.ACCEPTED)
            await self._update_memberships(
                user_id,
                event_id,
                add=("attending_lists_ids",),
                remove=("waiting_lists_joined_ids",)
            )

        logger.info(f"User {user_id} accepted invitation for event {event_id}")
        return entry

    async def decline_invite(self, user_id: UUID, event_id: UUID) -> WaitingListEntry:
        async with self.db_manager.transaction(self.db):
            entry = await self._get_entry(event_id, user_id)
            if not entry.has_status(EntryStatus.INVITED):
                raise InviteNotPending(current_status=entry.status, expected_status=EntryStatus.DECLINED)
            await self._transition(entry, EntryStatus.DECLINED)
            await self._update_memberships(user_id, event_id, remove=("waiting_lists_joined_ids",))

        logger.info(f"User {user_id} declined invitation for event {event_id}")
        return entry

    async def cancel_invite(self, user_id: UUID, event_id: UUID) -> WaitingListEntry:
        """INVITED -> CANCELLED. No replacement is drawn here."""
        async with self.db_manager.transaction(self.db):
            entry = await self._get_entry(event_id, user_id)
            if not entry.has_status(EntryStatus.INVITED):
                raise InviteNotPending(current_status=entry.status, expected_status=EntryStatus.CANCELLED)
            await self._transition(entry, EntryStatus.CANCELLED)
            await self._update_memberships(user_id, event_id, remove=("waiting_lists_joined_ids",))

        logger.info(f"Invitation for user {user_id} to event {event_id} cancelled")
        return entry

    async def cancel_non_registered(
        self,
        event_id: UUID,
        deadline: datetime,
        now: Optional[datetime] = None
    ) -> List[WaitingListEntry]:
        """Cancel every invitee who has not accepted once the deadline has passed"""
        now = now or datetime.now(timezone.utc)
        # Deadlines without an offset are taken as UTC
        if deadline.tzinfo is None:
            deadline = deadline.replace(tzinfo=timezone.utc)
        if now.tzinfo is None:
            now = now.replace(tzinfo=timezone.utc)
        if now < deadline:
            raise DeadlinePending()

        async with self.db_manager.transaction(self.db):
            invited = await self.waitlist_repo.list_by_event_and_status(event_id, EntryStatus.INVITED)
            cancelled = []
            for entry in invited:
                if entry.accepted_at is None:
                    cancelled.append(await self._transition(entry, EntryStatus.CANCELLED))

        logger.info(f"Cancelled {len(cancelled)} unresponsive invitees for event {event_id}")
        return cancelled

    # Listings

    async def get_entry(self, event_id: UUID, user_id: UUID) -> WaitingListEntry:
        return await self._get_entry(event_id, user_id)

    async def get_waitlist_entries(self, event_id: UUID) -> List[WaitingListEntry]:
        return await self.waitlist_repo.list_by_event_and_status(event_id, EntryStatus.WAITING)

    async def get_invited_list(self, event_id: UUID) -> List[WaitingListEntry]:
        return await self.waitlist_repo.list_by_event_and_status(event_id, EntryStatus.INVITED)

    async def get_accepted_list(self, event_id: UUID) -> List[WaitingListEntry]:
        return await self.waitlist_repo.list_by_event_and_status(event_id, EntryStatus.ACCEPTED)

    async def get_declined_list(self, event_id: UUID) -> List[WaitingListEntry]:
        return await self.waitlist_repo.list_by_event_and_status(event_id, EntryStatus.DECLINED)

    async def get_cancelled_list(self, event_id: UUID) -> List[WaitingListEntry]:
        return await self.waitlist_repo.list_by_event_and_status(event_id, EntryStatus.CANCELLED)

    async def get_entries_by_status(self, event_id: UUID, status: EntryStatus) -> List[WaitingListEntry]:
        return await self.waitlist_repo.list_by_event_and_status(event_id, status)

    async def get_waitlist_size(self, event_id: UUID) -> int:
        return await self.waitlist_repo.count_by_event_and_status(event_id, EntryStatus.WAITING)

    async def get_waitlist_counts(self, event_id: UUID) -> Dict[EntryStatus, int]:
        return await self.waitlist_repo.counts_by_event_grouped(event_id)

    async def get_history(self, user_id: UUID) -> List[WaitingListEntry]:
        return await self.waitlist_repo.list_by_user(user_id)

    async def get_waitlist_entries_with_location(self, event_id: UUID) -> List[WaitingListEntry]:
        entries = await self.waitlist_repo.list_by_event(event_id)
        return [entry for entry in entries if entry.join_location is not None]
