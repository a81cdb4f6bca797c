"""
Invitation responses and decline backfill

A decline frees an invitation, which is handed straight to the first WAITING
entry in listing order. This replacement is deliberately not a random draw;
random selection belongs to the lottery only. Organizer cancellation frees
an invitation too, but refilling it is left to a new lottery run.
"""

import logging
from dataclasses import dataclass
from typing import Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from waitlist_lottery.core.database import DatabaseManager, async_session
from waitlist_lottery.core.exceptions import EntryNotFound
from waitlist_lottery.models.waitlist import WaitingListEntry, EntryStatus
from waitlist_lottery.repositories.waitlist_repository import WaitlistRepository
from waitlist_lottery.services.event_service import EventService
from waitlist_lottery.services.notification_service import FanOutResult, NotificationService
from waitlist_lottery.services.waitlist_service import WaitlistService

logger = logging.getLogger(__name__)


@dataclass
class InvitationResponse:
    entry: WaitingListEntry
    replacement: Optional[WaitingListEntry] = None
    replacement_notification: Optional[FanOutResult] = None


class InvitationService:

    def __init__(self, db: AsyncSession, session_factory: async_sessionmaker = async_session):
        self.db = db
        self.db_manager = DatabaseManager(session_factory)
        self.waitlist_repo = WaitlistRepository(db)
        self.event_service = EventService(db)
        self.waitlist_service = WaitlistService(db)
        self.notification_service = NotificationService(db, session_factory)

    async def respond_to_invitation(self, event_id: UUID, user_id: UUID, accepted: bool) -> InvitationResponse:
        if await self.waitlist_repo.get(event_id, user_id) is None:
            raise EntryNotFound(event_id, user_id)

        if accepted:
            entry = await self.waitlist_service.accept_invite(user_id, event_id)
            return InvitationResponse(entry=entry)

        entry = await self.waitlist_service.decline_invite(user_id, event_id)
        replacement = await self.select_replacement_from_waitlist(event_id)
        if replacement is None:
            logger.info(f"No waiting entries left to backfill event {event_id}")
            return InvitationResponse(entry=entry)

        notification = await self.notification_service.notify_winners(event_id, [replacement])
        return InvitationResponse(
            entry=entry,
            replacement=replacement,
            replacement_notification=notification
        )

    async def select_replacement_from_waitlist(self, event_id: UUID) -> Optional[WaitingListEntry]:
        """Invite the first WAITING entry in listing order, if there is one"""
        async with self.db_manager.transaction(self.db):
            waiting = await self.waitlist_repo.list_by_event_and_status(event_id, EntryStatus.WAITING)
            if not waiting:
                return None
            replacement = await self.waitlist_service.mark_invited(
                event_id, waiting[0].user_id, source="backfill"
            )

        logger.info(f"User {replacement.user_id} invited to event {event_id} as a replacement")
        return replacement

    async def cancel_invite(self, organizer_id: UUID, event_id: UUID, user_id: UUID) -> WaitingListEntry:
        """Organizer cancels a pending invitation; no replacement is drawn"""
        await self.event_service.get_owned_event(organizer_id, event_id)
        return await self.waitlist_service.cancel_invite(user_id, event_id)
