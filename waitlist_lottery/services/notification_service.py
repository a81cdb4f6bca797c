"""
Notification fan-out and inbox operations

Fan-out writes one record per recipient. Recipients are split into batches
that are written concurrently, each in its own transaction; a failed batch
is logged and counted but neither retried nor allowed to stop the others.
"""

import asyncio
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Iterable, List, Optional, Sequence
from uuid import UUID
import logging

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from waitlist_lottery.config import settings
from waitlist_lottery.core.database import DatabaseManager, async_session
from waitlist_lottery.core.exceptions import NotAuthorized, NotificationNotFound
from waitlist_lottery.core.metrics import NOTIFICATIONS_WRITTEN, NOTIFICATION_BATCH_FAILURES
from waitlist_lottery.models.notification import Notification, NotificationType
from waitlist_lottery.models.waitlist import WaitingListEntry, EntryStatus
from waitlist_lottery.repositories.event_repository import EventRepository
from waitlist_lottery.repositories.notification_repository import NotificationRepository
from waitlist_lottery.repositories.waitlist_repository import WaitlistRepository
from waitlist_lottery.services.event_service import EventService

logger = logging.getLogger(__name__)

DEFAULT_EVENT_TITLE = "Event"
WIN_MESSAGE = "You were selected for this event! Please accept or decline the invitation."
LOSE_MESSAGE = "The lottery was run but you were not selected at this time."


@dataclass
class FanOutResult:
    """Outcome of one fan-out: how many records landed and how many did not"""
    notification_type: NotificationType
    requested: int = 0
    written: int = 0
    failed_recipients: List[UUID] = field(default_factory=list)

    @property
    def complete(self) -> bool:
        return not self.failed_recipients


def _chunks(items: Sequence, size: int) -> Iterable[Sequence]:
    for start in range(0, len(items), size):
        yield items[start:start + size]


class NotificationService:

    def __init__(
        self,
        db: AsyncSession,
        session_factory: async_sessionmaker = async_session,
        batch_size: Optional[int] = None
    ):
        self.db = db
        self.db_manager = DatabaseManager(session_factory)
        self.batch_size = batch_size or settings.NOTIFICATION_BATCH_SIZE
        self.event_repo = EventRepository(db)
        self.notification_repo = NotificationRepository(db)
        self.waitlist_repo = WaitlistRepository(db)
        self.event_service = EventService(db)

    async def _event_title(self, event_id: UUID) -> str:
        event = await self.event_repo.get_by_id(event_id)
        return event.title if event is not None else DEFAULT_EVENT_TITLE

    async def _write_batch(self, records: List[Notification], notification_type: NotificationType) -> bool:
        try:
            async with self.db_manager.atomic_transaction() as session:
                await NotificationRepository(session).create_many(records)
        except Exception as e:
            NOTIFICATION_BATCH_FAILURES.labels(type=notification_type.value).inc()
            logger.error(
                f"Failed to write {len(records)} {notification_type.value} notifications: {e}",
                extra={"recipients": [str(r.recipient_id) for r in records]}
            )
            return False

        NOTIFICATIONS_WRITTEN.labels(type=notification_type.value).inc(len(records))
        return True

    async def fan_out(
        self,
        event_id: Optional[UUID],
        recipient_ids: Sequence[UUID],
        notification_type: NotificationType,
        title: Optional[str],
        message: str
    ) -> FanOutResult:
        """Create one notification per recipient, batches written concurrently"""
        result = FanOutResult(notification_type=notification_type, requested=len(recipient_ids))
        if not recipient_ids:
            return result

        issue_date = datetime.now(timezone.utc)
        batches = [
            [
                Notification(
                    recipient_id=recipient_id,
                    event_id=event_id,
                    type=notification_type,
                    title=title,
                    message=message,
                    issue_date=issue_date,
                    dismissed=False,
                )
                for recipient_id in chunk
            ]
            for chunk in _chunks(list(recipient_ids), self.batch_size)
        ]

        outcomes = await asyncio.gather(
            *(self._write_batch(batch, notification_type) for batch in batches)
        )
        for batch, ok in zip(batches, outcomes):
            if ok:
                result.written += len(batch)
            else:
                result.failed_recipients.extend(record.recipient_id for record in batch)

        if not result.complete:
            logger.warning(
                f"{notification_type.value} fan-out for event {event_id} reached "
                f"{result.written}/{result.requested} recipients"
            )
        return result

    # Lottery outcomes

    async def notify_winners(
        self,
        event_id: UUID,
        winners: Sequence[WaitingListEntry],
        event_title: Optional[str] = None
    ) -> FanOutResult:
        event_title = event_title or await self._event_title(event_id)
        return await self.fan_out(
            event_id,
            [entry.user_id for entry in winners],
            NotificationType.WIN,
            f"{event_title}: You have been selected!",
            WIN_MESSAGE,
        )

    async def notify_losers(
        self,
        event_id: UUID,
        losers: Sequence[WaitingListEntry],
        event_title: Optional[str] = None
    ) -> FanOutResult:
        event_title = event_title or await self._event_title(event_id)
        return await self.fan_out(
            event_id,
            [entry.user_id for entry in losers],
            NotificationType.LOSE,
            f"{event_title}: Lottery Results",
            LOSE_MESSAGE,
        )

    # Organizer broadcasts

    async def _broadcast(
        self,
        organizer_id: UUID,
        event_id: UUID,
        status: EntryStatus,
        title: str,
        message: str
    ) -> FanOutResult:
        await self.event_service.get_owned_event(organizer_id, event_id)
        entries = await self.waitlist_repo.list_by_event_and_status(event_id, status)
        return await self.fan_out(
            event_id,
            [entry.user_id for entry in entries],
            NotificationType.BROADCAST,
            title,
            message,
        )

    async def broadcast_to_waitlist(self, organizer_id: UUID, event_id: UUID, title: str, message: str) -> FanOutResult:
        return await self._broadcast(organizer_id, event_id, EntryStatus.WAITING, title, message)

    async def broadcast_to_invited(self, organizer_id: UUID, event_id: UUID, title: str, message: str) -> FanOutResult:
        return await self._broadcast(organizer_id, event_id, EntryStatus.INVITED, title, message)

    async def broadcast_to_cancelled(self, organizer_id: UUID, event_id: UUID, title: str, message: str) -> FanOutResult:
        return await self._broadcast(organizer_id, event_id, EntryStatus.CANCELLED, title, message)

    async def send_info_to_user(self, event_id: Optional[UUID], user_id: UUID, message: str) -> Notification:
        title = await self._event_title(event_id) if event_id else None
        notification = Notification(
            recipient_id=user_id,
            event_id=event_id,
            type=NotificationType.INFO,
            title=title,
            message=message,
            issue_date=datetime.now(timezone.utc),
            dismissed=False,
        )
        async with self.db_manager.transaction(self.db):
            await self.notification_repo.create_many([notification])
        NOTIFICATIONS_WRITTEN.labels(type=NotificationType.INFO.value).inc()
        return notification

    async def send_info_as_organizer(
        self,
        organizer_id: UUID,
        event_id: UUID,
        user_id: UUID,
        message: str
    ) -> Notification:
        """Direct message from an event's organizer to one user"""
        await self.event_service.get_owned_event(organizer_id, event_id)
        return await self.send_info_to_user(event_id, user_id, message)

    # Inbox

    async def list_user_notifications(
        self,
        user_id: UUID,
        limit: Optional[int] = None,
        start_after_id: Optional[UUID] = None
    ) -> List[Notification]:
        start_after = None
        if start_after_id is not None:
            start_after = await self.notification_repo.get_by_id(start_after_id)
            if start_after is None or start_after.recipient_id != user_id:
                raise NotificationNotFound(start_after_id)
        return await self.notification_repo.list_by_recipient(
            user_id,
            limit or settings.NOTIFICATION_PAGE_SIZE,
            start_after
        )

    async def get_notification_logs(self, organizer_id: UUID, event_id: UUID) -> List[Notification]:
        await self.event_service.get_owned_event(organizer_id, event_id)
        return await self.notification_repo.list_by_event(event_id, settings.NOTIFICATION_LOG_LIMIT)

    async def dismiss_notification(self, notification_id: UUID, user_id: UUID) -> Notification:
        """Mark a notification dismissed; repeating the call changes nothing"""
        async with self.db_manager.transaction(self.db):
            notification = await self.notification_repo.get_by_id(notification_id)
            if notification is None:
                raise NotificationNotFound(notification_id)
            if notification.recipient_id != user_id:
                raise NotAuthorized("Notification belongs to another user")
            if await self.notification_repo.mark_dismissed(notification_id):
                logger.debug(f"Notification {notification_id} dismissed")
        return notification
