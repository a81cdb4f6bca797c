"""
Notification store
"""

from typing import List, Optional
from uuid import UUID
from sqlalchemy import select, update, delete, or_, and_
from sqlalchemy.ext.asyncio import AsyncSession

from waitlist_lottery.models.notification import Notification


class NotificationRepository:

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_by_id(self, notification_id: UUID) -> Optional[Notification]:
        result = await self.db.execute(
            select(Notification).where(Notification.id == notification_id)
        )
        return result.scalar_one_or_none()

    async def create_many(self, notifications: List[Notification]) -> List[Notification]:
        self.db.add_all(notifications)
        await self.db.flush()
        return notifications

    async def mark_dismissed(self, notification_id: UUID) -> bool:
        """Set dismissed; returns False when it was already set"""
        result = await self.db.execute(
            update(Notification)
            .where(
                Notification.id == notification_id,
                Notification.dismissed.is_(False)
            )
            .values(dismissed=True)
            .execution_options(synchronize_session="fetch")
        )
        return result.rowcount == 1

    async def list_by_recipient(
        self,
        recipient_id: UUID,
        limit: int,
        start_after: Optional[Notification] = None
    ) -> List[Notification]:
        """Newest first; ``start_after`` is the last row of the previous page"""
        stmt = select(Notification).where(Notification.recipient_id == recipient_id)
        if start_after is not None:
            stmt = stmt.where(
                or_(
                    Notification.issue_date < start_after.issue_date,
                    and_(
                        Notification.issue_date == start_after.issue_date,
                        Notification.id < start_after.id
                    )
                )
            )
        stmt = stmt.order_by(Notification.issue_date.desc(), Notification.id.desc()).limit(limit)
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def list_by_event(self, event_id: UUID, limit: int) -> List[Notification]:
        result = await self.db.execute(
            select(Notification)
            .where(Notification.event_id == event_id)
            .order_by(Notification.issue_date.desc(), Notification.id.desc())
            .limit(limit)
        )
        return list(result.scalars().all())

    async def delete_all_for_event(self, event_id: UUID) -> int:
        result = await self.db.execute(
            delete(Notification).where(Notification.event_id == event_id)
        )
        return result.rowcount

    async def delete_all_for_user(self, user_id: UUID) -> int:
        result = await self.db.execute(
            delete(Notification).where(Notification.recipient_id == user_id)
        )
        return result.rowcount
