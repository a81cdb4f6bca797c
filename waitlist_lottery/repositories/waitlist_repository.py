"""
Waiting list entry store, keyed by (event_id, user_id)
"""

from typing import Dict, List, Optional
from uuid import UUID
from sqlalchemy import select, delete, func
from sqlalchemy.ext.asyncio import AsyncSession

from waitlist_lottery.models.waitlist import WaitingListEntry, EntryStatus


class WaitlistRepository:

    def __init__(self, db: AsyncSession):
        self.db = db

    @staticmethod
    def _listing_order():
        return (WaitingListEntry.joined_at, WaitingListEntry.created_at, WaitingListEntry.id)

    async def get(self, event_id: UUID, user_id: UUID) -> Optional[WaitingListEntry]:
        result = await self.db.execute(
            select(WaitingListEntry).where(
                WaitingListEntry.event_id == event_id,
                WaitingListEntry.user_id == user_id
            )
        )
        return result.scalar_one_or_none()

    async def put(self, entry: WaitingListEntry) -> WaitingListEntry:
        """Insert or update; uniqueness violations surface as IntegrityError on flush"""
        self.db.add(entry)
        await self.db.flush()
        return entry

    async def delete(self, event_id: UUID, user_id: UUID) -> bool:
        result = await self.db.execute(
            delete(WaitingListEntry).where(
                WaitingListEntry.event_id == event_id,
                WaitingListEntry.user_id == user_id
            )
        )
        return result.rowcount > 0

    async def list_by_event(self, event_id: UUID) -> List[WaitingListEntry]:
        result = await self.db.execute(
            select(WaitingListEntry)
            .where(WaitingListEntry.event_id == event_id)
            .order_by(*self._listing_order())
        )
        return list(result.scalars().all())

    async def list_by_event_and_status(
        self,
        event_id: UUID,
        status: EntryStatus
    ) -> List[WaitingListEntry]:
        result = await self.db.execute(
            select(WaitingListEntry)
            .where(
                WaitingListEntry.event_id == event_id,
                WaitingListEntry.status == status
            )
            .order_by(*self._listing_order())
        )
        return list(result.scalars().all())

    async def count_by_event_and_status(self, event_id: UUID, status: EntryStatus) -> int:
        result = await self.db.execute(
            select(func.count(WaitingListEntry.id)).where(
                WaitingListEntry.event_id == event_id,
                WaitingListEntry.status == status
            )
        )
        return result.scalar() or 0

    async def counts_by_event_grouped(self, event_id: UUID) -> Dict[EntryStatus, int]:
        result = await self.db.execute(
            select(WaitingListEntry.status, func.count(WaitingListEntry.id))
            .where(WaitingListEntry.event_id == event_id)
            .group_by(WaitingListEntry.status)
        )
        counts = {status: 0 for status in EntryStatus}
        for status, count in result.all():
            counts[status] = count
        return counts

    async def list_by_user(self, user_id: UUID) -> List[WaitingListEntry]:
        result = await self.db.execute(
            select(WaitingListEntry)
            .where(WaitingListEntry.user_id == user_id)
            .order_by(*self._listing_order())
        )
        return list(result.scalars().all())
