"""
Event store
"""

from typing import Optional
from uuid import UUID
from sqlalchemy import select, update, delete
from sqlalchemy.ext.asyncio import AsyncSession

from waitlist_lottery.models.event import Event


class EventRepository:

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_by_id(self, event_id: UUID, for_update: bool = False) -> Optional[Event]:
        stmt = select(Event).where(Event.id == event_id)
        if for_update:
            stmt = stmt.with_for_update()
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def create(self, event: Event) -> Event:
        self.db.add(event)
        await self.db.flush()
        return event

    async def increment_capacity(self, event_id: UUID) -> bool:
        """
        Take one attendee slot. Check and increment are a single statement,
        so concurrent accepts cannot push current_capacity past max_capacity.
        """
        result = await self.db.execute(
            update(Event)
            .where(
                Event.id == event_id,
                Event.max_capacity.is_not(None),
                Event.current_capacity < Event.max_capacity
            )
            .values(current_capacity=Event.current_capacity + 1)
            .execution_options(synchronize_session="fetch")
        )
        return result.rowcount == 1

    async def decrement_capacity(self, event_id: UUID) -> bool:
        """Release one attendee slot, never going below zero"""
        result = await self.db.execute(
            update(Event)
            .where(
                Event.id == event_id,
                Event.current_capacity > 0
            )
            .values(current_capacity=Event.current_capacity - 1)
            .execution_options(synchronize_session="fetch")
        )
        return result.rowcount == 1

    async def delete(self, event_id: UUID) -> bool:
        result = await self.db.execute(delete(Event).where(Event.id == event_id))
        return result.rowcount > 0
