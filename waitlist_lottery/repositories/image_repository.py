"""
Event media store
"""

from typing import Optional
from uuid import UUID
from sqlalchemy import select, delete
from sqlalchemy.ext.asyncio import AsyncSession

from waitlist_lottery.models.image import Image, ImageType


class ImageRepository:

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_for_event(self, event_id: UUID, image_type: ImageType) -> Optional[Image]:
        result = await self.db.execute(
            select(Image).where(
                Image.event_id == event_id,
                Image.image_type == image_type
            )
        )
        return result.scalars().first()

    async def create(self, image: Image) -> Image:
        self.db.add(image)
        await self.db.flush()
        return image

    async def delete_for_event(self, event_id: UUID, image_type: ImageType) -> int:
        result = await self.db.execute(
            delete(Image).where(
                Image.event_id == event_id,
                Image.image_type == image_type
            )
        )
        return result.rowcount
