"""
Event poster and QR code references

Only the image records and the event's pointers to them are kept here; the
binary content lives in external storage.
"""

from typing import Optional
from uuid import UUID
import logging

from sqlalchemy.ext.asyncio import AsyncSession

from waitlist_lottery.core.database import DatabaseManager
from waitlist_lottery.models.image import Image, ImageType
from waitlist_lottery.repositories.image_repository import ImageRepository
from waitlist_lottery.services.event_service import EventService

logger = logging.getLogger(__name__)

EVENT_IMAGE_FIELDS = {
    ImageType.POSTER: "poster_image_id",
    ImageType.QR_CODE: "qr_code_image_id",
}


class MediaService:

    def __init__(self, db: AsyncSession):
        self.db = db
        self.db_manager = DatabaseManager()
        self.image_repo = ImageRepository(db)
        self.event_service = EventService(db)

    async def _attach(self, organizer_id: UUID, event_id: UUID, image_type: ImageType, url: str) -> Image:
        async with self.db_manager.transaction(self.db):
            event = await self.event_service.get_owned_event(organizer_id, event_id)
            await self.image_repo.delete_for_event(event_id, image_type)
            image = await self.image_repo.create(Image(
                event_id=event_id,
                image_type=image_type,
                url=url,
                uploaded_by=organizer_id,
            ))
            setattr(event, EVENT_IMAGE_FIELDS[image_type], image.id)
        return image

    async def attach_poster(self, organizer_id: UUID, event_id: UUID, url: str) -> Image:
        return await self._attach(organizer_id, event_id, ImageType.POSTER, url)

    async def attach_qr_code(self, organizer_id: UUID, event_id: UUID, url: str) -> Image:
        return await self._attach(organizer_id, event_id, ImageType.QR_CODE, url)

    async def get_event_image(self, event_id: UUID, image_type: ImageType) -> Optional[Image]:
        return await self.image_repo.get_for_event(event_id, image_type)

    async def _delete(self, event_id: UUID, image_type: ImageType) -> bool:
        async with self.db_manager.transaction(self.db):
            removed = await self.image_repo.delete_for_event(event_id, image_type)
            event = await self.event_service.event_repo.get_by_id(event_id)
            if event is not None:
                setattr(event, EVENT_IMAGE_FIELDS[image_type], None)
        if removed:
            logger.info(f"Deleted {image_type.value} for event {event_id}")
        return removed > 0

    async def delete_event_poster(self, event_id: UUID) -> bool:
        return await self._delete(event_id, ImageType.POSTER)

    async def delete_event_qr_code(self, event_id: UUID) -> bool:
        return await self._delete(event_id, ImageType.QR_CODE)
