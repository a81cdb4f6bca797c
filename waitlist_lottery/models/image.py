"""
Event media (poster, QR code) records
"""

from sqlalchemy import Column, String, ForeignKey, Enum, Uuid
import enum

from waitlist_lottery.models.base import BaseModel


class ImageType(str, enum.Enum):
    POSTER = "poster"
    QR_CODE = "qr_code"


class Image(BaseModel):
    """
    Media reference attached to an event
    """
    __tablename__ = "images"

    event_id = Column(Uuid(as_uuid=True), ForeignKey("events.id", ondelete="CASCADE"), nullable=False, index=True)
    image_type = Column(Enum(ImageType), nullable=False)
    url = Column(String(1024))
    uploaded_by = Column(Uuid(as_uuid=True))

    def __repr__(self):
        return f"<Image(id={self.id}, event_id={self.event_id}, type={self.image_type})>"
