"""
Notification model
"""

from sqlalchemy import Column, String, ForeignKey, Enum, Text, DateTime, Boolean, Uuid
import enum

from waitlist_lottery.models.base import BaseModel


class NotificationType(str, enum.Enum):
    WIN = "win"
    LOSE = "lose"
    BROADCAST = "broadcast"
    INFO = "info"


class Notification(BaseModel):
    """
    Fan-out record, one per recipient. Only ``dismissed`` ever changes.
    """
    __tablename__ = "notifications"

    recipient_id = Column(Uuid(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    event_id = Column(Uuid(as_uuid=True), ForeignKey("events.id", ondelete="SET NULL"), index=True)
    type = Column(
        Enum(NotificationType),
        nullable=False,
        index=True
    )
    title = Column(String(255))
    message = Column(Text, nullable=False)
    issue_date = Column(DateTime(timezone=True), nullable=False, index=True)
    dismissed = Column(Boolean, default=False, nullable=False)

    def __repr__(self):
        return f"<Notification(id={self.id}, recipient_id={self.recipient_id}, type={self.type})>"
