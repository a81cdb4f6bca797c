"""
Event model
"""

from sqlalchemy import Column, String, Integer, Text, Boolean, ForeignKey, Enum, Uuid, CheckConstraint
import enum

from waitlist_lottery.models.base import BaseModel


class EventStatus(str, enum.Enum):
    DRAFT = "draft"
    OPEN = "open"
    CLOSED = "closed"
    CANCELLED = "cancelled"


class Event(BaseModel):
    """
    Capacity-limited event with a lottery-driven waiting list
    """
    __tablename__ = "events"
    __table_args__ = (
        CheckConstraint("current_capacity >= 0", name="chk_events_capacity_non_negative"),
        CheckConstraint("current_capacity <= max_capacity", name="chk_events_no_overbooking"),
        CheckConstraint("waitlist_capacity >= 0", name="chk_events_waitlist_capacity"),
    )

    title = Column(String(255), nullable=False, index=True)
    description = Column(Text)
    location = Column(String(255))
    organizer_id = Column(Uuid(as_uuid=True), ForeignKey("users.id"), nullable=False, index=True)

    # Hard attendee cap and count of ACCEPTED entries
    max_capacity = Column(Integer)
    current_capacity = Column(Integer, default=0)
    # Null means the WAITING pool is unbounded
    waitlist_capacity = Column(Integer)

    status = Column(
        Enum(EventStatus),
        default=EventStatus.OPEN,
        nullable=False,
        index=True
    )
    event_start_date = Column(String(10))
    event_end_date = Column(String(10))
    registration_start = Column(String(10))
    registration_end = Column(String(10))

    requires_geolocation = Column(Boolean, default=False, nullable=False)
    poster_image_id = Column(Uuid(as_uuid=True))
    qr_code_image_id = Column(Uuid(as_uuid=True))

    @property
    def available_slots(self) -> int:
        return (self.max_capacity or 0) - (self.current_capacity or 0)

    def __repr__(self):
        return (
            f"<Event(id={self.id}, title={self.title}, "
            f"capacity={self.current_capacity}/{self.max_capacity})>"
        )
