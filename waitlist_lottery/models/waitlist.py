"""
Waiting list entry model and its lifecycle
"""

from sqlalchemy import Column, Integer, Float, ForeignKey, DateTime, Enum, UniqueConstraint, Uuid
import enum

from waitlist_lottery.models.base import BaseModel


class EntryStatus(str, enum.Enum):
    WAITING = "waiting"
    INVITED = "invited"
    ACCEPTED = "accepted"
    DECLINED = "declined"
    CANCELLED = "cancelled"


# WAITING -> INVITED -> {ACCEPTED, DECLINED}; WAITING/INVITED -> CANCELLED.
# Nothing ever transitions back into WAITING.
ALLOWED_TRANSITIONS = {
    EntryStatus.WAITING: frozenset({EntryStatus.INVITED, EntryStatus.CANCELLED}),
    EntryStatus.INVITED: frozenset({EntryStatus.ACCEPTED, EntryStatus.DECLINED, EntryStatus.CANCELLED}),
    EntryStatus.ACCEPTED: frozenset(),
    EntryStatus.DECLINED: frozenset(),
    EntryStatus.CANCELLED: frozenset(),
}

TERMINAL_STATUSES = frozenset(
    status for status, targets in ALLOWED_TRANSITIONS.items() if not targets
)

# Timestamp column stamped by the transition into each status
TRANSITION_TIMESTAMPS = {
    EntryStatus.WAITING: "joined_at",
    EntryStatus.INVITED: "invited_at",
    EntryStatus.ACCEPTED: "accepted_at",
    EntryStatus.DECLINED: "declined_at",
    EntryStatus.CANCELLED: "cancelled_at",
}


class WaitingListEntry(BaseModel):
    """
    One entry per (event, user) pair
    """
    __tablename__ = "waiting_list_entries"
    __table_args__ = (
        UniqueConstraint('event_id', 'user_id', name='uq_event_user_waitlist'),
    )

    event_id = Column(Uuid(as_uuid=True), ForeignKey("events.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Uuid(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    status = Column(
        Enum(EntryStatus),
        default=EntryStatus.WAITING,
        nullable=False,
        index=True
    )

    joined_at = Column(DateTime(timezone=True))
    invited_at = Column(DateTime(timezone=True))
    accepted_at = Column(DateTime(timezone=True))
    declined_at = Column(DateTime(timezone=True))
    cancelled_at = Column(DateTime(timezone=True))

    join_latitude = Column(Float)
    join_longitude = Column(Float)

    version = Column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version}

    @property
    def join_location(self):
        if self.join_latitude is None or self.join_longitude is None:
            return None
        return (self.join_latitude, self.join_longitude)

    def has_status(self, status: EntryStatus) -> bool:
        return self.status == status

    def can_transition_to(self, target: EntryStatus) -> bool:
        return target in ALLOWED_TRANSITIONS[self.status]

    def __repr__(self):
        return (
            f"<WaitingListEntry(id={self.id}, event_id={self.event_id}, "
            f"user_id={self.user_id}, status={self.status})>"
        )
