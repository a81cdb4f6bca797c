"""
User model
"""

from sqlalchemy import Column, String, Enum, JSON
import enum

from waitlist_lottery.models.base import BaseModel


class UserRole(str, enum.Enum):
    ENTRANT = "entrant"
    ORGANIZER = "organizer"
    ADMIN = "admin"


class User(BaseModel):
    """
    User profile with denormalized event membership lists.

    The id lists mirror the authoritative waiting list entries and events;
    the waitlist and cascade services keep them in sync.
    """
    __tablename__ = "users"

    username = Column(String(255), nullable=False)
    email = Column(String(255), index=True)
    role = Column(
        Enum(UserRole),
        default=UserRole.ENTRANT,
        nullable=False
    )

    waiting_lists_joined_ids = Column(JSON, default=list, nullable=False)
    attending_lists_ids = Column(JSON, default=list, nullable=False)
    registration_history_ids = Column(JSON, default=list, nullable=False)
    events_created_ids = Column(JSON, default=list, nullable=False)

    def add_membership(self, list_name: str, event_id) -> None:
        ids = list(getattr(self, list_name) or [])
        if str(event_id) not in ids:
            # Reassign so the JSON column is flagged dirty
            setattr(self, list_name, ids + [str(event_id)])

    def remove_membership(self, list_name: str, event_id) -> bool:
        ids = list(getattr(self, list_name) or [])
        if str(event_id) in ids:
            ids.remove(str(event_id))
            setattr(self, list_name, ids)
            return True
        return False

    def strip_event(self, event_id) -> None:
        """Remove an event from every membership list"""
        for list_name in MEMBERSHIP_LISTS:
            self.remove_membership(list_name, event_id)

    def __repr__(self):
        return f"<User(id={self.id}, username={self.username}, role={self.role})>"


MEMBERSHIP_LISTS = (
    "waiting_lists_joined_ids",
    "attending_lists_ids",
    "registration_history_ids",
)
