"""
Database models
"""

from waitlist_lottery.models.user import User, UserRole
from waitlist_lottery.models.event import Event, EventStatus
from waitlist_lottery.models.waitlist import WaitingListEntry, EntryStatus
from waitlist_lottery.models.notification import Notification, NotificationType
from waitlist_lottery.models.image import Image, ImageType

__all__ = [
    "User",
    "UserRole",
    "Event",
    "EventStatus",
    "WaitingListEntry",
    "EntryStatus",
    "Notification",
    "NotificationType",
    "Image",
    "ImageType",
]
