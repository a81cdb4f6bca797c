"""
Async persistence adapters
"""

from waitlist_lottery.repositories.waitlist_repository import WaitlistRepository
from waitlist_lottery.repositories.event_repository import EventRepository
from waitlist_lottery.repositories.user_repository import UserRepository
from waitlist_lottery.repositories.notification_repository import NotificationRepository
from waitlist_lottery.repositories.image_repository import ImageRepository

__all__ = [
    "WaitlistRepository",
    "EventRepository",
    "UserRepository",
    "NotificationRepository",
    "ImageRepository",
]
