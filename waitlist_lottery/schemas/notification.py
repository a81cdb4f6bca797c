"""
Notification schemas for request/response models
"""

from typing import Optional, List
from datetime import datetime
from uuid import UUID
from pydantic import Field

from waitlist_lottery.models.notification import NotificationType
from waitlist_lottery.schemas.base import BaseSchema, IDSchema


class BroadcastRequest(BaseSchema):
    title: str = Field(..., min_length=1, max_length=255)
    message: str = Field(..., min_length=1, max_length=5000)


class InfoRequest(BaseSchema):
    user_id: UUID
    event_id: UUID
    message: str = Field(..., min_length=1, max_length=5000)


class NotificationResponse(IDSchema):
    recipient_id: UUID
    event_id: Optional[UUID] = None
    type: NotificationType
    title: Optional[str] = None
    message: str
    issue_date: datetime
    dismissed: bool


class FanOutResponse(BaseSchema):
    type: NotificationType
    requested: int
    written: int
    failed_recipients: List[UUID] = Field(default_factory=list)
