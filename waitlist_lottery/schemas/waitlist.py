"""
Waiting list schemas
"""

from typing import List, Optional
from datetime import datetime
from uuid import UUID
from pydantic import Field

from waitlist_lottery.models.waitlist import EntryStatus
from waitlist_lottery.schemas.base import BaseSchema, IDSchema


class JoinLocation(BaseSchema):
    latitude: float
    longitude: float


class JoinRequest(BaseSchema):
    location: Optional[JoinLocation] = None


class InvitationReply(BaseSchema):
    accepted: bool


class InviteRequest(BaseSchema):
    user_id: UUID


class CancelNonRegisteredRequest(BaseSchema):
    deadline: datetime


class WaitlistEntryResponse(IDSchema):
    event_id: UUID
    user_id: UUID
    status: EntryStatus
    joined_at: Optional[datetime] = None
    invited_at: Optional[datetime] = None
    accepted_at: Optional[datetime] = None
    declined_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None
    join_latitude: Optional[float] = None
    join_longitude: Optional[float] = None


class InvitationResponseOut(BaseSchema):
    entry: WaitlistEntryResponse
    replacement: Optional[WaitlistEntryResponse] = None


class EntryList(BaseSchema):
    event_id: UUID
    status: Optional[EntryStatus] = None
    total: int = Field(..., ge=0)
    entries: List[WaitlistEntryResponse]
