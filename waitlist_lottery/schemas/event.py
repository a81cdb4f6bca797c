"""
Event schemas for request/response models
"""

from typing import Dict, Optional
from uuid import UUID
from pydantic import Field

from waitlist_lottery.models.event import EventStatus
from waitlist_lottery.schemas.base import BaseSchema, IDSchema, TimestampSchema


class EventCreate(BaseSchema):
    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    location: Optional[str] = Field(None, max_length=500)
    max_capacity: int = Field(..., ge=1)
    waitlist_capacity: Optional[int] = Field(None, ge=0)
    # YYYY-MM-DD, checked by the event service
    event_start_date: Optional[str] = None
    event_end_date: Optional[str] = None
    registration_start: Optional[str] = None
    registration_end: Optional[str] = None
    requires_geolocation: bool = False


class EventResponse(IDSchema, TimestampSchema):
    title: str
    description: Optional[str] = None
    location: Optional[str] = None
    organizer_id: UUID
    max_capacity: Optional[int] = None
    current_capacity: Optional[int] = None
    waitlist_capacity: Optional[int] = None
    status: EventStatus
    event_start_date: Optional[str] = None
    event_end_date: Optional[str] = None
    registration_start: Optional[str] = None
    registration_end: Optional[str] = None
    requires_geolocation: bool = False
    poster_image_id: Optional[UUID] = None
    qr_code_image_id: Optional[UUID] = None


class GeolocationUpdate(BaseSchema):
    requires_geolocation: bool


class WaitlistCounts(BaseSchema):
    event_id: UUID
    counts: Dict[str, int]
