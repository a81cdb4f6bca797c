"""
Pydantic schemas for request and response validation
"""

from waitlist_lottery.schemas.user import UserCreate, UserResponse
from waitlist_lottery.schemas.event import (
    EventCreate,
    EventResponse,
    GeolocationUpdate,
    WaitlistCounts
)
from waitlist_lottery.schemas.waitlist import (
    JoinLocation,
    JoinRequest,
    InvitationReply,
    InviteRequest,
    CancelNonRegisteredRequest,
    WaitlistEntryResponse,
    InvitationResponseOut,
    EntryList
)
from waitlist_lottery.schemas.lottery import LotteryRequest, LotteryResponse
from waitlist_lottery.schemas.notification import (
    BroadcastRequest,
    InfoRequest,
    NotificationResponse,
    FanOutResponse
)
from waitlist_lottery.schemas.cascade import CascadeResponse, CascadeStepResponse
from waitlist_lottery.schemas.response import (
    ErrorDetail,
    ErrorResponse,
    HealthResponse,
    MessageResponse
)

__all__ = [
    "UserCreate", "UserResponse",
    "EventCreate", "EventResponse", "GeolocationUpdate", "WaitlistCounts",
    "JoinLocation", "JoinRequest", "InvitationReply", "InviteRequest",
    "CancelNonRegisteredRequest", "WaitlistEntryResponse", "InvitationResponseOut", "EntryList",
    "LotteryRequest", "LotteryResponse",
    "BroadcastRequest", "InfoRequest", "NotificationResponse", "FanOutResponse",
    "CascadeResponse", "CascadeStepResponse",
    "ErrorDetail", "ErrorResponse", "HealthResponse", "MessageResponse",
]
