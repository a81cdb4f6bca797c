"""
User schemas
"""

from typing import List, Optional
from pydantic import Field

from waitlist_lottery.models.user import UserRole
from waitlist_lottery.schemas.base import IDSchema, TimestampSchema, BaseSchema


class UserCreate(BaseSchema):
    username: str = Field(..., min_length=1, max_length=255)
    email: Optional[str] = Field(None, max_length=255)
    role: UserRole = UserRole.ENTRANT


class UserResponse(IDSchema, TimestampSchema):
    username: str
    email: Optional[str] = None
    role: UserRole
    waiting_lists_joined_ids: List[str] = []
    attending_lists_ids: List[str] = []
    registration_history_ids: List[str] = []
    events_created_ids: List[str] = []
