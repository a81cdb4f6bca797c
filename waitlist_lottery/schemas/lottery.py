"""
Lottery request/response schemas
"""

from typing import List
from uuid import UUID
from pydantic import Field

from waitlist_lottery.schemas.base import BaseSchema


class LotteryRequest(BaseSchema):
    # Range against available slots is checked by the lottery service
    sample_size: int


class LotteryResponse(BaseSchema):
    event_id: UUID
    sample_size: int
    available_slots: int
    winners: List[UUID] = Field(default_factory=list)
    losers: List[UUID] = Field(default_factory=list)
    win_notifications_written: int = 0
    lose_notifications_written: int = 0
