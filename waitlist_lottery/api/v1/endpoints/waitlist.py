"""
Entrant waiting list endpoints
"""

from typing import Any, Optional
from uuid import UUID
from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from waitlist_lottery.core.database import get_session, get_session_factory
from waitlist_lottery.core.security import get_current_user_id
from waitlist_lottery.schemas.response import MessageResponse
from waitlist_lottery.schemas.waitlist import (
    InvitationReply,
    InvitationResponseOut,
    JoinRequest,
    WaitlistEntryResponse,
)
from waitlist_lottery.services.invitation_service import InvitationService
from waitlist_lottery.services.waitlist_service import WaitlistService

router = APIRouter()


@router.post("/{event_id}/join", response_model=WaitlistEntryResponse, status_code=status.HTTP_201_CREATED)
async def join_waitlist(
    event_id: UUID,
    payload: Optional[JoinRequest] = None,
    user_id: UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_session)
) -> Any:
    location = None
    if payload is not None and payload.location is not None:
        location = (payload.location.latitude, payload.location.longitude)
    return await WaitlistService(db).join(user_id, event_id, location)


@router.delete("/{event_id}", response_model=MessageResponse)
async def leave_waitlist(
    event_id: UUID,
    user_id: UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_session)
) -> Any:
    await WaitlistService(db).leave(user_id, event_id)
    return MessageResponse(message="Left waitlist")


@router.get("/{event_id}", response_model=WaitlistEntryResponse)
async def get_my_entry(
    event_id: UUID,
    user_id: UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_session)
) -> Any:
    return await WaitlistService(db).get_entry(event_id, user_id)


@router.post("/{event_id}/respond", response_model=InvitationResponseOut)
async def respond_to_invitation(
    event_id: UUID,
    payload: InvitationReply,
    user_id: UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_session),
    session_factory: async_sessionmaker = Depends(get_session_factory)
) -> Any:
    """
    Accept or decline an invitation. A decline hands the freed invitation
    to the next waiting entrant.
    """
    response = await InvitationService(db, session_factory).respond_to_invitation(
        event_id, user_id, payload.accepted
    )
    return InvitationResponseOut(entry=response.entry, replacement=response.replacement)
