"""
Event management endpoints

Organizer operations: event creation, listings by status, the lottery,
invitation management and broadcasts.
"""

from typing import Any, List, Optional
from uuid import UUID
import logging
from fastapi import APIRouter, Depends, status, Query
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from waitlist_lottery.core.database import get_session, get_session_factory
from waitlist_lottery.core.exceptions import ValidationError
from waitlist_lottery.core.security import get_current_user_id
from waitlist_lottery.models.waitlist import EntryStatus
from waitlist_lottery.schemas.event import EventCreate, EventResponse, GeolocationUpdate, WaitlistCounts
from waitlist_lottery.schemas.lottery import LotteryRequest, LotteryResponse
from waitlist_lottery.schemas.notification import BroadcastRequest, FanOutResponse, NotificationResponse
from waitlist_lottery.schemas.waitlist import (
    CancelNonRegisteredRequest,
    EntryList,
    InviteRequest,
    WaitlistEntryResponse,
)
from waitlist_lottery.services.event_service import EventService
from waitlist_lottery.services.invitation_service import InvitationService
from waitlist_lottery.services.lottery_service import LotteryService
from waitlist_lottery.services.notification_service import FanOutResult, NotificationService
from waitlist_lottery.services.waitlist_service import WaitlistService

router = APIRouter()
logger = logging.getLogger(__name__)


def _fan_out_response(result: FanOutResult) -> FanOutResponse:
    return FanOutResponse(
        type=result.notification_type,
        requested=result.requested,
        written=result.written,
        failed_recipients=result.failed_recipients,
    )


@router.post("/", response_model=EventResponse, status_code=status.HTTP_201_CREATED)
async def create_event(
    payload: EventCreate,
    organizer_id: UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_session)
) -> Any:
    return await EventService(db).create_event(organizer_id, **payload.model_dump())


@router.get("/{event_id}", response_model=EventResponse)
async def get_event(event_id: UUID, db: AsyncSession = Depends(get_session)) -> Any:
    return await EventService(db).get_event(event_id)


@router.put("/{event_id}/geolocation", response_model=EventResponse)
async def set_geolocation_requirement(
    event_id: UUID,
    payload: GeolocationUpdate,
    organizer_id: UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_session)
) -> Any:
    return await EventService(db).set_geolocation_requirement(
        organizer_id, event_id, payload.requires_geolocation
    )


@router.post("/{event_id}/publish", response_model=EventResponse)
async def publish_event(
    event_id: UUID,
    organizer_id: UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_session)
) -> Any:
    return await EventService(db).publish_event(organizer_id, event_id)


@router.post("/{event_id}/close", response_model=EventResponse)
async def close_event(
    event_id: UUID,
    organizer_id: UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_session)
) -> Any:
    return await EventService(db).close_event(organizer_id, event_id)


@router.post("/{event_id}/cancel", response_model=EventResponse)
async def cancel_event(
    event_id: UUID,
    organizer_id: UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_session)
) -> Any:
    return await EventService(db).cancel_event(organizer_id, event_id)


# Waiting list views

@router.get("/{event_id}/counts", response_model=WaitlistCounts)
async def get_waitlist_counts(event_id: UUID, db: AsyncSession = Depends(get_session)) -> Any:
    await EventService(db).get_event(event_id)
    counts = await WaitlistService(db).get_waitlist_counts(event_id)
    return WaitlistCounts(event_id=event_id, counts={s.value: n for s, n in counts.items()})


@router.get("/{event_id}/entries", response_model=EntryList)
async def list_entries(
    event_id: UUID,
    entry_status: Optional[EntryStatus] = Query(None, alias="status"),
    db: AsyncSession = Depends(get_session)
) -> Any:
    """
    Entries of an event, optionally filtered by status, in listing order
    """
    await EventService(db).get_event(event_id)
    service = WaitlistService(db)
    if entry_status is None:
        entries = await service.waitlist_repo.list_by_event(event_id)
    else:
        entries = await service.get_entries_by_status(event_id, entry_status)
    return EntryList(event_id=event_id, status=entry_status, total=len(entries), entries=entries)


@router.get("/{event_id}/entries/located", response_model=List[WaitlistEntryResponse])
async def list_located_entries(
    event_id: UUID,
    organizer_id: UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_session)
) -> Any:
    await EventService(db).get_owned_event(organizer_id, event_id)
    return await WaitlistService(db).get_waitlist_entries_with_location(event_id)


# Allocation

@router.post("/{event_id}/lottery", response_model=LotteryResponse)
async def run_lottery(
    event_id: UUID,
    payload: LotteryRequest,
    organizer_id: UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_session),
    session_factory: async_sessionmaker = Depends(get_session_factory)
) -> Any:
    result = await LotteryService(db, session_factory).run_lottery(
        organizer_id, event_id, payload.sample_size
    )
    return LotteryResponse(
        event_id=result.event_id,
        sample_size=result.sample_size,
        available_slots=result.available_slots,
        winners=[entry.user_id for entry in result.winners],
        losers=[entry.user_id for entry in result.losers],
        win_notifications_written=result.win_notifications.written,
        lose_notifications_written=result.lose_notifications.written,
    )


@router.post("/{event_id}/invite", response_model=WaitlistEntryResponse)
async def invite(
    event_id: UUID,
    payload: InviteRequest,
    organizer_id: UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_session)
) -> Any:
    return await WaitlistService(db).invite(organizer_id, event_id, payload.user_id)


@router.post("/{event_id}/invitations/{user_id}/cancel", response_model=WaitlistEntryResponse)
async def cancel_invite(
    event_id: UUID,
    user_id: UUID,
    organizer_id: UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_session),
    session_factory: async_sessionmaker = Depends(get_session_factory)
) -> Any:
    return await InvitationService(db, session_factory).cancel_invite(organizer_id, event_id, user_id)


@router.post("/{event_id}/cancel-non-registered", response_model=List[WaitlistEntryResponse])
async def cancel_non_registered(
    event_id: UUID,
    payload: CancelNonRegisteredRequest,
    organizer_id: UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_session)
) -> Any:
    await EventService(db).get_owned_event(organizer_id, event_id)
    return await WaitlistService(db).cancel_non_registered(event_id, payload.deadline)


# Broadcasts

@router.post("/{event_id}/broadcast/{audience}", response_model=FanOutResponse)
async def broadcast(
    event_id: UUID,
    audience: str,
    payload: BroadcastRequest,
    organizer_id: UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_session),
    session_factory: async_sessionmaker = Depends(get_session_factory)
) -> Any:
    """
    Message every entrant of one cohort: waitlist, invited or cancelled
    """
    service = NotificationService(db, session_factory)
    senders = {
        "waitlist": service.broadcast_to_waitlist,
        "invited": service.broadcast_to_invited,
        "cancelled": service.broadcast_to_cancelled,
    }
    if audience not in senders:
        raise ValidationError(f"Unknown audience '{audience}'", field="audience")

    result = await senders[audience](organizer_id, event_id, payload.title, payload.message)
    return _fan_out_response(result)


@router.get("/{event_id}/notifications", response_model=List[NotificationResponse])
async def get_notification_logs(
    event_id: UUID,
    organizer_id: UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_session)
) -> Any:
    return await NotificationService(db).get_notification_logs(organizer_id, event_id)
