"""
Notification inbox endpoints
"""

from typing import Any, List, Optional
from uuid import UUID
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from waitlist_lottery.core.database import get_session
from waitlist_lottery.core.security import get_current_user_id
from waitlist_lottery.schemas.notification import InfoRequest, NotificationResponse
from waitlist_lottery.services.notification_service import NotificationService

router = APIRouter()


@router.get("/", response_model=List[NotificationResponse])
async def list_notifications(
    user_id: UUID = Depends(get_current_user_id),
    limit: Optional[int] = Query(None, ge=1, le=500),
    start_after: Optional[UUID] = None,
    db: AsyncSession = Depends(get_session)
) -> Any:
    """
    Newest first; pass the last id of a page as start_after for the next one
    """
    return await NotificationService(db).list_user_notifications(user_id, limit, start_after)


@router.post("/{notification_id}/dismiss", response_model=NotificationResponse)
async def dismiss_notification(
    notification_id: UUID,
    user_id: UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_session)
) -> Any:
    return await NotificationService(db).dismiss_notification(notification_id, user_id)


@router.post("/info", response_model=NotificationResponse, status_code=status.HTTP_201_CREATED)
async def send_info(
    payload: InfoRequest,
    user_id: UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_session)
) -> Any:
    """
    Organizer message to one user about one of their events
    """
    return await NotificationService(db).send_info_as_organizer(
        user_id, payload.event_id, payload.user_id, payload.message
    )
