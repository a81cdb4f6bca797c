"""
Administrative endpoints: cascade deletion of events and users
"""

from typing import Any
from uuid import UUID
import logging
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import async_sessionmaker

from waitlist_lottery.core.database import get_session_factory
from waitlist_lottery.core.security import require_admin
from waitlist_lottery.models.user import User
from waitlist_lottery.schemas.cascade import CascadeResponse
from waitlist_lottery.services.cascade_service import CascadeService

router = APIRouter()
logger = logging.getLogger(__name__)


@router.delete("/events/{event_id}", response_model=CascadeResponse)
async def delete_event(
    event_id: UUID,
    admin: User = Depends(require_admin),
    session_factory: async_sessionmaker = Depends(get_session_factory)
) -> Any:
    """
    Delete an event and every record referencing it. Cleanup steps are
    best-effort; the response lists each step's outcome.
    """
    logger.info(f"Event {event_id} deletion requested by {admin.id}")
    result = await CascadeService(session_factory).delete_event(event_id)
    return CascadeResponse.model_validate(result.to_dict())


@router.delete("/users/{user_id}", response_model=CascadeResponse)
async def delete_user(
    user_id: UUID,
    admin: User = Depends(require_admin),
    session_factory: async_sessionmaker = Depends(get_session_factory)
) -> Any:
    logger.info(f"User {user_id} deletion requested by {admin.id}")
    result = await CascadeService(session_factory).delete_user_cascade(user_id)
    return CascadeResponse.model_validate(result.to_dict())
