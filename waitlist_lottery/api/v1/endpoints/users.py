"""
User endpoints
"""

from typing import Any, List
from uuid import UUID
from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from waitlist_lottery.core.database import get_session
from waitlist_lottery.core.security import get_current_user_id
from waitlist_lottery.schemas.user import UserCreate, UserResponse
from waitlist_lottery.schemas.waitlist import WaitlistEntryResponse
from waitlist_lottery.services.user_service import UserService
from waitlist_lottery.services.waitlist_service import WaitlistService

router = APIRouter()


@router.post("/", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def create_user(payload: UserCreate, db: AsyncSession = Depends(get_session)) -> Any:
    return await UserService(db).create_user(payload.username, payload.email, payload.role)


@router.get("/me", response_model=UserResponse)
async def get_me(
    user_id: UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_session)
) -> Any:
    return await UserService(db).get_user(user_id)


@router.get("/me/history", response_model=List[WaitlistEntryResponse])
async def get_my_history(
    user_id: UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_session)
) -> Any:
    """
    Every waiting list entry the caller holds, across events
    """
    return await WaitlistService(db).get_history(user_id)
