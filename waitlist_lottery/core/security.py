"""
Caller identity

Authentication happens upstream; the resolved user id arrives in the
X-User-ID header and is passed explicitly to every service call.
"""

from typing import Optional
from uuid import UUID

from fastapi import Depends, Header, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from waitlist_lottery.core.database import get_session
from waitlist_lottery.models.user import User, UserRole
from waitlist_lottery.repositories.user_repository import UserRepository


async def get_current_user_id(x_user_id: Optional[str] = Header(None)) -> UUID:
    """
    Get current user ID from the X-User-ID header
    """
    if not x_user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing X-User-ID header",
        )
    try:
        return UUID(x_user_id)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="X-User-ID is not a valid user id",
        )


async def require_admin(
    user_id: UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_session)
) -> User:
    """
    Require admin role for endpoint
    """
    user = await UserRepository(db).get_by_id(user_id)
    if user is None or user.role != UserRole.ADMIN:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required"
        )
    return user
