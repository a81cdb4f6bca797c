"""
User profile operations
"""

from typing import Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from waitlist_lottery.core.database import DatabaseManager
from waitlist_lottery.core.exceptions import UserNotFound
from waitlist_lottery.models.user import User, UserRole
from waitlist_lottery.repositories.user_repository import UserRepository


class UserService:

    def __init__(self, db: AsyncSession):
        self.db = db
        self.db_manager = DatabaseManager()
        self.user_repo = UserRepository(db)

    async def create_user(
        self,
        username: str,
        email: Optional[str] = None,
        role: UserRole = UserRole.ENTRANT
    ) -> User:
        async with self.db_manager.transaction(self.db):
            user = await self.user_repo.create(User(username=username, email=email, role=role))
        return user

    async def get_user(self, user_id: UUID) -> User:
        user = await self.user_repo.get_by_id(user_id)
        if user is None:
            raise UserNotFound(user_id)
        return user
