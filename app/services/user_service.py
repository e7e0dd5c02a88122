from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Optional
import logging
import uuid

from app.core.exceptions import NotFound
from app.models.booking import Booking
from app.models.user import User

logger = logging.getLogger(__name__)


class UserService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def find_user(self, user_id: uuid.UUID) -> Optional[User]:
        result = await self.db.execute(select(User).where(User.id == user_id))
        return result.scalar_one_or_none()

    async def list_users(self, skip: int = 0, limit: int = 25) -> List[User]:
        result = await self.db.execute(
            select(User).order_by(User.created_at).offset(skip).limit(limit)
        )
        return list(result.scalars().all())

    async def get_user(self, user_id: uuid.UUID) -> User:
        user = await self.find_user(user_id)
        if not user:
            raise NotFound(f"No user found with id {user_id}")
        return user

    async def delete_user(self, user_id: uuid.UUID) -> None:
        """Delete a user together with all of their bookings"""
        user = await self.get_user(user_id)
        await self.db.execute(delete(Booking).where(Booking.user_id == user_id))
        await self.db.delete(user)
        await self.db.commit()
        logger.info(f"User {user_id} and their bookings deleted")
