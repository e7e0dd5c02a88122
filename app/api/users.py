from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
import uuid

from app.core.database import get_db
from app.core.security import require_admin
from app.schemas.common import MessageResponse
from app.schemas.user import UserResponse, UserEnvelope, UserListResponse
from app.services.user_service import UserService

# Every user route is admin-only
router = APIRouter(dependencies=[Depends(require_admin)])


@router.get("", response_model=UserListResponse)
async def list_users(
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=25, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
):
    users = await UserService(db).list_users(skip=skip, limit=limit)
    data = [UserResponse.model_validate(u) for u in users]
    return UserListResponse(count=len(data), data=data)


@router.get("/{user_id}", response_model=UserEnvelope)
async def get_user(user_id: uuid.UUID, db: AsyncSession = Depends(get_db)):
    user = await UserService(db).get_user(user_id)
    return UserEnvelope(data=UserResponse.model_validate(user))


@router.delete("/{user_id}", response_model=MessageResponse)
async def delete_user(user_id: uuid.UUID, db: AsyncSession = Depends(get_db)):
    """Delete a user and all of their bookings"""
    await UserService(db).delete_user(user_id)
    return MessageResponse()
