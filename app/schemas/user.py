from datetime import datetime
from typing import List
import uuid

from app.schemas.common import CamelModel


class UserSummary(CamelModel):
    id: uuid.UUID
    name: str
    email: str


class UserResponse(UserSummary):
    telephone: str
    role: str
    created_at: datetime


class UserEnvelope(CamelModel):
    success: bool = True
    data: UserResponse


class UserListResponse(CamelModel):
    success: bool = True
    count: int
    data: List[UserResponse]
