from pydantic import ConfigDict, Field
from datetime import date, datetime
from typing import List, Optional
import uuid

from app.schemas.common import CamelModel
from app.schemas.company import CompanyResponse
from app.schemas.user import UserSummary

class BookingCreateRequest(CamelModel):
    company_id: uuid.UUID
    date: str = Field(..., description="Date in YYYY-MM-DD format")

class BookingUpdateRequest(CamelModel):
    # userId is immutable, so unknown fields are rejected instead of ignored
    model_config = ConfigDict(extra="forbid")

    company_id: Optional[uuid.UUID] = None
    date: Optional[str] = Field(default=None, description="Date in YYYY-MM-DD format")

class BookingResponse(CamelModel):
    id: uuid.UUID
    user_id: uuid.UUID
    company_id: uuid.UUID
    date: date
    created_at: datetime
    company: Optional[CompanyResponse] = None
    user: Optional[UserSummary] = None

class BookingEnvelope(CamelModel):
    success: bool = True
    data: BookingResponse

class BookingListResponse(CamelModel):
    success: bool = True
    count: int
    data: List[BookingResponse]
