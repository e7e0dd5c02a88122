from pydantic import Field
from datetime import datetime
from typing import List, Optional
import uuid

from app.schemas.common import CamelModel

TELEPHONE_PATTERN = r"^\d{9,10}$"
WEBSITE_PATTERN = r"^(https?://)?([\w-]+(\.[\w-]+)+)(/[\w-]*)*/?$"


class CompanyCreate(CamelModel):
    name: str = Field(..., min_length=1, max_length=100)
    address: str = Field(..., min_length=1, max_length=255)
    website: Optional[str] = Field(default=None, pattern=WEBSITE_PATTERN)
    description: Optional[str] = Field(default=None, max_length=200)
    telephone: str = Field(..., pattern=TELEPHONE_PATTERN)


class CompanyUpdate(CamelModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    address: Optional[str] = Field(default=None, min_length=1, max_length=255)
    website: Optional[str] = Field(default=None, pattern=WEBSITE_PATTERN)
    description: Optional[str] = Field(default=None, max_length=200)
    telephone: Optional[str] = Field(default=None, pattern=TELEPHONE_PATTERN)


class CompanyResponse(CamelModel):
    id: uuid.UUID
    name: str
    address: str
    website: Optional[str] = None
    description: Optional[str] = None
    telephone: str
    created_at: datetime


class CompanyEnvelope(CamelModel):
    success: bool = True
    data: CompanyResponse


class CompanyListResponse(CamelModel):
    success: bool = True
    count: int
    data: List[CompanyResponse]
