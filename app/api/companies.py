from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
import uuid

from app.core.database import get_db
from app.core.principal import Principal
from app.core.security import require_admin
from app.schemas.common import MessageResponse
from app.schemas.company import (
    CompanyCreate,
    CompanyUpdate,
    CompanyResponse,
    CompanyEnvelope,
    CompanyListResponse,
)
from app.services.company_service import CompanyService

router = APIRouter()


@router.get("", response_model=CompanyListResponse)
async def list_companies(
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=25, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
):
    """List companies, newest first"""
    companies = await CompanyService(db).list_companies(skip=skip, limit=limit)
    data = [CompanyResponse.model_validate(c) for c in companies]
    return CompanyListResponse(count=len(data), data=data)


@router.get("/{company_id}", response_model=CompanyEnvelope)
async def get_company(company_id: uuid.UUID, db: AsyncSession = Depends(get_db)):
    company = await CompanyService(db).get_company(company_id)
    return CompanyEnvelope(data=CompanyResponse.model_validate(company))


@router.post("", response_model=CompanyEnvelope, status_code=status.HTTP_201_CREATED)
async def create_company(
    request: CompanyCreate,
    _: Principal = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    company = await CompanyService(db).create_company(request.model_dump())
    return CompanyEnvelope(data=CompanyResponse.model_validate(company))


@router.put("/{company_id}", response_model=CompanyEnvelope)
async def update_company(
    company_id: uuid.UUID,
    request: CompanyUpdate,
    _: Principal = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    company = await CompanyService(db).update_company(
        company_id, request.model_dump(exclude_unset=True)
    )
    return CompanyEnvelope(data=CompanyResponse.model_validate(company))


@router.delete("/{company_id}", response_model=MessageResponse)
async def delete_company(
    company_id: uuid.UUID,
    _: Principal = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """Delete a company and every booking made with it"""
    await CompanyService(db).delete_company(company_id)
    return MessageResponse()
