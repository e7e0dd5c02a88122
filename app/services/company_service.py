from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Any, Dict, List
import logging
import uuid

from app.core.exceptions import Conflict, NotFound
from app.models.booking import Booking
from app.models.company import Company

logger = logging.getLogger(__name__)


class CompanyService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def exists(self, company_id: uuid.UUID) -> bool:
        result = await self.db.execute(select(Company.id).where(Company.id == company_id))
        return result.scalar_one_or_none() is not None

    async def list_companies(self, skip: int = 0, limit: int = 25) -> List[Company]:
        """Newest first"""
        result = await self.db.execute(
            select(Company)
            .order_by(Company.created_at.desc())
            .offset(skip)
            .limit(limit)
        )
        return list(result.scalars().all())

    async def get_company(self, company_id: uuid.UUID) -> Company:
        result = await self.db.execute(select(Company).where(Company.id == company_id))
        company = result.scalar_one_or_none()
        if not company:
            raise NotFound("Company not found")
        return company

    async def create_company(self, fields: Dict[str, Any]) -> Company:
        company = Company(**fields)
        self.db.add(company)
        await self._commit_unique(company.name)
        logger.info(f"Company {company.id} created")
        return company

    async def update_company(self, company_id: uuid.UUID, fields: Dict[str, Any]) -> Company:
        company = await self.get_company(company_id)
        for key, value in fields.items():
            setattr(company, key, value)
        await self._commit_unique(company.name)
        return company

    async def delete_company(self, company_id: uuid.UUID) -> None:
        """Delete a company together with every booking that targets it"""
        company = await self.get_company(company_id)
        await self.db.execute(delete(Booking).where(Booking.company_id == company_id))
        await self.db.delete(company)
        await self.db.commit()
        logger.info(f"Company {company_id} and its bookings deleted")

    async def _commit_unique(self, name: str):
        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise Conflict(f"A company named '{name}' already exists")
