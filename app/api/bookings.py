from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession
import uuid

from app.core.database import get_db
from app.core.principal import Principal
from app.core.security import get_current_principal
from app.models.booking import Booking
from app.schemas.booking import (
    BookingCreateRequest,
    BookingUpdateRequest,
    BookingResponse,
    BookingEnvelope,
    BookingListResponse,
)
from app.schemas.common import MessageResponse
from app.schemas.company import CompanyResponse
from app.schemas.user import UserSummary
from app.services.booking_service import BookingService

router = APIRouter()


def get_booking_service(db: AsyncSession = Depends(get_db)) -> BookingService:
    return BookingService(db)


def to_booking_response(booking: Booking, include_user: bool = True) -> BookingResponse:
    return BookingResponse(
        id=booking.id,
        user_id=booking.user_id,
        company_id=booking.company_id,
        date=booking.date,
        created_at=booking.created_at,
        company=CompanyResponse.model_validate(booking.company),
        user=UserSummary.model_validate(booking.user) if include_user else None,
    )


@router.get("", response_model=BookingListResponse, response_model_exclude_none=True)
async def list_bookings(
    principal: Principal = Depends(get_current_principal),
    service: BookingService = Depends(get_booking_service),
):
    """List bookings: all of them for admins, the caller's own otherwise"""
    bookings = await service.list_bookings(principal)
    data = [to_booking_response(b, include_user=principal.is_admin) for b in bookings]
    return BookingListResponse(count=len(data), data=data)


@router.get("/{booking_id}", response_model=BookingEnvelope, response_model_exclude_none=True)
async def get_booking(
    booking_id: uuid.UUID,
    principal: Principal = Depends(get_current_principal),
    service: BookingService = Depends(get_booking_service),
):
    booking = await service.get_booking(principal, booking_id)
    return BookingEnvelope(data=to_booking_response(booking))


@router.post(
    "",
    response_model=BookingEnvelope,
    response_model_exclude_none=True,
    status_code=status.HTTP_201_CREATED,
)
async def create_booking(
    request: BookingCreateRequest,
    principal: Principal = Depends(get_current_principal),
    service: BookingService = Depends(get_booking_service),
):
    """Book an interview slot with a company"""
    booking = await service.create_booking(principal, request.company_id, request.date)
    return BookingEnvelope(data=to_booking_response(booking))


@router.put("/{booking_id}", response_model=BookingEnvelope, response_model_exclude_none=True)
async def update_booking(
    booking_id: uuid.UUID,
    request: BookingUpdateRequest,
    principal: Principal = Depends(get_current_principal),
    service: BookingService = Depends(get_booking_service),
):
    booking = await service.update_booking(
        principal, booking_id, company_id=request.company_id, raw_date=request.date
    )
    return BookingEnvelope(data=to_booking_response(booking))


@router.delete("/{booking_id}", response_model=MessageResponse)
async def delete_booking(
    booking_id: uuid.UUID,
    principal: Principal = Depends(get_current_principal),
    service: BookingService = Depends(get_booking_service),
):
    """Cancel a booking"""
    await service.delete_booking(principal, booking_id)
    return MessageResponse()
