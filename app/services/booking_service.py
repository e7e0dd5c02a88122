from contextlib import asynccontextmanager
from datetime import date, datetime
from typing import Callable, List, Optional
from zoneinfo import ZoneInfo
import asyncio
import logging
import uuid

from redis.exceptions import RedisError
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError, InterfaceError, OperationalError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.core.config import settings
from app.core.exceptions import Conflict, Forbidden, InvalidInput, NotFound, Unavailable
from app.core.locks import UserLocks, get_user_locks
from app.core.principal import Principal
from app.models.booking import Booking
from app.models.user import Role
from app.services.company_service import CompanyService

logger = logging.getLogger(__name__)

DUPLICATE_MESSAGE = "You already booked this company on this date"
CANCEL_TOO_LATE_MESSAGE = "Bookings cannot be canceled on or after the scheduled interview date"

STORE_ERRORS = (OperationalError, InterfaceError, RedisError, asyncio.TimeoutError)


def local_today() -> date:
    return datetime.now(ZoneInfo(settings.timezone)).date()


def parse_booking_date(value) -> date:
    """Accept YYYY-MM-DD or a full ISO-8601 timestamp (date part is used)."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not value.strip():
        raise InvalidInput("Booking date is required")

    text = value.strip()
    try:
        return date.fromisoformat(text)
    except ValueError:
        pass
    try:
        return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
    except ValueError:
        raise InvalidInput(f"Invalid booking date: {value}") from None


class BookingService:
    """Admission rules for creating, changing and cancelling bookings.

    Duplicate and limit checks run together with the insert while holding
    the owner's lock, inside a single transaction. The booking window is
    read from settings on every check, the same source the Booking model
    validates against.
    """

    def __init__(
        self,
        db: AsyncSession,
        locks: Optional[UserLocks] = None,
        today: Optional[Callable[[], date]] = None,
        max_bookings: Optional[int] = None,
    ):
        self.db = db
        self.locks = locks if locks is not None else get_user_locks()
        self.today = today if today is not None else local_today
        self.max_bookings = max_bookings if max_bookings is not None else settings.max_bookings_per_user
        self.companies = CompanyService(db)

    @asynccontextmanager
    async def _store_guard(self, action: str):
        try:
            yield
        except STORE_ERRORS as e:
            await self.db.rollback()
            logger.error(f"Booking store unavailable during {action}: {str(e)}")
            raise Unavailable("Booking service is temporarily unavailable, please retry") from e

    # ---- reads ---------------------------------------------------------------

    async def _get_booking(self, booking_id: uuid.UUID, with_relations: bool = False) -> Booking:
        query = select(Booking).where(Booking.id == booking_id)
        if with_relations:
            query = query.options(
                selectinload(Booking.company), selectinload(Booking.user)
            ).execution_options(populate_existing=True)
        result = await self.db.execute(query)
        booking = result.scalar_one_or_none()
        if not booking:
            raise NotFound(f"No booking found with id {booking_id}")
        return booking

    async def _find_duplicate(
        self,
        user_id: uuid.UUID,
        company_id: uuid.UUID,
        booking_date: date,
        exclude_id: Optional[uuid.UUID] = None,
    ) -> Optional[Booking]:
        query = select(Booking).where(
            Booking.user_id == user_id,
            Booking.company_id == company_id,
            Booking.date == booking_date,
        )
        if exclude_id is not None:
            query = query.where(Booking.id != exclude_id)
        result = await self.db.execute(query)
        return result.scalars().first()

    async def _count_for_user(self, user_id: uuid.UUID) -> int:
        result = await self.db.execute(
            select(func.count()).select_from(Booking).where(Booking.user_id == user_id)
        )
        return result.scalar_one()

    @staticmethod
    def _check_window(booking_date: date):
        start, end = settings.booking_window_start, settings.booking_window_end
        if booking_date < start or booking_date > end:
            raise InvalidInput(
                f"Booking date must be between {start.isoformat()} and {end.isoformat()}"
            )

    @staticmethod
    def _check_access(principal: Principal, booking: Booking, action: str):
        if booking.user_id != principal.id and not principal.is_admin:
            raise Forbidden(f"Not authorized to {action} this booking")

    # ---- operations ----------------------------------------------------------

    async def list_bookings(self, principal: Principal) -> List[Booking]:
        """Admins see every booking, users only their own."""
        async with self._store_guard("list"):
            query = select(Booking).options(selectinload(Booking.company))
            if principal.is_admin:
                query = query.options(selectinload(Booking.user))
            else:
                query = query.where(Booking.user_id == principal.id)
            query = query.order_by(Booking.created_at, Booking.id)

            result = await self.db.execute(query)
            return list(result.scalars().all())

    async def get_booking(self, principal: Principal, booking_id: uuid.UUID) -> Booking:
        async with self._store_guard("get"):
            booking = await self._get_booking(booking_id, with_relations=True)
        self._check_access(principal, booking, "view")
        return booking

    async def create_booking(self, principal: Principal, company_id: uuid.UUID, raw_date) -> Booking:
        if principal.role != Role.USER.value:
            raise Forbidden("Only users are allowed to create bookings")

        async with self._store_guard("create"):
            if not await self.companies.exists(company_id):
                raise NotFound(f"No company found with id {company_id}")

            booking_date = parse_booking_date(raw_date)
            self._check_window(booking_date)

            async with self.locks.for_user(principal.id):
                # Duplicate before limit: a repeat of an existing booking
                # reports the duplicate even when the user is at the limit.
                if await self._find_duplicate(principal.id, company_id, booking_date):
                    raise Conflict(DUPLICATE_MESSAGE)

                if await self._count_for_user(principal.id) >= self.max_bookings:
                    raise Conflict(f"You can only make up to {self.max_bookings} bookings")

                try:
                    booking = Booking(
                        user_id=principal.id,
                        company_id=company_id,
                        date=booking_date,
                        created_at=datetime.utcnow(),
                    )
                except ValueError as e:
                    raise InvalidInput(str(e))
                self.db.add(booking)
                try:
                    await self.db.commit()
                except IntegrityError:
                    await self.db.rollback()
                    raise Conflict(DUPLICATE_MESSAGE)

            logger.info(f"Booking {booking.id} created for user {principal.id} on {booking_date}")
            return await self._get_booking(booking.id, with_relations=True)

    async def update_booking(
        self,
        principal: Principal,
        booking_id: uuid.UUID,
        company_id: Optional[uuid.UUID] = None,
        raw_date=None,
    ) -> Booking:
        """Change company and/or date. Same invariants for every role."""
        async with self._store_guard("update"):
            booking = await self._get_booking(booking_id)
            self._check_access(principal, booking, "update")

            new_company_id = company_id if company_id is not None else booking.company_id
            if new_company_id != booking.company_id and not await self.companies.exists(new_company_id):
                raise NotFound(f"No company found with id {new_company_id}")

            new_date = parse_booking_date(raw_date) if raw_date is not None else booking.date
            self._check_window(new_date)

            async with self.locks.for_user(booking.user_id):
                duplicate = await self._find_duplicate(
                    booking.user_id, new_company_id, new_date, exclude_id=booking.id
                )
                if duplicate:
                    raise Conflict(DUPLICATE_MESSAGE)

                booking.company_id = new_company_id
                try:
                    booking.date = new_date
                except ValueError as e:
                    await self.db.rollback()
                    raise InvalidInput(str(e))
                try:
                    await self.db.commit()
                except IntegrityError:
                    await self.db.rollback()
                    raise Conflict(DUPLICATE_MESSAGE)

            logger.info(f"Booking {booking.id} updated by {principal.role} {principal.id}")
            return await self._get_booking(booking.id, with_relations=True)

    async def delete_booking(self, principal: Principal, booking_id: uuid.UUID) -> None:
        async with self._store_guard("delete"):
            booking = await self._get_booking(booking_id)

            if not principal.is_admin and booking.date <= self.today():
                raise InvalidInput(CANCEL_TOO_LATE_MESSAGE)

            self._check_access(principal, booking, "delete")

            await self.db.delete(booking)
            await self.db.commit()
            logger.info(f"Booking {booking_id} deleted by {principal.role} {principal.id}")
