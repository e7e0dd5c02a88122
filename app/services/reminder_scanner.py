"""Daily sweep that reminds users of interviews booked for today."""

from datetime import date, datetime
from typing import Callable, Dict, Optional
from zoneinfo import ZoneInfo
import logging

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger
from sqlalchemy import select
from sqlalchemy.orm import selectinload

from app.core.config import settings
from app.core.database import AsyncSessionLocal
from app.models.booking import Booking
from app.services.email_service import EmailService

logger = logging.getLogger(__name__)

REMINDER_BODY = "Hey {name}, you have a booking scheduled today."
REMINDER_JOB_ID = "booking-reminders"


class ReminderScanner:
    def __init__(
        self,
        session_factory=None,
        notifier=None,
        subject: Optional[str] = None,
        tz: Optional[str] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.session_factory = session_factory or AsyncSessionLocal
        self.notifier = notifier or EmailService()
        self.subject = subject or settings.reminder_subject
        self.tz_name = tz or settings.timezone
        self.tz = ZoneInfo(self.tz_name)
        self.clock = clock or (lambda: datetime.now(self.tz))

    async def scan(self, day: Optional[date] = None) -> Dict[str, int]:
        """Notify the owner of every booking on ``day`` (default: today).

        One failed notification never stops the rest of the sweep.
        """
        day = day or self.clock().date()
        async with self.session_factory() as session:
            result = await session.execute(
                select(Booking)
                .options(selectinload(Booking.user))
                .where(Booking.date == day)
                .order_by(Booking.created_at)
            )
            bookings = result.scalars().all()

        summary = {"scanned": len(bookings), "sent": 0, "skipped": 0, "failed": 0}
        for booking in bookings:
            user = booking.user
            if not user or not user.email:
                logger.info(f"Booking {booking.id} has no email, skipping reminder")
                summary["skipped"] += 1
                continue

            try:
                sent = await self.notifier.send_notification(
                    user.email,
                    self.subject,
                    REMINDER_BODY.format(name=user.name or ""),
                )
            except Exception:
                logger.exception(f"Reminder for booking {booking.id} failed")
                sent = False

            if sent:
                logger.info(f"Reminder sent to {user.email}")
                summary["sent"] += 1
            else:
                summary["failed"] += 1

        logger.info(f"Reminder scan for {day}: {summary}")
        return summary

    async def run_scheduled(self):
        """Job entry point: a failed sweep is logged and the schedule keeps going."""
        try:
            return await self.scan()
        except Exception:
            logger.exception("Error during scheduled reminder scan")


def build_reminder_scheduler(
    scanner: Optional[ReminderScanner] = None,
    hour: Optional[int] = None,
    minute: Optional[int] = None,
) -> AsyncIOScheduler:
    """Scheduler firing ``scanner.run_scheduled`` daily at hour:minute local time."""
    scanner = scanner or ReminderScanner()
    hour = settings.reminder_hour if hour is None else hour
    minute = settings.reminder_minute if minute is None else minute

    scheduler = AsyncIOScheduler(timezone=scanner.tz_name)
    scheduler.add_job(
        scanner.run_scheduled,
        CronTrigger(hour=hour, minute=minute, timezone=scanner.tz_name),
        id=REMINDER_JOB_ID,
        name="Booking reminders",
        coalesce=True,
        max_instances=1,
        misfire_grace_time=3600,
        replace_existing=True,
    )
    logger.info(f"Reminder scan scheduled daily at {hour:02d}:{minute:02d} {scanner.tz_name}")
    return scheduler
