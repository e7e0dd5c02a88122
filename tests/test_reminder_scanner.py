"""Tests for the daily reminder sweep."""

from datetime import date, datetime, timezone
from zoneinfo import ZoneInfo

import pytest
from apscheduler.triggers.cron import CronTrigger

from app.models.booking import Booking
from app.models.user import Role, User
from app.services.reminder_scanner import REMINDER_JOB_ID, ReminderScanner, build_reminder_scheduler

BERLIN = ZoneInfo("Europe/Berlin")


class FakeNotifier:
    def __init__(self, fail_for=(), raise_for=()):
        self.sent = []
        self.fail_for = set(fail_for)
        self.raise_for = set(raise_for)

    async def send_notification(self, recipient, subject, body):
        if recipient in self.raise_for:
            raise ConnectionError("SMTP connection dropped")
        if recipient in self.fail_for:
            return False
        self.sent.append((recipient, subject, body))
        return True


@pytest.fixture
async def todays_bookings(session_factory, seed):
    async with session_factory() as session:
        session.add_all([
            Booking(user_id=seed.alice.id, company_id=seed.x.id, date=date(2025, 5, 11)),
            Booking(user_id=seed.bob.id, company_id=seed.y.id, date=date(2025, 5, 11)),
            Booking(user_id=seed.alice.id, company_id=seed.z.id, date=date(2025, 5, 12)),
        ])
        await session.commit()
    return seed


def _scanner(session_factory, notifier, now=datetime(2025, 5, 11, 8, 0)):
    return ReminderScanner(
        session_factory=session_factory,
        notifier=notifier,
        tz="UTC",
        clock=lambda: now,
    )


class TestScan:
    async def test_notifies_each_booking_today(self, session_factory, todays_bookings):
        notifier = FakeNotifier()
        summary = await _scanner(session_factory, notifier).scan()

        assert summary == {"scanned": 2, "sent": 2, "skipped": 0, "failed": 0}
        recipients = sorted(r for r, _, _ in notifier.sent)
        assert recipients == ["alice@example.com", "bob@example.com"]
        assert ("alice@example.com", "Reminder", "Hey Alice, you have a booking scheduled today.") in notifier.sent

    async def test_explicit_day(self, session_factory, todays_bookings):
        notifier = FakeNotifier()
        summary = await _scanner(session_factory, notifier).scan(day=date(2025, 5, 12))

        assert summary["sent"] == 1
        assert notifier.sent[0][0] == "alice@example.com"

    async def test_nothing_scheduled(self, session_factory, todays_bookings):
        notifier = FakeNotifier()
        summary = await _scanner(session_factory, notifier).scan(day=date(2025, 5, 13))

        assert summary == {"scanned": 0, "sent": 0, "skipped": 0, "failed": 0}
        assert notifier.sent == []

    async def test_skips_users_without_email(self, session_factory, todays_bookings):
        async with session_factory() as session:
            ghost = User(name="Ghost", email="", telephone="0844444444", role=Role.USER.value)
            session.add(ghost)
            await session.flush()
            session.add(Booking(user_id=ghost.id, company_id=todays_bookings.x.id, date=date(2025, 5, 11)))
            await session.commit()

        notifier = FakeNotifier()
        summary = await _scanner(session_factory, notifier).scan()

        assert summary["skipped"] == 1
        assert summary["sent"] == 2

    async def test_one_failure_does_not_stop_the_sweep(self, session_factory, todays_bookings):
        notifier = FakeNotifier(raise_for={"alice@example.com"})
        summary = await _scanner(session_factory, notifier).scan()

        assert summary["failed"] == 1
        assert summary["sent"] == 1
        assert [r for r, _, _ in notifier.sent] == ["bob@example.com"]

    async def test_false_return_counts_as_failure(self, session_factory, todays_bookings):
        notifier = FakeNotifier(fail_for={"bob@example.com"})
        summary = await _scanner(session_factory, notifier).scan()

        assert summary["failed"] == 1
        assert summary["sent"] == 1


class TestSchedule:
    @pytest.fixture
    def berlin_scheduler(self, session_factory):
        scanner = ReminderScanner(session_factory=session_factory, notifier=FakeNotifier(), tz="Europe/Berlin")
        return build_reminder_scheduler(scanner, hour=8, minute=0)

    def test_daily_cron_job_in_local_time(self, berlin_scheduler):
        job = berlin_scheduler.get_job(REMINDER_JOB_ID)

        assert isinstance(job.trigger, CronTrigger)
        assert str(job.trigger.timezone) == "Europe/Berlin"
        assert job.coalesce is True

    @pytest.mark.parametrize(
        "now, expected_utc, gap_hours",
        [
            # ordinary day, an hour before the run
            (datetime(2025, 5, 11, 7, 0, tzinfo=BERLIN), datetime(2025, 5, 11, 6, 0, tzinfo=timezone.utc), 1),
            # just missed today's run
            (datetime(2025, 5, 11, 8, 30, tzinfo=BERLIN), datetime(2025, 5, 12, 6, 0, tzinfo=timezone.utc), 23.5),
            # clocks go forward overnight: 23 hour day
            (datetime(2025, 3, 29, 12, 0, tzinfo=BERLIN), datetime(2025, 3, 30, 6, 0, tzinfo=timezone.utc), 19),
            # clocks go back overnight: 25 hour day
            (datetime(2025, 10, 25, 12, 0, tzinfo=BERLIN), datetime(2025, 10, 26, 7, 0, tzinfo=timezone.utc), 21),
        ],
    )
    def test_next_run_is_eight_local_across_dst(self, berlin_scheduler, now, expected_utc, gap_hours):
        trigger = berlin_scheduler.get_job(REMINDER_JOB_ID).trigger

        fire_time = trigger.get_next_fire_time(None, now)

        assert fire_time.astimezone(timezone.utc) == expected_utc
        assert (fire_time.hour, fire_time.minute) == (8, 0)
        assert (fire_time - now).total_seconds() == gap_hours * 3600

    async def test_start_and_shutdown_inside_the_loop(self, berlin_scheduler):
        berlin_scheduler.start()
        try:
            assert berlin_scheduler.running
            assert berlin_scheduler.get_job(REMINDER_JOB_ID).next_run_time is not None
        finally:
            berlin_scheduler.shutdown(wait=False)

    async def test_failing_sweep_is_logged_not_raised(self, session_factory, caplog):
        scanner = _scanner(session_factory, FakeNotifier())

        async def broken_scan(day=None):
            raise RuntimeError("database went away")

        scanner.scan = broken_scan

        assert await scanner.run_scheduled() is None
        assert "Error during scheduled reminder scan" in caplog.text

    async def test_scheduled_run_sweeps_today(self, session_factory, todays_bookings):
        notifier = FakeNotifier()

        summary = await _scanner(session_factory, notifier).run_scheduled()

        assert summary["sent"] == 2
