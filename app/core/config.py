from pydantic_settings import BaseSettings
from datetime import date
from typing import Optional


class Settings(BaseSettings):
    # Database
    postgres_url: str
    redis_url: str

    # Auth
    jwt_secret: str
    jwt_algorithm: str = "HS256"

    # Booking rules
    booking_window_start: date = date(2025, 5, 10)
    booking_window_end: date = date(2025, 5, 13)
    max_bookings_per_user: int = 3
    timezone: str = "UTC"

    # Per-user booking locks
    booking_lock_backend: str = "redis"  # "redis" or "local"
    booking_lock_timeout: float = 10.0
    booking_lock_wait: float = 5.0

    # Reminders
    reminder_enabled: bool = True
    reminder_hour: int = 8
    reminder_minute: int = 0
    reminder_subject: str = "Reminder"

    # Email
    smtp_host: str = "smtp.gmail.com"
    smtp_port: int = 587
    smtp_username: Optional[str] = None
    smtp_password: Optional[str] = None
    mail_from_name: str = "Notifier"

    class Config:
        env_file = ".env"

settings = Settings()
