from sqlalchemy import Column, Date, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship, validates
from app.core.config import settings
from app.core.database import Base
from app.models.company import Company
from app.models.user import User
import uuid
from datetime import datetime

class Booking(Base):
    __tablename__ = "bookings"
    __table_args__ = (
        # Same company, same day, same user: at most once
        UniqueConstraint("user_id", "company_id", "date", name="uq_booking_user_company_date"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    company_id = Column(UUID(as_uuid=True), ForeignKey("companies.id", ondelete="CASCADE"), nullable=False, index=True)
    date = Column(Date, nullable=False, index=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    user = relationship(User, lazy="raise")
    company = relationship(Company, lazy="raise")

    @validates("date")
    def validate_date(self, key, value):
        start, end = settings.booking_window_start, settings.booking_window_end
        if value is None or value < start or value > end:
            raise ValueError(f"Booking date must be between {start.isoformat()} and {end.isoformat()}")
        return value
