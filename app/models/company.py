from sqlalchemy import Column, String, DateTime
from sqlalchemy.dialects.postgresql import UUID
from app.core.database import Base
import uuid
from datetime import datetime

class Company(Base):
    __tablename__ = "companies"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(String(100), nullable=False, unique=True)
    address = Column(String(255), nullable=False)
    website = Column(String(255))
    description = Column(String(200))
    telephone = Column(String(10), nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)
