from sqlalchemy import Column, String, DateTime
from sqlalchemy.dialects.postgresql import UUID
from app.core.database import Base
import enum
import uuid
from datetime import datetime


class Role(str, enum.Enum):
    USER = "user"
    ADMIN = "admin"


class User(Base):
    __tablename__ = "users"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(String(50), nullable=False)
    email = Column(String(255), nullable=False, unique=True)
    telephone = Column(String(10), nullable=False)
    role = Column(String(10), nullable=False, default=Role.USER.value)
    created_at = Column(DateTime, default=datetime.utcnow)

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN.value
