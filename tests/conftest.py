"""Shared fixtures: in-memory SQLite store, seeded users/companies, API client."""

import os

# Settings are read at import time, so the environment comes first.
os.environ.setdefault("POSTGRES_URL", "sqlite+aiosqlite://")
os.environ.setdefault("REDIS_URL", "redis://localhost:6379/0")
os.environ.setdefault("JWT_SECRET", "test-secret")
os.environ.setdefault("BOOKING_LOCK_BACKEND", "local")
os.environ.setdefault("REMINDER_ENABLED", "false")

from datetime import date
from types import SimpleNamespace

import jwt
import pytest
from fastapi import Depends
from httpx import ASGITransport, AsyncClient
from redis.exceptions import LockNotOwnedError
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.api.bookings import get_booking_service
from app.core.config import settings
from app.core.database import Base, get_db
from app.core.locks import LocalUserLocks
from app.core.principal import Principal
from app.main import app
from app.models.company import Company
from app.models.user import Role, User
from app.services.booking_service import BookingService

# The day before the default booking window opens
TODAY = date(2025, 5, 9)


@pytest.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


async def seed_records(session_factory) -> SimpleNamespace:
    users = {
        "alice": User(name="Alice", email="alice@example.com", telephone="0811111111", role=Role.USER.value),
        "bob": User(name="Bob", email="bob@example.com", telephone="0822222222", role=Role.USER.value),
        "admin": User(name="Admin", email="admin@example.com", telephone="0833333333", role=Role.ADMIN.value),
    }
    companies = {
        key: Company(name=f"Company {key.upper()}", address=f"{key} street 1", telephone="021234567")
        for key in ("x", "y", "z", "w")
    }
    async with session_factory() as session:
        session.add_all([*users.values(), *companies.values()])
        await session.commit()
    return SimpleNamespace(**users, **companies)


@pytest.fixture
async def seed(session_factory):
    return await seed_records(session_factory)


def principal_for(user: User) -> Principal:
    return Principal(id=user.id, role=user.role, name=user.name, email=user.email)


def token_for(user: User) -> str:
    return jwt.encode({"id": str(user.id)}, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def auth_headers(user: User) -> dict:
    return {"Authorization": f"Bearer {token_for(user)}"}


@pytest.fixture
def service(db):
    return BookingService(db, locks=LocalUserLocks(), today=lambda: TODAY)


@pytest.fixture
async def client(session_factory):
    locks = LocalUserLocks()

    async def override_get_db():
        async with session_factory() as session:
            yield session

    def override_booking_service(db: AsyncSession = Depends(get_db)):
        return BookingService(db, locks=locks, today=lambda: TODAY)

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_booking_service] = override_booking_service
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()


class FakeRedisLock:
    """Stands in for redis.asyncio.lock.Lock."""

    def __init__(self, name, timeout=None, blocking_timeout=None, acquired=True, expired=False):
        self.name = name
        self.timeout = timeout
        self.blocking_timeout = blocking_timeout
        self.acquired = acquired
        self.expired = expired
        self.released = False

    async def acquire(self):
        return self.acquired

    async def release(self):
        if self.expired:
            raise LockNotOwnedError("Cannot release a lock that's no longer owned")
        self.released = True


class FakeRedis:
    def __init__(self, acquired=True, expired=False):
        self.acquired = acquired
        self.expired = expired
        self.locks = []

    def lock(self, name, timeout=None, blocking_timeout=None):
        lock = FakeRedisLock(
            name, timeout, blocking_timeout, acquired=self.acquired, expired=self.expired
        )
        self.locks.append(lock)
        return lock
