from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession
from sqlalchemy.orm import sessionmaker, declarative_base
import redis.asyncio as redis
from typing import AsyncGenerator
from app.core.config import settings

Base = declarative_base()


def async_database_url(url: str) -> str:
    """Point plain postgres URLs at the asyncpg driver"""
    for prefix in ("postgresql://", "postgres://"):
        if url.startswith(prefix):
            return "postgresql+asyncpg://" + url[len(prefix):]
    return url


# PostgreSQL (bookings, users, companies)
engine = create_async_engine(async_database_url(settings.postgres_url), pool_pre_ping=True)
AsyncSessionLocal = sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

# Redis (per-user booking locks)
redis_client = redis.from_url(settings.redis_url, decode_responses=True)

async def get_db() -> AsyncGenerator[AsyncSession, None]:
    async with AsyncSessionLocal() as session:
        yield session

async def init_db():
    # Register every model on Base.metadata before create_all
    from app.models import booking, company, user  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
