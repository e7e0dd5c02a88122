from abc import ABC, abstractmethod
from contextlib import asynccontextmanager
from typing import AsyncContextManager, Dict
import asyncio
import logging
import uuid

from redis.exceptions import LockError, LockNotOwnedError

from app.core.config import settings
from app.core.database import redis_client

logger = logging.getLogger(__name__)


# Per-user lock implementations
class UserLocks(ABC):
    @abstractmethod
    def for_user(self, user_id: uuid.UUID) -> AsyncContextManager:
        pass


class RedisUserLocks(UserLocks):
    """Locks shared by every worker process through Redis."""

    def __init__(self, client=None, timeout: float = None, blocking_timeout: float = None):
        self.redis = client if client is not None else redis_client
        self.timeout = timeout if timeout is not None else settings.booking_lock_timeout
        self.blocking_timeout = (
            blocking_timeout if blocking_timeout is not None else settings.booking_lock_wait
        )

    @asynccontextmanager
    async def for_user(self, user_id: uuid.UUID):
        name = f"booking-lock:{user_id}"
        lock = self.redis.lock(name, timeout=self.timeout, blocking_timeout=self.blocking_timeout)
        if not await lock.acquire():
            raise LockError(f"Unable to acquire {name} within {self.blocking_timeout}s")
        try:
            yield
        finally:
            try:
                await lock.release()
            except LockNotOwnedError:
                # The lease ran out while the body was still running; whatever
                # the body committed stands.
                logger.warning(f"Lock {name} expired before release (timeout {self.timeout}s)")


class LocalUserLocks(UserLocks):
    """In-process locks. Only correct with a single worker.

    A user's lock is dropped once nobody holds or waits for it.
    """

    def __init__(self):
        self._locks: Dict[str, asyncio.Lock] = {}
        self._users: Dict[str, int] = {}

    @asynccontextmanager
    async def for_user(self, user_id: uuid.UUID):
        key = str(user_id)
        lock = self._locks.setdefault(key, asyncio.Lock())
        self._users[key] = self._users.get(key, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._users[key] -= 1
            if not self._users[key]:
                del self._users[key]
                del self._locks[key]


_user_locks: Dict[str, UserLocks] = {}


def get_user_locks(backend: str = None) -> UserLocks:
    """Factory function to get the configured lock backend"""
    backend = backend or settings.booking_lock_backend
    if backend not in _user_locks:
        if backend == "redis":
            _user_locks[backend] = RedisUserLocks()
        elif backend == "local":
            _user_locks[backend] = LocalUserLocks()
        else:
            raise ValueError(f"Unsupported lock backend: {backend}")
    return _user_locks[backend]
