"""Per-key mutation locks.

Student records are updated with read-modify-write. Concurrent purchase,
payment verification and usage calls for the same student must not
interleave, or one of them silently loses its update. UserLocks serializes
them per key:

- in-process asyncio.Lock per key (single worker)
- Redis lock per key when a Redis client is given (several workers)
"""

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from redis.exceptions import LockError

from scsm.core.exceptions import StorageError
from scsm.core.logging import get_logger


if TYPE_CHECKING:
    from redis.asyncio import Redis


logger = get_logger(__name__)


def mobile_key(mobile: str) -> str:
    return f"mobile:{mobile}"


def order_key(order_id: str) -> str:
    return f"order:{order_id}"


class UserLocks:
    """Registry of named locks."""

    def __init__(self, redis: "Redis | None" = None, timeout: float = 10.0):
        """Initialize with optional Redis client.

        Args:
            redis: Redis client for cross-worker locks (None = in-process only)
            timeout: Seconds before a Redis lock auto-expires, and how long
                to wait for it
        """
        self.redis = redis
        self.timeout = timeout
        self._locks: dict[str, asyncio.Lock] = {}
        self._waiters: dict[str, int] = {}

    @asynccontextmanager
    async def hold(self, key: str) -> AsyncIterator[None]:
        """Hold the lock for key for the duration of the block."""
        if self.redis is not None:
            async with self._hold_redis(key):
                yield
            return

        lock = self._locks.setdefault(key, asyncio.Lock())
        self._waiters[key] = self._waiters.get(key, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._waiters[key] -= 1
            if self._waiters[key] == 0:
                del self._waiters[key]
                del self._locks[key]

    @asynccontextmanager
    async def _hold_redis(self, key: str) -> AsyncIterator[None]:
        lock = self.redis.lock(
            f"lock:{key}",
            timeout=self.timeout,
            blocking_timeout=self.timeout,
        )
        acquired = await lock.acquire()
        if not acquired:
            logger.warning("user_lock_timeout", key=key, timeout=self.timeout)
            raise StorageError("Record is busy, try again")
        try:
            yield
        finally:
            try:
                await lock.release()
            except LockError:
                # Lock expired while held; the work is already done
                logger.warning("user_lock_expired", key=key)
