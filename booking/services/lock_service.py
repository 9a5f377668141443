"""Keyed, TTL-bounded mutual exclusion for booking decisions.

The in-memory manager only serializes work inside one process. A deployment
with several replicas needs a LockManager backed by a shared store; the
booking service only depends on the abstract interface.
"""

import asyncio
import logging
import threading
import time
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable
from datetime import datetime
from typing import TypeVar

from booking.core.errors import LockUnavailableError
from booking.services.time_service import ensure_utc

logger = logging.getLogger(__name__)

T = TypeVar("T")


def lock_key(kind: str, *parts: str | datetime) -> str:
    """Build ``lock:<kind>:<part>:...`` from ordered parts; datetimes render as ISO-8601 UTC."""
    rendered = [ensure_utc(p).isoformat() if isinstance(p, datetime) else str(p) for p in parts]
    return ":".join(["lock", kind, *rendered])


class LockManager(ABC):
    @abstractmethod
    async def acquire(self, key: str, ttl_seconds: float) -> bool:
        """Take the lock if nobody holds an unexpired one. Never waits."""

    @abstractmethod
    async def release(self, key: str) -> None:
        """Drop the lock; releasing an absent key is a no-op."""

    async def run_exclusive(
        self, key: str, ttl_seconds: float, operation: Callable[[], Awaitable[T]]
    ) -> T:
        """Run ``operation`` while holding ``key``; raise LockUnavailableError if it is held."""
        if not await self.acquire(key, ttl_seconds):
            raise LockUnavailableError(key)
        try:
            return await operation()
        except Exception:
            logger.warning("Error during locked operation for key %s", key, exc_info=True)
            raise
        finally:
            await self.release(key)


class InMemoryLockManager(LockManager):
    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._locks: dict[str, float] = {}
        self._mutex = threading.Lock()

    async def acquire(self, key: str, ttl_seconds: float) -> bool:
        with self._mutex:
            now = self._clock()
            expiry = self._locks.get(key)
            if expiry is not None and expiry > now:
                logger.warning("Lock failed: key %s is already held", key)
                return False
            self._locks[key] = now + ttl_seconds
        logger.debug("Lock acquired: key %s, ttl %.1fs", key, ttl_seconds)
        return True

    async def release(self, key: str) -> None:
        with self._mutex:
            released = self._locks.pop(key, None) is not None
        if released:
            logger.debug("Lock released: key %s", key)

    def is_locked(self, key: str) -> bool:
        with self._mutex:
            expiry = self._locks.get(key)
            return expiry is not None and expiry > self._clock()

    def __len__(self) -> int:
        with self._mutex:
            return len(self._locks)

    def sweep_expired(self) -> int:
        """Drop expired records. Only bounds memory; acquire already ignores expired locks."""
        with self._mutex:
            now = self._clock()
            expired = [key for key, expiry in self._locks.items() if expiry <= now]
            for key in expired:
                del self._locks[key]
        if expired:
            logger.info("Lock reaper: cleaned up %d expired lock(s)", len(expired))
        return len(expired)

    async def run_reaper(self, interval_seconds: float) -> None:
        while True:
            await asyncio.sleep(interval_seconds)
            self.sweep_expired()
