"""Per-firm mutual exclusion for the charge approval critical section."""
import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Hashable

import structlog

logger = structlog.get_logger(__name__)


class FirmLocks:
    """
    Registry of asyncio locks keyed by firm.

    Entries are reference-counted and dropped once no task holds or waits on
    them, so the registry stays bounded by the number of firms with in-flight
    proposals. Proposals for different firms never contend.
    """

    def __init__(self) -> None:
        self._locks: dict[Hashable, asyncio.Lock] = {}
        self._waiters: dict[Hashable, int] = {}

    @asynccontextmanager
    async def hold(self, key: Hashable) -> AsyncIterator[None]:
        """Hold the lock for one firm for the duration of the block."""
        lock = self._locks.get(key)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[key] = lock
        self._waiters[key] = self._waiters.get(key, 0) + 1

        try:
            if lock.locked():
                logger.debug("firm_lock_contended", firm_id=str(key))
            async with lock:
                yield
        finally:
            self._waiters[key] -= 1
            if self._waiters[key] == 0:
                del self._waiters[key]
                del self._locks[key]

    def is_locked(self, key: Hashable) -> bool:
        """Whether some task currently holds the lock for this firm."""
        lock = self._locks.get(key)
        return lock is not None and lock.locked()

    def __len__(self) -> int:
        return len(self._locks)


# Process-wide registry shared by every ApprovalEngine instance
firm_locks = FirmLocks()
