"""Per-key mutual exclusion for read-modify-write operations."""

import asyncio
import contextlib
from collections.abc import AsyncIterator


class KeyedLock:
    """
    Hands out one `asyncio.Lock` per key.

    Tasks using the same key run one at a time; tasks using different keys
    never wait on each other. A key's lock is discarded once no task holds or
    waits for it, so the registry only grows with concurrent activity.
    """

    def __init__(self) -> None:
        self._locks: dict[str, asyncio.Lock] = {}
        self._users: dict[str, int] = {}

    @contextlib.asynccontextmanager
    async def hold(self, key: str) -> AsyncIterator[None]:
        """Acquire the lock for `key` for the duration of the block."""
        lock = self._locks.setdefault(key, asyncio.Lock())
        self._users[key] = self._users.get(key, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._users[key] -= 1
            if self._users[key] == 0:
                del self._users[key]
                del self._locks[key]

    def locked(self, key: str) -> bool:
        """Check whether some task currently holds the lock for `key`."""
        lock = self._locks.get(key)
        return lock is not None and lock.locked()

    def __len__(self) -> int:
        return len(self._locks)
