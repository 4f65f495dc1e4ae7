"""
@file_name: locks.py
@date: 2026-10-02
@description: Keyed asyncio lock registry

Serializes work per key (user id for aggregation, story id for appends) while
letting different keys run concurrently. Locks are created on first use and
dropped once no coroutine holds or waits on them.

Usage:
    user_locks = KeyedLock("user")

    async with user_locks.hold(user_id):
        ...
"""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict

from loguru import logger


class KeyedLock:
    """A dictionary of asyncio.Lock objects keyed by string"""

    def __init__(self, name: str = "key"):
        self.name = name
        self._locks: Dict[str, asyncio.Lock] = {}
        self._waiters: Dict[str, int] = {}

    @asynccontextmanager
    async def hold(self, key: str) -> AsyncIterator[None]:
        """Acquire the lock for key for the duration of the block"""
        lock = self._locks.get(key)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[key] = lock
        self._waiters[key] = self._waiters.get(key, 0) + 1

        if lock.locked():
            logger.debug(f"Waiting for {self.name} lock: {key}")

        try:
            async with lock:
                yield
        finally:
            self._waiters[key] -= 1
            if self._waiters[key] == 0:
                del self._waiters[key]
                del self._locks[key]

    def is_locked(self, key: str) -> bool:
        lock = self._locks.get(key)
        return lock is not None and lock.locked()

    def __len__(self) -> int:
        return len(self._locks)
