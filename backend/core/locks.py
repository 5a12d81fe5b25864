"""Per-problem Write Serialization

Schedule mutations for one problem are read-modify-write sequences. Each
problem id gets its own ``asyncio.Lock`` so two mutations of the same
problem run one after the other, while different problems never wait on
each other.

Usage:
    async with ProblemLockRegistry.hold(problem_id):
        ...load, compute, commit...
"""
from __future__ import annotations

import asyncio
import weakref
from contextlib import asynccontextmanager
from typing import AsyncIterator
from uuid import UUID

from core.logging import get_logger

log = get_logger("core.locks")


class ProblemLockRegistry:
    """Registry of per-problem locks.

    Entries are weakly held: a lock disappears once no coroutine holds or
    waits on it.
    """

    _locks: "weakref.WeakValueDictionary[str, asyncio.Lock]" = weakref.WeakValueDictionary()

    @classmethod
    def get(cls, problem_id: UUID | str) -> asyncio.Lock:
        """Get or create the lock for a problem."""
        key = str(problem_id)
        lock = cls._locks.get(key)
        if lock is None:
            lock = asyncio.Lock()
            cls._locks[key] = lock
        return lock

    @classmethod
    @asynccontextmanager
    async def hold(cls, problem_id: UUID | str) -> AsyncIterator[None]:
        lock = cls.get(problem_id)
        if lock.locked():
            log.debug("problem_lock_wait", problem_id=str(problem_id))
        async with lock:
            yield

    @classmethod
    def reset(cls) -> None:
        cls._locks = weakref.WeakValueDictionary()
