"""Per-project mutual exclusion for live key-space writers."""

import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict


class ProjectLockRegistry:
    """
    One asyncio lock per project ID.

    Locks are process-local; every request that mutates a project's bucket
    or pointer in this process goes through the same registry.
    """

    def __init__(self):
        self._locks: Dict[str, asyncio.Lock] = {}

    def _get_lock(self, project_id: str) -> asyncio.Lock:
        """Get or create lock for project."""
        if project_id not in self._locks:
            self._locks[project_id] = asyncio.Lock()
        return self._locks[project_id]

    @asynccontextmanager
    async def hold(self, project_id: str) -> AsyncIterator[None]:
        async with self._get_lock(project_id):
            yield

    def is_locked(self, project_id: str) -> bool:
        lock = self._locks.get(project_id)
        return lock is not None and lock.locked()

    def discard(self, project_id: str) -> None:
        """Forget the lock of a deleted project, unless someone holds it."""
        lock = self._locks.get(project_id)
        if lock is not None and not lock.locked():
            del self._locks[project_id]


# Writers of the live key-space and the active pointer (deploy upload, rollback)
project_write_locks = ProjectLockRegistry()

# Version allocation (read max version, insert row)
project_allocation_locks = ProjectLockRegistry()
