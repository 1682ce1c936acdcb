"""
Per-resource locks serializing check-then-write sequences.

A resource is a (tenant, staff) pair, with ``None`` standing for the
unassigned bucket. Locks only coordinate callers sharing one event loop and
one registry. Across registries and processes the relational store takes its
own resource lock inside the insert transaction (``booking_core.store.sql``).
"""

import asyncio
import weakref
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

ResourceKey = tuple[str, Optional[str]]


class ResourceLockRegistry:
    """Lazily created ``asyncio.Lock`` per (tenant_id, staff_id).

    Entries are weak: a lock disappears once no caller holds or awaits it,
    so the registry does not grow with every resource ever booked.
    """

    def __init__(self) -> None:
        self._locks: "weakref.WeakValueDictionary[ResourceKey, asyncio.Lock]" = (
            weakref.WeakValueDictionary()
        )

    def lock_for(self, tenant_id: str, staff_id: Optional[str]) -> asyncio.Lock:
        key = (tenant_id, staff_id)
        lock = self._locks.get(key)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[key] = lock
        return lock

    @asynccontextmanager
    async def hold(self, *keys: ResourceKey) -> AsyncIterator[None]:
        """Acquire the locks for ``keys`` in a stable order to avoid deadlock."""
        ordered = sorted(set(keys), key=lambda k: (k[0], k[1] or ""))
        locks = [self.lock_for(tenant_id, staff_id) for tenant_id, staff_id in ordered]
        acquired: list[asyncio.Lock] = []
        try:
            for lock in locks:
                await lock.acquire()
                acquired.append(lock)
            yield
        finally:
            for lock in reversed(acquired):
                lock.release()

    def __len__(self) -> int:
        return len(self._locks)
