"""Per-scope mutual exclusion for structural mutations."""

from __future__ import annotations

import asyncio
import weakref


class ScopeLocks:
    """Lazily created ``asyncio.Lock`` per scope id.

    Only one structural mutation per scope runs at a time; unrelated scopes
    never wait on each other. Locks are held weakly: a lock that nobody holds
    or waits on is dropped, so the registry does not grow with every scope
    the process has seen.
    """

    def __init__(self) -> None:
        self._locks: "weakref.WeakValueDictionary[str, asyncio.Lock]" = weakref.WeakValueDictionary()

    def __contains__(self, scope_id: str) -> bool:
        return scope_id in self._locks

    def lock_for(self, scope_id: str) -> asyncio.Lock:
        lock = self._locks.get(scope_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[scope_id] = lock
        return lock

    def discard(self, scope_id: str) -> None:
        lock = self._locks.get(scope_id)
        if lock is not None and not lock.locked():
            del self._locks[scope_id]

    def clear(self) -> None:
        self._locks.clear()


scope_locks = ScopeLocks()
