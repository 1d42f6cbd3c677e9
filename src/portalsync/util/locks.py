"""Process-local keyed locks."""

from __future__ import annotations

import threading
from collections.abc import Hashable, Iterator
from contextlib import contextmanager


class KeyedLocks:
    """
    One ``threading.Lock`` per key, created on demand.

    Locks are never evicted; keys are expected to be bounded (scope ids,
    folder names).
    """

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: dict[Hashable, threading.Lock] = {}

    def get(self, key: Hashable) -> threading.Lock:
        with self._guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = threading.Lock()
                self._locks[key] = lock
            return lock

    @contextmanager
    def hold(self, key: Hashable) -> Iterator[None]:
        """Block until the lock for key is acquired."""
        lock = self.get(key)
        with lock:
            yield

    @contextmanager
    def try_hold(self, key: Hashable) -> Iterator[bool]:
        """Yield True if the lock for key was free and is now held, else False."""
        lock = self.get(key)
        acquired = lock.acquire(blocking=False)
        try:
            yield acquired
        finally:
            if acquired:
                lock.release()
