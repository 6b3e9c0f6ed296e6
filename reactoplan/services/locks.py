"""Per-reactor mutual exclusion for validate-then-commit sequences."""

from __future__ import annotations

import threading
from contextlib import ExitStack, contextmanager
from typing import Iterator


class ResourceLocks:
    """Registry of one lock per reactor serial number.

    Holding a reactor's lock guarantees no other booking or downtime
    mutation for that reactor is between its validation and its commit.
    """

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: dict[str, threading.Lock] = {}

    def _lock_for(self, key: str) -> threading.Lock:
        with self._guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = self._locks[key] = threading.Lock()
            return lock

    def discard(self, key: str) -> None:
        """Forget the lock for a reactor that no longer exists."""
        with self._guard:
            self._locks.pop(key, None)

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)

    @contextmanager
    def hold(self, *keys: str) -> Iterator[None]:
        """Acquire the locks for *keys* in sorted order and release on exit."""
        with ExitStack() as stack:
            for key in sorted(set(keys)):
                stack.enter_context(self._lock_for(key))
            yield
