from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import Dict, Hashable, Iterator, List

from ..core.exceptions import ConcurrencyConflict


class KeyedLock:
    """One mutex per key (employee). Losing a race raises ConcurrencyConflict.

    A key's mutex lives only while someone holds or waits for it.
    """

    def __init__(self, timeout_seconds: float = 5.0):
        self._timeout = float(timeout_seconds)
        # key -> [lock, number of holders and waiters]
        self._locks: Dict[Hashable, List] = {}
        self._guard = threading.Lock()

    def active_keys(self) -> int:
        with self._guard:
            return len(self._locks)

    def _checkout(self, key: Hashable) -> threading.Lock:
        with self._guard:
            slot = self._locks.get(key)
            if slot is None:
                slot = [threading.Lock(), 0]
                self._locks[key] = slot
            slot[1] += 1
            return slot[0]

    def _checkin(self, key: Hashable) -> None:
        with self._guard:
            slot = self._locks[key]
            slot[1] -= 1
            if slot[1] == 0:
                del self._locks[key]

    @contextmanager
    def hold(self, key: Hashable) -> Iterator[None]:
        lock = self._checkout(key)
        try:
            if not lock.acquire(timeout=self._timeout):
                raise ConcurrencyConflict(f"Another request is updating attendance for {key}; retry")
            try:
                yield
            finally:
                lock.release()
        finally:
            self._checkin(key)
