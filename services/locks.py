import threading
from contextlib import contextmanager
from typing import Dict, List


class LockRegistry:
    """One re-entrant lock per entity key, alive only while someone holds or waits on it."""

    def __init__(self):
        # key -> [lock, number of holders and waiters]
        self._locks: Dict[str, List] = {}
        self._guard = threading.Lock()

    def __len__(self):
        with self._guard:
            return len(self._locks)

    def _acquire_entry(self, key: str) -> List:
        with self._guard:
            entry = self._locks.get(key)
            if entry is None:
                entry = self._locks[key] = [threading.RLock(), 0]
            entry[1] += 1
            return entry

    def _release_entry(self, key: str, entry: List):
        with self._guard:
            entry[1] -= 1
            if entry[1] == 0:
                del self._locks[key]

    @contextmanager
    def hold(self, key: str):
        entry = self._acquire_entry(key)
        try:
            with entry[0]:
                yield
        finally:
            self._release_entry(key, entry)
