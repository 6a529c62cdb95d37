from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import Hashable, Iterator


class KeyedLock:
    """One mutex per key (session id, class id, ...).

    Serializes read-modify-write sequences on the same aggregate while work on
    different keys proceeds in parallel. A key's lock only lives while someone
    holds or waits for it, so the map stays as small as the current contention.
    """

    def __init__(self):
        self._guard = threading.Lock()
        # key -> [lock, holders and waiters]
        self._entries: dict[Hashable, list] = {}

    def _acquire_entry(self, key: Hashable) -> threading.Lock:
        with self._guard:
            entry = self._entries.setdefault(key, [threading.Lock(), 0])
            entry[1] += 1
            return entry[0]

    def _release_entry(self, key: Hashable) -> None:
        with self._guard:
            entry = self._entries[key]
            entry[1] -= 1
            if entry[1] == 0:
                del self._entries[key]

    @contextmanager
    def hold(self, key: Hashable) -> Iterator[None]:
        lock = self._acquire_entry(key)
        try:
            with lock:
                yield
        finally:
            self._release_entry(key)

    def __len__(self) -> int:
        with self._guard:
            return len(self._entries)
