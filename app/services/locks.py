"""
Keyed Locks

Per-key mutual exclusion for the rating engine.

Route handlers run in FastAPI's threadpool, so two requests for the same
resource can execute at once. Writes that read the current rating set and
then store a summary derived from it must not interleave, or the second
writer stores an average that is missing the first writer's rating.

KeyedLock hands out one threading.Lock per key (e.g. ("resource", 42)).
Different keys never contend, and locks are dropped from the registry once no
thread holds or waits on them, so the registry doesn't grow with the number
of resources ever touched.

This only serializes writers inside one process. Writers in other processes
are caught by the optimistic version column on Resource.
"""

import logging
import threading
from collections.abc import Hashable, Iterator
from contextlib import contextmanager

logger = logging.getLogger(__name__)


class KeyedLock:
    """Registry of reference-counted locks, one per key."""

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: dict[Hashable, list] = {}  # key -> [lock, users]

    @contextmanager
    def hold(self, key: Hashable) -> Iterator[None]:
        """
        Hold the lock for `key` for the duration of the with-block.

        Usage:
            with resource_locks.hold(("resource", resource_id)):
                ...
        """
        with self._guard:
            entry = self._locks.get(key)
            if entry is None:
                entry = [threading.Lock(), 0]
                self._locks[key] = entry
            entry[1] += 1

        lock = entry[0]
        lock.acquire()
        try:
            yield
        finally:
            lock.release()
            with self._guard:
                entry[1] -= 1
                if entry[1] == 0:
                    del self._locks[key]

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)


# Shared by every request in this process
rating_locks = KeyedLock()


def resource_key(resource_id: int) -> tuple[str, int]:
    return ("resource", resource_id)


def rating_key(rating_id: int) -> tuple[str, int]:
    return ("rating", rating_id)
