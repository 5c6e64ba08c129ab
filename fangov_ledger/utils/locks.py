"""In-process mutexes keyed by an id"""
import threading
from contextlib import contextmanager
from typing import Dict, Hashable


class KeyedLocks:
    """
    One lock per key, created on first use.

    Locks are never evicted: the map grows by one entry per artist that has
    distributed revenue in this process.
    """

    def __init__(self):
        self._guard = threading.Lock()
        self._locks: Dict[Hashable, threading.Lock] = {}

    def _lock_for(self, key: Hashable) -> threading.Lock:
        with self._guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = self._locks[key] = threading.Lock()
            return lock

    @contextmanager
    def hold(self, key: Hashable):
        lock = self._lock_for(key)
        with lock:
            yield
