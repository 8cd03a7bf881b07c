import threading
import time
from collections import OrderedDict
from typing import Callable, Generic, Hashable, Optional, TypeVar

V = TypeVar("V")


class QueryCache(Generic[V]):
    """Time-boxed cache for derived query results.

    Entries older than ``ttl_seconds`` are treated as missing. The cache only
    saves recomputation; callers must produce the same value on a miss.
    """

    def __init__(
        self,
        ttl_seconds: float,
        max_entries: int = 100,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")
        if max_entries <= 0:
            raise ValueError("max_entries must be positive")
        self.ttl_seconds = ttl_seconds
        self.max_entries = max_entries
        self._clock = clock
        self._entries: OrderedDict[Hashable, tuple[float, V]] = OrderedDict()
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def _is_fresh(self, stored_at: float, now: float) -> bool:
        return now - stored_at <= self.ttl_seconds

    def get(self, key: Hashable) -> Optional[V]:
        with self._lock:
            item = self._entries.get(key)
            if item is None:
                return None
            stored_at, value = item
            if not self._is_fresh(stored_at, self._clock()):
                del self._entries[key]
                return None
            return value

    def put(self, key: Hashable, value: V) -> None:
        with self._lock:
            self._entries.pop(key, None)
            self._entries[key] = (self._clock(), value)
            while len(self._entries) > self.max_entries:
                self._entries.popitem(last=False)

    def invalidate(self, key: Hashable) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def prune_expired(self) -> int:
        with self._lock:
            now = self._clock()
            stale = [
                key
                for key, (stored_at, _value) in self._entries.items()
                if not self._is_fresh(stored_at, now)
            ]
            for key in stale:
                del self._entries[key]
            return len(stale)
