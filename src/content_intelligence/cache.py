import threading
import time
from collections import OrderedDict
from typing import Any, Dict, Hashable, List, Optional

DEFAULT_TTL = 60 * 60
DEFAULT_MAX_ITEMS = 1024


class TTLCache:
    """
    A thread-safe cache with a per-entry time-to-live and a fixed capacity.

    Expired entries are dropped when they are read or when room is needed.
    Once `max_items` live entries are stored, the least recently used one is
    evicted to make space for the next insert.

    Attributes:
        ttl (float): Default lifetime of an entry in seconds.
        max_items (int): Maximum number of entries kept at once.
    """

    def __init__(self, ttl: float = DEFAULT_TTL, max_items: int = DEFAULT_MAX_ITEMS):
        if ttl <= 0:
            raise ValueError("ttl must be positive")
        if max_items <= 0:
            raise ValueError("max_items must be positive")
        self.ttl = ttl
        self.max_items = max_items
        self._entries: "OrderedDict[Hashable, tuple]" = OrderedDict()
        self._lock = threading.Lock()
        self.hits = 0
        self.misses = 0

    def set(self, key: Hashable, value: Any, ttl: Optional[float] = None):
        """
        Stores a value, evicting expired or least recently used entries if full.

        Args:
            key: The key for the cache entry.
            value: The value to be stored.
            ttl (float, optional): Lifetime for this entry. Defaults to the cache ttl.
        """
        expires_at = time.monotonic() + (ttl or self.ttl)
        with self._lock:
            if key in self._entries:
                self._entries.move_to_end(key)
            self._entries[key] = (value, expires_at)
            if len(self._entries) > self.max_items:
                self._purge_expired()
            while len(self._entries) > self.max_items:
                self._entries.popitem(last=False)

    def get(self, key: Hashable, default: Any = None) -> Any:
        """
        Returns the cached value, or `default` when missing or expired.
        """
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                self.misses += 1
                return default
            value, expires_at = entry
            if expires_at < time.monotonic():
                del self._entries[key]
                self.misses += 1
                return default
            self._entries.move_to_end(key)
            self.hits += 1
            return value

    def delete(self, key: Hashable):
        with self._lock:
            self._entries.pop(key, None)

    def clear(self):
        with self._lock:
            self._entries.clear()

    def dump(self) -> List[Dict[str, Any]]:
        """Snapshot of live entries, oldest first."""
        now = time.monotonic()
        with self._lock:
            return [
                {'key': key, 'value': value, 'expires_in': round(expires_at - now, 3)}
                for key, (value, expires_at) in self._entries.items()
                if expires_at >= now
            ]

    def _purge_expired(self):
        now = time.monotonic()
        expired = [k for k, (_, exp) in self._entries.items() if exp < now]
        for k in expired:
            del self._entries[k]

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, key: Hashable) -> bool:
        return self.get(key, _MISSING) is not _MISSING


_MISSING = object()
