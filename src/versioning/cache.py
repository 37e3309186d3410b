"""In-memory TTL cache for resolved versions."""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

from constants import Constants


@dataclass
class CacheEntry:
    """A cached value with its creation time and lifetime."""

    value: Any
    created_at: float
    ttl: float

    def is_expired(self, now: float) -> bool:
        """Check if this entry has expired."""
        return now - self.created_at >= self.ttl


class TTLCache:
    """Thread-safe key/value cache whose entries expire after a TTL.

    Expired entries are dropped lazily when read. Nothing else evicts, so
    the number of distinct keys is bounded only by the process lifetime.
    """

    def __init__(
        self,
        default_ttl: float = Constants.RESULT_CACHE_TTL_SEC,
        clock: Callable[[], float] = time.monotonic,
    ):
        """Initialize the cache.

        Args:
            default_ttl: Default time-to-live in seconds.
            clock: Monotonic time source, injectable for tests.
        """
        self._default_ttl = default_ttl
        self._clock = clock
        self._entries: Dict[str, CacheEntry] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[Any]:
        """Return the cached value, or None when missing or expired."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if entry.is_expired(self._clock()):
                del self._entries[key]
                return None
            return entry.value

    def set(self, key: str, value: Any, ttl: Optional[float] = None) -> None:
        """Store ``value`` under ``key``; later writes replace earlier ones."""
        effective_ttl = ttl if ttl is not None else self._default_ttl
        with self._lock:
            self._entries[key] = CacheEntry(value=value, created_at=self._clock(), ttl=effective_ttl)

    def invalidate(self, key: str) -> None:
        """Drop ``key`` if present."""
        with self._lock:
            self._entries.pop(key, None)

    def clear(self) -> None:
        """Clear all cached entries."""
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


# Process-wide cache shared by every resolve call.
RESULT_CACHE = TTLCache()
