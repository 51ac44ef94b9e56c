"""In-memory key/value cache with per-item expiration."""

import threading
import time
from datetime import timedelta
from typing import Any, Dict, Hashable, Optional, Tuple, Union

from .logger import get_logger

logger = get_logger(__name__)

# Pass as ttl to keep an item until it is deleted.
NO_EXPIRATION = -1

Duration = Union[timedelta, float, int, None]


class ExpiringCache:
    """Thread-safe dictionary whose items expire after a time-to-live.

    A ttl of zero or None uses the default TTL, NO_EXPIRATION keeps an item
    until it is deleted.

    Expired items are never returned. A background janitor thread removes them
    every ``cleanup_interval``; a zero or negative interval disables it and
    expired items are then only dropped by ``delete_expired``.
    """

    def __init__(self, default_ttl: Duration = None, cleanup_interval: Duration = None):
        self.default_ttl = _seconds(default_ttl)
        self.cleanup_interval = _seconds(cleanup_interval)
        self._items: Dict[Hashable, Tuple[Any, Optional[float]]] = {}
        self._lock = threading.RLock()
        self._stop = threading.Event()
        self._janitor: Optional[threading.Thread] = None

        if self.cleanup_interval and self.cleanup_interval > 0:
            self._janitor = threading.Thread(
                target=self._run_janitor, name="photo-server-cache-janitor", daemon=True
            )
            self._janitor.start()

    def _expires_at(self, ttl: Duration) -> Optional[float]:
        if ttl is None or _seconds(ttl) == 0:
            seconds = self.default_ttl
        elif ttl == NO_EXPIRATION:
            return None
        else:
            seconds = _seconds(ttl)

        if not seconds or seconds <= 0:
            return None

        return time.monotonic() + seconds

    def _live(self, key: Hashable, now: float) -> bool:
        entry = self._items.get(key)
        if entry is None:
            return False
        expires_at = entry[1]
        return expires_at is None or expires_at > now

    def set(self, key: Hashable, value: Any, ttl: Duration = None) -> None:
        """Store a value, replacing any existing item."""
        with self._lock:
            self._items[key] = (value, self._expires_at(ttl))

    def add(self, key: Hashable, value: Any, ttl: Duration = None) -> None:
        """Store a value only if the key is not already cached."""
        with self._lock:
            if self._live(key, time.monotonic()):
                raise KeyError(f"Item {key!r} already exists")
            self._items[key] = (value, self._expires_at(ttl))

    def replace(self, key: Hashable, value: Any, ttl: Duration = None) -> None:
        """Store a value only if the key is already cached."""
        with self._lock:
            if not self._live(key, time.monotonic()):
                raise KeyError(f"Item {key!r} doesn't exist")
            self._items[key] = (value, self._expires_at(ttl))

    def get(self, key: Hashable, default: Any = None) -> Any:
        with self._lock:
            if not self._live(key, time.monotonic()):
                return default
            return self._items[key][0]

    def __contains__(self, key: Hashable) -> bool:
        with self._lock:
            return self._live(key, time.monotonic())

    def delete(self, key: Hashable) -> None:
        with self._lock:
            self._items.pop(key, None)

    def delete_expired(self) -> int:
        """Remove expired items and return how many were dropped."""
        now = time.monotonic()
        with self._lock:
            expired = [key for key in self._items if not self._live(key, now)]
            for key in expired:
                del self._items[key]
        if expired:
            logger.debug(f"Removed {len(expired)} expired cache items")
        return len(expired)

    def items(self) -> Dict[Hashable, Any]:
        """Snapshot of all unexpired items."""
        now = time.monotonic()
        with self._lock:
            return {key: entry[0] for key, entry in self._items.items() if self._live(key, now)}

    def item_count(self) -> int:
        """Number of stored items, including expired ones not yet cleaned up."""
        with self._lock:
            return len(self._items)

    def flush(self) -> None:
        with self._lock:
            self._items.clear()

    def close(self) -> None:
        """Stop the janitor thread."""
        self._stop.set()
        if self._janitor is not None and self._janitor is not threading.current_thread():
            self._janitor.join(timeout=1.0)
        self._janitor = None

    def _run_janitor(self) -> None:
        while not self._stop.wait(self.cleanup_interval):
            self.delete_expired()


def _seconds(value: Duration) -> Optional[float]:
    if value is None:
        return None
    if isinstance(value, timedelta):
        return value.total_seconds()
    return float(value)
