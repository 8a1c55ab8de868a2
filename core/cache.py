# core/cache.py

"""
In-memory TTL cache used by the session store.

Validated bearer tokens are kept here for a short time so that one page
load (several API calls) costs one round trip to Supabase Auth. The cache is
per-process; a deployment with several workers simply re-validates a token
once per worker.
"""

import time
from threading import Lock
from typing import Any, Callable, Dict, Optional, Tuple

from core.logging_config import logger


class TTLCache:
    """
    Thread-safe key/value store with per-entry expiry.

    `clock` returns seconds as a float and defaults to time.monotonic;
    tests pass their own to move time forward without sleeping.
    """

    def __init__(self, default_ttl: int = 300, clock: Callable[[], float] = time.monotonic):
        self.default_ttl = default_ttl
        self._clock = clock
        self._entries: Dict[str, Tuple[Any, float]] = {}
        self._lock = Lock()
        self._next_sweep = clock() + default_ttl

    def get(self, key: str) -> Optional[Any]:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None

            value, expires_at = entry
            if self._clock() >= expires_at:
                del self._entries[key]
                logger.debug(f"Cache expired: {key}")
                return None

            return value

    def set(self, key: str, value: Any, ttl_seconds: Optional[int] = None):
        ttl = self.default_ttl if ttl_seconds is None else ttl_seconds
        now = self._clock()
        with self._lock:
            # Entries nobody reads again are dropped here, at most once per default_ttl.
            if now >= self._next_sweep:
                self._drop_expired(now)
                self._next_sweep = now + self.default_ttl
            self._entries[key] = (value, now + ttl)

    def pop(self, key: str) -> Optional[Any]:
        """Remove and return an entry (expired or not)."""
        with self._lock:
            entry = self._entries.pop(key, None)
        return entry[0] if entry else None

    def clear(self):
        with self._lock:
            self._entries.clear()

    def cleanup_expired(self) -> int:
        now = self._clock()
        with self._lock:
            return self._drop_expired(now)

    def _drop_expired(self, now: float) -> int:
        # Caller holds the lock.
        expired = [k for k, (_, exp) in self._entries.items() if now >= exp]
        for k in expired:
            del self._entries[k]
        return len(expired)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
