"""
Per-client fixed-window rate limiter.

One record per client key: (count, window_start). The first request from a
key opens a window. Once the window width has elapsed the next request opens
a fresh window. Inside a window at most `limit` requests are admitted; later
ones are rejected without touching the record.

Single-process only. A multi-instance deployment needs a shared store
(e.g. Redis) behind the same admit() contract.
"""

import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict

logger = logging.getLogger(__name__)


@dataclass
class RateLimitRecord:
    count: int
    window_start: float


class RateLimiter:
    """
    Usage:
        limiter = RateLimiter(limit=60, window_seconds=60)
        if not limiter.admit(client_ip):
            raise HTTPException(429, ...)
    """

    def __init__(
        self,
        limit: int,
        window_seconds: float = 60.0,
        clock: Callable[[], float] = time.monotonic,
        name: str = "default",
    ):
        self.limit = limit
        self.window_seconds = window_seconds
        self.name = name
        self._clock = clock
        self._records: Dict[str, RateLimitRecord] = {}
        # FastAPI runs sync dependencies on a thread pool
        self._lock = threading.Lock()
        self._last_sweep = clock()

    def admit(self, key: str) -> bool:
        with self._lock:
            now = self._clock()
            if now - self._last_sweep > self.window_seconds:
                self._sweep_locked(now)

            record = self._records.get(key)
            if record is None or now - record.window_start > self.window_seconds:
                self._records[key] = RateLimitRecord(count=1, window_start=now)
                return True

            if record.count >= self.limit:
                logger.info(f"RateLimiter[{self.name}]: rejected '{key}' ({record.count}/{self.limit})")
                return False

            record.count += 1
            return True

    def remaining(self, key: str) -> int:
        """Requests still admissible for key in its current window."""
        with self._lock:
            record = self._records.get(key)
            if record is None or self._clock() - record.window_start > self.window_seconds:
                return self.limit
            return max(0, self.limit - record.count)

    def sweep(self) -> int:
        """Evict records whose window has elapsed. Returns the number evicted."""
        with self._lock:
            return self._sweep_locked(self._clock())

    def _sweep_locked(self, now: float) -> int:
        expired = [
            key for key, record in self._records.items()
            if now - record.window_start > self.window_seconds
        ]
        for key in expired:
            del self._records[key]
        self._last_sweep = now
        if expired:
            logger.debug(f"RateLimiter[{self.name}]: evicted {len(expired)} expired keys")
        return len(expired)

    def __len__(self) -> int:
        return len(self._records)
