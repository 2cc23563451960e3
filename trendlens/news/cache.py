"""
In-memory result cache and single-flight guard for ingestion runs.

ResultCache holds exactly one entry: the last merged article collection and
the time it was produced. It is never partially updated; a stale entry is
only replaced by a complete new ingestion run.

SingleFlight keeps one in-progress asyncio.Task per key. Callers that arrive
while a task is running await that task instead of starting a duplicate, so
concurrent cache misses share one fan-out and one result.
"""

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Awaitable, Callable, Dict, List, Optional, Tuple, TypeVar

from trendlens.schemas.news import Article

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class CacheEntry:
    articles: Tuple[Article, ...]
    created_at: float


class ResultCache:
    """Single-slot TTL cache for the merged article collection."""

    def __init__(self, ttl_seconds: float = 300.0, clock: Callable[[], float] = time.monotonic):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entry: Optional[CacheEntry] = None

    def is_valid(self) -> bool:
        if self._entry is None:
            return False
        return self._clock() - self._entry.created_at < self.ttl_seconds

    def get(self) -> Optional[List[Article]]:
        """Return a copy of the cached collection if still fresh, else None."""
        if self.is_valid():
            return list(self._entry.articles)
        return None

    def set(self, articles: List[Article]) -> None:
        # Rebinding the slot is atomic from the event loop's point of view
        self._entry = CacheEntry(articles=tuple(articles), created_at=self._clock())

    def clear(self) -> None:
        self._entry = None

    def age(self) -> Optional[float]:
        """Seconds since the current entry was produced (None when empty)."""
        if self._entry is None:
            return None
        return self._clock() - self._entry.created_at


class SingleFlight:
    """Collapse concurrent calls for the same key into one in-flight task."""

    def __init__(self):
        self._inflight: Dict[str, asyncio.Task] = {}

    def in_flight(self, key: str) -> bool:
        return key in self._inflight

    async def do(self, key: str, fn: Callable[[], Awaitable[T]]) -> T:
        task = self._inflight.get(key)
        if task is None:
            task = asyncio.ensure_future(fn())
            self._inflight[key] = task
            task.add_done_callback(lambda _t: self._inflight.pop(key, None))
        else:
            logger.debug(f"SingleFlight: joining in-flight run for '{key}'")
        # Shield so one cancelled waiter does not cancel the run for everyone else
        return await asyncio.shield(task)
