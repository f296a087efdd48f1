"""A concurrency-safe cache for the results of web requests."""

from __future__ import annotations

import asyncio
import logging
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Generic, Optional, TypeVar

from .errors import RequestError

T = TypeVar("T")

_log = logging.getLogger(__name__)


@dataclass
class _Entry:
    outcome: Any
    failed: bool
    inserted: float
    accessed: float

    def unwrap(self) -> Any:
        if self.failed:
            raise self.outcome
        return self.outcome


class RequestCacheMap(Generic[T]):
    """Caches request outcomes per key, running each fetch at most once at a time.

    Entries expire ``minutes_to_live`` minutes after they are stored, or
    ``minutes_to_idle`` minutes after they were last used. Failures of type
    RequestError are cached and raised again just like values are returned.
    """

    def __init__(
        self,
        minutes_to_live: float,
        minutes_to_idle: float,
        *,
        max_capacity: int = 64,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._time_to_live = 60 * minutes_to_live
        self._time_to_idle = 60 * minutes_to_idle
        self._capacity = max_capacity
        self._clock = clock
        self._entries: OrderedDict[str, _Entry] = OrderedDict()
        self._locks: dict[str, asyncio.Lock] = {}

    def invalidate(self) -> None:
        """Drop every cached entry so that the next calls fetch afresh."""
        self._entries.clear()

    def _lookup(self, key: str) -> Optional[_Entry]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        now = self._clock()
        if now - entry.inserted >= self._time_to_live or now - entry.accessed >= self._time_to_idle:
            del self._entries[key]
            return None
        entry.accessed = now
        self._entries.move_to_end(key)
        return entry

    def _store(self, key: str, outcome: Any, failed: bool) -> None:
        now = self._clock()
        self._entries[key] = _Entry(outcome, failed, now, now)
        self._entries.move_to_end(key)
        while len(self._entries) > self._capacity:
            self._entries.popitem(last=False)

    async def with_caching(self, key: str, factory: Callable[[], Awaitable[T]]) -> T:
        """Return the cached outcome for ``key``, or await ``factory()`` to get it.

        Concurrent callers with the same key wait for a single fetch and all
        receive its outcome.
        """
        entry = self._lookup(key)
        if entry is not None:
            _log.debug("Cache hit (1): %s", key)
            return entry.unwrap()

        lock = self._locks.setdefault(key, asyncio.Lock())
        async with lock:
            entry = self._lookup(key)
            if entry is not None:
                _log.debug("Cache hit (2): %s", key)
                return entry.unwrap()

            _log.debug("Performing cached request: %s", key)
            try:
                value = await factory()
            except RequestError as exc:
                self._store(key, exc, failed=True)
                raise
            self._store(key, value, failed=False)
            return value