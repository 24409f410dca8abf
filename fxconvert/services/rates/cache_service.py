from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from typing import Awaitable, Callable, Dict, Optional

from .base import CacheKey

"""Response cache for raw exchange-rate bodies.

Purpose:
    Keep the most recent successful body for each logical request
    (operation + currency codes) for a fixed TTL so repeated lookups in one run
    do not hit the remote service again.

Design:
    - One entry per CacheKey; a refresh replaces the entry whole.
    - Expiry is checked lazily on every access (``now < expires_at``); nothing
      evicts in the background and reads never extend the TTL.
    - A single coarse lock guards the dict. It is taken for the lookup before
      the fetch and again for the store after it, never across the await, so a
      slow fetch does not block other readers. Two concurrent misses on the
      same key may both fetch; the later write wins. At CLI/service request
      volumes that duplicate fetch is accepted instead of per-key locking.
    - Failed fetches leave the dict untouched and propagate.

Clock:
    Expiry instants come from ``time.monotonic`` so wall-clock changes do not
    stretch or cut short an entry; tests inject their own clock.

Lifecycle:
    Construct once per process run (CLI invocation or service app) and hand it
    to the conversion engine. Nothing is persisted.
"""

logger = logging.getLogger("fxconvert.cache")

DEFAULT_TTL_SECONDS = 3600


@dataclass(frozen=True)
class _CacheEntry:
    body: str
    expires_at: float


class ResponseCache:
    """Keyed TTL cache of raw response bodies."""

    def __init__(
        self,
        ttl_seconds: int = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        if ttl_seconds <= 0:
            raise ValueError("cache ttl must be positive seconds")
        self._ttl = float(ttl_seconds)
        self._clock = clock
        self._lock = threading.Lock()
        self._entries: Dict[CacheKey, _CacheEntry] = {}

    @property
    def ttl(self) -> float:
        """Entry lifetime in seconds."""
        return self._ttl

    # Internal --------------------------------------------------
    def _lookup(self, key: CacheKey) -> Optional[str]:
        with self._lock:
            entry = self._entries.get(key)
            if entry is not None and self._clock() < entry.expires_at:
                return entry.body
        return None

    def _store(self, key: CacheKey, body: str) -> None:
        entry = _CacheEntry(body=body, expires_at=self._clock() + self._ttl)
        with self._lock:
            self._entries[key] = entry

    # Public API -----------------------------------------------
    async def get_or_fetch(
        self, key: CacheKey, fetch_fn: Callable[[], Awaitable[str]]
    ) -> str:
        body = self._lookup(key)
        if body is not None:
            logger.debug("cache hit %s", key)
            return body
        logger.debug("cache miss %s", key)
        body = await fetch_fn()
        self._store(key, body)
        return body

    def invalidate(self, key: CacheKey) -> bool:
        with self._lock:
            return self._entries.pop(key, None) is not None

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return isinstance(key, CacheKey) and self._lookup(key) is not None
