"""
In-Memory TTL Cache

A small process-local cache used by the functions to avoid hitting the
upstream on every request.

Each entry is (payload, stored_at). An entry is served only while
`clock() - stored_at < ttl`; after that it is treated as absent until the
next successful load overwrites it. Entries are never evicted explicitly,
they live as long as the process does.

Concurrency:
    Invocations run on one event loop. `get_or_load()` runs at most one load
    per key as an asyncio task; concurrent misses for the same key await
    that task and share its result or its exception. The task is dropped
    once it settles, so keys that never load successfully leave nothing
    behind.

Usage:
    cache = TTLCache(ttl_seconds=30, name="quotes")

    quote = await cache.get_or_load("bitcoin", lambda: fetch_quote("bitcoin"))
"""

import asyncio
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Hashable, Optional

from core.logging import log_cache_event


Clock = Callable[[], float]


@dataclass(frozen=True)
class CacheEntry:
    """A cached payload and the clock reading at which it was stored."""

    payload: Any
    stored_at: float


class TTLCache:
    """
    Time-windowed cache with a fixed TTL.

    Args:
        ttl_seconds: How long an entry stays valid
        clock: Monotonic time source in seconds (injectable for tests)
        name: Cache name used in log messages
    """

    def __init__(self, ttl_seconds: float, clock: Clock = time.monotonic, name: str = "cache") -> None:
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")
        self.ttl = ttl_seconds
        self.name = name
        self._clock = clock
        self._entries: Dict[Hashable, CacheEntry] = {}
        self._inflight: Dict[Hashable, asyncio.Task] = {}

    # ============================================
    # Basic Access
    # ============================================

    def get(self, key: Hashable) -> Optional[Any]:
        """Return the payload for key, or None if absent or expired."""
        entry = self._entries.get(key)
        if entry is None:
            return None
        if self._clock() - entry.stored_at >= self.ttl:
            return None
        return entry.payload

    def set(self, key: Hashable, payload: Any) -> None:
        """Store payload under key, replacing any previous entry."""
        self._entries[key] = CacheEntry(payload=payload, stored_at=self._clock())

    def age(self, key: Hashable) -> Optional[float]:
        """Seconds since key was stored (expired or not), or None if never stored."""
        entry = self._entries.get(key)
        if entry is None:
            return None
        return self._clock() - entry.stored_at

    def __contains__(self, key: Hashable) -> bool:
        return self.get(key) is not None

    def __len__(self) -> int:
        return len(self._entries)

    # ============================================
    # Single-Flight Loading
    # ============================================

    async def get_or_load(self, key: Hashable, loader: Callable[[], Awaitable[Any]]) -> Any:
        """
        Return the cached payload for key, loading it on a miss.

        Only one loader runs per key at a time; callers arriving while it runs
        get the same payload or the same exception. If the loader raises,
        nothing is stored. Cancelling a caller does not cancel the load.
        """
        payload = self.get(key)
        if payload is not None:
            log_cache_event(self.name, "hit", str(key), f"age={self.age(key):.1f}s")
            return payload

        task = self._inflight.get(key)
        if task is not None:
            log_cache_event(self.name, "join", str(key), "load already in flight")
        else:
            log_cache_event(self.name, "miss", str(key))
            task = asyncio.create_task(self._load(key, loader), name=f"{self.name}:{key}")
            self._inflight[key] = task

        return await asyncio.shield(task)

    @property
    def pending(self) -> int:
        """Number of loads currently in flight."""
        return len(self._inflight)

    async def _load(self, key: Hashable, loader: Callable[[], Awaitable[Any]]) -> Any:
        try:
            payload = await loader()
            self.set(key, payload)
            log_cache_event(self.name, "store", str(key), f"ttl={self.ttl}s")
            return payload
        finally:
            self._inflight.pop(key, None)
