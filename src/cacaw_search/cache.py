"""In-process result cache for aggregated searches.

Design:
  - dict keyed by sha256(provider scope + canonical JSON of params)
  - per-entry TTL, checked lazily on every read
  - capacity bound; inserting a new key at capacity evicts the entry with
    the oldest ``created_at``
  - optional background sweep (asyncio task) that drops expired entries
    that are never read again
  - every map operation runs under one lock

The cache is best-effort and non-durable; dropping it never affects
correctness.
"""

import asyncio
import contextlib
import dataclasses
import hashlib
import json
import logging
import threading
import time
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CacheEntry:
    """A stored payload with its freshness window (seconds since epoch)."""

    payload: Any
    created_at: float
    expires_at: float


@dataclass(frozen=True)
class CacheStats:
    """Snapshot of cache occupancy and hit counters."""

    size: int
    max_size: int
    approx_memory_bytes: int
    hits: int = 0
    misses: int = 0


def _json_default(obj: Any) -> Any:
    if isinstance(obj, (set, frozenset)):
        return sorted(obj)
    if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
        return dataclasses.asdict(obj)
    return str(obj)


def make_cache_key(provider: str, params: Mapping[str, Any]) -> str:
    """Deterministic key for a provider scope and parameter mapping.

    Keys are sorted at every nesting level, so field order never matters.
    """
    canonical = json.dumps(params, sort_keys=True, separators=(",", ":"), default=_json_default)
    return hashlib.sha256(f"{provider}:{canonical}".encode()).hexdigest()


class ResultCache:
    """Thread-safe TTL cache with a capacity bound.

    Args:
        max_size: Maximum number of entries.
        default_ttl: Time-to-live in seconds when ``set`` is given none.
        sweep_interval: Seconds between background sweeps once started.
        clock: Returns the current time in seconds (defaults to ``time.time``).
    """

    def __init__(
        self,
        *,
        max_size: int = 500,
        default_ttl: float = 3600.0,
        sweep_interval: float = 600.0,
        clock: Callable[[], float] = time.time,
    ) -> None:
        if max_size < 1:
            raise ValueError("max_size must be at least 1")
        self._max_size = max_size
        self._default_ttl = default_ttl
        self._sweep_interval = sweep_interval
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}
        self._lock = threading.Lock()
        self._hits = 0
        self._misses = 0
        self._sweeper: asyncio.Task[None] | None = None

    @property
    def max_size(self) -> int:
        return self._max_size

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def get(self, provider: str, params: Mapping[str, Any]) -> Any | None:
        """Return the cached payload, or None if absent or expired.

        An expired entry is deleted as a side effect.
        """
        key = make_cache_key(provider, params)
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                self._misses += 1
                return None
            if self._clock() > entry.expires_at:
                del self._entries[key]
                self._misses += 1
                return None
            self._hits += 1
            return entry.payload

    def has(self, provider: str, params: Mapping[str, Any]) -> bool:
        key = make_cache_key(provider, params)
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return False
            if self._clock() > entry.expires_at:
                del self._entries[key]
                return False
            return True

    def set(
        self,
        provider: str,
        params: Mapping[str, Any],
        payload: Any,
        ttl: float | None = None,
    ) -> None:
        """Store ``payload``, replacing any entry under the same key.

        Args:
            provider: Scope the key belongs to (e.g. ``"aggregated"``).
            params: Parameters identifying the request.
            payload: Value to store. Treated as immutable.
            ttl: Seconds until expiry; defaults to the cache's default TTL.
        """
        key = make_cache_key(provider, params)
        now = self._clock()
        entry = CacheEntry(
            payload=payload,
            created_at=now,
            expires_at=now + (ttl if ttl is not None else self._default_ttl),
        )
        with self._lock:
            if key not in self._entries and len(self._entries) >= self._max_size:
                self._evict_oldest()
            self._entries[key] = entry

    def delete(self, provider: str, params: Mapping[str, Any]) -> bool:
        key = make_cache_key(provider, params)
        with self._lock:
            return self._entries.pop(key, None) is not None

    def clear(self) -> None:
        """Drop every entry and reset hit counters."""
        with self._lock:
            self._entries.clear()
            self._hits = 0
            self._misses = 0

    def sweep_expired(self) -> int:
        """Delete every expired entry.

        Returns:
            Number of entries removed.
        """
        now = self._clock()
        with self._lock:
            expired = [key for key, entry in self._entries.items() if now > entry.expires_at]
            for key in expired:
                del self._entries[key]
        if expired:
            logger.debug(f"Swept {len(expired)} expired cache entries")
        return len(expired)

    def stats(self) -> CacheStats:
        with self._lock:
            entries = list(self._entries.values())
            hits, misses = self._hits, self._misses
        approx = len(json.dumps([dataclasses.asdict(e) for e in entries], default=_json_default))
        return CacheStats(
            size=len(entries),
            max_size=self._max_size,
            approx_memory_bytes=approx,
            hits=hits,
            misses=misses,
        )

    # -- background sweep --

    @property
    def sweeping(self) -> bool:
        return self._sweeper is not None and not self._sweeper.done()

    def start(self) -> None:
        """Start the periodic sweep on the running event loop.

        Calling ``start`` twice is a no-op.
        """
        if self.sweeping:
            return
        self._sweeper = asyncio.get_running_loop().create_task(self._sweep_loop())

    async def stop(self) -> None:
        """Cancel the periodic sweep and wait for it to finish."""
        if self._sweeper is None:
            return
        self._sweeper.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._sweeper
        self._sweeper = None

    async def _sweep_loop(self) -> None:
        while True:
            await asyncio.sleep(self._sweep_interval)
            self.sweep_expired()

    def _evict_oldest(self) -> None:
        # Caller holds the lock.
        oldest_key = min(self._entries, key=lambda k: self._entries[k].created_at)
        del self._entries[oldest_key]
        logger.debug(f"Cache full ({self._max_size} entries), evicted oldest entry")
