"""Fixed-window request counter guarding each adapter's upstream quota.

One integer counter per wall-clock minute bucket (and per day bucket when a
daily quota is declared). After a successful increment the counter for the
immediately preceding bucket is dropped. Older buckets are never collected,
so sparse traffic (one request every other minute, say) leaves one stale
counter behind per request. Near a bucket boundary this can admit up to twice
the nominal rate.
"""

import logging
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass

from cacaw_search.errors import RateLimitExceeded

logger = logging.getLogger(__name__)

_MINUTE_MS = 60_000
_DAY_MS = 86_400_000


@dataclass(frozen=True)
class RateLimitPolicy:
    """Upstream quota declared by an adapter."""

    requests_per_minute: int
    requests_per_day: int | None = None


class FixedWindowRateLimiter:
    """Thread-safe fixed-window limiter.

    Args:
        policy: Quota to enforce.
        clock: Returns the current time in seconds (defaults to ``time.time``).
    """

    def __init__(
        self,
        policy: RateLimitPolicy,
        *,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._policy = policy
        self._clock = clock
        self._lock = threading.Lock()
        self._minute_counts: dict[int, int] = {}
        self._day_counts: dict[int, int] = {}

    @property
    def policy(self) -> RateLimitPolicy:
        return self._policy

    def acquire(self) -> None:
        """Consume one request slot.

        Raises:
            RateLimitExceeded: If the current minute (or day) bucket is full.
                ``retry_after_ms`` is the time left until that bucket ends.
        """
        now_ms = int(self._clock() * 1000)
        minute = now_ms // _MINUTE_MS
        day = now_ms // _DAY_MS

        with self._lock:
            daily_limit = self._policy.requests_per_day
            if daily_limit is not None and self._day_counts.get(day, 0) >= daily_limit:
                raise RateLimitExceeded(_DAY_MS - (now_ms % _DAY_MS))

            if self._minute_counts.get(minute, 0) >= self._policy.requests_per_minute:
                limit = self._policy.requests_per_minute
                logger.debug(f"Minute bucket {minute} full ({limit} requests)")
                raise RateLimitExceeded(_MINUTE_MS - (now_ms % _MINUTE_MS))

            self._minute_counts[minute] = self._minute_counts.get(minute, 0) + 1
            self._minute_counts.pop(minute - 1, None)

            if daily_limit is not None:
                self._day_counts[day] = self._day_counts.get(day, 0) + 1
                self._day_counts.pop(day - 1, None)

    def current_count(self) -> int:
        """Requests already admitted in the current minute bucket."""
        minute = int(self._clock() * 1000) // _MINUTE_MS
        with self._lock:
            return self._minute_counts.get(minute, 0)

    def reset(self) -> None:
        with self._lock:
            self._minute_counts.clear()
            self._day_counts.clear()
