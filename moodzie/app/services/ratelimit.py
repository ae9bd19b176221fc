from __future__ import annotations

import time
from collections import defaultdict, deque


class RateLimiter:
    """In-memory sliding window rate limiter keyed by caller."""

    def __init__(self, limit: int = 30, window_seconds: float = 60) -> None:
        self.limit = limit
        self.window_seconds = window_seconds
        self._buckets: dict[str, deque[float]] = defaultdict(deque)

    def allow(
        self,
        key: str,
        limit: int | None = None,
        window_seconds: float | None = None,
    ) -> bool:
        limit = self.limit if limit is None else limit
        window = self.window_seconds if window_seconds is None else window_seconds
        now = time.monotonic()
        bucket = self._buckets[key]
        while bucket and now - bucket[0] > window:
            bucket.popleft()
        if len(bucket) >= limit:
            return False
        bucket.append(now)
        return True

    def reset(self, key: str | None = None) -> None:
        if key is None:
            self._buckets.clear()
        else:
            self._buckets.pop(key, None)


__all__ = ["RateLimiter"]
