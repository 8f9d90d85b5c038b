"""Per-client sliding window limiter for challenge issuance."""

from __future__ import annotations

from collections import defaultdict, deque
import math
import threading
import time
from typing import Callable


class SlidingWindowLimiter:
    """Allow at most ``max_requests`` per ``window_seconds`` for each key."""

    def __init__(
        self,
        *,
        max_requests: int,
        window_seconds: int,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.max_requests = max(1, int(max_requests))
        self.window_seconds = max(1, int(window_seconds))
        self._clock = clock
        self._hits: dict[str, deque[float]] = defaultdict(deque)
        self._lock = threading.Lock()

    def _expire(self, hits: deque[float], now: float) -> None:
        cutoff = now - self.window_seconds
        while hits and hits[0] <= cutoff:
            hits.popleft()

    def acquire(self, key: str) -> float:
        """Record a hit for ``key``.

        Returns 0 when allowed, otherwise the seconds until a slot frees up.
        """
        now = self._clock()
        with self._lock:
            hits = self._hits[key]
            self._expire(hits, now)
            if len(hits) >= self.max_requests:
                return max(0.0, hits[0] + self.window_seconds - now)
            hits.append(now)
            return 0.0

    def retry_after_header(self, wait_seconds: float) -> str:
        return str(max(1, math.ceil(wait_seconds)))

    def reset(self) -> None:
        with self._lock:
            self._hits.clear()
