"""Per-identity sliding-window rate limiting."""

from __future__ import annotations

import threading
import time
from typing import Callable


def _monotonic_ms() -> float:
    return time.monotonic() * 1000.0


class SlidingWindowRateLimiter:
    """In-process request counter keyed by identity.

    Only accepted requests are recorded. The window is inclusive: a request
    exactly ``window_ms`` old still counts. Identities with no request left in
    the window are swept at most once per window. State lives for the process
    and is not shared across worker processes.
    """

    def __init__(self, clock: Callable[[], float] | None = None) -> None:
        self._clock = clock or _monotonic_ms
        self._windows: dict[str, list[float]] = {}
        self._last_sweep: float | None = None
        self._lock = threading.Lock()

    def allow(self, identity: str, max_requests: int, window_ms: float) -> bool:
        now = self._clock()
        with self._lock:
            self._sweep(now, window_ms)
            bucket = self._windows.get(identity, [])
            while bucket and now - bucket[0] > window_ms:
                bucket.pop(0)
            if len(bucket) >= max_requests:
                if not bucket:
                    self._windows.pop(identity, None)
                return False
            bucket.append(now)
            self._windows[identity] = bucket
            return True

    def _sweep(self, now: float, window_ms: float) -> None:
        if self._last_sweep is not None and now - self._last_sweep < window_ms:
            return
        self._last_sweep = now
        stale = [key for key, bucket in self._windows.items() if not bucket or now - bucket[-1] > window_ms]
        for key in stale:
            del self._windows[key]

    @property
    def tracked_identities(self) -> int:
        with self._lock:
            return len(self._windows)

    def pending(self, identity: str) -> int:
        with self._lock:
            return len(self._windows.get(identity, ()))

    def reset(self) -> None:
        with self._lock:
            self._windows.clear()
            self._last_sweep = None
