"""In-memory sliding-window rate limiter keyed by client identifier."""

import threading
import time
from collections import OrderedDict


class RateLimiter:
    """Sliding-window limiter with a bounded number of tracked keys.

    Keys idle for a full window are dropped on access, and once more than
    ``max_keys`` keys are tracked the least recently used ones are evicted.
    State lives in the process that created the limiter.
    """

    def __init__(self, window_seconds: int, max_requests: int, max_keys: int = 10000) -> None:
        self.window_seconds = max(0, window_seconds)
        self.max_requests = max(1, max_requests)
        self.max_keys = max(1, max_keys)
        self._bucket: OrderedDict[str, list[float]] = OrderedDict()
        self._lock = threading.Lock()

    def allow(self, key: str, now: float | None = None) -> bool:
        """Record a request for ``key`` and return whether it is within the limit."""
        now = time.monotonic() if now is None else now
        with self._lock:
            events = [
                timestamp
                for timestamp in self._bucket.pop(key, [])
                if now - timestamp < self.window_seconds
            ]
            allowed = len(events) < self.max_requests
            if allowed:
                events.append(now)
            self._bucket[key] = events
            self._evict(now)
            return allowed

    def retry_after(self, key: str, now: float | None = None) -> int:
        """Seconds until ``key`` may send another request."""
        now = time.monotonic() if now is None else now
        with self._lock:
            events = self._bucket.get(key)
            if not events or len(events) < self.max_requests:
                return 0
            return max(1, int(events[0] + self.window_seconds - now) + 1)

    def __len__(self) -> int:
        return len(self._bucket)

    def _evict(self, now: float) -> None:
        # Oldest-touched keys first; drop expired ones, then trim to size
        while self._bucket:
            key, events = next(iter(self._bucket.items()))
            expired = not events or now - events[-1] >= self.window_seconds
            if not expired and len(self._bucket) <= self.max_keys:
                break
            del self._bucket[key]
