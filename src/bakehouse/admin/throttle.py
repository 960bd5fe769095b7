"""Sliding-window throttle for admin actions.

Each key (usually an admin id) keeps the timestamps of its recent actions.
A key whose window has emptied is dropped on the next sweep, so the table
only holds callers that have acted within the last window.
"""

import threading
import time
from collections import deque

from bakehouse.errors import RateLimitExceededError


class ActionRateLimiter:
    def __init__(self, max_actions: int = 30, window_seconds: float = 60.0, clock=time.monotonic):
        if max_actions < 1:
            raise ValueError("max_actions must be at least 1")
        if window_seconds <= 0:
            raise ValueError("window_seconds must be positive")
        self.max_actions = max_actions
        self.window_seconds = window_seconds
        self._clock = clock
        self._hits: dict[str, deque[float]] = {}
        self._lock = threading.Lock()

    def _prune(self, hits: deque[float], now: float) -> None:
        cutoff = now - self.window_seconds
        while hits and hits[0] <= cutoff:
            hits.popleft()

    def hit(self, key: str) -> int:
        """Charge one action to ``key`` and return how many are left in the window.

        Raises:
            RateLimitExceededError: when the window is already full. The
                rejected attempt is not recorded.
        """
        now = self._clock()
        with self._lock:
            hits = self._hits.setdefault(key, deque())
            self._prune(hits, now)
            if len(hits) >= self.max_actions:
                retry_after = hits[0] + self.window_seconds - now
                raise RateLimitExceededError(key, retry_after)
            hits.append(now)
            return self.max_actions - len(hits)

    def remaining(self, key: str) -> int:
        now = self._clock()
        with self._lock:
            hits = self._hits.get(key)
            if hits is None:
                return self.max_actions
            self._prune(hits, now)
            return self.max_actions - len(hits)

    def reset(self, key: str | None = None) -> None:
        with self._lock:
            if key is None:
                self._hits.clear()
            else:
                self._hits.pop(key, None)

    def evict_stale(self) -> int:
        """Drop keys with no actions inside the window; returns how many went."""
        now = self._clock()
        with self._lock:
            stale = []
            for key, hits in self._hits.items():
                self._prune(hits, now)
                if not hits:
                    stale.append(key)
            for key in stale:
                del self._hits[key]
            return len(stale)

    def __len__(self) -> int:
        with self._lock:
            return len(self._hits)
