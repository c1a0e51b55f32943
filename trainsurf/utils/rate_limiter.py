"""Per-caller fixed-window rate limiter

Guards the search endpoints from abuse. One window per caller id:
the first request (or the first after expiry) opens a fresh window with
count 1; requests beyond the cap are refused without touching state.
Expired windows are swept at most once per window length.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass
from time import monotonic
from typing import Callable


@dataclass
class RateLimitWindow:
    count: int
    reset_at: float


class FixedWindowRateLimiter:
    """Fixed-window counter keyed by caller

    Args:
        max_requests: requests allowed per window
        window: window length in seconds
        clock: time source (monotonic by default)
    """

    __slots__ = ("_max_requests", "_window", "_clock", "_windows", "_lock", "_next_sweep")

    def __init__(
        self,
        max_requests: int = 10,
        window: float = 60.0,
        clock: Callable[[], float] = monotonic,
    ) -> None:
        self._max_requests = max_requests
        self._window = window
        self._clock = clock
        self._windows: dict[str, RateLimitWindow] = {}
        self._lock = threading.Lock()
        self._next_sweep = clock() + window

    @property
    def max_requests(self) -> int:
        return self._max_requests

    def allow(self, caller_id: str) -> bool:
        """Count one request for caller_id. False when over the cap."""
        with self._lock:
            now = self._clock()
            if now >= self._next_sweep:
                self._sweep(now)
            win = self._windows.get(caller_id)
            if win is None or now >= win.reset_at:
                self._windows[caller_id] = RateLimitWindow(1, now + self._window)
                return True
            if win.count >= self._max_requests:
                return False
            win.count += 1
            return True

    def _sweep(self, now: float) -> None:
        """Drop expired windows. Caller holds the lock."""
        expired = [cid for cid, win in self._windows.items() if now >= win.reset_at]
        for cid in expired:
            del self._windows[cid]
        self._next_sweep = now + self._window

    def __len__(self) -> int:
        """Callers currently tracked"""
        with self._lock:
            return len(self._windows)

    def retry_after(self, caller_id: str) -> float:
        """Seconds until caller_id's window resets (0 when open)"""
        with self._lock:
            win = self._windows.get(caller_id)
            if win is None:
                return 0.0
            return max(0.0, win.reset_at - self._clock())

    def current_count(self, caller_id: str) -> int:
        """Requests counted in the caller's live window"""
        with self._lock:
            win = self._windows.get(caller_id)
            if win is None or self._clock() >= win.reset_at:
                return 0
            return win.count
