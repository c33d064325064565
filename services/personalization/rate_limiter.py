"""
Per-User Correction Rate Limiter

Fixed-window quota on correction batches, keyed by user id.

- First call (or first call after the window has elapsed) opens a new
  window with count 1
- Further calls are allowed while count < limit
- Denied calls do not touch the counter

State lives in process memory only. Every worker process keeps its own
counters and a restart clears them; this is abuse mitigation, not a
billing-grade quota. Expired windows are swept once per window length, or
sooner when the map grows past SWEEP_THRESHOLD.
"""

from dataclasses import dataclass
from threading import Lock
from typing import Callable, Dict, Optional
import time

from config.settings import settings
from utils.logging import get_logger

logger = get_logger(__name__)


@dataclass
class RateWindow:
    """Counter for one user's current window."""
    count: int
    window_start: float


class CorrectionRateLimiter:
    """
    In-memory fixed-window rate limiter.

    Usage:
        limiter = CorrectionRateLimiter(limit=30, window_seconds=3600)
        if not limiter.allow(user_id):
            raise RateLimitedError(...)
    """

    # Map size that forces a sweep before the next scheduled one
    SWEEP_THRESHOLD = 10_000

    def __init__(
        self,
        limit: int,
        window_seconds: float,
        clock: Callable[[], float] = time.monotonic
    ):
        self.limit = limit
        self.window_seconds = window_seconds
        self._clock = clock
        self._windows: Dict[str, RateWindow] = {}
        self._lock = Lock()
        self._next_sweep = clock() + window_seconds
        self._sweep_at_size = self.SWEEP_THRESHOLD

    @classmethod
    def from_settings(cls) -> "CorrectionRateLimiter":
        return cls(
            limit=settings.CORRECTIONS_RATE_LIMIT,
            window_seconds=settings.CORRECTIONS_RATE_WINDOW_MINUTES * 60,
        )

    def allow(self, user_id: str) -> bool:
        """Count one call for `user_id`; False once the window's quota is spent."""
        with self._lock:
            now = self._clock()
            if now >= self._next_sweep or len(self._windows) >= self._sweep_at_size:
                self._sweep(now)
            window = self._windows.get(user_id)

            if window is None or now - window.window_start > self.window_seconds:
                self._windows[user_id] = RateWindow(count=1, window_start=now)
                return True

            if window.count < self.limit:
                window.count += 1
                return True

            logger.debug(f"Correction quota spent for user {user_id} ({window.count}/{self.limit})")
            return False

    def _sweep(self, now: float) -> None:
        """Drop expired windows. Caller holds the lock."""
        expired = [uid for uid, w in self._windows.items() if now - w.window_start > self.window_seconds]
        for uid in expired:
            del self._windows[uid]
        self._next_sweep = now + self.window_seconds
        self._sweep_at_size = max(self.SWEEP_THRESHOLD, 2 * len(self._windows))
        if expired:
            logger.debug(f"Dropped {len(expired)} expired correction windows")

    @property
    def tracked_users(self) -> int:
        """Users with a live or not-yet-swept window."""
        with self._lock:
            return len(self._windows)

    def remaining(self, user_id: str) -> int:
        """Calls left for `user_id` in the current window."""
        with self._lock:
            window = self._windows.get(user_id)
            if window is None or self._clock() - window.window_start > self.window_seconds:
                return self.limit
            return max(0, self.limit - window.count)

    def retry_after(self, user_id: str) -> int:
        """Whole seconds until `user_id`'s window resets (0 if not limited)."""
        with self._lock:
            window = self._windows.get(user_id)
            if window is None:
                return 0
            left = self.window_seconds - (self._clock() - window.window_start)
            return max(0, int(left) + 1) if left >= 0 else 0

    def reset(self, user_id: Optional[str] = None) -> None:
        """Forget one user's counter, or every counter."""
        with self._lock:
            if user_id is None:
                self._windows.clear()
            else:
                self._windows.pop(user_id, None)
