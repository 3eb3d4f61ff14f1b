"""
Outbound request pacing for bulk WordPress publishing.
"""
import logging
import threading
import time
from typing import Callable, Optional

from django.conf import settings

logger = logging.getLogger(__name__)


class IntervalRateLimiter:
    """
    Leaky bucket with a bucket size of one: at most one acquisition per
    `interval` seconds. The first acquisition never waits.

    Clock and sleep are injectable so tests can run without real delays.
    """

    def __init__(self, interval: float, clock: Callable[[], float] = time.monotonic,
                 sleep: Callable[[float], None] = time.sleep):
        if interval < 0:
            raise ValueError("interval must be >= 0")
        self.interval = interval
        self._clock = clock
        self._sleep = sleep
        self._last: Optional[float] = None
        self._lock = threading.Lock()

    @classmethod
    def from_settings(cls, **kwargs):
        return cls(float(getattr(settings, 'BULK_PUBLISH_INTERVAL_SECONDS', 1.0)), **kwargs)

    def _wait_time(self, now: float) -> float:
        if self._last is None:
            return 0.0
        elapsed = now - self._last
        if elapsed >= self.interval:
            return 0.0
        return self.interval - elapsed

    def acquire(self) -> float:
        """Block until the next slot is free. Returns the seconds waited."""
        with self._lock:
            wait = self._wait_time(self._clock())
            if wait > 0:
                logger.debug("Rate limiter waiting %.2fs", wait)
                self._sleep(wait)
            self._last = self._clock()
            return wait
