"""Fixed-delay rate limiting shared by network-bound stages."""

import threading
import time
from collections.abc import Callable


class RateLimiter:
    """Spaces acquisitions at least `min_interval` seconds apart across threads.

    Each caller reserves the next free slot under the lock and sleeps outside it,
    so concurrent workers queue up instead of firing together.
    """

    def __init__(
        self,
        min_interval: float,
        *,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        if min_interval < 0:
            raise ValueError("min_interval must be >= 0")
        self._min_interval = min_interval
        self._clock = clock
        self._sleep = sleep
        self._lock = threading.Lock()
        self._next_slot: float | None = None

    @property
    def min_interval(self) -> float:
        return self._min_interval

    def wait(self) -> float:
        """Block until the caller may proceed. Returns the seconds slept."""
        with self._lock:
            now = self._clock()
            slot = now if self._next_slot is None else max(now, self._next_slot)
            self._next_slot = slot + self._min_interval
        delay = slot - now
        if delay > 0:
            self._sleep(delay)
        return delay

    def pause(self, seconds: float) -> None:
        """Push the next slot out by `seconds` (used after a rate-limit response)."""
        with self._lock:
            now = self._clock()
            base = now if self._next_slot is None else max(now, self._next_slot)
            self._next_slot = base + seconds
