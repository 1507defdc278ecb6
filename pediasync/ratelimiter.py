"""Per-item retry delays: fast exponential backoff, then slow jittered retries."""

from __future__ import annotations

import random
import threading
from collections.abc import Callable, Hashable
from datetime import timedelta

_MAX_INT64 = 2**63 - 1
_MICROSECOND = timedelta(microseconds=1)


class ItemExponentialFailureAndJitterSlowRateLimiter:
    """Back off exponentially for the first attempts of an item, then slowly with jitter.

    The first ``max_fast_attempts`` failures of an item wait
    ``fast_base_delay * 2**n``, capped at ``fast_max_delay``. Every later
    failure waits ``slow_base_delay`` plus a random extra of up to
    ``slow_max_factor * slow_base_delay``.
    """

    def __init__(
        self,
        fast_base_delay: timedelta,
        fast_max_delay: timedelta,
        slow_base_delay: timedelta,
        slow_max_factor: float,
        max_fast_attempts: int,
        *,
        rand: Callable[[], float] = random.random,
    ) -> None:
        if slow_max_factor <= 0.0:
            slow_max_factor = 1.0
        self._lock = threading.Lock()
        self._failures: dict[Hashable, int] = {}
        self.fast_base_delay = fast_base_delay
        self.fast_max_delay = fast_max_delay
        self.slow_base_delay = slow_base_delay
        self.slow_max_factor = slow_max_factor
        self.max_fast_attempts = max_fast_attempts
        self._rand = rand

    def when(self, item: Hashable) -> timedelta:
        """Record a failure of ``item`` and return how long to wait before retrying it."""
        with self._lock:
            fast_exp = self._failures.get(item, 0)
            num = fast_exp + 1
            self._failures[item] = num

        if num > self.max_fast_attempts:
            return self.slow_base_delay + self.slow_base_delay * (self._rand() * self.slow_max_factor)

        backoff_us = (self.fast_base_delay // _MICROSECOND) * 2**fast_exp
        # Cap before the delay would no longer fit in signed 64-bit nanoseconds.
        if backoff_us * 1000 > _MAX_INT64:
            return self.fast_max_delay

        calculated = timedelta(microseconds=backoff_us)
        return min(calculated, self.fast_max_delay)

    def num_requeues(self, item: Hashable) -> int:
        """Return how many failures have been recorded for ``item``."""
        with self._lock:
            return self._failures.get(item, 0)

    def forget(self, item: Hashable) -> None:
        """Clear the failure history of ``item``."""
        with self._lock:
            self._failures.pop(item, None)