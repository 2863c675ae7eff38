"""Deadlines for one logical call.

The total deadline bounds every attempt and every retry delay of a call;
the per-attempt timeout is clipped so it never outlives it.
"""

import time
from typing import Optional

from cfclient.core.resilience.models import Clock


class Deadline:
    """Total time budget for a logical call.

    Args:
        budget_seconds: Total budget, or None for no limit.
        clock: Injectable monotonic clock for tests.
    """

    def __init__(
        self,
        budget_seconds: Optional[float],
        clock: Optional[Clock] = None,
    ):
        self.budget_seconds = budget_seconds
        self._clock = clock or time.monotonic
        self._started = self._clock()

    def elapsed(self) -> float:
        return self._clock() - self._started

    def remaining(self) -> Optional[float]:
        """Seconds left, or None when unbounded."""
        if self.budget_seconds is None:
            return None
        return max(0.0, self.budget_seconds - self.elapsed())

    @property
    def expired(self) -> bool:
        remaining = self.remaining()
        return remaining is not None and remaining <= 0

    def attempt_timeout(self, per_attempt: Optional[float]) -> Optional[float]:
        """Timeout for the next attempt: the smaller of ``per_attempt`` and what is left."""
        remaining = self.remaining()
        if per_attempt is None:
            return remaining
        if remaining is None:
            return per_attempt
        return min(per_attempt, remaining)

    def clips(self, per_attempt: Optional[float]) -> bool:
        """True if the remaining budget, not ``per_attempt``, bounds the next attempt."""
        remaining = self.remaining()
        if remaining is None:
            return False
        return per_attempt is None or remaining < per_attempt
