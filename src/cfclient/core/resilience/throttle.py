"""Proactive throttling from server rate-limit headers.

Responses may carry ``RateLimit-Limit``, ``RateLimit-Remaining`` and
``RateLimit-Reset`` (seconds until the quota window resets). The last
observed values are kept per pipeline; once the remaining fraction of
the quota drops to the configured threshold, new calls are delayed so
the quota is spread over what is left of the window instead of being
spent and answered with 429s.

Usage:
    throttle = QuotaThrottle(low_threshold=0.1)

    # After every response
    throttle.observe(response.headers)

    # Before starting a call
    delay = throttle.delay()
    if delay:
        await asyncio.sleep(delay)
"""

import logging
import time
from dataclasses import dataclass
from threading import Lock
from typing import TYPE_CHECKING, Any, Mapping, Optional

from cfclient.core.resilience.models import Clock

if TYPE_CHECKING:
    from cfclient.core.resilience.config import ResilienceConfig

logger = logging.getLogger(__name__)

LIMIT_HEADER = "RateLimit-Limit"
REMAINING_HEADER = "RateLimit-Remaining"
RESET_HEADER = "RateLimit-Reset"


def _parse_header_int(value: Optional[str]) -> Optional[int]:
    """Parse the leading integer of a RateLimit-* header value.

    Structured forms such as ``"100, 100;w=60"`` yield their first item.
    """
    if value is None:
        return None
    token = value.split(",", 1)[0].split(";", 1)[0].strip()
    try:
        parsed = int(token)
    except ValueError:
        return None
    return parsed if parsed >= 0 else None


@dataclass(frozen=True)
class QuotaSnapshot:
    """Quota state reported by the most recent response."""

    limit: int
    remaining: int
    reset_at: Optional[float]

    @property
    def fraction_left(self) -> float:
        if self.limit <= 0:
            return 1.0
        return self.remaining / self.limit


class QuotaThrottle:
    """Delays calls while the server-reported quota is low.

    Thread-safe; one instance is shared by every call of a pipeline.

    Args:
        enabled: When False, observations are recorded but never delay.
        low_threshold: Remaining fraction at or below which calls are delayed.
        max_delay: Upper bound for a single throttling delay (seconds).
        clock: Injectable monotonic clock.
    """

    def __init__(
        self,
        enabled: bool = True,
        low_threshold: float = 0.1,
        max_delay: float = 30.0,
        clock: Optional[Clock] = None,
    ):
        self.enabled = enabled
        self.low_threshold = low_threshold
        self.max_delay = max_delay
        self._clock = clock or time.monotonic
        self._snapshot: Optional[QuotaSnapshot] = None
        self._lock = Lock()

    @classmethod
    def from_config(cls, config: "ResilienceConfig", clock: Optional[Clock] = None) -> "QuotaThrottle":
        return cls(
            enabled=config.proactive_throttling,
            low_threshold=config.quota_low_threshold,
            max_delay=config.max_delay,
            clock=clock,
        )

    @property
    def snapshot(self) -> Optional[QuotaSnapshot]:
        with self._lock:
            return self._snapshot

    def observe(self, headers: Mapping[str, Any]) -> None:
        """Record the quota headers of a response.

        Responses without both limit and remaining headers leave the
        previous observation in place.
        """
        limit = _parse_header_int(headers.get(LIMIT_HEADER))
        remaining = _parse_header_int(headers.get(REMAINING_HEADER))
        if limit is None or remaining is None:
            return
        reset = _parse_header_int(headers.get(RESET_HEADER))
        reset_at = self._clock() + reset if reset is not None else None
        with self._lock:
            self._snapshot = QuotaSnapshot(limit=limit, remaining=remaining, reset_at=reset_at)

    def delay(self) -> float:
        """Seconds to wait before the next call (0.0 when not throttled).

        An exhausted quota waits for the reset. A low one spreads the
        remaining calls evenly over the time left in the window.
        """
        if not self.enabled:
            return 0.0
        with self._lock:
            snapshot = self._snapshot
        if snapshot is None or snapshot.reset_at is None:
            return 0.0
        if snapshot.fraction_left > self.low_threshold:
            return 0.0
        until_reset = snapshot.reset_at - self._clock()
        if until_reset <= 0:
            return 0.0
        if snapshot.remaining == 0:
            delay = until_reset
        else:
            delay = until_reset / (snapshot.remaining + 1)
        return min(delay, self.max_delay)
