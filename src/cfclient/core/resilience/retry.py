"""Retry decisions and backoff delays.

The strategy is a pure decision table over ``AttemptOutcome``: it never
sleeps and never performs the attempt itself. The pipeline asks it
whether another attempt is allowed and how long to wait first.
"""

import random
from typing import TYPE_CHECKING, Optional

from cfclient.core.resilience.models import AttemptOutcome, ErrorType

if TYPE_CHECKING:
    from cfclient.core.resilience.config import ResilienceConfig


class RetryStrategy:
    """Exponential backoff with jitter, honoring server-supplied delays.

    Args:
        max_retries: Additional attempts after the first one (total
            attempts = max_retries + 1).
        base_delay: Delay before the first retry, in seconds.
        max_delay: Cap for the computed exponential delay. A server-supplied
            Retry-After is honored as-is and not capped.
        jitter: Fractional jitter range (0.2 => delay scaled by 0.8-1.2).
        retry_on_rate_limit: When False, 429 responses are surfaced on the
            first attempt.
        rng: Injectable Random instance for deterministic testing.
    """

    def __init__(
        self,
        max_retries: int = 2,
        base_delay: float = 1.0,
        max_delay: float = 30.0,
        jitter: float = 0.2,
        retry_on_rate_limit: bool = True,
        rng: Optional[random.Random] = None,
    ):
        self.max_retries = max_retries
        self.base_delay = base_delay
        self.max_delay = max_delay
        self.jitter = jitter
        self.retry_on_rate_limit = retry_on_rate_limit
        self._rng = rng or random.Random()

    @classmethod
    def from_config(
        cls, config: "ResilienceConfig", rng: Optional[random.Random] = None
    ) -> "RetryStrategy":
        return cls(
            max_retries=config.max_retries,
            base_delay=config.base_delay,
            max_delay=config.max_delay,
            jitter=config.jitter,
            retry_on_rate_limit=config.retry_on_rate_limit,
            rng=rng,
        )

    @property
    def max_attempts(self) -> int:
        return self.max_retries + 1

    def is_retryable(self, outcome: AttemptOutcome, idempotent: bool) -> bool:
        """Whether the outcome is eligible for retry, ignoring the attempt count."""
        if not outcome.is_transient or not idempotent:
            return False
        if outcome.error_type is ErrorType.RATE_LIMIT and not self.retry_on_rate_limit:
            return False
        return True

    def should_retry(self, outcome: AttemptOutcome, attempt: int, idempotent: bool) -> bool:
        """Decide whether another attempt follows.

        Args:
            outcome: Outcome of the attempt that just completed.
            attempt: 1-based index of that attempt.
            idempotent: Whether the logical call may be repeated.
        """
        return self.is_retryable(outcome, idempotent) and attempt < self.max_attempts

    def next_delay(self, attempt: int, outcome: Optional[AttemptOutcome] = None) -> float:
        """Compute the wait before attempt ``attempt + 1``.

        A Retry-After carried by the outcome is returned exactly. Otherwise
        ``min(base * 2^(attempt-1), max_delay)`` scaled by the jitter factor.
        """
        if outcome is not None and outcome.retry_after is not None:
            return max(0.0, outcome.retry_after)

        delay = min(self.base_delay * (2 ** (attempt - 1)), self.max_delay)
        if self.jitter > 0:
            delay *= 1.0 - self.jitter + 2.0 * self.jitter * self._rng.random()
        return delay
