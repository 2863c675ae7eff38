"""Resilience configuration and presets.

ResilienceConfig carries every tunable of the pipeline. Production
defaults favour throughput; the testing preset lowers thresholds so
breaker and backoff behavior is observable within seconds.
"""

from dataclasses import dataclass, replace
from typing import Dict, List, Optional

from cfclient.core.resilience.limiter import QueueOrder


@dataclass(frozen=True)
class ResilienceConfig:
    """Tunables for one resilience pipeline.

    Attributes:
        permit_limit: Maximum concurrent in-flight attempts.
        queue_limit: Waiters allowed once every permit is held (0 = reject).
        queue_order: Order in which waiters are served.
        max_retries: Additional attempts after the first one.
        base_delay: Backoff delay before the first retry (seconds).
        max_delay: Cap on the computed backoff delay (seconds).
        jitter: Fractional jitter applied to the backoff delay.
        retry_on_rate_limit: Retry 429 responses (honoring Retry-After).
        proactive_throttling: Delay calls while the server-reported quota is low.
        quota_low_threshold: Remaining-quota fraction at which throttling starts.
        failure_ratio: Failure fraction that opens the breaker.
        minimum_throughput: Samples required before the ratio is evaluated.
        sampling_duration: Breaker window length (seconds).
        break_duration: Time spent open before probing (seconds).
        attempt_timeout: Per-attempt timeout (seconds, None = unbounded).
        total_timeout: Budget for the whole logical call (seconds, None = unbounded).
    """

    # Rate limiting
    permit_limit: int = 20
    queue_limit: int = 100
    queue_order: QueueOrder = QueueOrder.OLDEST_FIRST

    # Retry behavior
    max_retries: int = 2
    base_delay: float = 1.0
    max_delay: float = 30.0
    jitter: float = 0.2
    retry_on_rate_limit: bool = True

    # Proactive throttling from RateLimit-* response headers
    proactive_throttling: bool = True
    quota_low_threshold: float = 0.1

    # Circuit breaker
    failure_ratio: float = 0.1
    minimum_throughput: int = 100
    sampling_duration: float = 30.0
    break_duration: float = 5.0

    # Timeouts
    attempt_timeout: Optional[float] = 30.0
    total_timeout: Optional[float] = 60.0

    def with_overrides(self, **overrides) -> "ResilienceConfig":
        """Return a copy with the given fields replaced."""
        return replace(self, **overrides)

    def validate(self) -> List[str]:
        """Return human-readable problems with this config (empty if valid)."""
        problems: List[str] = []
        if self.permit_limit < 1:
            problems.append(f"permit_limit must be >= 1 (got {self.permit_limit})")
        if self.queue_limit < 0:
            problems.append(f"queue_limit must be >= 0 (got {self.queue_limit})")
        if self.max_retries < 0:
            problems.append(f"max_retries must be >= 0 (got {self.max_retries})")
        if self.base_delay < 0:
            problems.append(f"base_delay must be >= 0 (got {self.base_delay})")
        if self.max_delay < self.base_delay:
            problems.append(
                f"max_delay must be >= base_delay (got {self.max_delay} < {self.base_delay})"
            )
        if not 0.0 <= self.jitter < 1.0:
            problems.append(f"jitter must be in [0, 1) (got {self.jitter})")
        if not 0.0 <= self.quota_low_threshold <= 1.0:
            problems.append(
                f"quota_low_threshold must be in [0, 1] (got {self.quota_low_threshold})"
            )
        if not 0.0 < self.failure_ratio <= 1.0:
            problems.append(f"failure_ratio must be in (0, 1] (got {self.failure_ratio})")
        if self.minimum_throughput < 1:
            problems.append(f"minimum_throughput must be >= 1 (got {self.minimum_throughput})")
        if self.sampling_duration <= 0:
            problems.append(f"sampling_duration must be > 0 (got {self.sampling_duration})")
        if self.break_duration <= 0:
            problems.append(f"break_duration must be > 0 (got {self.break_duration})")
        if self.attempt_timeout is not None and self.attempt_timeout <= 0:
            problems.append(f"attempt_timeout must be > 0 (got {self.attempt_timeout})")
        if self.total_timeout is not None and self.total_timeout <= 0:
            problems.append(f"total_timeout must be > 0 (got {self.total_timeout})")
        if (
            self.attempt_timeout is not None
            and self.total_timeout is not None
            and self.attempt_timeout > self.total_timeout
        ):
            problems.append(
                f"attempt_timeout must not exceed total_timeout "
                f"(got {self.attempt_timeout} > {self.total_timeout})"
            )
        return problems


RESILIENCE_PRESETS: Dict[str, ResilienceConfig] = {
    "production": ResilienceConfig(),
    "testing": ResilienceConfig(
        base_delay=0.01,
        max_delay=0.1,
        failure_ratio=0.5,
        minimum_throughput=3,
        sampling_duration=10.0,
        break_duration=0.5,
        attempt_timeout=2.0,
        total_timeout=10.0,
    ),
}


def get_resilience_preset(name: str) -> ResilienceConfig:
    """Return a named preset.

    Raises:
        KeyError: Unknown preset name.
    """
    try:
        return RESILIENCE_PRESETS[name]
    except KeyError:
        raise KeyError(
            f"Unknown resilience preset '{name}'; expected one of {sorted(RESILIENCE_PRESETS)}"
        ) from None
