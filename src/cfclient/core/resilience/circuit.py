"""Sliding-window circuit breaker.

One breaker is shared by every concurrent call made through a pipeline.
Outcomes are kept as ``(timestamp, failed)`` samples in a time window;
the breaker opens when the window holds at least ``minimum_throughput``
samples and the failure ratio reaches ``failure_ratio``.

While OPEN no attempt is admitted. Once ``break_duration`` has elapsed
the breaker moves to HALF_OPEN and admits exactly one probe; every other
caller is rejected until the probe resolves.
"""

import logging
import threading
import time
from collections import deque
from enum import Enum
from typing import TYPE_CHECKING, Deque, Optional, Tuple

from cfclient.core.errors import CircuitBreakerError
from cfclient.core.observability import audit_log
from cfclient.core.resilience.models import Clock

if TYPE_CHECKING:
    from cfclient.core.resilience.config import ResilienceConfig

logger = logging.getLogger(__name__)


class CircuitState(str, Enum):
    """Circuit breaker states."""

    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"


class BreakerTicket:
    """Admission to one attempt through a breaker.

    Resolved exactly once via ``record`` or ``abandon``; later calls are
    ignored.
    """

    __slots__ = ("_breaker", "probe", "_resolved")

    def __init__(self, breaker: "CircuitBreaker", probe: bool):
        self._breaker = breaker
        self.probe = probe
        self._resolved = False

    @property
    def resolved(self) -> bool:
        return self._resolved

    def record(self, failed: bool) -> None:
        """Report the attempt's outcome to the breaker."""
        if self._resolved:
            return
        self._resolved = True
        self._breaker._on_result(failed=failed, probe=self.probe)

    def abandon(self) -> None:
        """The attempt was cancelled before it completed.

        A cancelled probe counts as a failed probe. An abandoned ordinary
        attempt leaves no sample.
        """
        if self._resolved:
            return
        self._resolved = True
        if self.probe:
            self._breaker._on_result(failed=True, probe=True)


class CircuitBreaker:
    """Thread-safe sliding-window circuit breaker.

    Args:
        name: Name used in errors and audit events.
        failure_ratio: Failure fraction (0-1] that opens the breaker.
        minimum_throughput: Samples required in the window before the
            ratio is evaluated.
        sampling_duration: Window length in seconds.
        break_duration: Seconds spent OPEN before a probe is allowed.
        clock: Injectable monotonic clock for tests.
    """

    def __init__(
        self,
        name: str = "default",
        failure_ratio: float = 0.1,
        minimum_throughput: int = 100,
        sampling_duration: float = 30.0,
        break_duration: float = 5.0,
        clock: Optional[Clock] = None,
    ):
        self.name = name
        self.failure_ratio = failure_ratio
        self.minimum_throughput = minimum_throughput
        self.sampling_duration = sampling_duration
        self.break_duration = break_duration
        self._clock = clock or time.monotonic

        self._lock = threading.Lock()
        self._state = CircuitState.CLOSED
        self._window: Deque[Tuple[float, bool]] = deque()
        self._opened_at: Optional[float] = None
        self._probe_in_flight = False

    @classmethod
    def from_config(
        cls,
        config: "ResilienceConfig",
        name: str = "default",
        clock: Optional[Clock] = None,
    ) -> "CircuitBreaker":
        return cls(
            name=name,
            failure_ratio=config.failure_ratio,
            minimum_throughput=config.minimum_throughput,
            sampling_duration=config.sampling_duration,
            break_duration=config.break_duration,
            clock=clock,
        )

    @property
    def state(self) -> CircuitState:
        with self._lock:
            self._refresh(self._clock())
            return self._state

    def window_counts(self) -> Tuple[int, int]:
        """Return ``(samples, failures)`` currently in the window."""
        with self._lock:
            self._prune(self._clock())
            failures = sum(1 for _, failed in self._window if failed)
            return len(self._window), failures

    def acquire(self, operation: Optional[str] = None) -> BreakerTicket:
        """Admit one attempt or raise CircuitBreakerError.

        Raises:
            CircuitBreakerError: The breaker is OPEN, or HALF_OPEN with the
                probe slot already taken.
        """
        with self._lock:
            now = self._clock()
            self._refresh(now)

            if self._state is CircuitState.CLOSED:
                return BreakerTicket(self, probe=False)

            if self._state is CircuitState.HALF_OPEN and not self._probe_in_flight:
                self._probe_in_flight = True
                logger.debug("Circuit breaker '%s' admitting probe", self.name)
                return BreakerTicket(self, probe=True)

            state = self._state
            retry_after = None
            if state is CircuitState.OPEN and self._opened_at is not None:
                retry_after = max(0.0, self._opened_at + self.break_duration - now)

        audit_log(
            "circuit_rejected",
            breaker=self.name,
            state=state.value,
            operation=operation,
            retry_after=retry_after,
        )
        raise CircuitBreakerError(
            f"Circuit breaker '{self.name}' is {state.value}",
            breaker_name=self.name,
            state=state,
            retry_after=retry_after,
            operation=operation,
        )

    def reset(self) -> None:
        """Force the breaker back to CLOSED with an empty window."""
        with self._lock:
            self._transition(CircuitState.CLOSED, self._clock())

    def _on_result(self, failed: bool, probe: bool) -> None:
        with self._lock:
            now = self._clock()
            if probe:
                self._probe_in_flight = False
                if self._state is not CircuitState.HALF_OPEN:
                    return
                if failed:
                    self._transition(CircuitState.OPEN, now)
                else:
                    self._transition(CircuitState.CLOSED, now)
                return

            # Results of attempts admitted before the breaker opened are dropped.
            if self._state is not CircuitState.CLOSED:
                return

            self._window.append((now, failed))
            self._prune(now)
            if failed and self._should_open():
                self._transition(CircuitState.OPEN, now)

    def _should_open(self) -> bool:
        samples = len(self._window)
        if samples < self.minimum_throughput or samples == 0:
            return False
        failures = sum(1 for _, failed in self._window if failed)
        return failures / samples >= self.failure_ratio

    def _prune(self, now: float) -> None:
        cutoff = now - self.sampling_duration
        while self._window and self._window[0][0] <= cutoff:
            self._window.popleft()

    def _refresh(self, now: float) -> None:
        if (
            self._state is CircuitState.OPEN
            and self._opened_at is not None
            and now - self._opened_at >= self.break_duration
        ):
            self._transition(CircuitState.HALF_OPEN, now)

    def _transition(self, new_state: CircuitState, now: float) -> None:
        old_state = self._state
        self._state = new_state
        if new_state is CircuitState.OPEN:
            self._opened_at = now
        elif new_state is CircuitState.CLOSED:
            self._opened_at = None
            self._window.clear()
            self._probe_in_flight = False

        if old_state is not new_state:
            logger.info(
                "Circuit breaker '%s' transitioned %s -> %s",
                self.name,
                old_state.value,
                new_state.value,
            )
            audit_log(
                "circuit_state_change",
                breaker=self.name,
                from_state=old_state.value,
                to_state=new_state.value,
            )
