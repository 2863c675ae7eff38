"""Resilience error classes.

Failures synthesized by the resilience pipeline itself rather than
returned by the API: timeouts, open circuits, limiter rejections and
caller cancellation.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

from cfclient.core.errors.api import CloudflareError

if TYPE_CHECKING:
    from cfclient.core.resilience.circuit import CircuitState


class AttemptTimeoutError(CloudflareError):
    """A single physical attempt exceeded its deadline.

    Treated as a transient failure: the retry loop may try again.

    Attributes:
        timeout_seconds: The per-attempt timeout that was exceeded.
    """

    def __init__(
        self,
        message: str,
        timeout_seconds: Optional[float] = None,
        operation: Optional[str] = None,
    ):
        super().__init__(message, operation=operation)
        self.timeout_seconds = timeout_seconds


class TimeBudgetExceededError(CloudflareError):
    """The total time budget for a logical call has been exhausted.

    Terminal regardless of the remaining retry budget.

    Attributes:
        budget_seconds: The original time budget.
        elapsed_seconds: Time elapsed before the budget was exceeded.
        last_error: The last attempt failure observed, if any.
    """

    def __init__(
        self,
        message: str,
        budget_seconds: Optional[float] = None,
        elapsed_seconds: Optional[float] = None,
        operation: Optional[str] = None,
        last_error: Optional[BaseException] = None,
    ):
        super().__init__(message, operation=operation)
        self.budget_seconds = budget_seconds
        self.elapsed_seconds = elapsed_seconds
        self.last_error = last_error


class CircuitBreakerError(CloudflareError):
    """Circuit breaker is open and rejecting requests.

    No network attempt was made; there is no server status.

    Attributes:
        breaker_name: Name of the circuit breaker.
        state: State of the breaker when the call was rejected.
        retry_after: Seconds until the breaker allows a probe.
    """

    def __init__(
        self,
        message: str,
        breaker_name: Optional[str] = None,
        state: Optional[CircuitState] = None,
        retry_after: Optional[float] = None,
        operation: Optional[str] = None,
    ):
        super().__init__(message, operation=operation)
        self.breaker_name = breaker_name
        self.state = state
        self.retry_after = retry_after


class RateLimitRejectedError(CloudflareError):
    """The client-side limiter refused to issue a permit.

    Raised when every permit is in use and the wait queue is full (or the
    queue limit is 0).

    Attributes:
        permit_limit: Configured maximum of concurrent permits.
        queue_limit: Configured maximum of queued waiters.
    """

    def __init__(
        self,
        message: str,
        permit_limit: Optional[int] = None,
        queue_limit: Optional[int] = None,
        operation: Optional[str] = None,
    ):
        super().__init__(message, operation=operation)
        self.permit_limit = permit_limit
        self.queue_limit = queue_limit


class OperationCancelledError(CloudflareError):
    """The caller's cancellation token fired while the call was suspended."""

    def __init__(self, message: str = "Operation cancelled", reason: Optional[str] = None):
        super().__init__(message)
        self.reason = reason
