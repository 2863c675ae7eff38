"""Resilience pipeline.

Composes the limiter, total deadline, retry loop, circuit breaker gate
and per-attempt timeout around one logical request/response exchange.
Every resource call goes through ``ResiliencePipeline.execute``.

Composition (outermost first):
1. Acquire a limiter permit (held for the whole logical call)
2. Proactive throttling while the server-reported quota is low
3. Start the total deadline
4. Retry loop
5. Circuit breaker gate (checked on every attempt, retries included)
6. Per-attempt timeout, clipped to the remaining total budget
7. The network call
"""

import asyncio
import logging
import random
import time
from typing import Awaitable, Callable, Optional, TypeVar

import httpx

from cfclient.core.errors import (
    AttemptTimeoutError,
    CircuitBreakerError,
    CloudflareError,
    OperationCancelledError,
    TimeBudgetExceededError,
)
from cfclient.core.observability import audit_log, get_metrics
from cfclient.core.resilience.cancellation import CancellationToken
from cfclient.core.resilience.circuit import BreakerTicket, CircuitBreaker
from cfclient.core.resilience.classify import (
    classify_exception,
    classify_response,
    is_idempotent,
)
from cfclient.core.resilience.config import ResilienceConfig
from cfclient.core.resilience.limiter import ConcurrencyLimiter
from cfclient.core.resilience.models import (
    AttemptOutcome,
    Clock,
    ErrorType,
    PipelineStatus,
    RetryState,
    SleepFunc,
)
from cfclient.core.resilience.retry import RetryStrategy
from cfclient.core.resilience.throttle import QuotaThrottle
from cfclient.core.resilience.timeout import Deadline

logger = logging.getLogger(__name__)

T = TypeVar("T")

SendFunc = Callable[[], Awaitable[httpx.Response]]


class ResiliencePipeline:
    """Policy stack shared by every call made through one client.

    The breaker, limiter and quota throttle are owned by the pipeline and
    shared across concurrent calls; retry and deadline state is created
    per call.

    Args:
        config: Resilience tunables.
        name: Name used in logs, errors and audit events.
        rng: Injectable Random instance for deterministic jitter.
        sleep_func: Injectable sleep for retry delays.
        clock: Injectable monotonic clock (breaker, throttle and deadlines).
    """

    def __init__(
        self,
        config: Optional[ResilienceConfig] = None,
        *,
        name: str = "default",
        rng: Optional[random.Random] = None,
        sleep_func: Optional[SleepFunc] = None,
        clock: Optional[Clock] = None,
    ):
        self.config = config or ResilienceConfig()
        self.name = name
        self._clock = clock or time.monotonic
        self._sleep = sleep_func or asyncio.sleep
        self.retry = RetryStrategy.from_config(self.config, rng=rng)
        self.breaker = CircuitBreaker.from_config(self.config, name=name, clock=self._clock)
        self.limiter = ConcurrencyLimiter.from_config(self.config, name=name)
        self.throttle = QuotaThrottle.from_config(self.config, clock=self._clock)
        self._metrics = get_metrics()

    def status(self) -> PipelineStatus:
        samples, failures = self.breaker.window_counts()
        snapshot = self.throttle.snapshot
        return PipelineStatus(
            name=self.name,
            circuit_state=self.breaker.state.value,
            window_samples=samples,
            window_failures=failures,
            permits_in_use=self.limiter.in_use,
            queued_waiters=self.limiter.queued,
            quota_remaining=snapshot.remaining if snapshot else None,
            quota_limit=snapshot.limit if snapshot else None,
        )

    async def execute(
        self,
        send: SendFunc,
        *,
        method: str = "GET",
        idempotent: Optional[bool] = None,
        deserialize: Optional[Callable[[httpx.Response], T]] = None,
        operation: Optional[str] = None,
        cancel: Optional[CancellationToken] = None,
    ) -> T:
        """Execute one logical call under the full policy stack.

        Args:
            send: Performs one physical attempt and returns the response.
                Called once per attempt.
            method: HTTP method, used for the idempotency default.
            idempotent: Explicit idempotency override.
            deserialize: Turns a successful response into the typed result.
                The raw response is returned when omitted.
            operation: Label for logs and errors (e.g. "GET zones/{id}").
            cancel: Caller cancellation token.

        Returns:
            The deserialized result of the first successful attempt.

        Raises:
            CloudflareHttpError: Permanent failure, or the last transient
                failure once retries ran out (``retry_exhausted`` set).
            TransportError / AttemptTimeoutError: Network or per-attempt
                timeout failure that could not be retried further.
            CircuitBreakerError: Breaker rejected the attempt.
            RateLimitRejectedError: Limiter queue full.
            TimeBudgetExceededError: Total timeout ran out.
            OperationCancelledError: ``cancel`` fired.
        """
        operation = operation or method.upper()
        retryable = is_idempotent(method, idempotent)

        try:
            permit = await self.limiter.acquire(cancel=cancel, operation=operation)
            try:
                await self._throttle(operation, cancel)
                return await self._run(
                    send,
                    method=method.upper(),
                    retryable=retryable,
                    deserialize=deserialize,
                    operation=operation,
                    cancel=cancel,
                )
            finally:
                permit.release()
        except OperationCancelledError as exc:
            audit_log(
                "operation_cancelled",
                client=self.name,
                operation=operation,
                reason=exc.reason,
            )
            raise

    async def _throttle(self, operation: str, cancel: Optional[CancellationToken]) -> None:
        delay = self.throttle.delay()
        if delay <= 0:
            return
        snapshot = self.throttle.snapshot
        audit_log(
            "quota_throttled",
            client=self.name,
            operation=operation,
            delay_ms=int(delay * 1000),
            remaining=snapshot.remaining if snapshot else None,
            limit=snapshot.limit if snapshot else None,
        )
        self._metrics.record_throttle(self.name, delay * 1000)
        logger.debug("Throttling %s for %.2fs, server quota is low", operation, delay)
        if cancel is not None:
            await cancel.run(self._sleep(delay))
        else:
            await self._sleep(delay)

    async def _run(
        self,
        send: SendFunc,
        *,
        method: str,
        retryable: bool,
        deserialize: Optional[Callable[[httpx.Response], T]],
        operation: str,
        cancel: Optional[CancellationToken],
    ):
        deadline = Deadline(self.config.total_timeout, clock=self._clock)
        state = RetryState()

        while True:
            if deadline.expired:
                raise self._budget_exceeded(deadline, state, operation, phase="pre_attempt")

            try:
                ticket = self.breaker.acquire(operation=operation)
            except CircuitBreakerError as exc:
                exc.attempts = state.attempts
                raise

            state.attempts += 1
            timeout = deadline.attempt_timeout(self.config.attempt_timeout)
            budget_bound = deadline.clips(self.config.attempt_timeout)
            started = self._clock()
            outcome = await self._attempt(send, ticket, timeout, operation, cancel)
            latency_ms = (self._clock() - started) * 1000
            self._record_attempt(method, operation, state.attempts, outcome, latency_ms)

            if outcome.is_success:
                if deserialize is None:
                    return outcome.response
                try:
                    return deserialize(outcome.response)
                except CloudflareError as exc:
                    exc.attempts = state.attempts
                    raise

            error = outcome.error
            state.last_error = error
            state.elapsed = deadline.elapsed()

            if outcome.error_type is ErrorType.TIMEOUT and (budget_bound or deadline.expired):
                raise self._budget_exceeded(deadline, state, operation, phase="attempt")

            if not self.retry.should_retry(outcome, state.attempts, retryable):
                if isinstance(error, CloudflareError):
                    error.attempts = state.attempts
                    error.retry_exhausted = self.retry.is_retryable(outcome, retryable)
                raise error

            delay = self.retry.next_delay(state.attempts, outcome)
            state.last_delay = delay
            remaining = deadline.remaining()
            if remaining is not None and delay >= remaining:
                raise self._budget_exceeded(deadline, state, operation, phase="retry_delay")

            audit_log(
                "retry_attempt",
                client=self.name,
                operation=operation,
                attempt=state.attempts,
                max_attempts=self.retry.max_attempts,
                delay_ms=int(delay * 1000),
                error_type=outcome.error_type.value if outcome.error_type else None,
                status_code=outcome.status_code,
            )
            logger.debug(
                "Retrying %s in %.2fs after attempt %d (%s)",
                operation,
                delay,
                state.attempts,
                outcome.error_type.value if outcome.error_type else "unknown",
            )
            if cancel is not None:
                await cancel.run(self._sleep(delay))
            else:
                await self._sleep(delay)

    async def _attempt(
        self,
        send: SendFunc,
        ticket: BreakerTicket,
        timeout: Optional[float],
        operation: str,
        cancel: Optional[CancellationToken],
    ) -> AttemptOutcome:
        try:
            call = asyncio.wait_for(send(), timeout)
            if cancel is not None:
                response = await cancel.run(call)
            else:
                response = await call
        except asyncio.TimeoutError:
            outcome = AttemptOutcome.transient(
                AttemptTimeoutError(
                    f"Attempt timed out after {timeout}s",
                    timeout_seconds=timeout,
                    operation=operation,
                ),
                ErrorType.TIMEOUT,
                trips_breaker=True,
            )
        except (OperationCancelledError, asyncio.CancelledError):
            ticket.abandon()
            raise
        except Exception as exc:
            outcome = classify_exception(exc, operation=operation)
        else:
            self.throttle.observe(response.headers)
            outcome = classify_response(response, operation=operation)

        ticket.record(failed=outcome.trips_breaker)
        return outcome

    def _record_attempt(
        self,
        method: str,
        operation: str,
        attempt: int,
        outcome: AttemptOutcome,
        latency_ms: float,
    ) -> None:
        audit_log(
            "request_attempt",
            client=self.name,
            operation=operation,
            method=method,
            attempt=attempt,
            outcome=outcome.kind.value,
            status_code=outcome.status_code,
            latency_ms=round(latency_ms, 2),
            error_type=outcome.error_type.value if outcome.error_type else None,
        )
        self._metrics.record_attempt(self.name, method, outcome.kind.value, latency_ms)

    def _budget_exceeded(
        self,
        deadline: Deadline,
        state: RetryState,
        operation: str,
        phase: str,
    ) -> TimeBudgetExceededError:
        elapsed = deadline.elapsed()
        audit_log(
            "budget_exceeded",
            client=self.name,
            operation=operation,
            elapsed_ms=int(elapsed * 1000),
            budget_ms=int((deadline.budget_seconds or 0) * 1000),
            attempts=state.attempts,
            phase=phase,
        )
        error = TimeBudgetExceededError(
            f"Time budget of {deadline.budget_seconds}s exhausted for {operation} "
            f"after {state.attempts} attempt(s)",
            budget_seconds=deadline.budget_seconds,
            elapsed_seconds=elapsed,
            operation=operation,
            last_error=state.last_error,
        )
        error.attempts = state.attempts
        if state.last_error is not None:
            error.__cause__ = state.last_error
        return error
