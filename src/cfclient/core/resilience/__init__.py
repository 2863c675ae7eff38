"""Resilience pipeline for Cloudflare API calls.

Usage:
    from cfclient.core.resilience import ResiliencePipeline, get_resilience_preset

    pipeline = ResiliencePipeline(get_resilience_preset("production"), name="acct-a")
    response = await pipeline.execute(lambda: http.send(request), method="GET")
"""

from cfclient.core.resilience.cancellation import CancellationToken
from cfclient.core.resilience.circuit import BreakerTicket, CircuitBreaker, CircuitState
from cfclient.core.resilience.classify import (
    IDEMPOTENT_METHODS,
    classify_exception,
    classify_response,
    error_type_for,
    is_idempotent,
)
from cfclient.core.resilience.config import (
    RESILIENCE_PRESETS,
    ResilienceConfig,
    get_resilience_preset,
)
from cfclient.core.resilience.limiter import ConcurrencyLimiter, Permit, QueueOrder
from cfclient.core.resilience.models import (
    AttemptOutcome,
    Clock,
    ErrorType,
    OutcomeKind,
    PipelineStatus,
    RetryState,
    SleepFunc,
)
from cfclient.core.resilience.pipeline import ResiliencePipeline
from cfclient.core.resilience.retry import RetryStrategy
from cfclient.core.resilience.throttle import QuotaSnapshot, QuotaThrottle
from cfclient.core.resilience.timeout import Deadline

__all__ = [
    # Models
    "AttemptOutcome",
    "Clock",
    "ErrorType",
    "OutcomeKind",
    "PipelineStatus",
    "RetryState",
    "SleepFunc",
    # Classification
    "IDEMPOTENT_METHODS",
    "classify_exception",
    "classify_response",
    "error_type_for",
    "is_idempotent",
    # Components
    "BreakerTicket",
    "CancellationToken",
    "CircuitBreaker",
    "CircuitState",
    "ConcurrencyLimiter",
    "Deadline",
    "Permit",
    "QueueOrder",
    "QuotaSnapshot",
    "QuotaThrottle",
    "RetryStrategy",
    # Config
    "RESILIENCE_PRESETS",
    "ResilienceConfig",
    "get_resilience_preset",
    # Pipeline
    "ResiliencePipeline",
]
