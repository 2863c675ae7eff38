"""Resilience data models, enums, and protocols.

Defines the core types used across the resilience sub-package:
- ErrorType enum for error classification
- OutcomeKind / AttemptOutcome for the result of one physical attempt
- RetryState for per-call bookkeeping
- PipelineStatus for observability
- SleepFunc / Clock protocols for injectable time control
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional, Protocol


class ErrorType(str, Enum):
    """Classification of error types for resilience decisions."""

    RATE_LIMIT = "rate_limit"
    SERVER_ERROR = "server_error"
    TIMEOUT = "timeout"
    AUTHENTICATION = "authentication"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    NETWORK = "network"
    INVALID_REQUEST = "invalid_request"
    API_ERROR = "api_error"
    DECODE_ERROR = "decode_error"
    CIRCUIT_OPEN = "circuit_open"
    BUDGET_EXCEEDED = "budget_exceeded"
    RATE_LIMIT_REJECTED = "rate_limit_rejected"
    CANCELLED = "cancelled"
    UNKNOWN = "unknown"


class OutcomeKind(str, Enum):
    """Tag of an AttemptOutcome."""

    SUCCESS = "success"
    TRANSIENT_FAILURE = "transient_failure"
    PERMANENT_FAILURE = "permanent_failure"


@dataclass(frozen=True)
class AttemptOutcome:
    """Result of one physical network attempt.

    Exactly one of ``response`` (success) or ``error`` (failure) is set.
    ``trips_breaker`` marks failures that count against endpoint health;
    it is independent of the transient/permanent split (a 500 is permanent
    yet trips the breaker, a 429 is transient yet does not).
    """

    kind: OutcomeKind
    response: Any = None
    error: Optional[BaseException] = None
    error_type: Optional[ErrorType] = None
    trips_breaker: bool = False
    retry_after: Optional[float] = None

    @classmethod
    def success(cls, response: Any) -> "AttemptOutcome":
        return cls(kind=OutcomeKind.SUCCESS, response=response)

    @classmethod
    def transient(
        cls,
        error: BaseException,
        error_type: ErrorType,
        *,
        trips_breaker: bool,
        retry_after: Optional[float] = None,
        response: Any = None,
    ) -> "AttemptOutcome":
        return cls(
            kind=OutcomeKind.TRANSIENT_FAILURE,
            response=response,
            error=error,
            error_type=error_type,
            trips_breaker=trips_breaker,
            retry_after=retry_after,
        )

    @classmethod
    def permanent(
        cls,
        error: BaseException,
        error_type: ErrorType,
        *,
        trips_breaker: bool = False,
        response: Any = None,
    ) -> "AttemptOutcome":
        return cls(
            kind=OutcomeKind.PERMANENT_FAILURE,
            response=response,
            error=error,
            error_type=error_type,
            trips_breaker=trips_breaker,
        )

    @property
    def is_success(self) -> bool:
        return self.kind is OutcomeKind.SUCCESS

    @property
    def is_transient(self) -> bool:
        return self.kind is OutcomeKind.TRANSIENT_FAILURE

    @property
    def status_code(self) -> Optional[int]:
        if self.response is not None:
            return self.response.status_code
        return getattr(self.error, "status_code", None)


@dataclass
class RetryState:
    """Per-call retry bookkeeping. Created per logical call, never shared."""

    attempts: int = 0
    elapsed: float = 0.0
    last_delay: Optional[float] = None
    last_error: Optional[BaseException] = None


@dataclass
class PipelineStatus:
    """Status of a pipeline's shared resilience components."""

    name: str
    circuit_state: str
    window_samples: int
    window_failures: int
    permits_in_use: int
    queued_waiters: int
    quota_remaining: Optional[int] = None
    quota_limit: Optional[int] = None


class SleepFunc(Protocol):
    """Protocol for injectable sleep function."""

    async def __call__(self, seconds: float) -> None: ...


class Clock(Protocol):
    """Protocol for injectable monotonic clock."""

    def __call__(self) -> float: ...
