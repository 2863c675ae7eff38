"""Pure classification of attempt results.

Turns an ``httpx.Response`` or a raised exception into an
``AttemptOutcome`` that the retry strategy and circuit breaker consume.
Nothing here performs I/O or holds state.
"""

from typing import Optional

import httpx

from cfclient.core.errors import (
    AttemptTimeoutError,
    CircuitBreakerError,
    CloudflareApiError,
    CloudflareHttpError,
    OperationCancelledError,
    RateLimitRejectedError,
    ResponseDecodeError,
    TimeBudgetExceededError,
    TransportError,
)
from cfclient.core.http.shared import http_error_from_response
from cfclient.core.resilience.models import AttemptOutcome, ErrorType

IDEMPOTENT_METHODS = frozenset({"GET", "HEAD", "OPTIONS", "TRACE", "PUT", "DELETE"})


def is_idempotent(method: str, override: Optional[bool] = None) -> bool:
    """Return True if a call may be safely repeated.

    Args:
        method: HTTP method of the call.
        override: Explicit classification supplied by the resource method;
            wins over the method default when not None.
    """
    if override is not None:
        return override
    return method.upper() in IDEMPOTENT_METHODS


def error_type_for_status(status_code: int) -> ErrorType:
    if status_code == 429:
        return ErrorType.RATE_LIMIT
    if status_code in (401, 403):
        return ErrorType.AUTHENTICATION
    if status_code == 404:
        return ErrorType.NOT_FOUND
    if status_code == 409:
        return ErrorType.CONFLICT
    if status_code >= 500:
        return ErrorType.SERVER_ERROR
    return ErrorType.INVALID_REQUEST


def classify_response(response: httpx.Response, operation: Optional[str] = None) -> AttemptOutcome:
    """Classify a completed HTTP exchange.

    2xx is a success. 429/502/503/504 are transient. Every other status is
    permanent. Any 5xx counts against the breaker; 429 never does.
    """
    if response.is_success:
        return AttemptOutcome.success(response)

    error = http_error_from_response(response, operation=operation)
    error_type = error_type_for_status(error.status_code)
    trips_breaker = error.status_code >= 500

    if error.transient:
        return AttemptOutcome.transient(
            error,
            error_type,
            trips_breaker=trips_breaker,
            retry_after=error.retry_after,
            response=response,
        )
    return AttemptOutcome.permanent(error, error_type, trips_breaker=trips_breaker, response=response)


def classify_exception(exc: BaseException, operation: Optional[str] = None) -> AttemptOutcome:
    """Classify an exception raised while sending a request.

    httpx timeouts and transport failures are wrapped into the cfclient
    hierarchy (original exception chained as ``__cause__``) and are
    transient. Anything else is permanent and leaves the breaker alone.
    """
    if isinstance(exc, AttemptTimeoutError):
        return AttemptOutcome.transient(exc, ErrorType.TIMEOUT, trips_breaker=True)

    if isinstance(exc, httpx.TimeoutException):
        wrapped = AttemptTimeoutError(f"Request timed out: {exc}", operation=operation)
        wrapped.__cause__ = exc
        return AttemptOutcome.transient(wrapped, ErrorType.TIMEOUT, trips_breaker=True)

    if isinstance(exc, httpx.TransportError):
        wrapped = TransportError(f"Network error: {exc}", operation=operation)
        wrapped.__cause__ = exc
        return AttemptOutcome.transient(wrapped, ErrorType.NETWORK, trips_breaker=True)

    if isinstance(exc, httpx.RequestError):
        wrapped = TransportError(f"Request error: {exc}", operation=operation)
        wrapped.__cause__ = exc
        return AttemptOutcome.permanent(wrapped, ErrorType.NETWORK)

    return AttemptOutcome.permanent(exc, error_type_for(exc))


def error_type_for(exc: BaseException) -> ErrorType:
    """Map any surfaced failure to an ErrorType for observability."""
    if isinstance(exc, CloudflareHttpError):
        return error_type_for_status(exc.status_code)
    if isinstance(exc, CloudflareApiError):
        return ErrorType.API_ERROR
    if isinstance(exc, ResponseDecodeError):
        return ErrorType.DECODE_ERROR
    if isinstance(exc, AttemptTimeoutError):
        return ErrorType.TIMEOUT
    if isinstance(exc, TimeBudgetExceededError):
        return ErrorType.BUDGET_EXCEEDED
    if isinstance(exc, CircuitBreakerError):
        return ErrorType.CIRCUIT_OPEN
    if isinstance(exc, RateLimitRejectedError):
        return ErrorType.RATE_LIMIT_REJECTED
    if isinstance(exc, OperationCancelledError):
        return ErrorType.CANCELLED
    if isinstance(exc, (TransportError, httpx.TransportError)):
        return ErrorType.NETWORK
    return ErrorType.UNKNOWN
