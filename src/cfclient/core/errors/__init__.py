"""Unified error hierarchy for cfclient.

All exception classes are defined in domain-specific modules within this
package. This __init__.py re-exports everything for convenient access.

Usage:
    from cfclient.core.errors import CloudflareHttpError, CircuitBreakerError
"""

from cfclient.core.errors.api import (
    TRANSIENT_STATUS_CODES,
    CloudflareApiError,
    CloudflareError,
    CloudflareHttpError,
    ResponseDecodeError,
    TransportError,
)
from cfclient.core.errors.configuration import ConfigurationError
from cfclient.core.errors.resilience import (
    AttemptTimeoutError,
    CircuitBreakerError,
    OperationCancelledError,
    RateLimitRejectedError,
    TimeBudgetExceededError,
)

__all__ = [
    # API
    "TRANSIENT_STATUS_CODES",
    "CloudflareError",
    "CloudflareHttpError",
    "CloudflareApiError",
    "ResponseDecodeError",
    "TransportError",
    # Resilience
    "AttemptTimeoutError",
    "TimeBudgetExceededError",
    "CircuitBreakerError",
    "RateLimitRejectedError",
    "OperationCancelledError",
    # Configuration
    "ConfigurationError",
]
