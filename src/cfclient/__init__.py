"""cfclient: a resilient async client for the Cloudflare API."""

from cfclient.client import DEFAULT_CLIENT_NAME, CloudflareClient
from cfclient.config import ClientOptions, load_client_options
from cfclient.core.context import correlation_scope
from cfclient.core.errors import (
    AttemptTimeoutError,
    CircuitBreakerError,
    CloudflareApiError,
    CloudflareError,
    CloudflareHttpError,
    ConfigurationError,
    OperationCancelledError,
    RateLimitRejectedError,
    ResponseDecodeError,
    TimeBudgetExceededError,
    TransportError,
)
from cfclient.core.resilience import (
    CancellationToken,
    CircuitState,
    QueueOrder,
    ResilienceConfig,
    ResiliencePipeline,
    get_resilience_preset,
)
from cfclient.factory import (
    CloudflareClientFactory,
    get_client_factory,
    reset_client_factory_for_testing,
)

__version__ = "0.1.0"

__all__ = [
    "__version__",
    # Client
    "DEFAULT_CLIENT_NAME",
    "CloudflareClient",
    "CloudflareClientFactory",
    "get_client_factory",
    "reset_client_factory_for_testing",
    # Config
    "ClientOptions",
    "ResilienceConfig",
    "QueueOrder",
    "get_resilience_preset",
    "load_client_options",
    # Resilience
    "CancellationToken",
    "CircuitState",
    "ResiliencePipeline",
    "correlation_scope",
    # Errors
    "AttemptTimeoutError",
    "CircuitBreakerError",
    "CloudflareApiError",
    "CloudflareError",
    "CloudflareHttpError",
    "ConfigurationError",
    "OperationCancelledError",
    "RateLimitRejectedError",
    "ResponseDecodeError",
    "TimeBudgetExceededError",
    "TransportError",
]
