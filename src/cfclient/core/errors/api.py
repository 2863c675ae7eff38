"""API-level error classes.

Failures produced by the remote API or by the transport underneath it.
Every error surfaced to a resource method derives from CloudflareError.
"""

from typing import TYPE_CHECKING, Optional, Sequence

if TYPE_CHECKING:
    from cfclient.core.http.models import ApiError

TRANSIENT_STATUS_CODES = frozenset({429, 502, 503, 504})


class CloudflareError(Exception):
    """Base exception for all cfclient failures.

    Attributes:
        operation: Label of the logical call that failed (e.g. "GET zones/abc").
        attempts: Number of physical attempts made before the failure surfaced.
        retry_exhausted: True when the failure was retryable but the retry
            budget ran out.
    """

    def __init__(self, message: str, operation: Optional[str] = None):
        super().__init__(message)
        self.operation = operation
        self.attempts = 0
        self.retry_exhausted = False


class CloudflareHttpError(CloudflareError):
    """The API answered with a non-success HTTP status.

    The response body is kept verbatim for diagnostics.

    Attributes:
        status_code: HTTP status code of the response.
        body: Raw response body text.
        errors: Error entries parsed from the envelope, if any.
        retry_after: Server-supplied delay in seconds, if any.
    """

    def __init__(
        self,
        status_code: int,
        body: str = "",
        errors: Optional[Sequence["ApiError"]] = None,
        retry_after: Optional[float] = None,
        operation: Optional[str] = None,
    ):
        self.status_code = status_code
        self.body = body
        self.errors = list(errors or [])
        self.retry_after = retry_after
        detail = ", ".join(f"[{e.code}] {e.message}" for e in self.errors)
        message = f"Cloudflare API request failed with status code {status_code}"
        if detail:
            message += f": {detail}"
        super().__init__(message, operation=operation)

    @property
    def transient(self) -> bool:
        """Whether the status is one the retry strategy treats as transient."""
        return self.status_code in TRANSIENT_STATUS_CODES


class CloudflareApiError(CloudflareError):
    """The API answered 2xx but the envelope reported ``success: false``."""

    def __init__(
        self,
        errors: Sequence["ApiError"],
        body: str = "",
        operation: Optional[str] = None,
    ):
        self.errors = list(errors)
        self.body = body
        detail = ", ".join(f"[{e.code}] {e.message}" for e in self.errors)
        super().__init__(
            f"Cloudflare API returned a failure response: {detail or 'no error details'}",
            operation=operation,
        )


class ResponseDecodeError(CloudflareError):
    """The response body could not be deserialized into the API envelope."""

    def __init__(self, message: str, body: str = "", operation: Optional[str] = None):
        super().__init__(message, operation=operation)
        self.body = body


class TransportError(CloudflareError):
    """Network-level failure before a response was received.

    The underlying httpx exception is chained as ``__cause__``.
    """
