"""Shared HTTP response helpers.

Pure parsing helpers used by the pipeline's classifier and by resource
methods:
    - parse_retry_after(response) -> Optional[float]
    - parse_api_errors(body) -> list[ApiError]
    - http_error_from_response(response) -> CloudflareHttpError
    - parse_envelope(response, result_type) -> ApiResponse

Response bodies are kept verbatim on errors; they are never logged.
"""

from __future__ import annotations

import json
import logging
import math
import time
from datetime import timezone
from email.utils import parsedate_to_datetime
from typing import TYPE_CHECKING, Any, List, Optional

from pydantic import ValidationError

from cfclient.core.errors import CloudflareApiError, CloudflareHttpError, ResponseDecodeError
from cfclient.core.http.models import ApiError, ApiResponse

if TYPE_CHECKING:
    import httpx

logger = logging.getLogger(__name__)


def parse_retry_after(response: "httpx.Response", now: Optional[float] = None) -> Optional[float]:
    """Parse the ``Retry-After`` header from an HTTP response.

    Handles delta-seconds and RFC 7231 HTTP-date values. Dates in the past
    yield 0; non-finite numbers are rejected.

    Args:
        response: An httpx Response object.
        now: Current POSIX time, injectable for tests.

    Returns:
        Seconds to wait before retrying, or ``None`` if the header is
        missing or unparseable.
    """
    retry_after = response.headers.get("Retry-After")
    if not retry_after:
        return None
    retry_after = retry_after.strip()

    try:
        seconds = float(retry_after)
    except ValueError:
        pass
    else:
        if not math.isfinite(seconds):
            logger.debug("Ignoring non-finite Retry-After header: %r", retry_after)
            return None
        return max(0.0, seconds)

    try:
        when = parsedate_to_datetime(retry_after)
    except (TypeError, ValueError, IndexError):
        logger.debug("Ignoring unparseable Retry-After header: %r", retry_after)
        return None
    if when is None:
        return None
    if when.tzinfo is None:
        # "-0000" zones parse as naive datetimes; the value is still UTC
        when = when.replace(tzinfo=timezone.utc)
    current = time.time() if now is None else now
    return max(0.0, when.timestamp() - current)


def parse_api_errors(body: str) -> List[ApiError]:
    """Extract the envelope's ``errors`` array from a raw body.

    Returns an empty list when the body is not a JSON envelope.
    """
    if not body:
        return []
    try:
        data = json.loads(body)
    except ValueError:
        return []
    if not isinstance(data, dict):
        return []
    errors = data.get("errors")
    if not isinstance(errors, list):
        return []

    parsed: List[ApiError] = []
    for entry in errors:
        if not isinstance(entry, dict):
            continue
        try:
            parsed.append(ApiError.model_validate(entry))
        except ValidationError:
            parsed.append(ApiError(message=str(entry.get("message", entry))))
    return parsed


def http_error_from_response(
    response: "httpx.Response", operation: Optional[str] = None
) -> CloudflareHttpError:
    """Build the error for a non-2xx response."""
    body = response.text
    return CloudflareHttpError(
        response.status_code,
        body=body,
        errors=parse_api_errors(body),
        retry_after=parse_retry_after(response),
        operation=operation,
    )


def parse_envelope(
    response: "httpx.Response",
    result_type: Any = Any,
    operation: Optional[str] = None,
) -> ApiResponse:
    """Deserialize a 2xx response into ``ApiResponse[result_type]``.

    Raises:
        ResponseDecodeError: Body is not a valid envelope for ``result_type``.
        CloudflareApiError: Envelope reports ``success: false``.
    """
    body = response.text
    try:
        envelope = ApiResponse[result_type].model_validate_json(body)
    except ValidationError as exc:
        raise ResponseDecodeError(
            f"Failed to decode response for {operation or 'request'}: "
            f"{exc.error_count()} validation error(s)",
            body=body,
            operation=operation,
        ) from exc

    if not envelope.success:
        raise CloudflareApiError(envelope.errors, body=body, operation=operation)
    return envelope
