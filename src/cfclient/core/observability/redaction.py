"""Sensitive data redaction utilities.

Safe for use before logging request metadata. The bearer credential
attached to outgoing requests must never reach a log record.
"""

from typing import Final, Mapping

# Headers that should never appear in logs/errors
SENSITIVE_HEADERS: Final = frozenset(
    {
        "authorization",
        "x-auth-key",
        "x-auth-email",
        "cookie",
        "set-cookie",
        "proxy-authorization",
    }
)


def redact_headers(headers: Mapping[str, str]) -> dict[str, str]:
    """Return a copy of *headers* with sensitive values redacted.

    Args:
        headers: HTTP header mapping (case-insensitive keys).

    Returns:
        New dict with sensitive header values replaced by ``"****"``.
    """
    return {
        key: "****" if key.lower() in SENSITIVE_HEADERS else value
        for key, value in headers.items()
    }
