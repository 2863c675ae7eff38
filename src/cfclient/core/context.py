"""Request-scoped context for cfclient.

Holds the correlation id attached to audit events so that every attempt,
retry and breaker transition emitted on behalf of one caller can be tied
back together in the logs.

Example:
    from cfclient.core.context import correlation_scope

    with correlation_scope("deploy-42"):
        await client.dns.list_all(zone_id).collect()
"""

import uuid
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Iterator, Optional

correlation_id: ContextVar[str] = ContextVar("correlation_id", default="")


def get_correlation_id() -> str:
    """Return the correlation id for the current context ("" if unset)."""
    return correlation_id.get()


def set_correlation_id(value: Optional[str] = None) -> str:
    """Set the correlation id for the current context.

    Args:
        value: Correlation id to use. A random one is generated if omitted.

    Returns:
        The correlation id now in effect.
    """
    value = value or uuid.uuid4().hex[:16]
    correlation_id.set(value)
    return value


@contextmanager
def correlation_scope(value: Optional[str] = None) -> Iterator[str]:
    """Set a correlation id for the duration of a ``with`` block."""
    token = correlation_id.set(value or uuid.uuid4().hex[:16])
    try:
        yield correlation_id.get()
    finally:
        correlation_id.reset(token)
