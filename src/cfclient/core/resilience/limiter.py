"""Concurrency limiter with a bounded wait queue.

Bounds the number of in-flight attempts of one pipeline. When every
permit is held, callers queue (up to ``queue_limit``) and are served in
``queue_order``; beyond that they are rejected immediately. A released
permit is handed directly to the next waiter so the in-use count never
exceeds ``permit_limit``.

State is mutated only from the event loop thread, between awaits, so a
limiter must not be shared across event loops or threads.
"""

import asyncio
import contextlib
import logging
from collections import deque
from enum import Enum
from typing import TYPE_CHECKING, Deque, Optional

from cfclient.core.errors import RateLimitRejectedError
from cfclient.core.observability import audit_log

if TYPE_CHECKING:
    from cfclient.core.resilience.cancellation import CancellationToken
    from cfclient.core.resilience.config import ResilienceConfig

logger = logging.getLogger(__name__)


class QueueOrder(str, Enum):
    """Order in which queued waiters receive permits."""

    OLDEST_FIRST = "oldest_first"
    NEWEST_FIRST = "newest_first"


class Permit:
    """One acquired slot. ``release()`` is idempotent."""

    __slots__ = ("_limiter", "_released")

    def __init__(self, limiter: "ConcurrencyLimiter"):
        self._limiter = limiter
        self._released = False

    @property
    def released(self) -> bool:
        return self._released

    def release(self) -> None:
        if self._released:
            return
        self._released = True
        self._limiter._release()

    async def __aenter__(self) -> "Permit":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        self.release()


class ConcurrencyLimiter:
    """Permit-based limiter for in-flight requests.

    Args:
        permit_limit: Maximum permits held at once (>= 1).
        queue_limit: Maximum queued waiters (0 rejects immediately).
        queue_order: Which waiter is served first.
        name: Name used in errors and audit events.
    """

    def __init__(
        self,
        permit_limit: int = 20,
        queue_limit: int = 100,
        queue_order: QueueOrder = QueueOrder.OLDEST_FIRST,
        name: str = "default",
    ):
        if permit_limit < 1:
            raise ValueError(f"permit_limit must be >= 1, got {permit_limit}")
        if queue_limit < 0:
            raise ValueError(f"queue_limit must be >= 0, got {queue_limit}")
        self.permit_limit = permit_limit
        self.queue_limit = queue_limit
        self.queue_order = QueueOrder(queue_order)
        self.name = name
        self._in_use = 0
        self._waiters: Deque[asyncio.Future] = deque()

    @classmethod
    def from_config(cls, config: "ResilienceConfig", name: str = "default") -> "ConcurrencyLimiter":
        return cls(
            permit_limit=config.permit_limit,
            queue_limit=config.queue_limit,
            queue_order=config.queue_order,
            name=name,
        )

    @property
    def in_use(self) -> int:
        return self._in_use

    @property
    def queued(self) -> int:
        return len(self._waiters)

    async def acquire(
        self,
        cancel: Optional["CancellationToken"] = None,
        operation: Optional[str] = None,
    ) -> Permit:
        """Acquire a permit, waiting in the queue if necessary.

        Raises:
            RateLimitRejectedError: All permits are held and the queue is full.
            OperationCancelledError: ``cancel`` fired while waiting.
        """
        if cancel is not None:
            cancel.raise_if_cancelled()

        if self._in_use < self.permit_limit and not self._waiters:
            self._in_use += 1
            return Permit(self)

        if len(self._waiters) >= self.queue_limit:
            audit_log(
                "rate_limit_rejected",
                limiter=self.name,
                operation=operation,
                permit_limit=self.permit_limit,
                queue_limit=self.queue_limit,
            )
            raise RateLimitRejectedError(
                f"Rate limiter '{self.name}' rejected request: "
                f"{self._in_use} permits in use, {len(self._waiters)} queued",
                permit_limit=self.permit_limit,
                queue_limit=self.queue_limit,
                operation=operation,
            )

        waiter = asyncio.get_running_loop().create_future()
        self._waiters.append(waiter)
        logger.debug("Queued for permit on '%s' (%d waiting)", self.name, len(self._waiters))
        try:
            if cancel is None:
                await waiter
            else:
                await cancel.run(waiter)
        except BaseException:
            if waiter.done() and not waiter.cancelled():
                # Permit was handed over before the cancellation landed.
                self._release()
            else:
                waiter.cancel()
                with contextlib.suppress(ValueError):
                    self._waiters.remove(waiter)
            raise
        return Permit(self)

    def _release(self) -> None:
        while self._waiters:
            if self.queue_order is QueueOrder.OLDEST_FIRST:
                waiter = self._waiters.popleft()
            else:
                waiter = self._waiters.pop()
            if not waiter.done():
                waiter.set_result(None)
                return
        self._in_use -= 1
