"""Caller-driven cancellation.

A CancellationToken is threaded through every suspension point of a
logical call: waiting for a limiter permit, the network attempt, the
retry delay and each page fetch of an enumeration.
"""

import asyncio
import contextlib
from typing import Awaitable, Optional, TypeVar

from cfclient.core.errors import OperationCancelledError

T = TypeVar("T")


class CancellationToken:
    """Cooperative cancellation signal.

    Example:
        token = CancellationToken()
        task = asyncio.create_task(client.dns.list_all(zone, cancel=token).collect())
        ...
        token.cancel("shutting down")
    """

    def __init__(self):
        self._event = asyncio.Event()
        self.reason: Optional[str] = None

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self, reason: Optional[str] = None) -> None:
        if not self._event.is_set():
            self.reason = reason
            self._event.set()

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise OperationCancelledError(reason=self.reason)

    async def wait(self) -> None:
        await self._event.wait()

    async def run(self, awaitable: Awaitable[T]) -> T:
        """Await ``awaitable`` unless the token fires first.

        When the token fires the inner work is cancelled and awaited
        before OperationCancelledError is raised.
        """
        task = asyncio.ensure_future(awaitable)
        if self._event.is_set():
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task
            raise OperationCancelledError(reason=self.reason)

        waiter = asyncio.ensure_future(self._event.wait())
        try:
            await asyncio.wait({task, waiter}, return_when=asyncio.FIRST_COMPLETED)
        except asyncio.CancelledError:
            task.cancel()
            raise
        finally:
            waiter.cancel()

        if not task.done():
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task
            raise OperationCancelledError(reason=self.reason)
        return task.result()
