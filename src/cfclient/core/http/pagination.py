"""Lazy page enumerators.

Both enumerators are explicit state machines: they fetch one page at a
time, strictly in sequence, and only when the buffered items run out.
They are forward-only and single-use; build a new one to start over.

A failed page fetch ends the enumeration and the error propagates to
the consumer unchanged.
"""

import logging
from collections import deque
from typing import TYPE_CHECKING, Awaitable, Callable, Deque, Generic, List, Optional, TypeVar

from cfclient.core.http.models import CursorPaginatedResult, PagePaginatedResult
from cfclient.core.observability import audit_log

if TYPE_CHECKING:
    from cfclient.core.resilience.cancellation import CancellationToken

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_PER_PAGE = 100

FetchPage = Callable[[int, int], Awaitable[PagePaginatedResult[T]]]
FetchCursorPage = Callable[[Optional[str], int], Awaitable[CursorPaginatedResult[T]]]


class _Paginator(Generic[T]):
    """Buffering and iteration shared by both enumerators."""

    def __init__(
        self,
        per_page: int,
        cancel: Optional["CancellationToken"] = None,
        operation: Optional[str] = None,
    ):
        if per_page < 1:
            raise ValueError(f"per_page must be >= 1, got {per_page}")
        self.per_page = per_page
        self.operation = operation
        self.pages_fetched = 0
        self._cancel = cancel
        self._buffer: Deque[T] = deque()
        self._finished = False

    @property
    def finished(self) -> bool:
        """True once no further page will be requested."""
        return self._finished

    async def has_next(self) -> bool:
        """Return True if another item is available, fetching a page if needed."""
        while not self._buffer:
            if self._finished:
                return False
            if self._cancel is not None and self._cancel.cancelled:
                self._finished = True
                self._cancel.raise_if_cancelled()
            try:
                await self._fetch_next()
            except BaseException:
                self._finished = True
                raise
        return True

    async def next(self) -> T:
        """Return the next item.

        Raises:
            StopAsyncIteration: The enumeration is exhausted.
        """
        if not await self.has_next():
            raise StopAsyncIteration
        return self._buffer.popleft()

    def __aiter__(self) -> "_Paginator[T]":
        return self

    async def __anext__(self) -> T:
        return await self.next()

    async def collect(self) -> List[T]:
        """Drain the enumeration into a list."""
        items: List[T] = []
        while await self.has_next():
            items.append(self._buffer.popleft())
        return items

    async def _fetch_next(self) -> None:
        raise NotImplementedError


class OffsetPaginator(_Paginator[T]):
    """Page-number enumerator.

    Starts at page 1 and stops after an empty page or the last page
    reported by a positive ``total_pages``. Without that count it stops
    after a page shorter than the page size the server echoes in
    ``per_page`` (the requested size when none is echoed).

    Args:
        fetch_page: ``fetch_page(page, per_page)`` returning one page.
        per_page: Requested page size.
        cancel: Stops enumeration before the next page fetch.
        operation: Label for audit events.
    """

    def __init__(
        self,
        fetch_page: FetchPage,
        per_page: int = DEFAULT_PER_PAGE,
        cancel: Optional["CancellationToken"] = None,
        operation: Optional[str] = None,
    ):
        super().__init__(per_page, cancel=cancel, operation=operation)
        self._fetch_page = fetch_page
        self._page = 1

    @property
    def page(self) -> int:
        """Page number of the next fetch."""
        return self._page

    async def _fetch_next(self) -> None:
        result = await self._fetch_page(self._page, self.per_page)
        self.pages_fetched += 1
        items = list(result.items)
        self._buffer.extend(items)

        info = result.page_info
        audit_log(
            "page_fetched",
            operation=self.operation,
            page=self._page,
            count=len(items),
            total_count=info.total_count if info else None,
        )

        if not items:
            self._finished = True
        elif info is not None and info.total_pages:
            # total_pages is 0 on some endpoints; only a positive count is a signal
            if self._page >= info.total_pages:
                self._finished = True
            else:
                self._page += 1
        else:
            # The server may cap the page size below the requested one
            page_size = info.per_page if info is not None and info.per_page > 0 else self.per_page
            if len(items) < page_size:
                self._finished = True
            else:
                self._page += 1


class CursorPaginator(_Paginator[T]):
    """Opaque-cursor enumerator.

    The first request carries no cursor. Each following request passes
    back the cursor of the previous response verbatim; enumeration ends
    as soon as a response carries none.

    Args:
        fetch_page: ``fetch_page(cursor, per_page)`` returning one page.
        per_page: Requested page size.
        cancel: Stops enumeration before the next page fetch.
        operation: Label for audit events.
    """

    def __init__(
        self,
        fetch_page: FetchCursorPage,
        per_page: int = DEFAULT_PER_PAGE,
        cancel: Optional["CancellationToken"] = None,
        operation: Optional[str] = None,
    ):
        super().__init__(per_page, cancel=cancel, operation=operation)
        self._fetch_page = fetch_page
        self._cursor: Optional[str] = None

    @property
    def cursor(self) -> Optional[str]:
        """Cursor sent with the next fetch (None before the first one)."""
        return self._cursor

    async def _fetch_next(self) -> None:
        result = await self._fetch_page(self._cursor, self.per_page)
        self.pages_fetched += 1
        self._buffer.extend(result.items)

        next_cursor = result.next_cursor
        audit_log(
            "page_fetched",
            operation=self.operation,
            page=self.pages_fetched,
            count=len(result.items),
            has_more=next_cursor is not None,
        )

        if next_cursor is None:
            self._finished = True
        else:
            self._cursor = next_cursor
