"""Base class for resource APIs.

Resource methods build a request, hand it to the client's resilience
pipeline and get back the envelope's ``result`` typed with pydantic.
Path segments supplied by callers must be escaped with
``quote(value, safe="")`` before being interpolated.
"""

import logging
from typing import TYPE_CHECKING, Any, Dict, Optional, Type, TypeVar

import httpx

from cfclient.core.http.batch import BatchOperationSequencer, BatchPlan, BatchResult
from cfclient.core.http.models import (
    ApiResponse,
    CursorPaginatedResult,
    CursorResultInfo,
    PagePaginatedResult,
    ResultInfo,
)
from cfclient.core.http.pagination import DEFAULT_PER_PAGE, CursorPaginator, OffsetPaginator
from cfclient.core.http.shared import parse_envelope

if TYPE_CHECKING:
    from cfclient.core.resilience.cancellation import CancellationToken
    from cfclient.core.resilience.pipeline import ResiliencePipeline

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _clean_params(params: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    if not params:
        return None
    return {key: value for key, value in params.items() if value is not None}


class ApiResource:
    """Shared request plumbing for resource APIs.

    Args:
        http: Authenticated client with ``base_url`` set.
        pipeline: Resilience pipeline shared by the owning client.
    """

    def __init__(self, http: httpx.AsyncClient, pipeline: "ResiliencePipeline"):
        self._http = http
        self._pipeline = pipeline

    async def _request(
        self,
        method: str,
        path: str,
        result_type: Any = Any,
        *,
        params: Optional[Dict[str, Any]] = None,
        json: Any = None,
        idempotent: Optional[bool] = None,
        cancel: Optional["CancellationToken"] = None,
    ) -> ApiResponse:
        """Send one logical call through the pipeline and return the envelope."""
        operation = f"{method} {path}"
        query = _clean_params(params)

        async def send() -> httpx.Response:
            return await self._http.request(method, path, params=query, json=json)

        return await self._pipeline.execute(
            send,
            method=method,
            idempotent=idempotent,
            deserialize=lambda response: parse_envelope(response, result_type, operation),
            operation=operation,
            cancel=cancel,
        )

    async def _get(
        self,
        path: str,
        result_type: Type[T],
        *,
        params: Optional[Dict[str, Any]] = None,
        cancel: Optional["CancellationToken"] = None,
    ) -> T:
        envelope = await self._request("GET", path, result_type, params=params, cancel=cancel)
        return envelope.result

    async def _post(
        self,
        path: str,
        result_type: Type[T],
        json: Any = None,
        *,
        idempotent: Optional[bool] = None,
        cancel: Optional["CancellationToken"] = None,
    ) -> T:
        envelope = await self._request(
            "POST", path, result_type, json=json, idempotent=idempotent, cancel=cancel
        )
        return envelope.result

    async def _put(
        self,
        path: str,
        result_type: Type[T],
        json: Any = None,
        *,
        cancel: Optional["CancellationToken"] = None,
    ) -> T:
        envelope = await self._request("PUT", path, result_type, json=json, cancel=cancel)
        return envelope.result

    async def _patch(
        self,
        path: str,
        result_type: Type[T],
        json: Any = None,
        *,
        idempotent: Optional[bool] = None,
        cancel: Optional["CancellationToken"] = None,
    ) -> T:
        envelope = await self._request(
            "PATCH", path, result_type, json=json, idempotent=idempotent, cancel=cancel
        )
        return envelope.result

    async def _delete(
        self,
        path: str,
        result_type: Any = Any,
        *,
        cancel: Optional["CancellationToken"] = None,
    ) -> Any:
        envelope = await self._request("DELETE", path, result_type, cancel=cancel)
        return envelope.result

    async def _get_page(
        self,
        path: str,
        item_type: Type[T],
        page: int = 1,
        per_page: int = DEFAULT_PER_PAGE,
        *,
        params: Optional[Dict[str, Any]] = None,
        cancel: Optional["CancellationToken"] = None,
    ) -> PagePaginatedResult[T]:
        """Fetch one offset page (``page``/``per_page`` query parameters)."""
        query = dict(params or {})
        query.update(page=page, per_page=per_page)
        envelope = await self._request("GET", path, list[item_type], params=query, cancel=cancel)
        info = ResultInfo.model_validate(envelope.result_info) if envelope.result_info else None
        return PagePaginatedResult[item_type](items=envelope.result or [], page_info=info)

    async def _get_cursor_page(
        self,
        path: str,
        item_type: Type[T],
        cursor: Optional[str] = None,
        per_page: int = DEFAULT_PER_PAGE,
        *,
        params: Optional[Dict[str, Any]] = None,
        size_param: str = "per_page",
        cancel: Optional["CancellationToken"] = None,
    ) -> CursorPaginatedResult[T]:
        """Fetch one cursor page; ``cursor`` is omitted on the first request.

        ``size_param`` names the page-size query parameter (``limit`` on
        some v2 endpoints).
        """
        query = dict(params or {})
        query[size_param] = per_page
        if cursor:
            query["cursor"] = cursor
        envelope = await self._request("GET", path, list[item_type], params=query, cancel=cancel)
        info = (
            CursorResultInfo.model_validate(envelope.result_info) if envelope.result_info else None
        )
        return CursorPaginatedResult[item_type](items=envelope.result or [], cursor_info=info)

    def _paginate(
        self,
        path: str,
        item_type: Type[T],
        per_page: int = DEFAULT_PER_PAGE,
        *,
        params: Optional[Dict[str, Any]] = None,
        cancel: Optional["CancellationToken"] = None,
    ) -> OffsetPaginator[T]:
        async def fetch(page: int, size: int) -> PagePaginatedResult[T]:
            return await self._get_page(
                path, item_type, page, size, params=params, cancel=cancel
            )

        return OffsetPaginator(fetch, per_page=per_page, cancel=cancel, operation=f"GET {path}")

    def _paginate_cursor(
        self,
        path: str,
        item_type: Type[T],
        per_page: int = DEFAULT_PER_PAGE,
        *,
        params: Optional[Dict[str, Any]] = None,
        size_param: str = "per_page",
        cancel: Optional["CancellationToken"] = None,
    ) -> CursorPaginator[T]:
        async def fetch(cursor: Optional[str], size: int) -> CursorPaginatedResult[T]:
            return await self._get_cursor_page(
                path,
                item_type,
                cursor,
                size,
                params=params,
                size_param=size_param,
                cancel=cancel,
            )

        return CursorPaginator(fetch, per_page=per_page, cancel=cancel, operation=f"GET {path}")

    async def _submit_batch(
        self,
        path: str,
        plan: BatchPlan,
        item_type: Type[T],
        *,
        cancel: Optional["CancellationToken"] = None,
    ) -> BatchResult[T]:
        """Submit a batch as a single non-retried POST."""

        async def submit(payload: Dict[str, Any]) -> Optional[BatchResult[T]]:
            return await self._post(path, BatchResult[item_type], json=payload, cancel=cancel)

        sequencer: BatchOperationSequencer[T] = BatchOperationSequencer(
            submit, operation=f"POST {path}"
        )
        return await sequencer.submit(plan)
