"""HTTP contract shared by every resource call.

Envelope models, response parsing, the bearer credential attacher, the
ApiResource base class and the pagination and batch primitives built on
top of it.
"""

from cfclient.core.http.auth import BearerTokenAuth
from cfclient.core.http.batch import (
    EXECUTION_ORDER,
    BatchOperation,
    BatchOperationKind,
    BatchOperationSequencer,
    BatchPlan,
    BatchResult,
)
from cfclient.core.http.models import (
    ApiError,
    ApiMessage,
    ApiResponse,
    CursorPaginatedResult,
    CursorResultInfo,
    PagePaginatedResult,
    ResultInfo,
)
from cfclient.core.http.pagination import DEFAULT_PER_PAGE, CursorPaginator, OffsetPaginator
from cfclient.core.http.resource import ApiResource
from cfclient.core.http.shared import (
    http_error_from_response,
    parse_api_errors,
    parse_envelope,
    parse_retry_after,
)

__all__ = [
    # Auth
    "BearerTokenAuth",
    # Envelope
    "ApiError",
    "ApiMessage",
    "ApiResponse",
    "CursorPaginatedResult",
    "CursorResultInfo",
    "PagePaginatedResult",
    "ResultInfo",
    # Parsing
    "http_error_from_response",
    "parse_api_errors",
    "parse_envelope",
    "parse_retry_after",
    # Resources
    "ApiResource",
    # Pagination
    "DEFAULT_PER_PAGE",
    "CursorPaginator",
    "OffsetPaginator",
    # Batch
    "EXECUTION_ORDER",
    "BatchOperation",
    "BatchOperationKind",
    "BatchOperationSequencer",
    "BatchPlan",
    "BatchResult",
]
