"""Account audit logs resource (cursor paginated)."""

import logging
from typing import Optional
from urllib.parse import quote

from cfclient.audit_logs.models import AuditLog, ListAuditLogsFilters
from cfclient.core.http import ApiResource
from cfclient.core.http.models import CursorPaginatedResult
from cfclient.core.http.pagination import DEFAULT_PER_PAGE, CursorPaginator
from cfclient.core.resilience.cancellation import CancellationToken

logger = logging.getLogger(__name__)

# The v2 audit log endpoint sizes pages with ``limit``.
PAGE_SIZE_PARAM = "limit"


class AuditLogsApi(ApiResource):
    """Account audit log queries."""

    @staticmethod
    def _path(account_id: str) -> str:
        if not account_id or not account_id.strip():
            raise ValueError("account_id must be a non-empty string")
        return f"accounts/{quote(account_id, safe='')}/logs/audit"

    async def list(
        self,
        account_id: str,
        filters: Optional[ListAuditLogsFilters] = None,
        *,
        cursor: Optional[str] = None,
        limit: int = DEFAULT_PER_PAGE,
        cancel: Optional[CancellationToken] = None,
    ) -> CursorPaginatedResult[AuditLog]:
        """Fetch one page of audit logs starting at ``cursor``."""
        return await self._get_cursor_page(
            self._path(account_id),
            AuditLog,
            cursor,
            limit,
            params=filters.to_params() if filters else None,
            size_param=PAGE_SIZE_PARAM,
            cancel=cancel,
        )

    def list_all(
        self,
        account_id: str,
        filters: Optional[ListAuditLogsFilters] = None,
        *,
        limit: int = DEFAULT_PER_PAGE,
        cancel: Optional[CancellationToken] = None,
    ) -> CursorPaginator[AuditLog]:
        """Lazily enumerate every audit log entry matching ``filters``."""
        return self._paginate_cursor(
            self._path(account_id),
            AuditLog,
            limit,
            params=filters.to_params() if filters else None,
            size_param=PAGE_SIZE_PARAM,
            cancel=cancel,
        )
