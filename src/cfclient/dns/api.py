"""DNS records resource.

Endpoints under ``zones/{zone_id}/dns_records``. Listing is offset
paginated; ``batch`` submits deletes, patches, puts and posts in one
request.
"""

import logging
from typing import Iterable, Mapping, Optional, Tuple, Union
from urllib.parse import quote

from cfclient.core.http import ApiResource, BatchOperation, BatchPlan, BatchResult
from cfclient.core.http.models import PagePaginatedResult
from cfclient.core.http.pagination import DEFAULT_PER_PAGE, OffsetPaginator
from cfclient.core.resilience.cancellation import CancellationToken
from cfclient.dns.models import (
    CreateDnsRecordRequest,
    DnsRecord,
    DnsRecordType,
    ListDnsRecordsFilters,
    PatchDnsRecordRequest,
    UpdateDnsRecordRequest,
)

logger = logging.getLogger(__name__)


def _require(value: str, name: str) -> str:
    if not value or not value.strip():
        raise ValueError(f"{name} must be a non-empty string")
    return quote(value, safe="")


def build_batch_plan(
    deletes: Iterable[str] = (),
    patches: Union[
        Mapping[str, PatchDnsRecordRequest], Iterable[Tuple[str, PatchDnsRecordRequest]]
    ] = (),
    replaces: Union[
        Mapping[str, UpdateDnsRecordRequest], Iterable[Tuple[str, UpdateDnsRecordRequest]]
    ] = (),
    creates: Iterable[CreateDnsRecordRequest] = (),
) -> BatchPlan:
    """Build a DNS batch plan from typed requests."""
    if isinstance(patches, Mapping):
        patches = patches.items()
    if isinstance(replaces, Mapping):
        replaces = replaces.items()

    plan = BatchPlan()
    for record_id in deletes:
        plan.add(BatchOperation.delete(record_id))
    for record_id, patch in patches:
        plan.add(BatchOperation.patch(record_id, **patch.to_payload()))
    for record_id, update in replaces:
        plan.add(BatchOperation.replace(record_id, **update.to_payload()))
    for create in creates:
        plan.add(BatchOperation.create(**create.to_payload()))
    return plan


class DnsApi(ApiResource):
    """DNS record operations for a zone."""

    def _records_path(self, zone_id: str) -> str:
        return f"zones/{_require(zone_id, 'zone_id')}/dns_records"

    def _record_path(self, zone_id: str, record_id: str) -> str:
        return f"{self._records_path(zone_id)}/{_require(record_id, 'record_id')}"

    async def get(
        self, zone_id: str, record_id: str, *, cancel: Optional[CancellationToken] = None
    ) -> DnsRecord:
        return await self._get(self._record_path(zone_id, record_id), DnsRecord, cancel=cancel)

    async def list(
        self,
        zone_id: str,
        filters: Optional[ListDnsRecordsFilters] = None,
        *,
        page: int = 1,
        per_page: int = DEFAULT_PER_PAGE,
        cancel: Optional[CancellationToken] = None,
    ) -> PagePaginatedResult[DnsRecord]:
        """Fetch a single page of records."""
        return await self._get_page(
            self._records_path(zone_id),
            DnsRecord,
            page,
            per_page,
            params=filters.to_params() if filters else None,
            cancel=cancel,
        )

    def list_all(
        self,
        zone_id: str,
        filters: Optional[ListDnsRecordsFilters] = None,
        *,
        per_page: int = DEFAULT_PER_PAGE,
        cancel: Optional[CancellationToken] = None,
    ) -> OffsetPaginator[DnsRecord]:
        """Lazily enumerate every record matching ``filters``.

        Example:
            async for record in client.dns.list_all(zone_id):
                print(record.name)
        """
        return self._paginate(
            self._records_path(zone_id),
            DnsRecord,
            per_page,
            params=filters.to_params() if filters else None,
            cancel=cancel,
        )

    async def find_by_name(
        self,
        zone_id: str,
        hostname: str,
        record_type: Optional[DnsRecordType] = None,
        *,
        cancel: Optional[CancellationToken] = None,
    ) -> Optional[DnsRecord]:
        """Return the first record named ``hostname``, or None."""
        _require(hostname, "hostname")
        filters = ListDnsRecordsFilters(name=hostname, type=record_type)
        page = await self.list(zone_id, filters, cancel=cancel)
        return page.items[0] if page.items else None

    async def create(
        self,
        zone_id: str,
        request: CreateDnsRecordRequest,
        *,
        cancel: Optional[CancellationToken] = None,
    ) -> DnsRecord:
        return await self._post(
            self._records_path(zone_id), DnsRecord, json=request.to_payload(), cancel=cancel
        )

    async def update(
        self,
        zone_id: str,
        record_id: str,
        request: UpdateDnsRecordRequest,
        *,
        cancel: Optional[CancellationToken] = None,
    ) -> DnsRecord:
        return await self._put(
            self._record_path(zone_id, record_id),
            DnsRecord,
            json=request.to_payload(),
            cancel=cancel,
        )

    async def patch(
        self,
        zone_id: str,
        record_id: str,
        request: PatchDnsRecordRequest,
        *,
        cancel: Optional[CancellationToken] = None,
    ) -> DnsRecord:
        return await self._patch(
            self._record_path(zone_id, record_id),
            DnsRecord,
            json=request.to_payload(),
            cancel=cancel,
        )

    async def delete(
        self, zone_id: str, record_id: str, *, cancel: Optional[CancellationToken] = None
    ) -> None:
        await self._delete(self._record_path(zone_id, record_id), cancel=cancel)

    async def batch(
        self,
        zone_id: str,
        plan: BatchPlan,
        *,
        cancel: Optional[CancellationToken] = None,
    ) -> BatchResult[DnsRecord]:
        """Apply deletes, patches, puts and posts in one request.

        The server applies them in that order regardless of the order they
        were added to ``plan``. The submission is not retried.
        """
        return await self._submit_batch(
            f"{self._records_path(zone_id)}/batch", plan, DnsRecord, cancel=cancel
        )
