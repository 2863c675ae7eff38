"""DNS records resource."""

from cfclient.dns.api import DnsApi, build_batch_plan
from cfclient.dns.models import (
    CreateDnsRecordRequest,
    DnsRecord,
    DnsRecordMeta,
    DnsRecordSettings,
    DnsRecordType,
    ListDnsRecordsFilters,
    PatchDnsRecordRequest,
    UpdateDnsRecordRequest,
)

__all__ = [
    "DnsApi",
    "build_batch_plan",
    "CreateDnsRecordRequest",
    "DnsRecord",
    "DnsRecordMeta",
    "DnsRecordSettings",
    "DnsRecordType",
    "ListDnsRecordsFilters",
    "PatchDnsRecordRequest",
    "UpdateDnsRecordRequest",
]
