"""DNS record models."""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict


class DnsRecordType(str, Enum):
    A = "A"
    AAAA = "AAAA"
    CAA = "CAA"
    CERT = "CERT"
    CNAME = "CNAME"
    DNSKEY = "DNSKEY"
    DS = "DS"
    HTTPS = "HTTPS"
    LOC = "LOC"
    MX = "MX"
    NAPTR = "NAPTR"
    NS = "NS"
    PTR = "PTR"
    SMIMEA = "SMIMEA"
    SRV = "SRV"
    SSHFP = "SSHFP"
    SVCB = "SVCB"
    TLSA = "TLSA"
    TXT = "TXT"
    URI = "URI"


class DnsRecordSettings(BaseModel):
    ipv4_only: Optional[bool] = None
    ipv6_only: Optional[bool] = None


class DnsRecordMeta(BaseModel):
    model_config = ConfigDict(extra="allow")

    auto_added: Optional[bool] = None
    source: Optional[str] = None


class DnsRecord(BaseModel):
    """A DNS record as returned by the API."""

    model_config = ConfigDict(extra="allow")

    id: str
    name: str
    type: str
    content: str = ""
    proxied: bool = False
    proxiable: bool = False
    ttl: int = 1
    created_on: Optional[datetime] = None
    modified_on: Optional[datetime] = None
    comment: Optional[str] = None
    tags: Optional[List[str]] = None
    priority: Optional[int] = None
    meta: Optional[DnsRecordMeta] = None
    settings: Optional[DnsRecordSettings] = None


class _RecordRequest(BaseModel):
    def to_payload(self) -> Dict[str, Any]:
        """JSON body with unset optional fields omitted."""
        return self.model_dump(mode="json", exclude_none=True)


class CreateDnsRecordRequest(_RecordRequest):
    """Body of a create (POST) or of a batch ``posts`` entry.

    A ``ttl`` of 1 means automatic.
    """

    type: DnsRecordType
    name: str
    content: str
    ttl: int = 1
    proxied: Optional[bool] = None
    comment: Optional[str] = None
    tags: Optional[List[str]] = None
    priority: Optional[int] = None
    settings: Optional[DnsRecordSettings] = None


class UpdateDnsRecordRequest(CreateDnsRecordRequest):
    """Full replacement (PUT) of a record."""


class PatchDnsRecordRequest(_RecordRequest):
    """Partial update; only the fields set are sent."""

    type: Optional[DnsRecordType] = None
    name: Optional[str] = None
    content: Optional[str] = None
    ttl: Optional[int] = None
    proxied: Optional[bool] = None
    comment: Optional[str] = None
    tags: Optional[List[str]] = None
    settings: Optional[DnsRecordSettings] = None


class ListDnsRecordsFilters(BaseModel):
    """Query filters for listing records."""

    type: Optional[DnsRecordType] = None
    name: Optional[str] = None
    content: Optional[str] = None
    proxied: Optional[bool] = None
    order: Optional[str] = None
    direction: Optional[str] = None

    def to_params(self) -> Dict[str, Any]:
        params = self.model_dump(mode="json", exclude_none=True)
        if "proxied" in params:
            params["proxied"] = "true" if params["proxied"] else "false"
        return params
