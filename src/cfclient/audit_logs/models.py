"""Account audit log models."""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict


class AuditLogAccount(BaseModel):
    id: str
    name: Optional[str] = None


class AuditLogAction(BaseModel):
    description: Optional[str] = None
    result: str
    time: datetime
    type: str


class AuditLogActor(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: Optional[str] = None
    context: Optional[str] = None
    email: Optional[str] = None
    ip_address: Optional[str] = None
    token_id: Optional[str] = None
    token_name: Optional[str] = None
    type: Optional[str] = None


class AuditLogRaw(BaseModel):
    cf_ray_id: Optional[str] = None
    method: Optional[str] = None
    status_code: Optional[int] = None
    uri: Optional[str] = None
    user_agent: Optional[str] = None


class AuditLogResource(BaseModel):
    id: Optional[str] = None
    product: Optional[str] = None
    request: Optional[Any] = None
    response: Optional[Any] = None
    scope: Optional[str] = None
    type: Optional[str] = None


class AuditLogZone(BaseModel):
    id: Optional[str] = None
    name: Optional[str] = None


class AuditLog(BaseModel):
    """One account audit log entry."""

    model_config = ConfigDict(extra="allow")

    id: str
    account: AuditLogAccount
    action: AuditLogAction
    actor: AuditLogActor
    raw: Optional[AuditLogRaw] = None
    resource: Optional[AuditLogResource] = None
    zone: Optional[AuditLogZone] = None


class ListAuditLogsFilters(BaseModel):
    """Query filters for account audit logs.

    ``since`` and ``before`` bound the time range; list filters are sent as
    repeated query parameters.
    """

    since: Optional[datetime] = None
    before: Optional[datetime] = None
    direction: Optional[str] = None
    action_type: Optional[List[str]] = None
    action_result: Optional[List[str]] = None
    actor_email: Optional[List[str]] = None
    resource_type: Optional[List[str]] = None
    zone_id: Optional[List[str]] = None

    def to_params(self) -> Dict[str, Any]:
        params = self.model_dump(mode="json", exclude_none=True)
        return {
            key: value
            for key, value in params.items()
            if not (isinstance(value, list) and not value)
        }
