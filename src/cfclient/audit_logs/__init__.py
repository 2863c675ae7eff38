"""Account audit logs resource."""

from cfclient.audit_logs.api import AuditLogsApi
from cfclient.audit_logs.models import (
    AuditLog,
    AuditLogAccount,
    AuditLogAction,
    AuditLogActor,
    AuditLogRaw,
    AuditLogResource,
    AuditLogZone,
    ListAuditLogsFilters,
)

__all__ = [
    "AuditLogsApi",
    "AuditLog",
    "AuditLogAccount",
    "AuditLogAction",
    "AuditLogActor",
    "AuditLogRaw",
    "AuditLogResource",
    "AuditLogZone",
    "ListAuditLogsFilters",
]
