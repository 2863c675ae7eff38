"""
Observability utilities for cfclient.

Provides audit logging, metrics emission and redaction helpers used by
the resilience pipeline.
"""

from cfclient.core.observability.audit import (
    AuditEvent,
    AuditEventType,
    AuditLogger,
    audit_log,
)
from cfclient.core.observability.metrics import (
    Metric,
    MetricsCollector,
    MetricType,
    get_metrics,
)
from cfclient.core.observability.redaction import (
    SENSITIVE_HEADERS,
    redact_headers,
)

__all__ = [
    # Audit
    "AuditEvent",
    "AuditEventType",
    "AuditLogger",
    "audit_log",
    # Metrics
    "Metric",
    "MetricType",
    "MetricsCollector",
    "get_metrics",
    # Redaction
    "SENSITIVE_HEADERS",
    "redact_headers",
]
