"""Request metrics emitted as structured log records.

Every physical attempt made by a pipeline produces one latency timer and
one attempt counter, labelled by client, HTTP method and outcome kind.
Proactive throttling delays are recorded as a timer of their own. Records
go to the ``cfclient.core.observability.metrics.metrics`` logger with the
metric dict in ``extra={"metric": ...}`` so log shippers can pick them up.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional, Union

logger = logging.getLogger(__name__)

ATTEMPT_LATENCY = "request.latency"
ATTEMPT_COUNT = "request.attempts"
THROTTLE_DELAY = "request.throttle_delay"


class MetricType(Enum):
    COUNTER = "counter"
    TIMER = "timer"


@dataclass
class Metric:
    """One emitted measurement."""

    name: str
    value: Union[int, float]
    metric_type: MetricType
    labels: Dict[str, str] = field(default_factory=dict)
    timestamp: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "value": self.value,
            "type": self.metric_type.value,
            "labels": self.labels,
            "timestamp": self.timestamp,
        }


class MetricsCollector:
    """Writes metrics as ``METRIC: <prefix>.<name>`` log records."""

    def __init__(self, prefix: str = "cfclient"):
        self.prefix = prefix
        self._logger = logging.getLogger(f"{__name__}.metrics")

    def emit(self, metric: Metric) -> None:
        self._logger.info(f"METRIC: {self.prefix}.{metric.name}", extra={"metric": metric.to_dict()})

    def counter(self, name: str, value: int = 1, labels: Optional[Dict[str, str]] = None) -> None:
        self.emit(Metric(name=name, value=value, metric_type=MetricType.COUNTER, labels=labels or {}))

    def timer(self, name: str, duration_ms: float, labels: Optional[Dict[str, str]] = None) -> None:
        """Emit a duration in milliseconds."""
        self.emit(Metric(name=name, value=duration_ms, metric_type=MetricType.TIMER, labels=labels or {}))

    def record_attempt(self, client: str, method: str, outcome: str, latency_ms: float) -> None:
        """Record one physical attempt: a latency timer and an attempt counter.

        Args:
            client: Pipeline name.
            method: Upper-case HTTP method.
            outcome: Outcome kind (success, transient_failure, permanent_failure).
            latency_ms: Time spent on the attempt.
        """
        labels = {"client": client, "method": method, "outcome": outcome}
        self.timer(ATTEMPT_LATENCY, round(latency_ms, 2), labels=labels)
        self.counter(ATTEMPT_COUNT, labels=labels)

    def record_throttle(self, client: str, delay_ms: float) -> None:
        """Record the delay imposed on a call by proactive throttling."""
        self.timer(THROTTLE_DELAY, round(delay_ms, 2), labels={"client": client})


_metrics = MetricsCollector()


def get_metrics() -> MetricsCollector:
    """Process-wide collector used by every pipeline."""
    return _metrics
