"""Tests for audit logging, metrics, redaction and correlation ids."""

import logging

import pytest

from cfclient.core.context import correlation_scope, get_correlation_id
from cfclient.core.observability import (
    AuditEvent,
    AuditEventType,
    MetricsCollector,
    audit_log,
    redact_headers,
)

AUDIT_LOGGER = "cfclient.core.observability.audit.audit"
METRICS_LOGGER = "cfclient.core.observability.metrics.metrics"


class TestAuditLog:
    def test_known_event_type(self, caplog):
        caplog.set_level(logging.INFO, logger=AUDIT_LOGGER)

        audit_log("retry_attempt", attempt=1, client="a")

        record = caplog.records[-1]
        assert record.getMessage() == "AUDIT: retry_attempt"
        assert record.audit["event_type"] == "retry_attempt"
        assert record.audit["details"] == {"attempt": 1, "client": "a"}

    def test_unknown_event_type_maps_to_other(self, caplog):
        caplog.set_level(logging.INFO, logger=AUDIT_LOGGER)

        audit_log("mystery", x=1)

        details = caplog.records[-1].audit["details"]
        assert caplog.records[-1].audit["event_type"] == "other"
        assert details["original_event_type"] == "mystery"

    def test_correlation_id_attached(self, caplog):
        caplog.set_level(logging.INFO, logger=AUDIT_LOGGER)

        with correlation_scope("deploy-42"):
            audit_log("page_fetched", page=1)

        assert caplog.records[-1].audit["correlation_id"] == "deploy-42"

    def test_no_correlation_id_outside_scope(self):
        event = AuditEvent(event_type=AuditEventType.OTHER)
        assert "correlation_id" not in event.to_dict()


class TestCorrelation:
    def test_scope_restores_previous(self):
        with correlation_scope("outer"):
            with correlation_scope("inner") as value:
                assert value == "inner"
                assert get_correlation_id() == "inner"
            assert get_correlation_id() == "outer"
        assert get_correlation_id() == ""

    def test_generated_when_omitted(self):
        with correlation_scope() as value:
            assert len(value) == 16


class TestMetrics:
    def test_counter_and_timer(self, caplog):
        caplog.set_level(logging.INFO, logger=METRICS_LOGGER)
        metrics = MetricsCollector(prefix="cfclient")

        metrics.counter("request.attempts", labels={"client": "a"})
        metrics.timer("request.latency", 12.5)

        counter, timer = [r.metric for r in caplog.records if hasattr(r, "metric")]
        assert counter["name"] == "request.attempts"
        assert counter["type"] == "counter"
        assert counter["labels"] == {"client": "a"}
        assert timer["value"] == 12.5
        assert caplog.records[-1].getMessage() == "METRIC: cfclient.request.latency"

    def test_record_attempt(self, caplog):
        caplog.set_level(logging.INFO, logger=METRICS_LOGGER)
        metrics = MetricsCollector()

        metrics.record_attempt("acct-a", "GET", "transient_failure", 41.237)

        timer, counter = [r.metric for r in caplog.records if hasattr(r, "metric")]
        labels = {"client": "acct-a", "method": "GET", "outcome": "transient_failure"}
        assert timer["name"] == "request.latency"
        assert timer["value"] == pytest.approx(41.24)
        assert timer["labels"] == labels
        assert counter["name"] == "request.attempts"
        assert counter["value"] == 1
        assert counter["labels"] == labels

    def test_record_throttle(self, caplog):
        caplog.set_level(logging.INFO, logger=METRICS_LOGGER)

        MetricsCollector().record_throttle("acct-a", 250.0)

        metric = caplog.records[-1].metric
        assert metric["name"] == "request.throttle_delay"
        assert metric["type"] == "timer"
        assert metric["value"] == 250.0


class TestRedaction:
    def test_headers(self):
        headers = {"Authorization": "Bearer abc", "Accept": "application/json", "X-Auth-Key": "k"}

        redacted = redact_headers(headers)

        assert redacted == {"Authorization": "****", "Accept": "application/json", "X-Auth-Key": "****"}
        assert headers["Authorization"] == "Bearer abc"
