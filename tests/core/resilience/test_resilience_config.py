"""Tests for ResilienceConfig defaults, presets and validation."""

import pytest

from cfclient.core.resilience import (
    RESILIENCE_PRESETS,
    QueueOrder,
    ResilienceConfig,
    get_resilience_preset,
)


class TestResilienceConfig:
    """Tests for ResilienceConfig."""

    def test_production_defaults(self):
        config = ResilienceConfig()
        assert config.permit_limit == 20
        assert config.queue_limit == 100
        assert config.queue_order is QueueOrder.OLDEST_FIRST
        assert config.max_retries == 2
        assert config.base_delay == 1.0
        assert config.max_delay == 30.0
        assert config.jitter == 0.2
        assert config.failure_ratio == 0.1
        assert config.minimum_throughput == 100
        assert config.sampling_duration == 30.0
        assert config.break_duration == 5.0
        assert config.attempt_timeout == 30.0
        assert config.total_timeout == 60.0
        assert config.proactive_throttling is True
        assert config.quota_low_threshold == 0.1
        assert config.validate() == []

    def test_testing_preset_lowers_thresholds(self):
        testing = get_resilience_preset("testing")
        assert testing.minimum_throughput == 3
        assert testing.failure_ratio == 0.5
        assert testing.break_duration == 0.5
        assert testing.base_delay == 0.01
        assert testing.attempt_timeout == 2.0
        assert testing.total_timeout == 10.0
        assert testing.validate() == []

    def test_presets_registry(self):
        assert set(RESILIENCE_PRESETS) == {"production", "testing"}
        assert get_resilience_preset("production") == ResilienceConfig()

    def test_unknown_preset(self):
        with pytest.raises(KeyError, match="Unknown resilience preset"):
            get_resilience_preset("chaos")

    def test_with_overrides_returns_copy(self):
        base = ResilienceConfig()
        changed = base.with_overrides(max_retries=5)
        assert changed.max_retries == 5
        assert base.max_retries == 2

    def test_validate_reports_every_problem(self):
        config = ResilienceConfig(
            permit_limit=0,
            queue_limit=-1,
            failure_ratio=1.5,
            attempt_timeout=90.0,
            total_timeout=60.0,
        )
        problems = config.validate()
        assert len(problems) == 4
        assert any(p.startswith("permit_limit") for p in problems)
        assert any(p.startswith("queue_limit") for p in problems)
        assert any(p.startswith("failure_ratio") for p in problems)
        assert any(p.startswith("attempt_timeout must not exceed") for p in problems)

    def test_unbounded_timeouts_are_valid(self):
        config = ResilienceConfig(attempt_timeout=None, total_timeout=None)
        assert config.validate() == []

    def test_quota_threshold_bounds(self):
        assert ResilienceConfig(quota_low_threshold=0.0).validate() == []
        problems = ResilienceConfig(quota_low_threshold=1.5).validate()
        assert problems == ["quota_low_threshold must be in [0, 1] (got 1.5)"]
