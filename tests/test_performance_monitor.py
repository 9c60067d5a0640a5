"""Tests for per-model performance statistics and health."""

from ai_service.api.performance_monitor import (
    HealthStatus,
    PerformanceMonitor,
    PredictionMetric,
    percentile,
)
from ai_service.core.config import MetricsConfig


def record(monitor, clock, model_id="m1", latency=100.0, success=True, **kwargs):
    monitor.record_prediction(
        PredictionMetric(
            model_id=model_id,
            timestamp=kwargs.pop("timestamp", clock() * 1000),
            latency=latency,
            confidence=kwargs.pop("confidence", 90.0 if success else 0.0),
            cached=kwargs.pop("cached", False),
            success=success,
            error=None if success else "boom",
            **kwargs,
        )
    )


class TestPercentile:
    def test_median_of_five(self):
        assert percentile([100, 200, 300, 400, 500], 0.5) == 300

    def test_p99_of_hundred(self):
        values = [10 * i for i in range(1, 101)]
        p99 = percentile(values, 0.99)
        assert 0 < p99 <= 1000

    def test_index_is_clamped(self):
        assert percentile([1, 2, 3], 1.0) == 3

    def test_empty(self):
        assert percentile([], 0.5) == 0.0


class TestModelStats:
    def test_unknown_model_has_no_stats(self, monitor):
        assert monitor.get_model_stats("unknown") is None

    def test_latency_statistics(self, monitor, clock):
        for latency in [500, 100, 400, 200, 300]:
            record(monitor, clock, latency=latency)

        stats = monitor.get_model_stats("m1")
        assert stats.total_predictions == 5
        assert stats.average_latency == 300
        assert stats.median_latency == 300
        assert stats.p95_latency == 500

    def test_rates_and_confidence(self, monitor, clock):
        record(monitor, clock, confidence=80.0)
        record(monitor, clock, confidence=90.0, cached=True)
        record(monitor, clock, success=False)
        record(monitor, clock, success=False)

        stats = monitor.get_model_stats("m1")
        assert stats.successful_predictions == 2
        assert stats.failed_predictions == 2
        assert stats.error_rate == 50.0
        assert stats.cache_hit_rate == 25.0
        # failures are excluded from the confidence average
        assert stats.average_confidence == 85.0

    def test_confidence_is_zero_without_successes(self, monitor, clock):
        record(monitor, clock, success=False)
        assert monitor.get_model_stats("m1").average_confidence == 0

    def test_time_window_excludes_old_records(self, monitor, clock):
        record(monitor, clock, timestamp=(clock() - 600) * 1000)

        assert monitor.get_model_stats("m1") is not None
        assert monitor.get_model_stats("m1", time_window_ms=5 * 60 * 1000) is None

    def test_zero_window_is_empty_not_unbounded(self, monitor, clock):
        record(monitor, clock)

        assert monitor.get_model_stats("m1", time_window_ms=None) is not None
        assert monitor.get_model_stats("m1", time_window_ms=0) is None

    def test_capacity_evicts_oldest(self, clock):
        monitor = PerformanceMonitor(MetricsConfig(max_metrics_per_model=3), clock=clock)
        for latency in [1, 2, 3, 4, 5]:
            record(monitor, clock, latency=latency)

        stats = monitor.get_model_stats("m1")
        assert stats.total_predictions == 3
        assert stats.average_latency == 4

    def test_all_stats(self, monitor, clock):
        record(monitor, clock, model_id="a")
        record(monitor, clock, model_id="b")
        assert set(monitor.get_all_stats()) == {"a", "b"}


class TestRecentErrors:
    def test_most_recent_first_with_limit(self, monitor, clock):
        for i in range(5):
            clock.advance(1)
            record(monitor, clock, success=False)
        record(monitor, clock, success=True)

        errors = monitor.get_recent_errors("m1", limit=3)
        assert len(errors) == 3
        timestamps = [e.timestamp for e in errors]
        assert timestamps == sorted(timestamps, reverse=True)

    def test_unknown_model(self, monitor):
        assert monitor.get_recent_errors("unknown") == []


class TestHealthStatus:
    def test_no_records_is_healthy(self, monitor):
        health = monitor.get_health_status("m1")
        assert health.status == HealthStatus.HEALTHY
        assert health.reason == "No recent predictions"

    def test_fast_successes_are_healthy(self, monitor, clock):
        for _ in range(10):
            record(monitor, clock, latency=100)
        assert monitor.get_health_status("m1").status == HealthStatus.HEALTHY

    def test_slow_successes_are_degraded(self, monitor, clock):
        for _ in range(10):
            record(monitor, clock, latency=600)
        health = monitor.get_health_status("m1")
        assert health.status == HealthStatus.DEGRADED
        assert "P95" in health.reason

    def test_high_error_rate_is_unhealthy(self, monitor, clock):
        for _ in range(5):
            record(monitor, clock, success=False)
        for _ in range(2):
            record(monitor, clock)
        assert monitor.get_health_status("m1").status == HealthStatus.UNHEALTHY

    def test_elevated_error_rate_is_degraded(self, monitor, clock):
        record(monitor, clock, success=False)
        for _ in range(14):
            record(monitor, clock)
        health = monitor.get_health_status("m1")
        assert health.status == HealthStatus.DEGRADED
        assert "error rate" in health.reason

    def test_failures_outside_window_are_ignored(self, monitor, clock):
        for _ in range(5):
            record(monitor, clock, success=False)
        clock.advance(10 * 60)
        record(monitor, clock)
        assert monitor.get_health_status("m1").status == HealthStatus.HEALTHY

    def test_thresholds_are_configurable(self, clock):
        monitor = PerformanceMonitor(
            MetricsConfig(degraded_p95_latency_ms=50.0), clock=clock
        )
        record(monitor, clock, latency=100)
        assert monitor.get_health_status("m1").status == HealthStatus.DEGRADED


class TestClearing:
    def test_clear_model(self, monitor, clock):
        record(monitor, clock, model_id="a")
        record(monitor, clock, model_id="b")
        monitor.clear_model("a")
        assert monitor.get_model_stats("a") is None
        assert monitor.get_model_stats("b") is not None

    def test_clear_all(self, monitor, clock):
        record(monitor, clock, model_id="a")
        monitor.clear_all()
        assert monitor.get_all_stats() == {}
