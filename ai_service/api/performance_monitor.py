"""
Performance Monitoring for prediction models.

This module keeps a bounded window of prediction outcomes per model and
derives latency percentiles, success/error/cache-hit rates and a three-state
health verdict from it on demand.
"""

import statistics
import threading
import time
from collections import deque
from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any, Callable, Deque, Dict, List, Optional

from ..core.config import MetricsConfig
from ..core.logging import get_logger

logger = get_logger(__name__)


class HealthStatus(Enum):
    """Model health states."""

    HEALTHY = "healthy"
    DEGRADED = "degraded"
    UNHEALTHY = "unhealthy"


@dataclass
class PredictionMetric:
    """Outcome of a single prediction request."""

    model_id: str
    timestamp: float  # epoch milliseconds
    latency: float  # milliseconds
    confidence: float  # 0-100
    cached: bool
    success: bool
    error: Optional[str] = None
    provider: Optional[str] = None


@dataclass
class ModelPerformanceStats:
    """Aggregate statistics computed from the recorded window."""

    model_id: str
    total_predictions: int
    successful_predictions: int
    failed_predictions: int
    average_latency: float
    median_latency: float
    p95_latency: float
    p99_latency: float
    average_confidence: float
    cache_hit_rate: float  # percent
    error_rate: float  # percent
    last_updated: float  # epoch milliseconds

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class ModelHealth:
    """Health verdict for a model."""

    status: HealthStatus
    reason: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {"status": self.status.value, "reason": self.reason}


def percentile(sorted_values: List[float], p: float) -> float:
    """Nearest-rank percentile over ascending values: index floor(n * p)."""
    if not sorted_values:
        return 0.0
    index = min(int(len(sorted_values) * p), len(sorted_values) - 1)
    return sorted_values[index]


class PerformanceMonitor:
    """Collects prediction outcomes and reports per-model performance."""

    def __init__(
        self,
        config: Optional[MetricsConfig] = None,
        clock: Callable[[], float] = time.time,
    ):
        self.config = config or MetricsConfig()
        self.clock = clock
        self.metrics: Dict[str, Deque[PredictionMetric]] = {}
        self.lock = threading.Lock()

    def _now_ms(self) -> float:
        return self.clock() * 1000

    def record_prediction(self, metric: PredictionMetric) -> None:
        """Append a metric, evicting the oldest once capacity is reached."""
        with self.lock:
            buffer = self.metrics.get(metric.model_id)
            if buffer is None:
                buffer = deque(maxlen=self.config.max_metrics_per_model)
                self.metrics[metric.model_id] = buffer
            buffer.append(metric)

    def get_model_stats(
        self, model_id: str, time_window_ms: Optional[float] = None
    ) -> Optional[ModelPerformanceStats]:
        """Compute statistics for a model, or None when nothing was recorded."""
        with self.lock:
            all_metrics = list(self.metrics.get(model_id, ()))

        if not all_metrics:
            return None

        now = self._now_ms()
        if time_window_ms is not None:
            metrics = [m for m in all_metrics if now - m.timestamp < time_window_ms]
        else:
            metrics = all_metrics

        if not metrics:
            return None

        total = len(metrics)
        successful = [m for m in metrics if m.success]
        cached_count = sum(1 for m in metrics if m.cached)
        failed_count = total - len(successful)

        latencies = sorted(m.latency for m in metrics)

        return ModelPerformanceStats(
            model_id=model_id,
            total_predictions=total,
            successful_predictions=len(successful),
            failed_predictions=failed_count,
            average_latency=statistics.mean(latencies),
            median_latency=percentile(latencies, 0.50),
            p95_latency=percentile(latencies, 0.95),
            p99_latency=percentile(latencies, 0.99),
            average_confidence=(
                statistics.mean(m.confidence for m in successful) if successful else 0
            ),
            cache_hit_rate=cached_count / total * 100,
            error_rate=failed_count / total * 100,
            last_updated=now,
        )

    def get_all_stats(
        self, time_window_ms: Optional[float] = None
    ) -> Dict[str, ModelPerformanceStats]:
        with self.lock:
            model_ids = list(self.metrics.keys())

        stats = {}
        for model_id in model_ids:
            model_stats = self.get_model_stats(model_id, time_window_ms)
            if model_stats:
                stats[model_id] = model_stats
        return stats

    def get_recent_errors(
        self, model_id: str, limit: int = 10
    ) -> List[PredictionMetric]:
        """Most recent failures first."""
        with self.lock:
            failures = [m for m in self.metrics.get(model_id, ()) if not m.success]

        if limit <= 0:
            return []
        return list(reversed(failures[-limit:]))

    def get_health_status(self, model_id: str) -> ModelHealth:
        """Derive health from the trailing window of recorded outcomes."""
        window_ms = self.config.health_window_minutes * 60 * 1000
        stats = self.get_model_stats(model_id, window_ms)

        if stats is None:
            return ModelHealth(HealthStatus.HEALTHY, "No recent predictions")

        if stats.error_rate > self.config.unhealthy_error_rate:
            return ModelHealth(
                HealthStatus.UNHEALTHY, f"High error rate: {stats.error_rate:.1f}%"
            )

        if stats.error_rate > self.config.degraded_error_rate:
            return ModelHealth(
                HealthStatus.DEGRADED, f"Elevated error rate: {stats.error_rate:.1f}%"
            )

        if stats.p95_latency > self.config.degraded_p95_latency_ms:
            return ModelHealth(
                HealthStatus.DEGRADED, f"High latency: P95 = {stats.p95_latency:.0f}ms"
            )

        return ModelHealth(HealthStatus.HEALTHY)

    def clear_model(self, model_id: str) -> None:
        with self.lock:
            self.metrics.pop(model_id, None)

    def clear_all(self) -> None:
        with self.lock:
            self.metrics.clear()
        logger.info("Performance metrics cleared")
