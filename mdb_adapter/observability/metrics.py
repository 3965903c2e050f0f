"""
Operation metrics for MDB_ADAPTER.

Counts storage operations per collection and action, with durations and
error rates, for the host's monitoring endpoints.
"""

import logging
import threading
import time
from collections import OrderedDict
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime
from typing import Any

logger = logging.getLogger(__name__)


@dataclass
class OperationMetrics:
    """Metrics for a single operation."""

    operation_name: str
    count: int = 0
    total_duration_ms: float = 0.0
    min_duration_ms: float = float("inf")
    max_duration_ms: float = 0.0
    error_count: int = 0
    last_execution: datetime | None = None

    @property
    def avg_duration_ms(self) -> float:
        """Calculate average duration in milliseconds."""
        return self.total_duration_ms / self.count if self.count > 0 else 0.0

    @property
    def error_rate(self) -> float:
        """Calculate error rate as percentage."""
        return (self.error_count / self.count * 100) if self.count > 0 else 0.0

    def record(self, duration_ms: float, success: bool = True) -> None:
        """Record a single operation execution."""
        self.count += 1
        self.total_duration_ms += duration_ms
        self.min_duration_ms = min(self.min_duration_ms, duration_ms)
        self.max_duration_ms = max(self.max_duration_ms, duration_ms)
        if not success:
            self.error_count += 1
        self.last_execution = datetime.now()

    def to_dict(self) -> dict[str, Any]:
        """Convert metrics to dictionary."""
        return {
            "operation": self.operation_name,
            "count": self.count,
            "avg_duration_ms": round(self.avg_duration_ms, 2),
            "min_duration_ms": (
                round(self.min_duration_ms, 2) if self.min_duration_ms != float("inf") else 0.0
            ),
            "max_duration_ms": round(self.max_duration_ms, 2),
            "error_count": self.error_count,
            "error_rate_percent": round(self.error_rate, 2),
            "last_execution": (self.last_execution.isoformat() if self.last_execution else None),
        }


class MetricsCollector:
    """
    Collects operation metrics keyed by operation name and tags.

    The oldest key is evicted once ``max_metrics`` distinct keys exist.
    """

    def __init__(self, max_metrics: int = 1000):
        self._metrics: OrderedDict[str, OperationMetrics] = OrderedDict()
        self._lock = threading.Lock()
        self._max_metrics = max_metrics

    def record_operation(
        self, operation_name: str, duration_ms: float, success: bool = True, **tags: Any
    ) -> None:
        """
        Record an operation execution.

        Args:
            operation_name: Name of the operation (e.g., "store.insert")
            duration_ms: Duration in milliseconds
            success: Whether the operation succeeded
            **tags: Additional tags (collection, ...)
        """
        key = operation_name
        if tags:
            tag_str = "_".join(f"{k}={v}" for k, v in sorted(tags.items()))
            key = f"{operation_name}[{tag_str}]"

        with self._lock:
            metric = self._metrics.get(key)
            if metric is None:
                if len(self._metrics) >= self._max_metrics:
                    self._metrics.popitem(last=False)
                metric = self._metrics[key] = OperationMetrics(operation_name=operation_name)
            else:
                self._metrics.move_to_end(key)
            metric.record(duration_ms, success)

    def get_metrics(self, operation_name: str | None = None) -> dict[str, Any]:
        """
        Get recorded metrics.

        Args:
            operation_name: Only return keys for this operation (all if None)

        Returns:
            Dictionary of metric key -> metric values
        """
        with self._lock:
            return {
                key: metric.to_dict()
                for key, metric in self._metrics.items()
                if operation_name is None or metric.operation_name == operation_name
            }

    def reset(self) -> None:
        """Drop all recorded metrics."""
        with self._lock:
            self._metrics.clear()


_metrics_collector = MetricsCollector()


def get_metrics_collector() -> MetricsCollector:
    """Return the process-wide metrics collector."""
    return _metrics_collector


def record_operation(
    operation_name: str, duration_ms: float, success: bool = True, **tags: Any
) -> None:
    """Record an operation on the process-wide collector."""
    _metrics_collector.record_operation(operation_name, duration_ms, success, **tags)


@contextmanager
def timed_operation(operation_name: str, **tags: Any) -> Iterator[None]:
    """
    Time the enclosed block and record it, marking it failed if it raises.

    Example:
        with timed_operation("store.find", collection="users"):
            docs = await cursor.to_list(length=None)
    """
    start_time = time.time()
    success = True
    try:
        yield
    except Exception:
        success = False
        raise
    finally:
        duration_ms = (time.time() - start_time) * 1000
        record_operation(operation_name, duration_ms, success, **tags)
