"""
Observability components.

Provides contextual logging, operation metrics and health checks.
"""

from .health import (HealthChecker, HealthCheckResult, HealthStatus,
                     check_adapter_health, check_mongodb_health)
from .logging import (ContextualLoggerAdapter, get_logger,
                      get_logging_context, reset_operation_context,
                      set_operation_context)
from .metrics import (MetricsCollector, OperationMetrics,
                      get_metrics_collector, record_operation, timed_operation)

__all__ = [
    # Metrics
    "MetricsCollector",
    "OperationMetrics",
    "get_metrics_collector",
    "record_operation",
    "timed_operation",
    # Logging
    "set_operation_context",
    "reset_operation_context",
    "get_logging_context",
    "ContextualLoggerAdapter",
    "get_logger",
    # Health
    "HealthStatus",
    "HealthCheckResult",
    "HealthChecker",
    "check_mongodb_health",
    "check_adapter_health",
]
