"""
Health check utilities for MDB_ADAPTER.

Provides the readiness and liveness checks the host framework polls.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

from pymongo.errors import ConnectionFailure, OperationFailure, ServerSelectionTimeoutError

from ..constants import DEFAULT_HEALTH_CHECK_TIMEOUT

logger = logging.getLogger(__name__)


class HealthStatus(str, Enum):
    """Health status enumeration."""

    HEALTHY = "healthy"
    DEGRADED = "degraded"
    UNHEALTHY = "unhealthy"
    UNKNOWN = "unknown"


@dataclass
class HealthCheckResult:
    """Result of a health check."""

    name: str
    status: HealthStatus
    message: str
    details: dict[str, Any] | None = None
    timestamp: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "name": self.name,
            "status": self.status.value,
            "message": self.message,
            "details": self.details,
            "timestamp": self.timestamp.isoformat(),
        }


class HealthChecker:
    """
    Runs registered health checks and combines their results.
    """

    def __init__(self):
        self._checks: list[Callable[[], Awaitable[HealthCheckResult]]] = []

    def register_check(self, check_func: Callable[[], Awaitable[HealthCheckResult]]) -> None:
        """
        Register a health check function.

        Args:
            check_func: Async function that returns HealthCheckResult
        """
        self._checks.append(check_func)

    async def check_all(self) -> dict[str, Any]:
        """
        Run all registered health checks.

        Returns:
            Dictionary with overall status and individual check results
        """
        results: list[HealthCheckResult] = []

        for check_func in self._checks:
            try:
                results.append(await check_func())
            except (RuntimeError, ValueError, TypeError, AttributeError, OSError) as e:
                name = getattr(check_func, "__name__", repr(check_func))
                logger.error(f"Health check {name} failed: {e}", exc_info=True)
                results.append(
                    HealthCheckResult(
                        name=name,
                        status=HealthStatus.UNKNOWN,
                        message=f"Check failed: {e}",
                    )
                )

        statuses = [r.status for r in results]
        if HealthStatus.UNHEALTHY in statuses:
            overall_status = HealthStatus.UNHEALTHY
        elif HealthStatus.DEGRADED in statuses:
            overall_status = HealthStatus.DEGRADED
        elif statuses and all(s == HealthStatus.HEALTHY for s in statuses):
            overall_status = HealthStatus.HEALTHY
        else:
            overall_status = HealthStatus.UNKNOWN

        return {
            "status": overall_status.value,
            "timestamp": datetime.now().isoformat(),
            "checks": [r.to_dict() for r in results],
        }


async def check_mongodb_health(
    mongo_client: Any | None, timeout_seconds: float = DEFAULT_HEALTH_CHECK_TIMEOUT
) -> HealthCheckResult:
    """
    Check MongoDB connection health with a ping.

    Args:
        mongo_client: MongoDB client instance
        timeout_seconds: Timeout for the ping

    Returns:
        HealthCheckResult
    """
    if mongo_client is None:
        return HealthCheckResult(
            name="mongodb",
            status=HealthStatus.UNHEALTHY,
            message="MongoDB client not initialized",
        )

    try:
        await asyncio.wait_for(mongo_client.admin.command("ping"), timeout=timeout_seconds)
        return HealthCheckResult(
            name="mongodb",
            status=HealthStatus.HEALTHY,
            message="MongoDB connection is healthy",
            details={"timeout_seconds": timeout_seconds},
        )
    except asyncio.TimeoutError:
        return HealthCheckResult(
            name="mongodb",
            status=HealthStatus.UNHEALTHY,
            message=f"MongoDB ping timed out after {timeout_seconds}s",
        )
    except (ConnectionFailure, OperationFailure, ServerSelectionTimeoutError) as e:
        return HealthCheckResult(
            name="mongodb",
            status=HealthStatus.UNHEALTHY,
            message=f"MongoDB health check failed: {e}",
        )


async def check_adapter_health(adapter: Any | None) -> HealthCheckResult:
    """
    Check that the adapter finished initialization.

    Args:
        adapter: MongoDBAdapter instance

    Returns:
        HealthCheckResult
    """
    if adapter is None or not adapter.is_ready:
        return HealthCheckResult(
            name="adapter",
            status=HealthStatus.UNHEALTHY,
            message="MongoDBAdapter not initialized",
        )

    return HealthCheckResult(
        name="adapter",
        status=HealthStatus.HEALTHY,
        message="MongoDBAdapter is ready",
        details={"keywords": adapter.registered_keywords},
    )
