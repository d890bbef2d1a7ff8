"""
Health check utilities for the newsdesk service.
Provides health monitoring and status reporting.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

from shared.app_logging.logger import get_logger
from shared.database.session import Database

CRITICAL_CHECKS = ["database"]


class HealthStatus(Enum):
    """Health status enumeration."""

    HEALTHY = "healthy"
    UNHEALTHY = "unhealthy"
    DEGRADED = "degraded"
    UNKNOWN = "unknown"


@dataclass
class HealthCheck:
    """Individual health check result."""

    name: str
    status: HealthStatus
    message: str
    response_time_ms: Optional[float] = None
    details: Optional[Dict[str, Any]] = None
    timestamp: datetime = None

    def __post_init__(self):
        if self.timestamp is None:
            self.timestamp = datetime.now(timezone.utc)


class HealthChecker:
    """Runs registered checks and rolls their results into one status."""

    def __init__(self, service_name: str):
        self.service_name = service_name
        self.logger = get_logger(f"{service_name}.health")
        self.checks: List[Callable[[], HealthCheck]] = []

    def add_check(self, check_func: Callable[[], HealthCheck]):
        """Add a health check function."""
        self.checks.append(check_func)

    def check_database(self, database: Optional[Database]) -> HealthCheck:
        """Check database connectivity."""
        start_time = datetime.now()
        try:
            if database is None or database.engine is None:
                raise RuntimeError("database handle not initialised")
            database.ping()

            response_time = (datetime.now() - start_time).total_seconds() * 1000
            return HealthCheck(
                name="database",
                status=HealthStatus.HEALTHY,
                message="Database connection successful",
                response_time_ms=response_time,
            )
        except Exception as e:
            response_time = (datetime.now() - start_time).total_seconds() * 1000
            self.logger.warning(f"Database health check failed: {e}")
            return HealthCheck(
                name="database",
                status=HealthStatus.UNHEALTHY,
                message=f"Database connection failed: {str(e)}",
                response_time_ms=response_time,
            )

    def run_all_checks(self) -> Dict[str, Any]:
        """Run all registered health checks."""
        results = []
        overall_status = HealthStatus.HEALTHY

        for check_func in self.checks:
            try:
                result = check_func()
                results.append(result)

                if result.status == HealthStatus.UNHEALTHY:
                    overall_status = HealthStatus.UNHEALTHY
                elif (
                    result.status == HealthStatus.DEGRADED
                    and overall_status == HealthStatus.HEALTHY
                ):
                    overall_status = HealthStatus.DEGRADED

            except Exception as e:
                error_result = HealthCheck(
                    name=getattr(check_func, "__name__", "check"),
                    status=HealthStatus.UNHEALTHY,
                    message=f"Health check failed with exception: {str(e)}",
                )
                results.append(error_result)
                overall_status = HealthStatus.UNHEALTHY

        return {
            "service": self.service_name,
            "status": overall_status.value,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "checks": [
                {
                    "name": check.name,
                    "status": check.status.value,
                    "message": check.message,
                    "response_time_ms": check.response_time_ms,
                    "details": check.details,
                    "timestamp": check.timestamp.isoformat(),
                }
                for check in results
            ],
        }

    def readiness(self) -> Dict[str, Any]:
        """Readiness view: ready only when every critical dependency is healthy."""
        health_data = self.run_all_checks()
        critical_checks = [
            check for check in health_data["checks"] if check["name"] in CRITICAL_CHECKS
        ]
        all_critical_healthy = all(
            check["status"] == "healthy" for check in critical_checks
        )
        return {
            "status": "ready" if all_critical_healthy else "not_ready",
            "service": self.service_name,
            "critical_dependencies": {
                check["name"]: check["status"] for check in critical_checks
            },
        }


def create_api_health_checker(service_name: str, database: Optional[Database]) -> HealthChecker:
    """Create the health checker for the API process."""
    checker = HealthChecker(service_name)
    checker.add_check(lambda: checker.check_database(database))
    return checker
