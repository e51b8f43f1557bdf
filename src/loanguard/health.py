"""
Health and readiness check utilities.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, List, Optional

from fastapi import FastAPI, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from pydantic import BaseModel, Field

from loanguard.logging import get_logger

logger = get_logger(__name__)


class HealthStatus(str, Enum):
    """Health check status."""
    HEALTHY = "healthy"
    DEGRADED = "degraded"
    UNHEALTHY = "unhealthy"


class ComponentHealth(BaseModel):
    """Health status of a single component."""
    name: str
    status: HealthStatus
    message: Optional[str] = None
    last_check: Optional[datetime] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)


class ServiceHealth(BaseModel):
    """Overall service health status."""
    service: str
    status: HealthStatus
    timestamp: datetime
    components: List[ComponentHealth]
    version: str = "1.0.0"


HealthCheck = Callable[[], Awaitable[ComponentHealth]]


class HealthChecker:
    """Manages health checks for a service."""

    def __init__(self, service_name: str):
        self.service_name = service_name
        self.checks: Dict[str, HealthCheck] = {}
        self.last_results: Dict[str, ComponentHealth] = {}

    def register_check(self, name: str, check_func: HealthCheck):
        """Register an async health check function."""
        self.checks[name] = check_func
        logger.info(f"Registered health check: {name}")

    async def check_health(self) -> ServiceHealth:
        """Run all health checks and return overall status."""
        components = []
        overall_status = HealthStatus.HEALTHY

        for name, check_func in self.checks.items():
            try:
                result = await check_func()
                result.last_check = datetime.now(timezone.utc)
                self.last_results[name] = result
                components.append(result)

                # Downgrade overall status if needed
                if result.status == HealthStatus.UNHEALTHY:
                    overall_status = HealthStatus.UNHEALTHY
                elif result.status == HealthStatus.DEGRADED and overall_status == HealthStatus.HEALTHY:
                    overall_status = HealthStatus.DEGRADED

            except Exception as e:
                logger.error(f"Health check failed for {name}: {e}")
                components.append(ComponentHealth(
                    name=name,
                    status=HealthStatus.UNHEALTHY,
                    message=f"Check failed: {str(e)}",
                    last_check=datetime.now(timezone.utc),
                ))
                overall_status = HealthStatus.UNHEALTHY

        return ServiceHealth(
            service=self.service_name,
            status=overall_status,
            timestamp=datetime.now(timezone.utc),
            components=components,
        )

    async def is_ready(self) -> bool:
        """Check if service is ready to handle requests."""
        health = await self.check_health()
        return health.status != HealthStatus.UNHEALTHY


def ping_check(name: str, ping: Callable[[], Awaitable[bool]]) -> HealthCheck:
    """Wrap a store's ping() as a health check."""

    async def check() -> ComponentHealth:
        if await ping():
            return ComponentHealth(name=name, status=HealthStatus.HEALTHY, message="Reachable")
        return ComponentHealth(name=name, status=HealthStatus.UNHEALTHY, message="Unreachable")

    return check


def create_health_endpoints(app: FastAPI, get_checker: Callable[[], Optional[HealthChecker]]):
    """Add health, readiness and metrics endpoints to a FastAPI app."""

    @app.get("/healthz")
    async def health_check(response: Response):
        """Health check endpoint."""
        checker = get_checker()
        if checker is None:
            response.status_code = 503
            return {"status": HealthStatus.UNHEALTHY.value, "message": "Service not initialized"}
        return await checker.check_health()

    @app.get("/ready")
    async def readiness_check(response: Response):
        """Readiness check endpoint."""
        checker = get_checker()
        if checker is not None and await checker.is_ready():
            return {"status": "ready"}
        response.status_code = 503
        return {"status": "not ready"}

    @app.get("/metrics")
    async def metrics():
        """Prometheus metrics endpoint."""
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
