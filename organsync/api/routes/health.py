"""
OrganSync Health Routes
=======================

Health check endpoints for monitoring and orchestration.
Supports degraded mode when backing services are unavailable.

Endpoints:
    GET /health          - Basic health (always returns)
    GET /health/ready    - Readiness with dependency checks
    GET /health/live     - Kubernetes liveness probe

Author: OrganSync Team
Version: 1.0.0
"""

import time
from datetime import datetime, timezone
from typing import Any, Dict

from fastapi import APIRouter

from shared.schemas.health import DependencyHealth, ServiceHealth
from organsync.api.dependencies import ServiceContainer
from organsync.config import settings
from organsync.scoring.tables import ALGORITHM_VERSION


router = APIRouter(tags=["Health"])

# Track startup time for uptime calculation
_start_time = time.time()


def _dependency(name: str, available: bool) -> DependencyHealth:
    if available:
        return DependencyHealth(name=name, status="healthy")
    return DependencyHealth(name=name, status="unavailable", message="Not connected")


@router.get(
    "/health",
    response_model=ServiceHealth,
    summary="Health Check",
    description="Returns scoring service health with dependency info.",
)
async def health_check() -> ServiceHealth:
    """
    Health check endpoint.

    Returns:
        - Overall status: healthy or degraded
        - Dependency health: PostgreSQL, Redis, Kafka
    """
    container = ServiceContainer.get_instance()

    dependencies = [
        _dependency("postgresql", container.postgres_available),
        _dependency("redis", container.redis_available),
        _dependency("kafka", container.kafka_available),
    ]

    overall = (
        "healthy" if all(d.status == "healthy" for d in dependencies)
        else "degraded"
    )

    return ServiceHealth(
        status=overall,
        version=settings.app_version,
        algorithm_version=ALGORITHM_VERSION,
        uptime_seconds=time.time() - _start_time,
        dependencies=dependencies,
        timestamp=datetime.now(timezone.utc),
    )


@router.get(
    "/health/ready",
    summary="Readiness Check",
    description="Checks if the service is ready to score pairs.",
)
async def readiness_check() -> Dict[str, Any]:
    """
    Kubernetes readiness probe.

    Scoring needs no backing service, so readiness only requires that
    startup has completed.
    """
    container = ServiceContainer.get_instance()
    full = (
        container.postgres_available
        and container.redis_available
        and container.kafka_available
    )

    return {
        "ready": container.scoring_service is not None,
        "mode": "full" if full else "degraded",
        "postgresql": container.postgres_available,
        "redis": container.redis_available,
        "kafka": container.kafka_available,
    }


@router.get(
    "/health/live",
    summary="Liveness Check",
    description="Kubernetes liveness probe.",
)
async def liveness_check() -> Dict[str, str]:
    """
    Kubernetes liveness probe.

    Returns 200 if the process is alive.
    """
    return {"status": "alive"}
