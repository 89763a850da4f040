"""
OrganSync Health Schemas
========================

Health check response models.

Author: OrganSync Team
Version: 1.0.0
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field


class DependencyHealth(BaseModel):
    """Health of a dependency."""
    name: str
    status: str  # healthy, unavailable, unhealthy
    latency_ms: Optional[float] = None
    message: Optional[str] = None


class ServiceHealth(BaseModel):
    """Scoring service health status."""
    service: str = Field(default="organsync-ai-scoring")
    status: str  # healthy, degraded, unhealthy
    version: str
    algorithm_version: str
    uptime_seconds: float
    dependencies: List[DependencyHealth]
    timestamp: datetime
