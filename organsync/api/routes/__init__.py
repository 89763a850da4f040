"""
OrganSync API Routes Package
============================

FastAPI route modules.

Author: OrganSync Team
Version: 1.0.0
"""

from organsync.api.routes.scoring import router as scoring_router
from organsync.api.routes.health import router as health_router

__all__ = [
    "scoring_router",
    "health_router",
]
