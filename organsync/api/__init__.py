"""
OrganSync API Package
=====================

FastAPI REST API layer for the AI scoring service.

This package provides:
    - main: FastAPI application and route configuration
    - routes/: Endpoint implementations
    - dependencies: Service container and dependency injection

Author: OrganSync Team
Version: 1.0.0
"""

from organsync.api.main import app, create_app

__all__ = [
    "app",
    "create_app",
]
