"""
OrganSync Database Layer
========================

PostgreSQL persistence for compatibility scores using SQLAlchemy 2.0 async.

This module provides:
    - Declarative base and timestamp mixin
    - The compatibility_scores table
    - A repository over an async session factory

Usage:
    from organsync.db.session import async_session_factory
    from organsync.db import CompatibilityScoreRepository

    repo = CompatibilityScoreRepository(async_session_factory)
    records = await repo.find_by_donor(donor_pair_id)

Author: OrganSync Team
Version: 1.0.0
"""

from organsync.db.base import Base, TimestampMixin
from organsync.db.models import CompatibilityScoreRecord
from organsync.db.repository import CompatibilityScoreRepository

__all__ = [
    "Base",
    "TimestampMixin",
    "CompatibilityScoreRecord",
    "CompatibilityScoreRepository",
]
