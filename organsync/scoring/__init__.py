"""
OrganSync Scoring Package
=========================

Donor/recipient compatibility scoring.

This package provides:
    - engine: ScoringEngine entry point
    - features, survival: Proportional-hazards survival estimate
    - criteria: Multi-criteria weighted score
    - fusion: Merge into a FusedScore with recommendation
    - score_cache: Redis cache of computed scores
    - service: Cache, persistence and event publishing around the engine

Author: OrganSync Team
Version: 1.0.0
"""

from organsync.scoring.engine import ScoringEngine, build_request
from organsync.scoring.models import (
    CriteriaScoreSet,
    FeatureVector,
    FusedScore,
    SurvivalResult,
)
from organsync.scoring.tables import DEFAULT_TABLES, ScoringTables

__all__ = [
    "ScoringEngine",
    "build_request",
    "ScoringTables",
    "DEFAULT_TABLES",
    "FeatureVector",
    "SurvivalResult",
    "CriteriaScoreSet",
    "FusedScore",
]
