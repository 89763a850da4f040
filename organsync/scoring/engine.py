"""
OrganSync Scoring Engine
========================

Entry point of the compatibility scoring core.

This module coordinates:
    - Request validation
    - Survival feature extraction
    - Survival estimation and multi-criteria aggregation
    - Fusion into a single FusedScore

The engine holds only its frozen ScoringTables, so one instance can be
shared across threads and tasks. It performs no I/O.

Usage:
    from organsync.scoring.engine import ScoringEngine

    engine = ScoringEngine()
    fused = engine.score(request)
    print(fused.overall_score, fused.recommendation.value)

Author: OrganSync Team
Version: 1.0.0
"""

import logging
from typing import Any, Dict, Mapping, Optional

import pydantic

from shared.schemas.scoring import ScoringRequest
from organsync.errors import ComputationError, ScoringError, ValidationError
from organsync.scoring.criteria import aggregate_criteria
from organsync.scoring.features import extract_features
from organsync.scoring.fusion import fuse
from organsync.scoring.models import FusedScore
from organsync.scoring.survival import estimate_survival
from organsync.scoring.tables import (
    CRITERIA_MODEL_METADATA,
    SURVIVAL_MODEL_METADATA,
    ScoringTables,
)


logger = logging.getLogger(__name__)

MIN_HLA_MISMATCHES = 0
MAX_HLA_MISMATCHES = 6


def build_request(payload: Mapping[str, Any]) -> ScoringRequest:
    """
    Validate a raw payload into a ScoringRequest.

    Raises:
        ValidationError: If required fields are missing or out of range
    """
    try:
        return ScoringRequest.model_validate(payload)
    except pydantic.ValidationError as e:
        raise ValidationError(
            f"Invalid scoring request: {e.error_count()} error(s)",
            errors=e.errors(include_url=False, include_context=False, include_input=False),
        ) from e


def validate_request(request: ScoringRequest) -> None:
    """
    Check the invariants the scoring formulas rely on.

    Raises:
        ValidationError: On a non-positive age or out-of-range HLA count
    """
    for side, party in (("donor", request.donor), ("recipient", request.recipient)):
        if party.age is None or party.age <= 0:
            raise ValidationError(f"{side} age must be a positive integer")

    mismatches = request.clinical.hla_mismatches
    if mismatches is not None and not MIN_HLA_MISMATCHES <= mismatches <= MAX_HLA_MISMATCHES:
        raise ValidationError(
            f"hla_mismatches must be between {MIN_HLA_MISMATCHES} "
            f"and {MAX_HLA_MISMATCHES}, got {mismatches}"
        )


class ScoringEngine:
    """
    Compatibility scoring engine.

    Combines a proportional-hazards survival estimate with a
    multi-criteria weighted score.

    Attributes:
        tables: Frozen coefficient and weight tables

    Example:
        engine = ScoringEngine(ScoringTables.from_settings())
        fused = engine.score(request)
    """

    def __init__(self, tables: Optional[ScoringTables] = None):
        """
        Initialize the scoring engine.

        Args:
            tables: Optional custom tables (module defaults otherwise)
        """
        self.tables = tables or ScoringTables()

    @property
    def algorithm_version(self) -> str:
        return self.tables.algorithm_version

    def score(self, request: ScoringRequest) -> FusedScore:
        """
        Score a donor/recipient pair.

        Args:
            request: Validated scoring request

        Returns:
            FusedScore with both sub-results attached

        Raises:
            ValidationError: If the request breaks an input invariant
            ComputationError: If scoring fails internally
        """
        validate_request(request)

        try:
            features = extract_features(request)
            survival = estimate_survival(features, self.tables)
            criteria = aggregate_criteria(request, self.tables)
            fused = fuse(survival, criteria, request.calculation_method, self.tables)
        except ScoringError:
            raise
        except Exception as e:
            logger.error(
                f"Scoring failed for donor {request.donor_pair_id} "
                f"and recipient {request.recipient_pair_id}: {e}",
                exc_info=True,
            )
            raise ComputationError() from e

        logger.info(
            f"Scored donor {request.donor_pair_id} / recipient {request.recipient_pair_id}: "
            f"overall={fused.overall_score:.3f} risk={fused.risk_assessment.value} "
            f"recommendation={fused.recommendation.value}"
        )

        return fused

    def get_survival_model_metadata(self) -> Dict[str, Any]:
        """Static performance metrics of the survival coefficient table."""
        return dict(SURVIVAL_MODEL_METADATA)

    def get_criteria_model_metadata(self) -> Dict[str, Any]:
        """Static performance metrics of the multi-criteria model."""
        return dict(CRITERIA_MODEL_METADATA)
