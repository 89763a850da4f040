"""
OrganSync Scoring Routes
========================

REST API endpoints for compatibility scoring.

Endpoints:
    POST /api/v1/scoring/calculate
    POST /api/v1/scoring/calculate-batch
    GET  /api/v1/scoring/cached/{donor_pair_id}/{recipient_pair_id}
    GET  /api/v1/scoring/donor/{donor_pair_id}
    GET  /api/v1/scoring/recipient/{recipient_pair_id}
    GET  /api/v1/scoring/statistics
    GET  /api/v1/scoring/model-performance
    GET  /api/v1/scoring/info

Author: OrganSync Team
Version: 1.0.0
"""

from typing import Any, Dict, List
from uuid import UUID

from fastapi import APIRouter, Depends

from shared.schemas.scoring import (
    BatchFailure,
    BatchScoreRequest,
    BatchScoreResponse,
    ScoreResponse,
    ScoringMethod,
    ScoringRequest,
)
from organsync.api.dependencies import get_scoring_service
from organsync.config import settings
from organsync.scoring.service import CompatibilityScoringService


router = APIRouter(prefix="/api/v1/scoring", tags=["Compatibility Scoring"])


@router.post(
    "/calculate",
    response_model=ScoreResponse,
    summary="Score Pair",
    description="Calculate the compatibility score for a donor/recipient pair."
)
async def calculate_score(
    request: ScoringRequest,
    service: CompatibilityScoringService = Depends(get_scoring_service),
) -> ScoreResponse:
    """
    Score a pair, returning a stored score when one already exists.

    - **overall_score**: Method-dependent blend of survival and criteria
    - **risk_assessment**: Survival-derived risk label
    - **recommendation**: Final matching recommendation
    """
    scored = await service.calculate(request)
    return scored.to_response()


@router.post(
    "/calculate-batch",
    response_model=BatchScoreResponse,
    summary="Score Pairs",
    description="Score up to 100 pairs concurrently."
)
async def calculate_batch(
    batch: BatchScoreRequest,
    service: CompatibilityScoringService = Depends(get_scoring_service),
) -> BatchScoreResponse:
    """Score many pairs; failing pairs are listed in ``failures``."""
    outcome = await service.calculate_batch(batch.requests)
    return BatchScoreResponse(
        total_requested=outcome.total_requested,
        total_scored=len(outcome.results),
        results=[scored.to_response() for scored in outcome.results],
        failures=[
            BatchFailure(
                donor_pair_id=request.donor_pair_id,
                recipient_pair_id=request.recipient_pair_id,
                error=error,
            )
            for request, error in outcome.failures
        ],
    )


@router.get(
    "/cached/{donor_pair_id}/{recipient_pair_id}",
    response_model=ScoreResponse,
    summary="Get Stored Score",
    description="Return a previously computed score without recomputing."
)
async def get_cached_score(
    donor_pair_id: UUID,
    recipient_pair_id: UUID,
    service: CompatibilityScoringService = Depends(get_scoring_service),
) -> ScoreResponse:
    scored = await service.get_cached_score(donor_pair_id, recipient_pair_id)
    return scored.to_response()


@router.get(
    "/donor/{donor_pair_id}",
    response_model=List[ScoreResponse],
    summary="Scores for Donor",
)
async def scores_by_donor(
    donor_pair_id: UUID,
    service: CompatibilityScoringService = Depends(get_scoring_service),
) -> List[ScoreResponse]:
    """Stored scores for a donor pair, best first."""
    return [s.to_response() for s in await service.scores_by_donor(donor_pair_id)]


@router.get(
    "/recipient/{recipient_pair_id}",
    response_model=List[ScoreResponse],
    summary="Scores for Recipient",
)
async def scores_by_recipient(
    recipient_pair_id: UUID,
    service: CompatibilityScoringService = Depends(get_scoring_service),
) -> List[ScoreResponse]:
    """Stored scores for a recipient pair, best first."""
    return [s.to_response() for s in await service.scores_by_recipient(recipient_pair_id)]


@router.get(
    "/statistics",
    summary="Scoring Statistics",
)
async def statistics(
    service: CompatibilityScoringService = Depends(get_scoring_service),
) -> Dict[str, Any]:
    return await service.statistics()


@router.get(
    "/model-performance",
    summary="Model Performance",
)
async def model_performance(
    service: CompatibilityScoringService = Depends(get_scoring_service),
) -> Dict[str, Any]:
    return service.model_performance()


@router.get(
    "/info",
    summary="Algorithm Info",
    description="Scoring methods, coefficients and default weights."
)
async def info(
    service: CompatibilityScoringService = Depends(get_scoring_service),
) -> Dict[str, Any]:
    tables = service.engine.tables
    return {
        "service": settings.app_name,
        "version": settings.app_version,
        "algorithm_version": tables.algorithm_version,
        "calculation_methods": [m.value for m in ScoringMethod],
        "default_method": ScoringMethod.HYBRID.value,
        "hybrid_weights": {
            "survival": tables.hybrid_survival_weight,
            "criteria": tables.hybrid_criteria_weight,
        },
        "survival_coefficients": dict(tables.coefficients),
        "baseline_survival": dict(tables.baseline_survival),
        "default_criteria_weights": dict(tables.default_weights),
    }
