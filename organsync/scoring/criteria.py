"""
Multi-Criteria Aggregator
=========================

Multi-criteria decision analysis (MCDA) compatibility score.

Six rule-table criteria, each in [0, 1]:
    - blood_type: ABO match quality
    - hla_compatibility: 1 - mismatches / 6
    - age_compatibility: banded absolute age difference
    - geographic_proximity: banded great-circle distance
    - medical_history: prior transplant and dialysis adjustments
    - urgency: recipient urgency category

The overall score is the weighted sum over criteria present in both the
score map and the weight map. A custom weight map is normalized and used
as given, so criteria it omits drop out of the sum.

Author: OrganSync Team
Version: 1.0.0
"""

import logging
from typing import Dict, Mapping, Optional

from shared.schemas.scoring import (
    CompatibilityLevel,
    ScoringRequest,
    UrgencyLevel,
)
from organsync.scoring.confidence import CRITERIA_CONFIDENCE
from organsync.scoring.geo import distance_between
from organsync.scoring.models import CriteriaScoreSet
from organsync.scoring.tables import DEFAULT_TABLES, ScoringTables, normalize_weights


logger = logging.getLogger(__name__)

MISSING_SCORE = 0.5


# =============================================================================
# Criterion Scores
# =============================================================================

def blood_type_score(donor_type: Optional[str], recipient_type: Optional[str]) -> float:
    """ABO compatibility score. Missing either type scores 0.0."""
    if donor_type is None or recipient_type is None:
        return 0.0

    if donor_type == recipient_type:
        return 1.0
    if donor_type.startswith("O"):
        return 0.9
    if recipient_type.startswith("AB"):
        return 0.8
    if donor_type.startswith(("A", "B")) and recipient_type.startswith("AB"):
        return 0.7
    return 0.0


def hla_score(mismatches: Optional[int]) -> float:
    """HLA compatibility on the 0-6 mismatch scale."""
    if mismatches is None:
        return MISSING_SCORE
    if mismatches == 0:
        return 1.0
    return max(0.0, 1.0 - mismatches / 6.0)


def age_score(donor_age: Optional[int], recipient_age: Optional[int]) -> float:
    """Age compatibility by absolute age difference."""
    if donor_age is None or recipient_age is None:
        return MISSING_SCORE

    difference = abs(donor_age - recipient_age)
    if difference <= 5:
        return 1.0
    if difference <= 10:
        return 0.8
    if difference <= 20:
        return 0.6
    return 0.3


def proximity_score(distance_km: Optional[float]) -> float:
    """Geographic proximity by distance band. Unknown distance scores 0.5."""
    if distance_km is None:
        return MISSING_SCORE
    if distance_km <= 50:
        return 1.0
    if distance_km <= 100:
        return 0.8
    if distance_km <= 200:
        return 0.6
    if distance_km <= 500:
        return 0.4
    return 0.2


def medical_history_score(
    previous_transplant: Optional[bool],
    months_on_dialysis: Optional[int],
) -> float:
    """Base 0.7 adjusted for prior transplant and dialysis time."""
    score = 0.7

    if previous_transplant:
        score -= 0.2

    if months_on_dialysis is not None:
        if months_on_dialysis <= 12:
            score += 0.2
        elif months_on_dialysis > 36:
            score -= 0.1

    return max(0.0, min(1.0, score))


def urgency_score(urgency_level: Optional[str]) -> float:
    """Urgency category score (case-insensitive)."""
    return UrgencyLevel.from_string(urgency_level).score


def criteria_scores(request: ScoringRequest) -> Dict[str, float]:
    """Compute all six criterion scores for a request."""
    donor = request.donor
    recipient = request.recipient
    clinical = request.clinical

    return {
        "blood_type": blood_type_score(donor.blood_type, recipient.blood_type),
        "hla_compatibility": hla_score(clinical.hla_mismatches),
        "age_compatibility": age_score(donor.age, recipient.age),
        "geographic_proximity": proximity_score(distance_between(donor, recipient)),
        "medical_history": medical_history_score(
            clinical.previous_transplant, clinical.months_on_dialysis
        ),
        "urgency": urgency_score(clinical.urgency_level),
    }


# =============================================================================
# Weighting
# =============================================================================

def effective_weights(
    custom_weights: Optional[Mapping[str, float]],
    tables: ScoringTables = DEFAULT_TABLES,
) -> Dict[str, float]:
    """Normalized custom weights if supplied, otherwise the defaults."""
    if custom_weights:
        return normalize_weights(custom_weights)
    return dict(tables.default_weights)


def classify_compatibility(score: float) -> CompatibilityLevel:
    """Map a multi-criteria score to its compatibility label."""
    if score >= 0.8:
        return CompatibilityLevel.EXCELLENT
    if score >= 0.6:
        return CompatibilityLevel.GOOD
    if score >= 0.4:
        return CompatibilityLevel.MODERATE
    return CompatibilityLevel.POOR


def aggregate_criteria(
    request: ScoringRequest,
    tables: ScoringTables = DEFAULT_TABLES,
) -> CriteriaScoreSet:
    """
    Compute the multi-criteria score for a request.

    Args:
        request: Validated scoring request
        tables: Default weight table

    Returns:
        CriteriaScoreSet with per-criterion scores, weights and label
    """
    scores = criteria_scores(request)
    weights = effective_weights(request.custom_weights, tables)

    weighted = {
        name: score * weights[name]
        for name, score in scores.items()
        if score is not None and name in weights
    }
    total = sum(weighted.values())

    present = sum(1 for score in scores.values() if score is not None)
    confidence = CRITERIA_CONFIDENCE.level(present / len(scores))
    level = classify_compatibility(total)

    logger.debug(f"Criteria score={total:.4f} ({level.value})")

    return CriteriaScoreSet(
        criteria_scores=scores,
        weights=weights,
        weighted_scores=weighted,
        score=total,
        compatibility_level=level,
        confidence_level=confidence,
    )
