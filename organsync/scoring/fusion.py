"""
Score Fusion
============

Merges the survival and multi-criteria results into one FusedScore.

    SURVIVAL -> 5-year survival probability
    CRITERIA -> multi-criteria score
    HYBRID   -> 0.6 * survival + 0.4 * criteria

Author: OrganSync Team
Version: 1.0.0
"""

from typing import Optional

from shared.schemas.scoring import Recommendation, RiskLevel, ScoringMethod
from organsync.scoring.models import CriteriaScoreSet, FusedScore, SurvivalResult
from organsync.scoring.tables import DEFAULT_TABLES, ScoringTables


def combine_scores(
    method: Optional[ScoringMethod],
    survival_probability: Optional[float],
    criteria_score: Optional[float],
    tables: ScoringTables = DEFAULT_TABLES,
) -> float:
    """
    Overall score for a method. Absent sub-scores count as 0.0.
    """
    survival = survival_probability if survival_probability is not None else 0.0
    criteria = criteria_score if criteria_score is not None else 0.0

    if method == ScoringMethod.SURVIVAL:
        return survival
    if method == ScoringMethod.CRITERIA:
        return criteria
    return (
        survival * tables.hybrid_survival_weight
        + criteria * tables.hybrid_criteria_weight
    )


def recommend(overall_score: float, risk: RiskLevel) -> Recommendation:
    """
    Recommendation from overall score and survival risk.

    Rules are evaluated in order; thresholds are inclusive.
    """
    if overall_score >= 0.8 and risk == RiskLevel.LOW_RISK:
        return Recommendation.STRONGLY_RECOMMENDED
    if overall_score >= 0.6 and risk != RiskLevel.HIGH_RISK:
        return Recommendation.RECOMMENDED
    if overall_score >= 0.4:
        return Recommendation.CONSIDER_WITH_CAUTION
    return Recommendation.NOT_RECOMMENDED


def fuse(
    survival: SurvivalResult,
    criteria: CriteriaScoreSet,
    method: Optional[ScoringMethod] = ScoringMethod.HYBRID,
    tables: ScoringTables = DEFAULT_TABLES,
) -> FusedScore:
    """
    Fuse both sub-results into the final score.

    Args:
        survival: Survival estimator output
        criteria: Multi-criteria aggregator output
        method: Fusion method (HYBRID when None)
        tables: Hybrid weights

    Returns:
        FusedScore retaining both sub-results
    """
    method = method or ScoringMethod.HYBRID
    overall = combine_scores(
        method,
        survival.survival_probability,
        criteria.score,
        tables,
    )
    confidence = (survival.confidence_level + criteria.confidence_level) / 2.0

    return FusedScore(
        overall_score=overall,
        confidence_level=confidence,
        risk_assessment=survival.risk_assessment,
        compatibility_level=criteria.compatibility_level,
        recommendation=recommend(overall, survival.risk_assessment),
        method=method,
        survival=survival,
        criteria=criteria,
    )
