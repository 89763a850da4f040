"""
Survival Estimator
==================

Proportional-hazards graft survival estimate.

    linear predictor  = sum(coefficient[f] * value[f])
    hazard ratio      = exp(linear predictor)
    survival(horizon) = baseline(horizon) ** hazard ratio

Features without a coefficient and coefficients without a feature are
skipped silently. The 5-year horizon is the primary survival probability.

Author: OrganSync Team
Version: 1.0.0
"""

import logging
import math
from typing import Dict, Mapping

from shared.schemas.scoring import RiskLevel
from organsync.scoring.confidence import SURVIVAL_CONFIDENCE
from organsync.scoring.models import FeatureVector, SurvivalResult
from organsync.scoring.tables import DEFAULT_TABLES, PRIMARY_HORIZON, ScoringTables


logger = logging.getLogger(__name__)

HIGH_RISK_HAZARD = 2.0
HIGH_RISK_SURVIVAL = 0.5
MODERATE_RISK_HAZARD = 1.5
MODERATE_RISK_SURVIVAL = 0.7


def linear_predictor(
    features: Mapping[str, float],
    coefficients: Mapping[str, float],
) -> float:
    """Weighted sum of the features that have a coefficient."""
    total = 0.0
    for name, value in features.items():
        coefficient = coefficients.get(name)
        if coefficient is not None and value is not None:
            total += coefficient * value
    return total


def adjust_survival(
    hazard_ratio: float,
    baseline: Mapping[str, float],
) -> Dict[str, float]:
    """Adjust each baseline survival by the hazard ratio, clamped to [0, 1]."""
    return {
        horizon: max(0.0, min(1.0, base ** hazard_ratio))
        for horizon, base in baseline.items()
    }


def assess_risk(hazard_ratio: float, survival_probability: float) -> RiskLevel:
    """
    Classify risk from hazard ratio and 5-year survival.

    Rules are evaluated in order; the first match wins.
    """
    if hazard_ratio > HIGH_RISK_HAZARD or survival_probability < HIGH_RISK_SURVIVAL:
        return RiskLevel.HIGH_RISK
    if hazard_ratio > MODERATE_RISK_HAZARD or survival_probability < MODERATE_RISK_SURVIVAL:
        return RiskLevel.MODERATE_RISK
    return RiskLevel.LOW_RISK


def feature_completeness(
    features: FeatureVector,
    coefficients: Mapping[str, float],
) -> float:
    """Fraction of coefficient-table features that were actually supplied."""
    if not coefficients:
        return 0.0
    supplied = sum(1 for name in coefficients if features.supplied(name))
    return supplied / len(coefficients)


def estimate_survival(
    features: FeatureVector,
    tables: ScoringTables = DEFAULT_TABLES,
) -> SurvivalResult:
    """
    Run the survival model over an extracted feature vector.

    Args:
        features: Output of extract_features
        tables: Coefficient and baseline tables

    Returns:
        SurvivalResult with hazard ratio, horizon survival and risk label
    """
    lp = linear_predictor(features.values, tables.coefficients)
    hazard_ratio = math.exp(lp)

    probabilities = adjust_survival(hazard_ratio, tables.baseline_survival)
    survival_probability = probabilities[PRIMARY_HORIZON]

    risk = assess_risk(hazard_ratio, survival_probability)
    completeness = feature_completeness(features, tables.coefficients)
    confidence = SURVIVAL_CONFIDENCE.level(completeness)

    logger.debug(
        f"Survival estimate: lp={lp:.4f} hr={hazard_ratio:.4f} "
        f"5y={survival_probability:.4f} risk={risk.value}"
    )

    return SurvivalResult(
        linear_predictor=lp,
        hazard_ratio=hazard_ratio,
        survival_probabilities=probabilities,
        survival_probability=survival_probability,
        risk_assessment=risk,
        confidence_level=confidence,
        feature_values=dict(features.values),
    )
