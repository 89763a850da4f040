"""
Scoring Result Models
=====================

Plain result records produced by the scoring pipeline.

    - FeatureVector: survival features plus the names filled from defaults
    - SurvivalResult: hazard model output
    - CriteriaScoreSet: multi-criteria output
    - FusedScore: final merged score

All records are frozen dataclasses created fresh per request.

Author: OrganSync Team
Version: 1.0.0
"""

from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet

from shared.schemas.scoring import (
    CompatibilityLevel,
    Recommendation,
    RiskLevel,
    ScoringMethod,
)


@dataclass(frozen=True)
class FeatureVector:
    """
    Named numeric features for the survival model.

    ``imputed`` lists features whose input was absent and that carry a
    documented default instead.
    """
    values: Dict[str, float]
    imputed: FrozenSet[str] = field(default_factory=frozenset)

    def supplied(self, name: str) -> bool:
        """Whether a feature is present and was not imputed."""
        return self.values.get(name) is not None and name not in self.imputed


@dataclass(frozen=True)
class SurvivalResult:
    """Output of the proportional-hazards survival estimator."""
    linear_predictor: float
    hazard_ratio: float
    survival_probabilities: Dict[str, float]
    survival_probability: float
    risk_assessment: RiskLevel
    confidence_level: float
    feature_values: Dict[str, float] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "linear_predictor": self.linear_predictor,
            "hazard_ratio": self.hazard_ratio,
            "survival_probabilities": dict(self.survival_probabilities),
            "survival_probability": self.survival_probability,
            "risk_assessment": self.risk_assessment.value,
            "confidence_level": self.confidence_level,
            "feature_values": dict(self.feature_values),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SurvivalResult":
        return cls(
            linear_predictor=data["linear_predictor"],
            hazard_ratio=data["hazard_ratio"],
            survival_probabilities=dict(data["survival_probabilities"]),
            survival_probability=data["survival_probability"],
            risk_assessment=RiskLevel(data["risk_assessment"]),
            confidence_level=data["confidence_level"],
            feature_values=dict(data.get("feature_values", {})),
        )


@dataclass(frozen=True)
class CriteriaScoreSet:
    """Output of the multi-criteria aggregator."""
    criteria_scores: Dict[str, float]
    weights: Dict[str, float]
    weighted_scores: Dict[str, float]
    score: float
    compatibility_level: CompatibilityLevel
    confidence_level: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "criteria_scores": dict(self.criteria_scores),
            "weights": dict(self.weights),
            "weighted_scores": dict(self.weighted_scores),
            "score": self.score,
            "compatibility_level": self.compatibility_level.value,
            "confidence_level": self.confidence_level,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CriteriaScoreSet":
        return cls(
            criteria_scores=dict(data["criteria_scores"]),
            weights=dict(data["weights"]),
            weighted_scores=dict(data["weighted_scores"]),
            score=data["score"],
            compatibility_level=CompatibilityLevel(data["compatibility_level"]),
            confidence_level=data["confidence_level"],
        )


@dataclass(frozen=True)
class FusedScore:
    """
    Final compatibility score for a donor/recipient pair.

    Retains both sub-results for auditability.
    """
    overall_score: float
    confidence_level: float
    risk_assessment: RiskLevel
    compatibility_level: CompatibilityLevel
    recommendation: Recommendation
    method: ScoringMethod
    survival: SurvivalResult
    criteria: CriteriaScoreSet

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to a JSON-compatible dict."""
        return {
            "overall_score": self.overall_score,
            "confidence_level": self.confidence_level,
            "risk_assessment": self.risk_assessment.value,
            "compatibility_level": self.compatibility_level.value,
            "recommendation": self.recommendation.value,
            "method": self.method.value,
            "survival": self.survival.to_dict(),
            "criteria": self.criteria.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FusedScore":
        """Rebuild from ``to_dict`` output."""
        return cls(
            overall_score=data["overall_score"],
            confidence_level=data["confidence_level"],
            risk_assessment=RiskLevel(data["risk_assessment"]),
            compatibility_level=CompatibilityLevel(data["compatibility_level"]),
            recommendation=Recommendation(data["recommendation"]),
            method=ScoringMethod(data["method"]),
            survival=SurvivalResult.from_dict(data["survival"]),
            criteria=CriteriaScoreSet.from_dict(data["criteria"]),
        )
