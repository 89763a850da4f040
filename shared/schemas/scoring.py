"""
OrganSync Scoring Schemas
=========================

Request/response schemas for donor/recipient compatibility scoring.

Key Components:
    - ScoringRequest: Immutable input to the scoring engine
    - PartyProfile / ClinicalProfile: Donor, recipient and clinical attributes
    - ScoringMethod, UrgencyLevel: Request enumerations
    - RiskLevel, CompatibilityLevel, Recommendation: Output labels
    - ScoreResponse: API representation of a scored pair

Usage:
    from shared.schemas.scoring import ScoringRequest

    request = ScoringRequest(
        donor_pair_id=uuid4(),
        recipient_pair_id=uuid4(),
        donor={"blood_type": "A+", "age": 35, "sex": "M"},
        recipient={"blood_type": "B+", "age": 42, "sex": "F"},
        clinical={"hla_mismatches": 2, "urgency_level": "HIGH"},
    )

Author: OrganSync Team
Version: 1.0.0
"""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ScoringMethod(str, Enum):
    """
    How the survival and criteria sub-scores are merged.

    COX and MCDA are accepted as aliases of SURVIVAL and CRITERIA.
    """

    SURVIVAL = "SURVIVAL"
    """Overall score is the 5-year survival probability"""

    CRITERIA = "CRITERIA"
    """Overall score is the multi-criteria score"""

    HYBRID = "HYBRID"
    """Weighted blend of both sub-scores"""

    @classmethod
    def from_string(cls, value: Optional[str]) -> "ScoringMethod":
        """Parse a method name, defaulting to HYBRID."""
        if value is None:
            return cls.HYBRID
        value = value.upper().strip()
        aliases = {"COX": cls.SURVIVAL, "MCDA": cls.CRITERIA}
        if value in aliases:
            return aliases[value]
        for method in cls:
            if method.value == value:
                return method
        return cls.HYBRID


class UrgencyLevel(Enum):
    """
    Recipient urgency categories with associated criterion scores.
    """
    URGENT = ("urgent", 1.0)
    HIGH = ("high", 1.0)
    MODERATE = ("moderate", 0.7)
    MEDIUM = ("medium", 0.7)
    LOW = ("low", 0.4)
    UNKNOWN = ("unknown", 0.5)

    def __init__(self, value: str, score: float):
        self._value_ = value
        self.score = score

    @property
    def is_urgent(self) -> bool:
        """Whether this level counts as urgent status for survival."""
        return self in (UrgencyLevel.URGENT, UrgencyLevel.HIGH)

    @classmethod
    def from_string(cls, value: Optional[str]) -> "UrgencyLevel":
        """Get urgency level from string, defaulting to UNKNOWN."""
        if value is None:
            return cls.UNKNOWN
        value = value.lower().strip()
        for level in cls:
            if level.value == value:
                return level
        return cls.UNKNOWN


class RiskLevel(str, Enum):
    """Survival-derived risk label."""
    LOW_RISK = "LOW_RISK"
    MODERATE_RISK = "MODERATE_RISK"
    HIGH_RISK = "HIGH_RISK"


class CompatibilityLevel(str, Enum):
    """Multi-criteria compatibility label."""
    EXCELLENT = "EXCELLENT"
    GOOD = "GOOD"
    MODERATE = "MODERATE"
    POOR = "POOR"


class Recommendation(str, Enum):
    """Final matching recommendation."""
    STRONGLY_RECOMMENDED = "STRONGLY_RECOMMENDED"
    RECOMMENDED = "RECOMMENDED"
    CONSIDER_WITH_CAUTION = "CONSIDER_WITH_CAUTION"
    NOT_RECOMMENDED = "NOT_RECOMMENDED"


# =============================================================================
# Request Models
# =============================================================================


class PartyProfile(BaseModel):
    """
    Donor or recipient attributes.

    Only ``age`` is required; every other field degrades to a
    documented default inside the scoring engine.
    """

    model_config = ConfigDict(frozen=True, allow_inf_nan=False)

    blood_type: Optional[str] = Field(None, description="ABO/Rh type, e.g. 'O-'")
    age: int = Field(..., gt=0, description="Age in years")
    sex: Optional[str] = Field(None, description="'M' or 'F'")
    bmi: Optional[float] = Field(None, gt=0.0, description="Body mass index")
    latitude: Optional[float] = Field(None, ge=-90.0, le=90.0)
    longitude: Optional[float] = Field(None, ge=-180.0, le=180.0)
    medical_history: Tuple[str, ...] = Field(
        default=(),
        description="Medical history flags (informational)"
    )

    @field_validator("blood_type")
    @classmethod
    def normalize_blood_type(cls, v: Optional[str]) -> Optional[str]:
        """Upper-case blood types; blank becomes missing."""
        if v is None:
            return None
        v = v.strip().upper()
        return v or None


class ClinicalProfile(BaseModel):
    """Pair-level clinical attributes."""

    model_config = ConfigDict(frozen=True, allow_inf_nan=False)

    hla_mismatches: Optional[int] = Field(None, ge=0, le=6, description="HLA mismatch count")
    previous_transplant: Optional[bool] = Field(None, description="Recipient had a prior transplant")
    months_on_dialysis: Optional[int] = Field(None, ge=0, description="Recipient time on dialysis")
    urgency_level: Optional[str] = Field(None, description="LOW, MODERATE/MEDIUM, HIGH/URGENT")
    crossmatch_result: Optional[float] = Field(None, ge=0.0, le=1.0, description="Crossmatch in [0,1]")
    panel_reactive_antibodies: Optional[str] = Field(None, description="PRA (informational)")


class ScoringRequest(BaseModel):
    """
    Immutable input to the scoring engine.

    Identifies the pair being scored and carries every attribute the
    survival and multi-criteria models read.
    """

    model_config = ConfigDict(frozen=True, allow_inf_nan=False)

    donor_pair_id: UUID = Field(..., description="Donor pair identifier")
    recipient_pair_id: UUID = Field(..., description="Recipient pair identifier")
    donor: PartyProfile
    recipient: PartyProfile
    clinical: ClinicalProfile = Field(default_factory=ClinicalProfile)
    calculation_method: ScoringMethod = Field(default=ScoringMethod.HYBRID)
    custom_weights: Optional[Dict[str, float]] = Field(
        None,
        description="Custom criterion weights, normalized to sum to 1.0"
    )

    @field_validator("calculation_method", mode="before")
    @classmethod
    def parse_method(cls, v: Any) -> ScoringMethod:
        """Accept method names case-insensitively, with COX/MCDA aliases."""
        if isinstance(v, ScoringMethod):
            return v
        return ScoringMethod.from_string(v)

    @field_validator("custom_weights")
    @classmethod
    def check_weights(cls, v: Optional[Dict[str, float]]) -> Optional[Dict[str, float]]:
        """Weights must be non-negative with a positive total."""
        if not v:
            return v
        if any(w < 0 for w in v.values()):
            raise ValueError("custom weights must be non-negative")
        if sum(v.values()) <= 0:
            raise ValueError("custom weights must sum to a positive value")
        return v


# =============================================================================
# Response Models
# =============================================================================


class ScoreResponse(BaseModel):
    """API representation of a scored donor/recipient pair."""
    donor_pair_id: UUID
    recipient_pair_id: UUID
    score_id: Optional[str] = None
    overall_score: float
    confidence_level: float
    risk_assessment: RiskLevel
    compatibility_level: CompatibilityLevel
    recommendation: Recommendation
    calculation_method: ScoringMethod

    survival_probability: float
    hazard_ratio: float
    survival_probabilities: Dict[str, float]
    criteria_score: float
    criteria_scores: Dict[str, float]
    criteria_weights: Dict[str, float]

    algorithm_version: str
    calculated_by: str
    calculated_at: datetime
    processing_time_ms: Optional[float] = None
    cached: bool = False


class BatchScoreRequest(BaseModel):
    """Request model for batch scoring."""
    requests: List[ScoringRequest] = Field(..., min_length=1, max_length=100)


class BatchFailure(BaseModel):
    """A pair that could not be scored in a batch."""
    donor_pair_id: UUID
    recipient_pair_id: UUID
    error: str


class BatchScoreResponse(BaseModel):
    """Response model for batch scoring."""
    total_requested: int
    total_scored: int
    results: List[ScoreResponse]
    failures: List[BatchFailure]
