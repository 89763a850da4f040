"""
End-to-end tests for the scoring engine.
"""

import math
from unittest.mock import patch
from uuid import uuid4

import pytest

from shared.schemas.scoring import (
    ClinicalProfile,
    CompatibilityLevel,
    PartyProfile,
    Recommendation,
    RiskLevel,
    ScoringMethod,
    ScoringRequest,
)
from organsync.errors import ComputationError, ScoringError, ValidationError
from organsync.scoring.confidence import CRITERIA_CONFIDENCE, SURVIVAL_CONFIDENCE
from organsync.scoring.engine import ScoringEngine, build_request, validate_request
from organsync.scoring.geo import haversine_km
from organsync.scoring.models import FusedScore
from organsync.scoring.tables import ScoringTables


@pytest.fixture
def engine():
    return ScoringEngine()


def _unchecked_request(donor_age=35, recipient_age=42, hla=2):
    """Build a request that skips schema validation."""
    return ScoringRequest.model_construct(
        donor_pair_id=uuid4(),
        recipient_pair_id=uuid4(),
        donor=PartyProfile.model_construct(age=donor_age, blood_type="A+", sex="M"),
        recipient=PartyProfile.model_construct(age=recipient_age, blood_type="B+", sex="F"),
        clinical=ClinicalProfile.model_construct(hla_mismatches=hla, urgency_level="HIGH"),
        calculation_method=ScoringMethod.HYBRID,
        custom_weights=None,
    )


# =============================================================================
# Scoring
# =============================================================================

class TestScoringEngine:
    """Full pipeline over the reference pair."""

    def test_reference_pair(self, engine, reference_request, reference_survival):
        fused = engine.score(reference_request)

        expected_overall = 0.6 * reference_survival + 0.4 * 0.54
        assert fused.overall_score == pytest.approx(expected_overall)
        assert fused.overall_score == pytest.approx(0.8124, abs=1e-3)
        assert fused.method == ScoringMethod.HYBRID
        assert fused.risk_assessment == RiskLevel.LOW_RISK
        assert fused.compatibility_level == CompatibilityLevel.MODERATE
        assert fused.recommendation == Recommendation.STRONGLY_RECOMMENDED
        assert fused.confidence_level == pytest.approx(0.725)

    def test_survival_method(self, engine, make_request):
        fused = engine.score(make_request(calculation_method="SURVIVAL"))
        assert fused.method == ScoringMethod.SURVIVAL
        assert fused.overall_score == fused.survival.survival_probability

    def test_criteria_method(self, engine, make_request):
        fused = engine.score(make_request(calculation_method="CRITERIA"))
        assert fused.overall_score == pytest.approx(0.54)
        assert fused.recommendation == Recommendation.CONSIDER_WITH_CAUTION

    @pytest.mark.parametrize("name, expected", [
        ("cox", ScoringMethod.SURVIVAL),
        ("MCDA", ScoringMethod.CRITERIA),
        ("hybrid", ScoringMethod.HYBRID),
        ("bogus", ScoringMethod.HYBRID),
        (None, ScoringMethod.HYBRID),
    ])
    def test_method_names(self, engine, make_request, name, expected):
        fused = engine.score(make_request(calculation_method=name))
        assert fused.method == expected

    def test_deterministic(self, engine, complete_request):
        assert engine.score(complete_request) == engine.score(complete_request)

    def test_shared_engine_independent_requests(self, engine, make_request):
        first = engine.score(make_request())
        engine.score(make_request(clinical={"hla_mismatches": 6, "urgency_level": "low"}))
        assert engine.score(make_request()) == first

    def test_score_bounds(self, engine, make_request):
        fused = engine.score(make_request(
            donor={"age": 80, "bmi": 45.0, "blood_type": "AB+"},
            recipient={"age": 18, "bmi": 15.0, "blood_type": "O-"},
            clinical={"hla_mismatches": 6, "previous_transplant": True,
                      "months_on_dialysis": 120, "crossmatch_result": 1.0},
        ))
        assert 0.0 <= fused.overall_score <= 1.0
        assert 0.0 <= fused.criteria.score <= 1.0
        assert 0.0 <= fused.survival.survival_probability <= 1.0

    def test_custom_weights_only_affect_criteria(self, engine, make_request):
        default = engine.score(make_request())
        custom = engine.score(make_request(custom_weights={"urgency": 1.0}))

        assert custom.survival == default.survival
        assert custom.criteria.score == pytest.approx(1.0)

    def test_missing_coordinates_use_different_fallbacks(self, engine, reference_request):
        # Survival assumes 100 km, criteria scores proximity 0.5
        fused = engine.score(reference_request)
        assert fused.survival.feature_values["geographic_distance"] == 100.0
        assert fused.criteria.criteria_scores["geographic_proximity"] == 0.5

    def test_custom_tables(self, reference_request):
        engine = ScoringEngine(ScoringTables(hybrid_survival_weight=0.0, hybrid_criteria_weight=1.0))
        assert engine.score(reference_request).overall_score == pytest.approx(0.54)

    def test_round_trip_serialization(self, engine, complete_request):
        fused = engine.score(complete_request)
        assert FusedScore.from_dict(fused.to_dict()) == fused

    def test_model_metadata(self, engine):
        survival = engine.get_survival_model_metadata()
        assert survival["concordance_index"] == 0.82
        assert survival["model_version"] == engine.algorithm_version
        assert engine.get_criteria_model_metadata()["accuracy"] == 0.82


# =============================================================================
# Validation and errors
# =============================================================================

class TestValidation:
    def test_build_request_from_payload(self, scoring_payload):
        request = build_request(scoring_payload)
        assert request.donor.blood_type == "A+"
        assert request.calculation_method == ScoringMethod.HYBRID

    def test_blood_type_is_normalized(self, scoring_payload):
        scoring_payload["donor"]["blood_type"] = " o- "
        assert build_request(scoring_payload).donor.blood_type == "O-"

    def test_missing_age(self, scoring_payload):
        del scoring_payload["donor"]["age"]
        with pytest.raises(ValidationError) as exc_info:
            build_request(scoring_payload)
        assert exc_info.value.errors
        assert exc_info.value.errors[0]["loc"] == ("donor", "age")

    @pytest.mark.parametrize("section, field, value", [
        ("donor", "age", 0),
        ("recipient", "age", -3),
        ("clinical", "hla_mismatches", 7),
        ("clinical", "hla_mismatches", -1),
        ("clinical", "crossmatch_result", 1.5),
    ])
    def test_out_of_range(self, scoring_payload, section, field, value):
        scoring_payload[section][field] = value
        with pytest.raises(ValidationError):
            build_request(scoring_payload)

    def test_negative_custom_weight(self, scoring_payload):
        scoring_payload["custom_weights"] = {"blood_type": -1.0, "urgency": 2.0}
        with pytest.raises(ValidationError):
            build_request(scoring_payload)

    def test_zero_custom_weights(self, scoring_payload):
        scoring_payload["custom_weights"] = {"blood_type": 0.0}
        with pytest.raises(ValidationError):
            build_request(scoring_payload)

    @pytest.mark.parametrize("value", ["inf", "-inf", "nan", float("inf"), float("nan")])
    def test_non_finite_custom_weight(self, scoring_payload, value):
        scoring_payload["custom_weights"] = {"urgency": value}
        with pytest.raises(ValidationError):
            build_request(scoring_payload)

    @pytest.mark.parametrize("section, field", [
        ("donor", "bmi"),
        ("recipient", "bmi"),
        ("donor", "latitude"),
        ("clinical", "crossmatch_result"),
    ])
    @pytest.mark.parametrize("value", ["inf", "nan"])
    def test_non_finite_attribute(self, scoring_payload, section, field, value):
        scoring_payload[section][field] = value
        with pytest.raises(ValidationError):
            build_request(scoring_payload)

    def test_large_finite_bmi_keeps_hazard_ratio_positive(self, engine, scoring_payload):
        scoring_payload["donor"]["bmi"] = 60.0
        fused = engine.score(build_request(scoring_payload))
        assert fused.survival.hazard_ratio > 0.0
        assert math.isfinite(fused.overall_score)

    def test_validation_error_is_a_scoring_error(self):
        assert issubclass(ValidationError, ScoringError)
        assert issubclass(ValidationError, ValueError)

    @pytest.mark.parametrize("kwargs", [
        {"donor_age": 0},
        {"recipient_age": -1},
        {"hla": 9},
    ])
    def test_engine_rejects_unchecked_requests(self, engine, kwargs):
        request = _unchecked_request(**kwargs)
        with pytest.raises(ValidationError):
            validate_request(request)
        with pytest.raises(ValidationError):
            engine.score(request)

    def test_internal_failure_becomes_computation_error(self, engine, reference_request):
        with patch(
            "organsync.scoring.engine.aggregate_criteria",
            side_effect=ZeroDivisionError("boom"),
        ):
            with pytest.raises(ComputationError) as exc_info:
                engine.score(reference_request)

        assert isinstance(exc_info.value.__cause__, ZeroDivisionError)
        assert str(exc_info.value) == "scoring failed"


# =============================================================================
# Geography and confidence
# =============================================================================

class TestGeo:
    def test_same_point(self):
        assert haversine_km(51.5, -0.12, 51.5, -0.12) == 0.0

    def test_one_degree_at_equator(self):
        assert haversine_km(0.0, 0.0, 0.0, 1.0) == pytest.approx(2 * math.pi * 6371.0 / 360)

    def test_new_york_to_los_angeles(self):
        distance = haversine_km(40.7128, -74.0060, 34.0522, -118.2437)
        assert distance == pytest.approx(3936, rel=0.01)

    def test_symmetric(self):
        assert haversine_km(10, 20, 30, 40) == pytest.approx(haversine_km(30, 40, 10, 20))


class TestConfidenceModel:
    @pytest.mark.parametrize("completeness, expected", [
        (1.0, 0.95),
        (0.9, 0.95),
        (0.85, 0.85),
        (0.7, 0.75),
        (0.6, 0.65),
        (0.59, 0.5),
        (0.0, 0.5),
    ])
    def test_survival_tiers(self, completeness, expected):
        assert SURVIVAL_CONFIDENCE.level(completeness) == expected

    @pytest.mark.parametrize("completeness, expected", [
        (1.0, 0.95),
        (0.8, 0.85),
        (0.7, 0.75),
        (0.6, 0.6),
        (0.0, 0.6),
    ])
    def test_criteria_tiers(self, completeness, expected):
        assert CRITERIA_CONFIDENCE.level(completeness) == expected
