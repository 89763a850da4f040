"""
Tests for the multi-criteria aggregator.
"""

import pytest

from shared.schemas.scoring import CompatibilityLevel
from organsync.scoring.criteria import (
    age_score,
    aggregate_criteria,
    blood_type_score,
    classify_compatibility,
    hla_score,
    medical_history_score,
    normalize_weights,
    proximity_score,
    urgency_score,
)
from organsync.scoring.tables import CRITERIA_NAMES, DEFAULT_CRITERIA_WEIGHTS


class TestCriterionScores:
    """Per-criterion rule tables."""

    @pytest.mark.parametrize("donor, recipient, expected", [
        ("A+", "A+", 1.0),
        ("O-", "O-", 1.0),
        ("O+", "A+", 0.9),
        ("O-", "AB+", 0.9),
        ("A+", "AB+", 0.8),
        ("B-", "AB-", 0.8),
        ("A+", "B+", 0.0),
        ("AB+", "O+", 0.0),
        (None, "A+", 0.0),
        ("A+", None, 0.0),
    ])
    def test_blood_type(self, donor, recipient, expected):
        assert blood_type_score(donor, recipient) == expected

    @pytest.mark.parametrize("mismatches, expected", [
        (0, 1.0),
        (2, 2.0 / 3.0),
        (3, 0.5),
        (6, 0.0),
        (None, 0.5),
    ])
    def test_hla(self, mismatches, expected):
        assert hla_score(mismatches) == pytest.approx(expected)

    @pytest.mark.parametrize("donor_age, recipient_age, expected", [
        (40, 40, 1.0),
        (40, 45, 1.0),
        (40, 46, 0.8),
        (50, 40, 0.8),
        (40, 51, 0.6),
        (60, 40, 0.6),
        (61, 40, 0.3),
    ])
    def test_age_bands(self, donor_age, recipient_age, expected):
        assert age_score(donor_age, recipient_age) == expected

    @pytest.mark.parametrize("distance, expected", [
        (None, 0.5),
        (0.0, 1.0),
        (50.0, 1.0),
        (50.1, 0.8),
        (100.0, 0.8),
        (200.0, 0.6),
        (500.0, 0.4),
        (501.0, 0.2),
    ])
    def test_proximity_bands(self, distance, expected):
        assert proximity_score(distance) == expected

    @pytest.mark.parametrize("previous, months, expected", [
        (None, None, 0.7),
        (False, 12, 0.9),
        (False, 24, 0.7),
        (False, 40, 0.6),
        (True, 6, 0.7),
        (True, 40, 0.4),
        (True, None, 0.5),
    ])
    def test_medical_history(self, previous, months, expected):
        assert medical_history_score(previous, months) == pytest.approx(expected)

    @pytest.mark.parametrize("level, expected", [
        ("urgent", 1.0),
        ("HIGH", 1.0),
        ("Moderate", 0.7),
        ("medium", 0.7),
        ("low", 0.4),
        ("routine", 0.5),
        (None, 0.5),
    ])
    def test_urgency(self, level, expected):
        assert urgency_score(level) == expected


class TestWeights:
    def test_default_weights_sum_to_one(self):
        assert sum(DEFAULT_CRITERIA_WEIGHTS.values()) == pytest.approx(1.0)
        assert set(DEFAULT_CRITERIA_WEIGHTS) == set(CRITERIA_NAMES)

    def test_normalize(self):
        weights = normalize_weights({"blood_type": 2.0, "urgency": 6.0})
        assert weights == pytest.approx({"blood_type": 0.25, "urgency": 0.75})

    def test_normalize_rejects_zero_sum(self):
        with pytest.raises(ValueError):
            normalize_weights({"blood_type": 0.0})

    @pytest.mark.parametrize("score, expected", [
        (0.95, CompatibilityLevel.EXCELLENT),
        (0.8, CompatibilityLevel.EXCELLENT),
        (0.79, CompatibilityLevel.GOOD),
        (0.6, CompatibilityLevel.GOOD),
        (0.4, CompatibilityLevel.MODERATE),
        (0.39, CompatibilityLevel.POOR),
        (0.0, CompatibilityLevel.POOR),
    ])
    def test_classify(self, score, expected):
        assert classify_compatibility(score) == expected


class TestAggregateCriteria:
    def test_reference_pair(self, reference_request):
        result = aggregate_criteria(reference_request)

        assert result.criteria_scores == pytest.approx({
            "blood_type": 0.0,
            "hla_compatibility": 2.0 / 3.0,
            "age_compatibility": 0.8,
            "geographic_proximity": 0.5,
            "medical_history": 0.7,
            "urgency": 1.0,
        })
        assert result.score == pytest.approx(0.54)
        assert result.compatibility_level == CompatibilityLevel.MODERATE
        assert result.confidence_level == 0.95
        assert result.weights == pytest.approx(dict(DEFAULT_CRITERIA_WEIGHTS))

    def test_weighted_scores_sum_to_score(self, complete_request):
        result = aggregate_criteria(complete_request)
        assert sum(result.weighted_scores.values()) == pytest.approx(result.score)
        assert 0.0 <= result.score <= 1.0

    def test_custom_weights_are_normalized(self, make_request):
        request = make_request(custom_weights={"blood_type": 1.0, "urgency": 1.0})
        result = aggregate_criteria(request)

        assert result.weights == pytest.approx({"blood_type": 0.5, "urgency": 0.5})
        assert set(result.weighted_scores) == {"blood_type", "urgency"}
        assert result.score == pytest.approx(0.5)

    def test_criteria_outside_custom_weights_drop_out(self, make_request):
        request = make_request(custom_weights={"hla_compatibility": 3.0})
        result = aggregate_criteria(request)
        assert result.score == pytest.approx(2.0 / 3.0)
        assert len(result.criteria_scores) == 6

    def test_perfect_pair_is_excellent(self, make_request):
        request = make_request(
            donor={"blood_type": "O-", "age": 40, "latitude": 10.0, "longitude": 10.0},
            recipient={"blood_type": "O-", "age": 42, "latitude": 10.0, "longitude": 10.0},
            clinical={"hla_mismatches": 0, "previous_transplant": False, "months_on_dialysis": 6},
        )
        result = aggregate_criteria(request)
        assert result.criteria_scores["geographic_proximity"] == 1.0
        assert result.criteria_scores["medical_history"] == pytest.approx(0.9)
        assert result.compatibility_level == CompatibilityLevel.EXCELLENT
