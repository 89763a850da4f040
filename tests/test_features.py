"""
Tests for survival feature extraction.
"""

import pytest

from organsync.scoring.features import (
    DEFAULT_DISTANCE_KM,
    DEFAULT_HLA_MISMATCHES,
    extract_features,
    is_blood_type_compatible,
    is_male,
)
from organsync.scoring.geo import haversine_km


class TestBloodTypeCompatibility:
    """ABO rule used by the survival model."""

    @pytest.mark.parametrize("donor, recipient, expected", [
        ("O-", "A+", True),
        ("O+", "AB-", True),
        ("A+", "AB+", True),
        ("B-", "AB-", True),
        ("A+", "A+", True),
        ("A+", "B+", False),
        ("B+", "A-", False),
        ("AB+", "A+", False),
        ("o+", "b+", True),
        (None, "A+", False),
        ("A+", None, False),
    ])
    def test_compatibility(self, donor, recipient, expected):
        assert is_blood_type_compatible(donor, recipient) is expected


class TestIsMale:
    @pytest.mark.parametrize("code, expected", [
        ("M", True),
        ("m", True),
        ("Male", True),
        ("F", False),
        ("female", False),
        (None, False),
    ])
    def test_codes(self, code, expected):
        assert is_male(code) is expected


class TestExtractFeatures:
    """Feature vector construction and imputation."""

    def test_reference_values(self, reference_request):
        features = extract_features(reference_request)
        values = features.values

        assert len(values) == 14
        assert values["age_difference"] == 7.0
        assert values["donor_age"] == 35.0
        assert values["recipient_age"] == 42.0
        assert values["hla_mismatches"] == 2.0
        assert values["blood_type_mismatch"] == 1.0
        assert values["donor_gender_male"] == 1.0
        assert values["recipient_gender_male"] == 0.0
        assert values["urgent_status"] == 1.0

    def test_reference_imputed(self, reference_request):
        features = extract_features(reference_request)

        assert features.imputed == {
            "donor_bmi",
            "recipient_bmi",
            "geographic_distance",
            "time_on_dialysis",
            "previous_transplant",
            "crossmatch_positive",
        }
        assert features.values["donor_bmi"] == 25.0
        assert features.values["geographic_distance"] == DEFAULT_DISTANCE_KM
        assert features.values["time_on_dialysis"] == 12.0
        assert features.values["previous_transplant"] == 0.0
        assert features.values["crossmatch_positive"] == 0.0

    def test_complete_request_has_no_imputation(self, complete_request):
        features = extract_features(complete_request)
        assert features.imputed == frozenset()
        assert all(features.supplied(name) for name in features.values)

    def test_missing_hla_defaults_to_three(self, make_request):
        features = extract_features(make_request(clinical={"hla_mismatches": None}))
        assert features.values["hla_mismatches"] == float(DEFAULT_HLA_MISMATCHES)
        assert "hla_mismatches" in features.imputed

    def test_missing_blood_type_counts_as_mismatch(self, make_request):
        features = extract_features(make_request(donor={"blood_type": None}))
        assert features.values["blood_type_mismatch"] == 1.0
        assert "blood_type_mismatch" in features.imputed

    def test_missing_urgency_is_not_urgent(self, make_request):
        features = extract_features(make_request(clinical={"urgency_level": None}))
        assert features.values["urgent_status"] == 0.0
        assert "urgent_status" in features.imputed

    @pytest.mark.parametrize("level, expected", [
        ("urgent", 1.0),
        ("High", 1.0),
        ("MODERATE", 0.0),
        ("low", 0.0),
    ])
    def test_urgent_status(self, make_request, level, expected):
        features = extract_features(make_request(clinical={"urgency_level": level}))
        assert features.values["urgent_status"] == expected

    @pytest.mark.parametrize("crossmatch, expected", [
        (0.0, 0.0),
        (0.5, 0.0),
        (0.51, 1.0),
        (1.0, 1.0),
    ])
    def test_crossmatch_threshold_is_strict(self, make_request, crossmatch, expected):
        features = extract_features(make_request(clinical={"crossmatch_result": crossmatch}))
        assert features.values["crossmatch_positive"] == expected

    def test_distance_from_coordinates(self, complete_request):
        features = extract_features(complete_request)
        expected = haversine_km(40.0, -75.0, 40.5, -75.0)
        assert features.values["geographic_distance"] == pytest.approx(expected)
        assert features.values["geographic_distance"] == pytest.approx(55.6, abs=0.1)

    def test_partial_coordinates_use_default_distance(self, make_request):
        request = make_request(donor={"latitude": 40.0, "longitude": -75.0})
        features = extract_features(request)
        assert features.values["geographic_distance"] == DEFAULT_DISTANCE_KM

    def test_request_is_not_mutated(self, reference_request):
        before = reference_request.model_dump()
        extract_features(reference_request)
        assert reference_request.model_dump() == before
        assert reference_request.clinical.months_on_dialysis is None
