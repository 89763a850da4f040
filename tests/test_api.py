"""
Tests for API endpoints.

The lifespan hook is not run, so PostgreSQL, Redis and Kafka are never
contacted; the scoring dependency is overridden with a service that
has no collaborators.

Author: OrganSync Team
Version: 1.0.0
"""

from unittest.mock import AsyncMock
from uuid import uuid4

import pytest
from fastapi.testclient import TestClient

from organsync.api.dependencies import get_scoring_service
from organsync.api.main import app
from organsync.errors import ComputationError, ValidationError
from organsync.scoring.service import CompatibilityScoringService


@pytest.fixture
def service():
    return CompatibilityScoringService(calculated_by="API_TEST")


@pytest.fixture
def client(service):
    app.dependency_overrides[get_scoring_service] = lambda: service
    yield TestClient(app)
    app.dependency_overrides.clear()


# =============================================================================
# Scoring
# =============================================================================

class TestScoringEndpoints:
    def test_calculate(self, client, scoring_payload):
        response = client.post("/api/v1/scoring/calculate", json=scoring_payload)

        assert response.status_code == 200
        body = response.json()
        assert body["donor_pair_id"] == scoring_payload["donor_pair_id"]
        assert body["overall_score"] == pytest.approx(0.8124, abs=1e-3)
        assert body["recommendation"] == "STRONGLY_RECOMMENDED"
        assert body["risk_assessment"] == "LOW_RISK"
        assert body["compatibility_level"] == "MODERATE"
        assert body["calculation_method"] == "HYBRID"
        assert body["calculated_by"] == "API_TEST"
        assert body["cached"] is False
        assert set(body["survival_probabilities"]) == {"1_year", "3_year", "5_year", "10_year"}

    def test_calculate_sets_correlation_header(self, client, scoring_payload):
        response = client.post(
            "/api/v1/scoring/calculate",
            json=scoring_payload,
            headers={"X-Correlation-ID": "corr-123"},
        )
        assert response.headers["x-correlation-id"] == "corr-123"

    def test_method_alias(self, client, scoring_payload):
        scoring_payload["calculation_method"] = "cox"

        response = client.post("/api/v1/scoring/calculate", json=scoring_payload)

        body = response.json()
        assert body["calculation_method"] == "SURVIVAL"
        assert body["overall_score"] == body["survival_probability"]

    @pytest.mark.parametrize("section, field, value", [
        ("donor", "age", 0),
        ("clinical", "hla_mismatches", 7),
    ])
    def test_calculate_rejects_invalid_body(self, client, scoring_payload, section, field, value):
        scoring_payload[section][field] = value

        response = client.post("/api/v1/scoring/calculate", json=scoring_payload)

        assert response.status_code == 422

    def test_calculate_rejects_infinite_weight(self, client, scoring_payload):
        scoring_payload["custom_weights"] = {"urgency": "inf"}

        response = client.post("/api/v1/scoring/calculate", json=scoring_payload)

        assert response.status_code == 422

    def test_calculate_missing_age(self, client, scoring_payload):
        del scoring_payload["recipient"]["age"]
        response = client.post("/api/v1/scoring/calculate", json=scoring_payload)
        assert response.status_code == 422

    def test_cached_score_not_found(self, client):
        response = client.get(f"/api/v1/scoring/cached/{uuid4()}/{uuid4()}")
        assert response.status_code == 404

    def test_batch(self, client, scoring_payload):
        other = dict(scoring_payload, recipient_pair_id=str(uuid4()))

        response = client.post(
            "/api/v1/scoring/calculate-batch",
            json={"requests": [scoring_payload, other]},
        )

        assert response.status_code == 200
        body = response.json()
        assert body["total_requested"] == 2
        assert body["total_scored"] == 2
        assert body["failures"] == []

    def test_empty_batch(self, client):
        response = client.post("/api/v1/scoring/calculate-batch", json={"requests": []})
        assert response.status_code == 422

    def test_donor_scores_without_persistence(self, client):
        response = client.get(f"/api/v1/scoring/donor/{uuid4()}")
        assert response.status_code == 200
        assert response.json() == []

    def test_statistics(self, client):
        response = client.get("/api/v1/scoring/statistics")

        assert response.status_code == 200
        body = response.json()
        assert body["total_scores"] == 0
        assert body["persistence_available"] is False

    def test_model_performance(self, client, scoring_payload):
        client.post("/api/v1/scoring/calculate", json=scoring_payload)

        body = client.get("/api/v1/scoring/model-performance").json()

        assert body["overall_accuracy"] == 0.87
        assert body["cache_hit_rate"] == 0.0
        assert body["survival_model"]["concordance_index"] == 0.82

    def test_info(self, client):
        body = client.get("/api/v1/scoring/info").json()

        assert body["calculation_methods"] == ["SURVIVAL", "CRITERIA", "HYBRID"]
        assert body["hybrid_weights"] == {"survival": 0.6, "criteria": 0.4}
        assert body["baseline_survival"]["5_year"] == 0.75
        assert sum(body["default_criteria_weights"].values()) == pytest.approx(1.0)


class TestErrorMapping:
    @pytest.fixture
    def failing_client(self):
        service = AsyncMock(spec=CompatibilityScoringService)
        app.dependency_overrides[get_scoring_service] = lambda: service
        yield TestClient(app), service
        app.dependency_overrides.clear()

    def test_computation_error(self, failing_client, scoring_payload):
        client, service = failing_client
        service.calculate.side_effect = ComputationError()

        response = client.post("/api/v1/scoring/calculate", json=scoring_payload)

        assert response.status_code == 500
        assert response.json() == {"detail": "Scoring failed"}

    def test_validation_error(self, failing_client, scoring_payload):
        client, service = failing_client
        service.calculate.side_effect = ValidationError(
            "donor age must be a positive integer",
            errors=[{"loc": ["donor", "age"], "msg": "must be positive"}],
        )

        response = client.post("/api/v1/scoring/calculate", json=scoring_payload)

        assert response.status_code == 422
        body = response.json()
        assert body["detail"] == "donor age must be a positive integer"
        assert body["errors"][0]["loc"] == ["donor", "age"]

    def test_service_not_initialized(self, scoring_payload):
        app.dependency_overrides.clear()
        response = TestClient(app).post("/api/v1/scoring/calculate", json=scoring_payload)
        assert response.status_code == 503


# =============================================================================
# Health
# =============================================================================

class TestHealthEndpoints:
    def test_health_degraded_without_backends(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "degraded"
        assert body["service"] == "organsync-ai-scoring"
        assert {d["name"] for d in body["dependencies"]} == {"postgresql", "redis", "kafka"}

    def test_ready_before_startup(self, client):
        body = client.get("/health/ready").json()

        assert body["ready"] is False
        assert body["mode"] == "degraded"

    def test_live(self, client):
        assert client.get("/health/live").json() == {"status": "alive"}

    def test_root(self, client):
        body = client.get("/").json()
        assert body["docs"] == "/docs"
