"""
pytest configuration and fixtures.

Author: OrganSync Team
Version: 1.0.0
"""

import math
from typing import Any, Callable, Dict, Optional
from uuid import UUID

import pytest

from shared.schemas.scoring import ScoringRequest


DONOR_PAIR_ID = UUID("11111111-1111-4111-8111-111111111111")
RECIPIENT_PAIR_ID = UUID("22222222-2222-4222-8222-222222222222")


def reference_linear_predictor() -> float:
    """Linear predictor of the reference pair (A+/35/M donor, B+/42/F recipient)."""
    return (
        -0.02 * 7        # age difference
        - 0.15 * 2       # HLA mismatches
        - 0.01 * 35      # donor age
        - 0.008 * 42     # recipient age
        - 0.05 * 25.0    # donor BMI (imputed)
        - 0.03 * 25.0    # recipient BMI (imputed)
        - 0.3 * 1        # A+ to B+ is ABO incompatible
        - 0.001 * 100.0  # distance (imputed)
        - 0.02 * 12      # dialysis months (imputed)
        + 0.1 * 1        # male donor
        - 0.2 * 1        # HIGH urgency
    )


@pytest.fixture
def make_request() -> Callable[..., ScoringRequest]:
    """
    Factory for scoring requests around the reference pair.

    Section overrides are merged into the defaults; pass ``None`` for a
    field to leave it out.
    """

    def _make(
        donor: Optional[Dict[str, Any]] = None,
        recipient: Optional[Dict[str, Any]] = None,
        clinical: Optional[Dict[str, Any]] = None,
        **fields: Any,
    ) -> ScoringRequest:
        payload: Dict[str, Any] = {
            "donor_pair_id": DONOR_PAIR_ID,
            "recipient_pair_id": RECIPIENT_PAIR_ID,
            "donor": {"blood_type": "A+", "age": 35, "sex": "M", **(donor or {})},
            "recipient": {"blood_type": "B+", "age": 42, "sex": "F", **(recipient or {})},
            "clinical": {"hla_mismatches": 2, "urgency_level": "HIGH", **(clinical or {})},
        }
        payload.update(fields)
        return ScoringRequest.model_validate(payload)

    return _make


@pytest.fixture
def reference_request(make_request) -> ScoringRequest:
    """The reference pair with no optional clinical data."""
    return make_request()


@pytest.fixture
def complete_request(make_request) -> ScoringRequest:
    """A request with every optional input supplied."""
    return make_request(
        donor={"bmi": 24.0, "latitude": 40.0, "longitude": -75.0},
        recipient={"bmi": 27.0, "latitude": 40.5, "longitude": -75.0},
        clinical={
            "previous_transplant": False,
            "months_on_dialysis": 18,
            "crossmatch_result": 0.1,
        },
    )


@pytest.fixture
def reference_survival() -> float:
    """Expected 5-year survival of the reference pair."""
    return 0.75 ** math.exp(reference_linear_predictor())


@pytest.fixture
def scoring_payload() -> Dict[str, Any]:
    """JSON body for the reference pair."""
    return {
        "donor_pair_id": str(DONOR_PAIR_ID),
        "recipient_pair_id": str(RECIPIENT_PAIR_ID),
        "donor": {"blood_type": "A+", "age": 35, "sex": "M"},
        "recipient": {"blood_type": "B+", "age": 42, "sex": "F"},
        "clinical": {"hla_mismatches": 2, "urgency_level": "HIGH"},
    }


@pytest.fixture
def reference_lp() -> float:
    return reference_linear_predictor()
