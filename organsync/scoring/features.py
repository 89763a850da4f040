"""
Survival Feature Extraction
===========================

Turns a ScoringRequest into the named numeric features read by the
survival model. Absent optional inputs are replaced with documented
defaults and reported as imputed:

    hla_mismatches       3
    donor/recipient BMI  25.0
    time_on_dialysis     12 months
    previous_transplant  false
    crossmatch           0.0 (negative)
    geographic_distance  100 km

The request is never mutated.

Author: OrganSync Team
Version: 1.0.0
"""

import logging
from typing import Dict, Optional, Set

from shared.schemas.scoring import ScoringRequest, UrgencyLevel
from organsync.scoring.geo import distance_between
from organsync.scoring.models import FeatureVector


logger = logging.getLogger(__name__)


DEFAULT_HLA_MISMATCHES = 3
DEFAULT_BMI = 25.0
DEFAULT_MONTHS_ON_DIALYSIS = 12
DEFAULT_PREVIOUS_TRANSPLANT = False
DEFAULT_CROSSMATCH = 0.0
DEFAULT_DISTANCE_KM = 100.0

CROSSMATCH_POSITIVE_THRESHOLD = 0.5

MALE_CODES = frozenset({"M", "MALE"})


def is_blood_type_compatible(donor_type: Optional[str], recipient_type: Optional[str]) -> bool:
    """
    ABO compatibility used by the survival model.

    A missing type on either side is treated as incompatible.
    """
    if donor_type is None or recipient_type is None:
        return False

    donor = donor_type.upper()
    recipient = recipient_type.upper()

    # Universal donor
    if "O" in donor:
        return True

    # Universal recipient
    if "AB" in recipient:
        return True

    return donor == recipient


def is_male(sex: Optional[str]) -> bool:
    """Whether a sex code denotes male."""
    return sex is not None and sex.strip().upper() in MALE_CODES


def extract_features(request: ScoringRequest) -> FeatureVector:
    """
    Build the survival feature vector for a request.

    Args:
        request: Validated scoring request

    Returns:
        FeatureVector with all 14 model features and the imputed names
    """
    donor = request.donor
    recipient = request.recipient
    clinical = request.clinical
    imputed: Set[str] = set()

    def pick(name: str, value, default):
        if value is None:
            imputed.add(name)
            return default
        return value

    features: Dict[str, float] = {
        "age_difference": float(abs(donor.age - recipient.age)),
        "donor_age": float(donor.age),
        "recipient_age": float(recipient.age),
    }

    features["hla_mismatches"] = float(
        pick("hla_mismatches", clinical.hla_mismatches, DEFAULT_HLA_MISMATCHES)
    )
    features["donor_bmi"] = float(pick("donor_bmi", donor.bmi, DEFAULT_BMI))
    features["recipient_bmi"] = float(pick("recipient_bmi", recipient.bmi, DEFAULT_BMI))

    if donor.blood_type is None or recipient.blood_type is None:
        imputed.add("blood_type_mismatch")
    compatible = is_blood_type_compatible(donor.blood_type, recipient.blood_type)
    features["blood_type_mismatch"] = 0.0 if compatible else 1.0

    features["geographic_distance"] = pick(
        "geographic_distance",
        distance_between(donor, recipient),
        DEFAULT_DISTANCE_KM,
    )

    features["time_on_dialysis"] = float(
        pick("time_on_dialysis", clinical.months_on_dialysis, DEFAULT_MONTHS_ON_DIALYSIS)
    )
    previous = pick("previous_transplant", clinical.previous_transplant, DEFAULT_PREVIOUS_TRANSPLANT)
    features["previous_transplant"] = 1.0 if previous else 0.0

    crossmatch = pick("crossmatch_positive", clinical.crossmatch_result, DEFAULT_CROSSMATCH)
    features["crossmatch_positive"] = 1.0 if crossmatch > CROSSMATCH_POSITIVE_THRESHOLD else 0.0

    if donor.sex is None:
        imputed.add("donor_gender_male")
    if recipient.sex is None:
        imputed.add("recipient_gender_male")
    features["donor_gender_male"] = 1.0 if is_male(donor.sex) else 0.0
    features["recipient_gender_male"] = 1.0 if is_male(recipient.sex) else 0.0

    if clinical.urgency_level is None:
        imputed.add("urgent_status")
    urgency = UrgencyLevel.from_string(clinical.urgency_level)
    features["urgent_status"] = 1.0 if urgency.is_urgent else 0.0

    if imputed:
        logger.debug(f"Imputed survival features: {sorted(imputed)}")

    return FeatureVector(values=features, imputed=frozenset(imputed))
