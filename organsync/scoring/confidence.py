"""
Confidence Model
================

Maps input completeness to a discretized confidence level.

The survival and criteria estimators use separate tier tables. The
survival table has a 0.65 tier at 60% completeness and a 0.5 floor;
the criteria table stops at 70% and floors at 0.6.

Author: OrganSync Team
Version: 1.0.0
"""

from dataclasses import dataclass
from typing import Tuple


@dataclass(frozen=True)
class ConfidenceModel:
    """
    Tiered completeness-to-confidence mapping.

    Attributes:
        tiers: (minimum completeness, confidence) pairs, highest first
        floor: Confidence below the lowest tier
    """
    tiers: Tuple[Tuple[float, float], ...]
    floor: float

    def level(self, completeness: float) -> float:
        """
        Confidence for a completeness fraction in [0, 1].

        The first tier whose threshold is met wins.
        """
        for threshold, confidence in self.tiers:
            if completeness >= threshold:
                return confidence
        return self.floor


SURVIVAL_CONFIDENCE = ConfidenceModel(
    tiers=((0.9, 0.95), (0.8, 0.85), (0.7, 0.75), (0.6, 0.65)),
    floor=0.5,
)

CRITERIA_CONFIDENCE = ConfidenceModel(
    tiers=((0.9, 0.95), (0.8, 0.85), (0.7, 0.75)),
    floor=0.6,
)
