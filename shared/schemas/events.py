"""
OrganSync Event Schemas
=======================

Kafka event schemas consumed and produced by the AI scoring service.

Key Components:
    - DonorRegistrationEvent: A donor/recipient pair was registered
    - DonorUpdateEvent: A donor pair's attributes changed
    - GraphUpdateEvent: The exchange graph was rebuilt
    - ScoreCalculatedEvent: Summary published after every new score

Inbound events arrive as flat JSON objects. Unknown keys are ignored so
producers can add fields without breaking this consumer.

Usage:
    from shared.schemas.events import DonorRegistrationEvent

    event = DonorRegistrationEvent.from_kafka_message(payload)
    if not event.missing_fields():
        request_payload = event.to_scoring_payload()

Author: OrganSync Team
Version: 1.0.0
"""

from datetime import datetime
from enum import Enum
from typing import Any, ClassVar, Dict, List, Optional, Tuple
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class EventTopic(str, Enum):
    """Default topic names used by the scoring service."""

    DONOR_REGISTERED = "donor.registered"
    """New donor/recipient pair registered"""

    DONOR_UPDATED = "donor.updated"
    """Donor pair attributes changed"""

    GRAPH_UPDATED = "graph.updated"
    """Exchange graph revision published"""

    SCORE_CALCULATED = "score.calculated"
    """Compatibility score computed (produced by this service)"""


class DonorRegistrationEvent(BaseModel):
    """
    Donor pair registration.

    Every field is optional at parse time; ``missing_fields`` reports the
    ones a scoring request cannot be built without.
    """

    model_config = ConfigDict(extra="ignore")

    REQUIRED_FIELDS: ClassVar[Tuple[str, ...]] = (
        "donor_pair_id",
        "recipient_pair_id",
        "donor_blood_type",
        "recipient_blood_type",
    )

    donor_pair_id: Optional[UUID] = None
    recipient_pair_id: Optional[UUID] = None

    donor_blood_type: Optional[str] = None
    donor_age: Optional[int] = None
    donor_gender: Optional[str] = None
    donor_bmi: Optional[float] = None
    donor_latitude: Optional[float] = None
    donor_longitude: Optional[float] = None
    donor_location: Optional[str] = Field(None, description="Free-text location (informational)")

    recipient_blood_type: Optional[str] = None
    recipient_age: Optional[int] = None
    recipient_gender: Optional[str] = None
    recipient_bmi: Optional[float] = None
    recipient_latitude: Optional[float] = None
    recipient_longitude: Optional[float] = None
    recipient_location: Optional[str] = Field(None, description="Free-text location (informational)")

    hla_mismatches: Optional[int] = None
    previous_transplant: Optional[bool] = None
    time_on_dialysis: Optional[int] = Field(None, description="Months on dialysis")
    urgency_level: Optional[str] = None
    crossmatch_result: Optional[float] = None

    def missing_fields(self) -> List[str]:
        """Names of required fields that are absent or blank."""
        missing = []
        for name in self.REQUIRED_FIELDS:
            value = getattr(self, name)
            if value is None or (isinstance(value, str) and not value.strip()):
                missing.append(name)
        return missing

    def to_scoring_payload(self) -> Dict[str, Any]:
        """
        Raw ScoringRequest payload for this pair, HYBRID method.

        Validation happens when the payload is turned into a request.
        """
        return {
            "donor_pair_id": self.donor_pair_id,
            "recipient_pair_id": self.recipient_pair_id,
            "donor": {
                "blood_type": self.donor_blood_type,
                "age": self.donor_age,
                "sex": self.donor_gender,
                "bmi": self.donor_bmi,
                "latitude": self.donor_latitude,
                "longitude": self.donor_longitude,
            },
            "recipient": {
                "blood_type": self.recipient_blood_type,
                "age": self.recipient_age,
                "sex": self.recipient_gender,
                "bmi": self.recipient_bmi,
                "latitude": self.recipient_latitude,
                "longitude": self.recipient_longitude,
            },
            "clinical": {
                "hla_mismatches": self.hla_mismatches,
                "previous_transplant": self.previous_transplant,
                "months_on_dialysis": self.time_on_dialysis,
                "urgency_level": self.urgency_level,
                "crossmatch_result": self.crossmatch_result,
            },
            "calculation_method": "HYBRID",
        }

    @classmethod
    def from_kafka_message(cls, data: Dict[str, Any]) -> "DonorRegistrationEvent":
        return cls.model_validate(data)


class DonorUpdateEvent(BaseModel):
    """Donor pair attributes changed; cached scores for it are stale."""

    model_config = ConfigDict(extra="ignore")

    donor_pair_id: Optional[UUID] = None
    updated_fields: List[str] = Field(default_factory=list)

    @classmethod
    def from_kafka_message(cls, data: Dict[str, Any]) -> "DonorUpdateEvent":
        return cls.model_validate(data)


class GraphUpdateEvent(BaseModel):
    """Exchange graph revision summary."""

    model_config = ConfigDict(extra="ignore")

    revision_id: Optional[str] = None
    total_pairs: Optional[int] = None
    total_edges: Optional[int] = None

    @classmethod
    def from_kafka_message(cls, data: Dict[str, Any]) -> "GraphUpdateEvent":
        return cls.model_validate(data)


class ScoreCalculatedEvent(BaseModel):
    """
    Summary of a newly computed score.

    Published keyed by donor pair id so consumers see a donor's scores
    in order.
    """

    donor_pair_id: UUID
    recipient_pair_id: UUID
    score_id: Optional[str] = None
    overall_score: float
    confidence_level: float
    risk_assessment: str
    recommendation: str
    calculation_method: str
    calculated_at: datetime

    def to_kafka_message(self) -> Dict[str, Any]:
        """
        Serialize event for Kafka message.

        Returns:
            Dictionary suitable for JSON serialization to Kafka
        """
        return self.model_dump(mode="json")
