"""
OrganSync Shared Schemas Package
================================

Request, response and event schemas shared by the scoring service
components.

This package provides:
    - ScoringRequest: Input to the scoring engine
    - ScoreResponse / BatchScoreResponse: API output models
    - Enumerations: Methods, urgency, risk, compatibility, recommendation
    - Kafka events: Donor registration/update, graph update, score calculated

Author: OrganSync Team
Version: 1.0.0
"""

from shared.schemas.scoring import (
    ScoringMethod,
    UrgencyLevel,
    RiskLevel,
    CompatibilityLevel,
    Recommendation,
    PartyProfile,
    ClinicalProfile,
    ScoringRequest,
    ScoreResponse,
    BatchScoreRequest,
    BatchFailure,
    BatchScoreResponse,
)

from shared.schemas.events import (
    EventTopic,
    DonorRegistrationEvent,
    DonorUpdateEvent,
    GraphUpdateEvent,
    ScoreCalculatedEvent,
)

__all__ = [
    # Request/response
    "ScoringMethod",
    "UrgencyLevel",
    "RiskLevel",
    "CompatibilityLevel",
    "Recommendation",
    "PartyProfile",
    "ClinicalProfile",
    "ScoringRequest",
    "ScoreResponse",
    "BatchScoreRequest",
    "BatchFailure",
    "BatchScoreResponse",
    # Events
    "EventTopic",
    "DonorRegistrationEvent",
    "DonorUpdateEvent",
    "GraphUpdateEvent",
    "ScoreCalculatedEvent",
]
