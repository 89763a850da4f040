"""
OrganSync Ingestion Package
===========================

Kafka messaging layer for the AI scoring service.

This package provides:
    - consumer: Kafka consumer for donor and graph topics
    - publisher: score.calculated producer
    - handlers: Donor event handlers (import from organsync.ingestion.handlers)

Flow:
    donor.registered -> DonorEventHandlers -> scoring service -> score.calculated

Author: OrganSync Team
Version: 1.0.0
"""

from organsync.ingestion.consumer import EventConsumer
from organsync.ingestion.publisher import ScoreEventPublisher

__all__ = [
    "EventConsumer",
    "ScoreEventPublisher",
]
