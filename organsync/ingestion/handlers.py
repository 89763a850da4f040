"""
OrganSync Event Handlers
========================

Handler functions for donor and graph events.

Each handler is responsible for:
    - Validating the event payload
    - Triggering scoring for newly registered pairs
    - Invalidating stored and cached scores of updated donors

Events that cannot be acted on (missing ids, invalid attributes) are
logged and dropped; they are not retried.

Author: OrganSync Team
Version: 1.0.0
"""

import logging
from typing import Any, Dict, Optional

import pydantic

from shared.schemas.events import (
    DonorRegistrationEvent,
    DonorUpdateEvent,
    GraphUpdateEvent,
)
from organsync.config import settings
from organsync.errors import ScoringError, ValidationError
from organsync.ingestion.consumer import EventConsumer
from organsync.scoring.engine import build_request
from organsync.scoring.service import CompatibilityScoringService, ScoredPair


logger = logging.getLogger(__name__)


class DonorEventHandlers:
    """
    Event handler implementations for donor and graph topics.

    Usage:
        handlers = DonorEventHandlers(scoring_service)
        handlers.register(consumer)
    """

    def __init__(
        self,
        service: CompatibilityScoringService,
        auto_scoring_enabled: Optional[bool] = None,
    ):
        """
        Initialize handlers.

        Args:
            service: Scoring service used for new pairs
            auto_scoring_enabled: Score pairs on registration (defaults to config)
        """
        self.service = service
        self.auto_scoring_enabled = (
            settings.auto_scoring_enabled
            if auto_scoring_enabled is None
            else auto_scoring_enabled
        )

    def register(self, consumer: EventConsumer) -> None:
        """Attach handlers to the consumer's configured topics."""
        consumer.register_handler(settings.kafka_donor_registered_topic, self.on_donor_registered)
        consumer.register_handler(settings.kafka_donor_updated_topic, self.on_donor_updated)
        consumer.register_handler(settings.kafka_graph_updated_topic, self.on_graph_updated)

    async def on_donor_registered(self, data: Dict[str, Any]) -> Optional[ScoredPair]:
        """
        Score a newly registered donor/recipient pair.

        Returns:
            The scored pair, or None when the event was dropped
        """
        try:
            event = DonorRegistrationEvent.from_kafka_message(data)
        except pydantic.ValidationError as e:
            logger.warning(f"Dropping malformed donor registration event: {e.error_count()} error(s)")
            return None

        missing = event.missing_fields()
        if missing:
            logger.warning(f"Missing required fields in donor registration event: {missing}")
            return None

        logger.info(
            f"Processing donor registration for pair {event.donor_pair_id}: "
            f"donor {event.donor_blood_type}, recipient {event.recipient_blood_type}"
        )

        if not self.auto_scoring_enabled:
            logger.info("Auto-scoring disabled, registration not scored")
            return None

        try:
            request = build_request(event.to_scoring_payload())
        except ValidationError as e:
            logger.warning(f"Could not build scoring request from event: {e} {e.errors}")
            return None

        try:
            scored = await self.service.calculate(request)
        except ScoringError as e:
            logger.error(f"Scoring failed for registered pair {event.donor_pair_id}: {e}")
            return None

        logger.info(
            f"Scored registered pair {scored.donor_pair_id}/{scored.recipient_pair_id}: "
            f"{scored.score.overall_score:.3f}"
        )
        return scored

    async def on_donor_updated(self, data: Dict[str, Any]) -> int:
        """
        Invalidate stored and cached scores of an updated donor pair.

        Returns:
            Number of scores invalidated
        """
        try:
            event = DonorUpdateEvent.from_kafka_message(data)
        except pydantic.ValidationError as e:
            logger.warning(f"Dropping malformed donor update event: {e.error_count()} error(s)")
            return 0

        if event.donor_pair_id is None:
            logger.warning("Missing donor_pair_id in donor update event")
            return 0

        removed = await self.service.invalidate_donor(event.donor_pair_id)
        logger.info(
            f"Processed donor update for pair {event.donor_pair_id}: "
            f"{removed} score(s) invalidated"
        )
        return removed

    async def on_graph_updated(self, data: Dict[str, Any]) -> None:
        """Log an exchange graph revision."""
        try:
            event = GraphUpdateEvent.from_kafka_message(data)
        except pydantic.ValidationError as e:
            logger.warning(f"Dropping malformed graph update event: {e.error_count()} error(s)")
            return

        logger.info(
            f"Graph update: revision {event.revision_id}, "
            f"pairs={event.total_pairs}, edges={event.total_edges}"
        )
