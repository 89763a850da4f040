"""
Score Event Publisher
=====================

Kafka producer for score.calculated events.

Usage:
    publisher = ScoreEventPublisher()
    await publisher.start()
    await publisher.publish(event)
    await publisher.stop()

Author: OrganSync Team
Version: 1.0.0
"""

import json
import logging
from typing import Optional

from aiokafka import AIOKafkaProducer
from aiokafka.errors import KafkaError

from organsync.config import settings
from shared.schemas.events import ScoreCalculatedEvent


logger = logging.getLogger(__name__)


class ScoreEventPublisher:
    """
    Publishes ScoreCalculatedEvent messages keyed by donor pair id.

    Example:
        async with ScoreEventPublisher() as publisher:
            await publisher.publish(event)
    """

    def __init__(
        self,
        bootstrap_servers: Optional[str] = None,
        topic: Optional[str] = None,
    ):
        """
        Initialize the publisher.

        Args:
            bootstrap_servers: Kafka servers (defaults to config)
            topic: Target topic (defaults to config)
        """
        self.bootstrap_servers = bootstrap_servers or settings.kafka_bootstrap_servers
        self.topic = topic or settings.kafka_score_calculated_topic
        self._producer: Optional[AIOKafkaProducer] = None

    @property
    def is_started(self) -> bool:
        return self._producer is not None

    async def start(self) -> None:
        """Start the Kafka producer."""
        logger.info(f"Starting score event publisher for topic '{self.topic}'")

        producer = AIOKafkaProducer(
            bootstrap_servers=self.bootstrap_servers,
            key_serializer=lambda k: k.encode("utf-8"),
            value_serializer=lambda v: json.dumps(v).encode("utf-8"),
        )
        await producer.start()
        self._producer = producer

        logger.info("Score event publisher started")

    async def stop(self) -> None:
        """Stop the Kafka producer."""
        if self._producer:
            await self._producer.stop()
            self._producer = None
            logger.info("Score event publisher stopped")

    async def __aenter__(self) -> "ScoreEventPublisher":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.stop()

    async def publish(self, event: ScoreCalculatedEvent) -> bool:
        """
        Send a score event to Kafka.

        Args:
            event: ScoreCalculatedEvent to send

        Returns:
            True if sent successfully, False if the producer is not
            running or Kafka rejected the message
        """
        if not self._producer:
            logger.debug("Score event publisher not started, event skipped")
            return False

        try:
            await self._producer.send_and_wait(
                self.topic,
                event.to_kafka_message(),
                key=str(event.donor_pair_id),
            )
            logger.debug(
                f"Published score event for {event.donor_pair_id}/{event.recipient_pair_id}"
            )
            return True
        except KafkaError as e:
            logger.error(f"Failed to publish score event: {e}")
            return False
