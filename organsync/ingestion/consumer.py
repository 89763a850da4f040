"""
OrganSync Event Consumer
========================

Kafka consumer for donor and graph events.

Consumes the donor.registered, donor.updated and graph.updated topics
and routes each JSON message to the handlers registered for its topic.

Usage:
    consumer = EventConsumer()
    consumer.register_handler("donor.registered", handlers.on_donor_registered)
    await consumer.start()
    # ... run until shutdown
    await consumer.stop()

Author: OrganSync Team
Version: 1.0.0
"""

import json
import logging
import asyncio
from collections import OrderedDict, defaultdict
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence
from datetime import datetime, timezone

from aiokafka import AIOKafkaConsumer, AIOKafkaProducer
from aiokafka.errors import KafkaError

from organsync.config import settings


logger = logging.getLogger(__name__)

EventHandler = Callable[[Dict[str, Any]], Awaitable[None]]


class _LRUSet:
    """LRU-evicting set for idempotency tracking."""

    def __init__(self, max_size: int = 100_000):
        self._max_size = max_size
        self._data: OrderedDict[str, None] = OrderedDict()

    def __contains__(self, key: str) -> bool:
        if key in self._data:
            self._data.move_to_end(key)
            return True
        return False

    def add(self, key: str) -> None:
        if key in self._data:
            self._data.move_to_end(key)
        else:
            self._data[key] = None
            if len(self._data) > self._max_size:
                self._data.popitem(last=False)

    def __len__(self) -> int:
        return len(self._data)


class EventConsumer:
    """
    Async Kafka consumer for donor and graph events.

    Messages are deduplicated by ``event_id`` when the producer sets one,
    otherwise by topic, partition and offset.

    Attributes:
        topics: Kafka topics to consume from
        group_id: Consumer group identifier

    Example:
        consumer = EventConsumer()
        consumer.register_handler("donor.updated", on_donor_updated)

        try:
            await consumer.start()
            await consumer.consume_forever()
        finally:
            await consumer.stop()
    """

    def __init__(
        self,
        topics: Optional[Sequence[str]] = None,
        group_id: Optional[str] = None,
        bootstrap_servers: Optional[str] = None,
        dlq_topic: Optional[str] = None,
        max_retries: Optional[int] = None,
        retry_backoff: float = 0.5,
    ):
        """
        Initialize the event consumer.

        Args:
            topics: Kafka topics (defaults to config)
            group_id: Consumer group (defaults to config)
            bootstrap_servers: Kafka servers (defaults to config)
            dlq_topic: Dead letter queue topic (defaults to config)
            max_retries: Handler attempts before routing to DLQ
            retry_backoff: Seconds of backoff per failed attempt
        """
        self.topics = list(topics or (
            settings.kafka_donor_registered_topic,
            settings.kafka_donor_updated_topic,
            settings.kafka_graph_updated_topic,
        ))
        self.group_id = group_id or settings.kafka_consumer_group
        self.bootstrap_servers = bootstrap_servers or settings.kafka_bootstrap_servers
        self.dlq_topic = dlq_topic or settings.kafka_dlq_topic
        self.max_retries = max_retries or settings.event_retry_attempts
        self.retry_backoff = retry_backoff

        self._consumer: Optional[AIOKafkaConsumer] = None
        self._dlq_producer: Optional[AIOKafkaProducer] = None
        self._handlers: Dict[str, List[EventHandler]] = defaultdict(list)
        self._running = False
        self._seen_ids = _LRUSet(max_size=100_000)
        self._stats = {
            "messages_consumed": 0,
            "messages_processed": 0,
            "messages_failed": 0,
            "messages_deduplicated": 0,
            "messages_unrouted": 0,
            "messages_dlq": 0,
            "last_message_at": None,
        }

    @property
    def is_running(self) -> bool:
        return self._running

    def register_handler(self, topic: str, handler: EventHandler) -> None:
        """
        Register a handler for a topic.

        Args:
            topic: Topic whose messages the handler receives
            handler: Async function taking the decoded message dict
        """
        self._handlers[topic].append(handler)
        logger.info(f"Registered handler {handler.__name__} for topic '{topic}'")

    async def start(self) -> None:
        """
        Start the Kafka consumer.

        Creates connection and subscribes to topics.
        """
        logger.info(
            f"Starting Kafka consumer for topics {self.topics} "
            f"with group '{self.group_id}'"
        )

        self._consumer = AIOKafkaConsumer(
            *self.topics,
            bootstrap_servers=self.bootstrap_servers,
            group_id=self.group_id,
            value_deserializer=self._deserialize_message,
            auto_offset_reset="earliest",
            enable_auto_commit=True,
            auto_commit_interval_ms=5000,
        )

        self._dlq_producer = AIOKafkaProducer(
            bootstrap_servers=self.bootstrap_servers,
            value_serializer=lambda v: json.dumps(v, default=str).encode("utf-8"),
        )

        await self._consumer.start()
        await self._dlq_producer.start()
        self._running = True
        logger.info("Kafka consumer started (DLQ enabled)")

    async def stop(self) -> None:
        """
        Stop the Kafka consumer gracefully.
        """
        logger.info("Stopping Kafka consumer")
        self._running = False

        if self._consumer:
            await self._consumer.stop()
            self._consumer = None

        if self._dlq_producer:
            await self._dlq_producer.stop()
            self._dlq_producer = None

        logger.info("Kafka consumer stopped")

    async def consume_forever(self) -> None:
        """
        Consume messages indefinitely until stopped.

        Call stop() from another task to terminate.
        """
        if not self._consumer:
            raise RuntimeError("Consumer not started. Call start() first.")

        logger.info("Starting message consumption loop")

        try:
            async for message in self._consumer:
                if not self._running:
                    break

                await self._process_message(message)

        except KafkaError as e:
            logger.error(f"Kafka error during consumption: {e}")
            raise

    async def consume_batch(
        self,
        max_messages: int = 100,
        timeout_ms: int = 1000
    ) -> int:
        """
        Consume a batch of messages.

        Args:
            max_messages: Maximum messages to consume
            timeout_ms: Timeout for batch collection

        Returns:
            Number of messages processed
        """
        if not self._consumer:
            raise RuntimeError("Consumer not started")

        records = await self._consumer.getmany(
            timeout_ms=timeout_ms,
            max_records=max_messages
        )

        processed = 0
        for messages in records.values():
            for message in messages:
                await self._process_message(message)
                processed += 1

        return processed

    async def _process_message(self, message: Any) -> None:
        """
        Process a single Kafka message.

        Includes idempotency check, per-topic routing and DLQ routing.
        """
        self._stats["messages_consumed"] += 1
        self._stats["last_message_at"] = datetime.now(timezone.utc)

        event_data = message.value
        if event_data is None:
            logger.warning(
                f"Received null or undecodable message on '{message.topic}' "
                f"at offset {message.offset}"
            )
            return

        if not isinstance(event_data, dict):
            self._stats["messages_failed"] += 1
            await self._send_to_dlq(message, "message is not a JSON object")
            return

        dedupe_key = self._dedupe_key(message, event_data)
        if dedupe_key in self._seen_ids:
            self._stats["messages_deduplicated"] += 1
            logger.debug(f"Skipping duplicate event {dedupe_key}")
            return
        self._seen_ids.add(dedupe_key)

        handlers = self._handlers.get(message.topic, [])
        if not handlers:
            self._stats["messages_unrouted"] += 1
            logger.debug(f"No handler for topic '{message.topic}'")
            return

        failed = False
        for handler in handlers:
            if not await self._invoke_handler_with_retry(handler, message, event_data):
                failed = True

        if failed:
            self._stats["messages_failed"] += 1
        else:
            self._stats["messages_processed"] += 1

    async def _invoke_handler_with_retry(
        self,
        handler: EventHandler,
        message: Any,
        event_data: Dict[str, Any],
    ) -> bool:
        """Invoke a handler with retry logic. Returns True on success."""
        last_error: Optional[Exception] = None
        for attempt in range(1, self.max_retries + 1):
            try:
                await handler(event_data)
                return True
            except Exception as e:
                last_error = e
                logger.warning(
                    f"Handler {handler.__name__} attempt {attempt}/{self.max_retries} "
                    f"failed: {e}"
                )
                if attempt < self.max_retries:
                    await asyncio.sleep(self.retry_backoff * attempt)

        logger.error(
            f"Handler {handler.__name__} failed after {self.max_retries} retries"
        )
        await self._send_to_dlq(message, str(last_error))
        return False

    async def _send_to_dlq(self, message: Any, error: str) -> None:
        """Send a failed message to the dead letter queue."""
        if not self._dlq_producer:
            return
        try:
            dlq_payload = {
                "original_topic": message.topic,
                "original_offset": message.offset,
                "original_partition": message.partition,
                "error": error,
                "failed_at": datetime.now(timezone.utc).isoformat(),
                "raw_value": message.value,
            }
            await self._dlq_producer.send_and_wait(self.dlq_topic, dlq_payload)
            self._stats["messages_dlq"] += 1
            logger.info(f"Sent failed message to DLQ: {self.dlq_topic}")
        except Exception as dlq_err:
            logger.error(f"Failed to send to DLQ: {dlq_err}")

    @staticmethod
    def _dedupe_key(message: Any, event_data: Dict[str, Any]) -> str:
        event_id = event_data.get("event_id")
        if event_id:
            return f"{message.topic}:{event_id}"
        return f"{message.topic}:{message.partition}:{message.offset}"

    def _deserialize_message(self, data: bytes) -> Optional[Any]:
        """
        Deserialize Kafka message from bytes.

        Args:
            data: Raw message bytes

        Returns:
            Parsed JSON value or None
        """
        if data is None:
            return None

        try:
            return json.loads(data.decode("utf-8"))
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            logger.error(f"Failed to deserialize message: {e}")
            return None

    def get_stats(self) -> Dict[str, Any]:
        """
        Get consumption statistics.

        Returns:
            Dictionary with consumption metrics
        """
        return {
            **self._stats,
            "running": self._running,
            "topics": list(self.topics),
            "handler_count": sum(len(h) for h in self._handlers.values()),
        }
