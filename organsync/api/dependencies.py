"""
OrganSync API Dependencies
==========================

FastAPI dependency injection for shared resources.

Provides lazily initialized singletons for:
    - Scoring engine and scoring service
    - PostgreSQL score repository
    - Redis score cache
    - Kafka score publisher and donor event consumer

The container starts in **degraded mode** when backing services
(PostgreSQL, Redis, Kafka) are unavailable. Scoring itself never needs
them, so the scoring endpoints stay up.

Author: OrganSync Team
Version: 1.0.0
"""

import asyncio
import logging
from typing import Optional

from fastapi import HTTPException

from organsync.config import settings
from organsync.db.repository import CompatibilityScoreRepository
from organsync.ingestion.consumer import EventConsumer
from organsync.ingestion.handlers import DonorEventHandlers
from organsync.ingestion.publisher import ScoreEventPublisher
from organsync.scoring.engine import ScoringEngine
from organsync.scoring.score_cache import ScoreCache
from organsync.scoring.service import CompatibilityScoringService
from organsync.scoring.tables import ScoringTables


logger = logging.getLogger(__name__)


class ServiceContainer:
    """
    Singleton container for shared services.

    Manages lifecycle of the database, cache, publisher and consumer
    around one CompatibilityScoringService.
    """

    _instance: Optional["ServiceContainer"] = None

    def __init__(self):
        self._scoring_service: Optional[CompatibilityScoringService] = None
        self._cache: Optional[ScoreCache] = None
        self._publisher: Optional[ScoreEventPublisher] = None
        self._consumer: Optional[EventConsumer] = None
        self._consumer_task: Optional[asyncio.Task] = None
        self._initialized = False
        self.postgres_available = False
        self.redis_available = False
        self.kafka_available = False

    @classmethod
    def get_instance(cls) -> "ServiceContainer":
        """Get or create the singleton instance."""
        if cls._instance is None:
            cls._instance = ServiceContainer()
        return cls._instance

    async def initialize(self) -> None:
        """Initialize all services (graceful degradation on failure)."""
        if self._initialized:
            return

        logger.info("Initializing service container...")

        engine = ScoringEngine(ScoringTables.from_settings(settings))

        # PostgreSQL (optional)
        repository: Optional[CompatibilityScoreRepository] = None
        try:
            from organsync.db.session import async_session_factory, init_db
            await init_db()
            repository = CompatibilityScoreRepository(async_session_factory)
            self.postgres_available = True
        except Exception as e:
            logger.warning(f"PostgreSQL unavailable, scores will not be persisted: {e}")
            self.postgres_available = False

        # Redis (optional)
        if settings.score_cache_enabled:
            cache = ScoreCache(settings.redis_url, default_ttl=settings.score_cache_ttl)
            self.redis_available = await cache.connect()
            self._cache = cache if self.redis_available else None

        # Kafka producer (optional)
        try:
            publisher = ScoreEventPublisher()
            await publisher.start()
            self._publisher = publisher
            self.kafka_available = True
        except Exception as e:
            logger.warning(f"Kafka unavailable, score events will not be published: {e}")
            self._publisher = None
            self.kafka_available = False

        self._scoring_service = CompatibilityScoringService(
            engine=engine,
            repository=repository,
            cache=self._cache,
            publisher=self._publisher,
        )

        # Kafka consumer (optional)
        if self.kafka_available:
            await self._start_consumer()

        self._initialized = True

        if self.postgres_available and self.redis_available and self.kafka_available:
            logger.info("Service container fully initialized")
        else:
            logger.warning(
                "Service container initialized in DEGRADED mode: "
                f"postgres={self.postgres_available} redis={self.redis_available} "
                f"kafka={self.kafka_available}"
            )

    async def _start_consumer(self) -> None:
        consumer = EventConsumer()
        DonorEventHandlers(self._scoring_service).register(consumer)
        try:
            await consumer.start()
        except Exception as e:
            logger.warning(f"Kafka consumer unavailable, donor events ignored: {e}")
            return

        self._consumer = consumer
        self._consumer_task = asyncio.create_task(consumer.consume_forever())

    async def shutdown(self) -> None:
        """Shutdown all services."""
        logger.info("Shutting down service container...")

        if self._consumer_task:
            self._consumer_task.cancel()
            try:
                await self._consumer_task
            except asyncio.CancelledError:
                pass
            except Exception as e:
                logger.warning(f"Consumer task ended with error: {e}")
            self._consumer_task = None

        if self._consumer:
            await self._consumer.stop()
            self._consumer = None

        if self._publisher:
            await self._publisher.stop()
            self._publisher = None

        if self._cache:
            await self._cache.close()
            self._cache = None

        if self.postgres_available:
            from organsync.db.session import close_db
            await close_db()

        self._scoring_service = None
        self._initialized = False
        self.postgres_available = False
        self.redis_available = False
        self.kafka_available = False

        logger.info("Service container shutdown complete")

    @property
    def scoring_service(self) -> Optional[CompatibilityScoringService]:
        """Get the scoring service (None before initialization)."""
        return self._scoring_service

    @property
    def consumer(self) -> Optional[EventConsumer]:
        return self._consumer


async def get_scoring_service() -> CompatibilityScoringService:
    """
    FastAPI dependency that **requires** an initialized scoring service.

    Raises HTTP 503 before startup has completed.
    """
    service = ServiceContainer.get_instance().scoring_service
    if service is None:
        raise HTTPException(
            status_code=503,
            detail="Scoring service not initialized",
        )
    return service
