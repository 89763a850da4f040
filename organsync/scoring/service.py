"""
Compatibility Scoring Service
=============================

Service layer around the scoring engine.

This service handles:
    - Serving previously computed scores (Redis, then PostgreSQL)
    - Scoring new pairs with the engine
    - Persisting, caching and announcing new scores
    - Batch scoring, per-pair queries and statistics

Redis and Kafka are optional collaborators: when either is missing or
failing the service keeps scoring and logs the problem.

Author: OrganSync Team
Version: 1.0.0
"""

import asyncio
import time
from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional, Sequence, Tuple
from uuid import UUID

from shared.schemas.events import ScoreCalculatedEvent
from shared.schemas.scoring import ScoreResponse, ScoringMethod, ScoringRequest
from organsync.config import settings
from organsync.db.models import CompatibilityScoreRecord
from organsync.db.repository import CompatibilityScoreRepository
from organsync.errors import NotFoundError, ScoringError
from organsync.ingestion.publisher import ScoreEventPublisher
from organsync.logging import get_logger
from organsync.scoring.engine import ScoringEngine
from organsync.scoring.models import FusedScore
from organsync.scoring.score_cache import ScoreCache
from organsync.scoring.tables import CRITERIA_MODEL_METADATA


logger = get_logger(__name__)

OVERALL_ACCURACY = 0.87
RECENT_WINDOW = timedelta(hours=24)


@dataclass(frozen=True)
class ScoredPair:
    """
    A FusedScore together with its pair identity and bookkeeping.

    Attributes:
        donor_pair_id: Donor pair identifier
        recipient_pair_id: Recipient pair identifier
        score: Engine output
        algorithm_version: Version of the scoring tables used
        calculated_by: Producer name stamped on stored scores
        calculated_at: When the score was computed
        score_id: Database id once persisted
        processing_time_ms: Wall time of the call that returned it
        cached: True when served from Redis or PostgreSQL
    """
    donor_pair_id: UUID
    recipient_pair_id: UUID
    score: FusedScore
    algorithm_version: str
    calculated_by: str
    calculated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    score_id: Optional[str] = None
    processing_time_ms: Optional[float] = None
    cached: bool = False

    @property
    def method(self) -> ScoringMethod:
        return self.score.method

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to a JSON-compatible dict (cache payload)."""
        return {
            "donor_pair_id": str(self.donor_pair_id),
            "recipient_pair_id": str(self.recipient_pair_id),
            "score": self.score.to_dict(),
            "algorithm_version": self.algorithm_version,
            "calculated_by": self.calculated_by,
            "calculated_at": self.calculated_at.isoformat(),
            "score_id": self.score_id,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any], cached: bool = True) -> "ScoredPair":
        return cls(
            donor_pair_id=UUID(data["donor_pair_id"]),
            recipient_pair_id=UUID(data["recipient_pair_id"]),
            score=FusedScore.from_dict(data["score"]),
            algorithm_version=data["algorithm_version"],
            calculated_by=data["calculated_by"],
            calculated_at=datetime.fromisoformat(data["calculated_at"]),
            score_id=data.get("score_id"),
            cached=cached,
        )

    @classmethod
    def from_record(cls, record: CompatibilityScoreRecord, cached: bool = True) -> "ScoredPair":
        """Rebuild from a stored row."""
        return cls(
            donor_pair_id=record.donor_pair_id,
            recipient_pair_id=record.recipient_pair_id,
            score=FusedScore.from_dict(record.result_payload),
            algorithm_version=record.algorithm_version,
            calculated_by=record.calculated_by,
            calculated_at=record.created_at,
            score_id=record.id,
            cached=cached,
        )

    def to_record(self) -> CompatibilityScoreRecord:
        """Build the row persisted for this score."""
        criteria = self.score.criteria.criteria_scores
        return CompatibilityScoreRecord(
            donor_pair_id=self.donor_pair_id,
            recipient_pair_id=self.recipient_pair_id,
            overall_score=self.score.overall_score,
            survival_probability=self.score.survival.survival_probability,
            criteria_score=self.score.criteria.score,
            blood_type_score=criteria.get("blood_type"),
            hla_compatibility_score=criteria.get("hla_compatibility"),
            age_compatibility_score=criteria.get("age_compatibility"),
            geographic_score=criteria.get("geographic_proximity"),
            medical_history_score=criteria.get("medical_history"),
            urgency_score=criteria.get("urgency"),
            confidence_level=self.score.confidence_level,
            risk_assessment=self.score.risk_assessment.value,
            compatibility_level=self.score.compatibility_level.value,
            recommendation=self.score.recommendation.value,
            calculation_method=self.method.value,
            algorithm_version=self.algorithm_version,
            calculated_by=self.calculated_by,
            created_at=self.calculated_at,
            result_payload=self.score.to_dict(),
        )

    def to_event(self) -> ScoreCalculatedEvent:
        return ScoreCalculatedEvent(
            donor_pair_id=self.donor_pair_id,
            recipient_pair_id=self.recipient_pair_id,
            score_id=self.score_id,
            overall_score=self.score.overall_score,
            confidence_level=self.score.confidence_level,
            risk_assessment=self.score.risk_assessment.value,
            recommendation=self.score.recommendation.value,
            calculation_method=self.method.value,
            calculated_at=self.calculated_at,
        )

    def to_response(self) -> ScoreResponse:
        """API representation."""
        score = self.score
        return ScoreResponse(
            donor_pair_id=self.donor_pair_id,
            recipient_pair_id=self.recipient_pair_id,
            score_id=self.score_id,
            overall_score=score.overall_score,
            confidence_level=score.confidence_level,
            risk_assessment=score.risk_assessment,
            compatibility_level=score.compatibility_level,
            recommendation=score.recommendation,
            calculation_method=score.method,
            survival_probability=score.survival.survival_probability,
            hazard_ratio=score.survival.hazard_ratio,
            survival_probabilities=dict(score.survival.survival_probabilities),
            criteria_score=score.criteria.score,
            criteria_scores=dict(score.criteria.criteria_scores),
            criteria_weights=dict(score.criteria.weights),
            algorithm_version=self.algorithm_version,
            calculated_by=self.calculated_by,
            calculated_at=self.calculated_at,
            processing_time_ms=self.processing_time_ms,
            cached=self.cached,
        )


@dataclass
class BatchOutcome:
    """Result of a batch scoring call."""
    results: List[ScoredPair] = field(default_factory=list)
    failures: List[Tuple[ScoringRequest, str]] = field(default_factory=list)

    @property
    def total_requested(self) -> int:
        return len(self.results) + len(self.failures)


class CompatibilityScoringService:
    """
    Scores donor/recipient pairs and manages stored scores.

    Example:
        service = CompatibilityScoringService(
            engine=ScoringEngine(),
            repository=CompatibilityScoreRepository(async_session_factory),
            cache=score_cache,
            publisher=publisher,
        )
        scored = await service.calculate(request)
    """

    def __init__(
        self,
        engine: Optional[ScoringEngine] = None,
        repository: Optional[CompatibilityScoreRepository] = None,
        cache: Optional[ScoreCache] = None,
        publisher: Optional[ScoreEventPublisher] = None,
        calculated_by: Optional[str] = None,
    ):
        """
        Initialize the scoring service.

        Args:
            engine: Scoring engine (default tables if omitted)
            repository: Score store; without one nothing is persisted
            cache: Redis score cache
            publisher: score.calculated publisher
            calculated_by: Producer name stamped on new scores
        """
        self.engine = engine or ScoringEngine()
        self.repository = repository
        self.cache = cache
        self.publisher = publisher
        self.calculated_by = calculated_by or settings.calculated_by

        self._stats = {
            "scores_computed": 0,
            "scores_served_cached": 0,
            "total_processing_ms": 0.0,
        }

    # =========================================================================
    # Scoring
    # =========================================================================

    async def calculate(self, request: ScoringRequest) -> ScoredPair:
        """
        Score a pair, reusing a stored score when one exists.

        Raises:
            ValidationError: If the request breaks an input invariant
            ComputationError: If the engine fails
        """
        started = time.perf_counter()
        logger.info(
            "score_requested",
            donor_pair_id=str(request.donor_pair_id),
            recipient_pair_id=str(request.recipient_pair_id),
        )

        existing = await self._find_existing(request.donor_pair_id, request.recipient_pair_id)
        if existing is not None:
            self._stats["scores_served_cached"] += 1
            return self._timed(existing, started)

        fused = self.engine.score(request)
        scored = ScoredPair(
            donor_pair_id=request.donor_pair_id,
            recipient_pair_id=request.recipient_pair_id,
            score=fused,
            algorithm_version=self.engine.algorithm_version,
            calculated_by=self.calculated_by,
        )

        if self.repository is not None:
            record = await self.repository.save(scored.to_record())
            scored = replace(scored, score_id=record.id)

        if self.cache is not None:
            await self.cache.set(scored.donor_pair_id, scored.recipient_pair_id, scored.to_dict())

        await self._publish(scored)

        self._stats["scores_computed"] += 1
        scored = self._timed(scored, started)

        logger.info(
            "score_calculated",
            donor_pair_id=str(scored.donor_pair_id),
            recipient_pair_id=str(scored.recipient_pair_id),
            overall_score=round(fused.overall_score, 4),
            method=fused.method.value,
            processing_time_ms=scored.processing_time_ms,
        )
        return scored

    async def calculate_batch(self, requests: Sequence[ScoringRequest]) -> BatchOutcome:
        """
        Score many pairs concurrently.

        A failing pair is reported in ``failures`` and never aborts the
        rest of the batch. Results keep request order. Each pair is scored
        once; repeated requests for it share the first request's outcome.
        """
        logger.info("batch_requested", size=len(requests))

        unique: Dict[Tuple[UUID, UUID], ScoringRequest] = {}
        for request in requests:
            unique.setdefault((request.donor_pair_id, request.recipient_pair_id), request)

        outcomes = await asyncio.gather(
            *(self._calculate_one(request) for request in unique.values())
        )
        by_pair = dict(zip(unique, outcomes))

        batch = BatchOutcome()
        for request in requests:
            scored, error = by_pair[(request.donor_pair_id, request.recipient_pair_id)]
            if scored is not None:
                batch.results.append(scored)
            else:
                batch.failures.append((request, error))

        logger.info(
            "batch_completed",
            scored=len(batch.results),
            failed=len(batch.failures),
        )
        return batch

    async def _calculate_one(
        self, request: ScoringRequest
    ) -> Tuple[Optional[ScoredPair], Optional[str]]:
        try:
            return await self.calculate(request), None
        except ScoringError as e:
            return None, str(e)
        except Exception as e:
            logger.error(
                "batch_item_failed",
                donor_pair_id=str(request.donor_pair_id),
                recipient_pair_id=str(request.recipient_pair_id),
                error=str(e),
                exc_info=True,
            )
            return None, "scoring failed"

    # =========================================================================
    # Queries
    # =========================================================================

    async def get_cached_score(self, donor_pair_id: UUID, recipient_pair_id: UUID) -> ScoredPair:
        """
        Previously computed score for a pair.

        Raises:
            NotFoundError: If the pair was never scored
        """
        existing = await self._find_existing(donor_pair_id, recipient_pair_id)
        if existing is None:
            raise NotFoundError(
                f"No score for donor {donor_pair_id} and recipient {recipient_pair_id}"
            )
        return existing

    async def scores_by_donor(self, donor_pair_id: UUID) -> List[ScoredPair]:
        """Stored scores for a donor pair, best first."""
        if self.repository is None:
            return []
        records = await self.repository.find_by_donor(donor_pair_id)
        return [ScoredPair.from_record(r) for r in records]

    async def scores_by_recipient(self, recipient_pair_id: UUID) -> List[ScoredPair]:
        """Stored scores for a recipient pair, best first."""
        if self.repository is None:
            return []
        records = await self.repository.find_by_recipient(recipient_pair_id)
        return [ScoredPair.from_record(r) for r in records]

    async def invalidate_donor(self, donor_pair_id: UUID) -> int:
        """
        Make every score of a donor pair stale so the next request recomputes.

        Stored rows are marked stale before the cache is cleared.

        Returns:
            Stored scores invalidated, or cached keys removed without a store
        """
        stored = 0
        if self.repository is not None:
            stored = await self.repository.invalidate_donor(donor_pair_id)

        cached = 0
        if self.cache is not None:
            cached = await self.cache.invalidate_donor(donor_pair_id)

        logger.info(
            "donor_scores_invalidated",
            donor_pair_id=str(donor_pair_id),
            stored=stored,
            cached=cached,
        )
        return stored if self.repository is not None else cached

    async def statistics(self) -> Dict[str, Any]:
        """Stored score counts, overall and per method."""
        by_method = {method.value: 0 for method in ScoringMethod}
        total = 0
        recent = 0

        if self.repository is not None:
            total = await self.repository.count_all()
            by_method.update(await self.repository.count_by_method())
            recent = await self.repository.count_since(
                datetime.now(timezone.utc) - RECENT_WINDOW
            )

        return {
            "total_scores": total,
            "scores_by_method": by_method,
            "recent_scores_24h": recent,
            "persistence_available": self.repository is not None,
            "session": dict(self._stats),
        }

    def model_performance(self) -> Dict[str, Any]:
        """Static model metrics plus live processing figures."""
        computed = self._stats["scores_computed"]
        served = self._stats["scores_served_cached"]
        calls = computed + served

        return {
            "survival_model": self.engine.get_survival_model_metadata(),
            "criteria_model": dict(CRITERIA_MODEL_METADATA),
            "overall_accuracy": OVERALL_ACCURACY,
            "average_processing_time_ms": (
                self._stats["total_processing_ms"] / calls if calls else None
            ),
            "cache_hit_rate": served / calls if calls else None,
        }

    # =========================================================================
    # Helpers
    # =========================================================================

    async def _find_existing(
        self, donor_pair_id: UUID, recipient_pair_id: UUID
    ) -> Optional[ScoredPair]:
        """Look in Redis, then PostgreSQL; refill Redis on a database hit."""
        if self.cache is not None:
            payload = await self.cache.get(donor_pair_id, recipient_pair_id)
            if payload is not None:
                try:
                    return ScoredPair.from_dict(payload)
                except (KeyError, TypeError, ValueError) as e:
                    logger.warning(
                        "cache_payload_invalid",
                        donor_pair_id=str(donor_pair_id),
                        recipient_pair_id=str(recipient_pair_id),
                        error=str(e),
                    )
                    await self.cache.invalidate(donor_pair_id, recipient_pair_id)

        if self.repository is None:
            return None

        record = await self.repository.find_by_pair(donor_pair_id, recipient_pair_id)
        if record is None:
            return None

        scored = ScoredPair.from_record(record)
        if self.cache is not None:
            await self.cache.set(donor_pair_id, recipient_pair_id, scored.to_dict())
        return scored

    async def _publish(self, scored: ScoredPair) -> None:
        if self.publisher is None:
            return
        try:
            await self.publisher.publish(scored.to_event())
        except Exception as e:
            logger.error(
                "score_event_publish_failed",
                donor_pair_id=str(scored.donor_pair_id),
                recipient_pair_id=str(scored.recipient_pair_id),
                error=str(e),
            )

    def _timed(self, scored: ScoredPair, started: float) -> ScoredPair:
        elapsed_ms = (time.perf_counter() - started) * 1000
        self._stats["total_processing_ms"] += elapsed_ms
        return replace(scored, processing_time_ms=round(elapsed_ms, 3))
