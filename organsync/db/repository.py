"""
Compatibility Score Repository
==============================

Query and persistence operations for CompatibilityScoreRecord.

Each call opens its own session from the injected factory, so the
repository can be shared by concurrent scoring tasks.

Author: OrganSync Team
Version: 1.0.0
"""

import logging
from datetime import datetime, timezone
from typing import Dict, List, Optional
from uuid import UUID

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from organsync.db.models import CompatibilityScoreRecord


logger = logging.getLogger(__name__)


class CompatibilityScoreRepository:
    """
    Repository for stored compatibility scores.

    Example:
        repo = CompatibilityScoreRepository(async_session_factory)
        record = await repo.find_by_pair(donor_pair_id, recipient_pair_id)
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    # =========================================================================
    # Read Operations
    # =========================================================================

    async def find_by_pair(
        self,
        donor_pair_id: UUID,
        recipient_pair_id: UUID,
    ) -> Optional[CompatibilityScoreRecord]:
        """Most recent current stored score for a pair, if any."""
        stmt = (
            select(CompatibilityScoreRecord)
            .where(
                CompatibilityScoreRecord.donor_pair_id == donor_pair_id,
                CompatibilityScoreRecord.recipient_pair_id == recipient_pair_id,
                CompatibilityScoreRecord.invalidated_at.is_(None),
            )
            .order_by(CompatibilityScoreRecord.created_at.desc())
            .limit(1)
        )
        async with self._session_factory() as session:
            result = await session.execute(stmt)
            return result.scalar_one_or_none()

    async def find_by_donor(self, donor_pair_id: UUID) -> List[CompatibilityScoreRecord]:
        """Current scores for a donor pair, best first."""
        stmt = (
            select(CompatibilityScoreRecord)
            .where(
                CompatibilityScoreRecord.donor_pair_id == donor_pair_id,
                CompatibilityScoreRecord.invalidated_at.is_(None),
            )
            .order_by(CompatibilityScoreRecord.overall_score.desc())
        )
        async with self._session_factory() as session:
            result = await session.execute(stmt)
            return list(result.scalars().all())

    async def find_by_recipient(self, recipient_pair_id: UUID) -> List[CompatibilityScoreRecord]:
        """Current scores for a recipient pair, best first."""
        stmt = (
            select(CompatibilityScoreRecord)
            .where(
                CompatibilityScoreRecord.recipient_pair_id == recipient_pair_id,
                CompatibilityScoreRecord.invalidated_at.is_(None),
            )
            .order_by(CompatibilityScoreRecord.overall_score.desc())
        )
        async with self._session_factory() as session:
            result = await session.execute(stmt)
            return list(result.scalars().all())

    async def count_all(self) -> int:
        async with self._session_factory() as session:
            result = await session.execute(
                select(func.count()).select_from(CompatibilityScoreRecord)
            )
            return result.scalar_one()

    async def count_by_method(self) -> Dict[str, int]:
        """Number of stored scores per calculation method."""
        stmt = (
            select(CompatibilityScoreRecord.calculation_method, func.count())
            .group_by(CompatibilityScoreRecord.calculation_method)
        )
        async with self._session_factory() as session:
            result = await session.execute(stmt)
            return {method: count for method, count in result.all()}

    async def count_since(self, since: datetime) -> int:
        stmt = (
            select(func.count())
            .select_from(CompatibilityScoreRecord)
            .where(CompatibilityScoreRecord.created_at >= since)
        )
        async with self._session_factory() as session:
            result = await session.execute(stmt)
            return result.scalar_one()

    # =========================================================================
    # Write Operations
    # =========================================================================

    async def save(self, record: CompatibilityScoreRecord) -> CompatibilityScoreRecord:
        """
        Persist a new score record.

        Returns:
            The refreshed record with its generated id and timestamps
        """
        async with self._session_factory() as session:
            try:
                session.add(record)
                await session.commit()
                await session.refresh(record)
            except Exception:
                await session.rollback()
                raise

        logger.debug(f"Saved score {record.id} for {record.donor_pair_id}/{record.recipient_pair_id}")
        return record

    async def invalidate_donor(self, donor_pair_id: UUID) -> int:
        """
        Mark every current score of a donor pair as stale.

        Returns:
            Number of rows invalidated
        """
        stmt = (
            update(CompatibilityScoreRecord)
            .where(
                CompatibilityScoreRecord.donor_pair_id == donor_pair_id,
                CompatibilityScoreRecord.invalidated_at.is_(None),
            )
            .values(invalidated_at=datetime.now(timezone.utc))
        )
        async with self._session_factory() as session:
            try:
                result = await session.execute(stmt)
                await session.commit()
            except Exception:
                await session.rollback()
                raise

        logger.info(f"Invalidated {result.rowcount} stored score(s) for donor {donor_pair_id}")
        return result.rowcount
