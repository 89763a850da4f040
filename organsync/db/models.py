"""
Database Models
===============

ORM table for computed compatibility scores.

Author: OrganSync Team
Version: 1.0.0
"""

from datetime import datetime
from typing import Any, Optional
from uuid import UUID

from sqlalchemy import Float, Index, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from organsync.db.base import Base, TimestampMixin, generate_uuid


class CompatibilityScoreRecord(Base, TimestampMixin):
    """
    One scored donor/recipient pair.

    The flat columns support querying; ``result_payload`` holds the full
    FusedScore so a stored score can be served without recomputation.
    Rows with ``invalidated_at`` set are kept for history only.
    """

    __tablename__ = "compatibility_scores"
    __table_args__ = (
        Index("ix_compatibility_scores_pair", "donor_pair_id", "recipient_pair_id"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)
    donor_pair_id: Mapped[UUID] = mapped_column(Uuid, nullable=False, index=True)
    recipient_pair_id: Mapped[UUID] = mapped_column(Uuid, nullable=False, index=True)

    overall_score: Mapped[float] = mapped_column(Float, nullable=False)
    survival_probability: Mapped[Optional[float]] = mapped_column(Float)
    criteria_score: Mapped[Optional[float]] = mapped_column(Float)

    blood_type_score: Mapped[Optional[float]] = mapped_column(Float)
    hla_compatibility_score: Mapped[Optional[float]] = mapped_column(Float)
    age_compatibility_score: Mapped[Optional[float]] = mapped_column(Float)
    geographic_score: Mapped[Optional[float]] = mapped_column(Float)
    medical_history_score: Mapped[Optional[float]] = mapped_column(Float)
    urgency_score: Mapped[Optional[float]] = mapped_column(Float)

    confidence_level: Mapped[float] = mapped_column(Float, nullable=False)
    risk_assessment: Mapped[str] = mapped_column(String(32), nullable=False)
    compatibility_level: Mapped[str] = mapped_column(String(32), nullable=False)
    recommendation: Mapped[str] = mapped_column(String(32), nullable=False)
    calculation_method: Mapped[str] = mapped_column(String(16), nullable=False, index=True)
    algorithm_version: Mapped[str] = mapped_column(String(16), nullable=False)
    calculated_by: Mapped[str] = mapped_column(String(64), nullable=False)

    result_payload: Mapped[dict[str, Any]] = mapped_column(nullable=False)

    # Set when the donor pair changes
    invalidated_at: Mapped[Optional[datetime]] = mapped_column(nullable=True)

    def __repr__(self) -> str:
        return (
            f"<CompatibilityScoreRecord {self.donor_pair_id}/{self.recipient_pair_id} "
            f"overall={self.overall_score:.3f}>"
        )
