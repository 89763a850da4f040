"""
OrganSync AI Scoring Core Package
=================================

Donor/recipient compatibility scoring for kidney-exchange matching.

This package contains:
    - scoring/: Survival estimation, multi-criteria aggregation and fusion
    - db/: SQLAlchemy persistence of computed scores
    - ingestion/: Kafka donor-event consumption and score publishing
    - api/: FastAPI REST API layer

Author: OrganSync Team
Version: 1.0.0
"""

__version__ = "1.0.0"
