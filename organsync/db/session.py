"""
Database Session Management
===========================

Async SQLAlchemy engine and session factory.

Author: OrganSync Team
Version: 1.0.0
"""

import logging

from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from organsync.config import settings
from organsync.db.base import Base

logger = logging.getLogger(__name__)

engine = create_async_engine(
    settings.postgres_async_dsn,
    echo=settings.debug,
    pool_pre_ping=True,
)

async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
)


async def init_db() -> None:
    """
    Initialize database connection and create missing tables.

    Called during application startup.
    """
    # Register ORM tables on Base.metadata
    from organsync.db import models  # noqa: F401

    logger.info("Initializing PostgreSQL connection...")

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    logger.info("PostgreSQL connection established")


async def close_db() -> None:
    """
    Close database connections.

    Called during application shutdown.
    """
    logger.info("Closing PostgreSQL connections...")
    await engine.dispose()
    logger.info("PostgreSQL connections closed")
