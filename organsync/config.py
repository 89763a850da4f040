"""
OrganSync Configuration Module
==============================

Centralized configuration management using Pydantic Settings.

Loads configuration from:
    1. Environment variables
    2. .env file (if present)
    3. Default values

Usage:
    from organsync.config import settings

    print(settings.redis_url)
    print(settings.kafka_bootstrap_servers)

Author: OrganSync Team
Version: 1.0.0
"""

from functools import lru_cache
from typing import Dict
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings can be overridden via environment variables.
    Naming convention: UPPER_SNAKE_CASE in env, lower_snake_case in code.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # =========================================================================
    # Application Settings
    # =========================================================================

    app_name: str = Field(default="OrganSync AI Scoring", description="Application name")
    app_version: str = Field(default="1.0.0", description="Application version")
    debug: bool = Field(default=False, description="Debug mode")
    log_level: str = Field(default="INFO", description="Logging level")
    calculated_by: str = Field(
        default="AI-Scoring-Service",
        description="Producer name stamped on every stored score"
    )

    # =========================================================================
    # API Server
    # =========================================================================

    api_host: str = Field(default="0.0.0.0", description="API server host")
    api_port: int = Field(default=8086, description="API server port")
    cors_allowed_origins: str = Field(
        default="",
        description="Comma-separated CORS origins (empty allows all)"
    )

    # =========================================================================
    # PostgreSQL
    # =========================================================================

    postgres_host: str = Field(default="localhost", description="PostgreSQL host")
    postgres_port: int = Field(default=5432, description="PostgreSQL port")
    postgres_db: str = Field(default="organsync_ai_scoring", description="PostgreSQL database")
    postgres_user: str = Field(default="organsync", description="PostgreSQL user")
    postgres_password: str = Field(
        default="organsync_change_me",
        description="PostgreSQL password"
    )

    @property
    def postgres_async_dsn(self) -> str:
        """Get async PostgreSQL connection string for asyncpg."""
        return (
            f"postgresql+asyncpg://{self.postgres_user}:{self.postgres_password}"
            f"@{self.postgres_host}:{self.postgres_port}/{self.postgres_db}"
        )

    # =========================================================================
    # Redis
    # =========================================================================

    redis_url: str = Field(
        default="redis://localhost:6379/0",
        description="Redis URL for the score cache"
    )
    score_cache_enabled: bool = Field(default=True, description="Enable score cache")
    score_cache_ttl: int = Field(
        default=3600,
        ge=1,
        description="Score cache time-to-live (seconds)"
    )

    # =========================================================================
    # Kafka
    # =========================================================================

    kafka_bootstrap_servers: str = Field(
        default="localhost:9092",
        description="Kafka bootstrap servers (comma-separated)"
    )
    kafka_consumer_group: str = Field(
        default="ai-scoring-service",
        description="Kafka consumer group ID"
    )
    kafka_donor_registered_topic: str = Field(
        default="donor.registered",
        description="Topic carrying donor registration events"
    )
    kafka_donor_updated_topic: str = Field(
        default="donor.updated",
        description="Topic carrying donor update events"
    )
    kafka_graph_updated_topic: str = Field(
        default="graph.updated",
        description="Topic carrying exchange-graph revision events"
    )
    kafka_score_calculated_topic: str = Field(
        default="score.calculated",
        description="Topic for published score summaries"
    )
    kafka_dlq_topic: str = Field(
        default="ai-scoring.dlq",
        description="Dead letter topic for unprocessable events"
    )
    auto_scoring_enabled: bool = Field(
        default=True,
        description="Score pairs automatically on donor registration"
    )
    event_retry_attempts: int = Field(
        default=3,
        ge=1,
        description="Handler attempts before routing an event to the DLQ"
    )

    # =========================================================================
    # Multi-Criteria Weights
    # =========================================================================

    criteria_weight_blood_type: float = Field(
        default=0.25,
        ge=0.0,
        le=1.0,
        description="Default weight for blood type compatibility"
    )
    criteria_weight_hla_compatibility: float = Field(
        default=0.30,
        ge=0.0,
        le=1.0,
        description="Default weight for HLA compatibility"
    )
    criteria_weight_age_compatibility: float = Field(
        default=0.15,
        ge=0.0,
        le=1.0,
        description="Default weight for age compatibility"
    )
    criteria_weight_geographic_proximity: float = Field(
        default=0.10,
        ge=0.0,
        le=1.0,
        description="Default weight for geographic proximity"
    )
    criteria_weight_medical_history: float = Field(
        default=0.10,
        ge=0.0,
        le=1.0,
        description="Default weight for medical history"
    )
    criteria_weight_urgency: float = Field(
        default=0.10,
        ge=0.0,
        le=1.0,
        description="Default weight for urgency"
    )

    @property
    def default_criteria_weights(self) -> Dict[str, float]:
        """Default criterion weights keyed by criterion name."""
        return {
            "blood_type": self.criteria_weight_blood_type,
            "hla_compatibility": self.criteria_weight_hla_compatibility,
            "age_compatibility": self.criteria_weight_age_compatibility,
            "geographic_proximity": self.criteria_weight_geographic_proximity,
            "medical_history": self.criteria_weight_medical_history,
            "urgency": self.criteria_weight_urgency,
        }


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached application settings.

    Uses LRU cache to ensure settings are loaded only once.

    Returns:
        Settings instance
    """
    return Settings()


# Convenience alias
settings = get_settings()
