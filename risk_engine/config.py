"""Risk engine configuration loaded from environment variables."""

from __future__ import annotations

import logging

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)


class EngineSettings(BaseSettings):
    """Engine settings loaded from environment variables with RISK_ENGINE_ prefix."""

    model_config = SettingsConfigDict(
        env_prefix="RISK_ENGINE_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    debug: bool = False

    # Scoring
    default_policy_version: str = "v1"

    # Cascade propagation
    cascade_max_depth: int = Field(default=3, ge=1)
    cascade_decay: int = Field(default=1, ge=1, le=3)

    # Scenario ranking
    default_max_scenarios: int = Field(default=3, ge=1)
    simulation_workers: int = Field(default=4, ge=1)

    # Logging
    log_level: str = "INFO"
    structured_logging: bool = False

    @field_validator("log_level")
    @classmethod
    def normalise_log_level(cls, v: str) -> str:
        level = v.strip().upper()
        if level not in logging.getLevelNamesMapping():
            raise ValueError(f"Unknown log level: {v!r}")
        return level

    @field_validator("default_policy_version")
    @classmethod
    def normalise_policy_version(cls, v: str) -> str:
        return v.strip().lower()


def load_settings(**overrides: object) -> EngineSettings:
    """Load settings from environment, with optional overrides for testing."""
    settings = EngineSettings(**overrides)  # type: ignore[arg-type]

    if settings.debug:
        logger.info(
            "Loaded engine settings: policy=%s depth=%d workers=%d",
            settings.default_policy_version,
            settings.cascade_max_depth,
            settings.simulation_workers,
        )

    return settings
