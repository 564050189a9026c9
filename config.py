"""
Engine settings.

Loads defaults for the simulator and optimizer from environment variables
(prefix ``REFERRAL_``) using pydantic-settings.
"""

import sys

from loguru import logger
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


LOG_LEVELS = ("TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL")


class EngineSettings(BaseSettings):
    """Tunable constants for growth projections and rankings."""

    # Growth simulator
    cohort_size: int = Field(100, gt=0, description="Active referrer slots")
    referrer_capacity: int = Field(10, gt=0, description="Referrals per slot before hand-off")
    max_days: int = Field(10_000, gt=0, description="Upper bound for days_to_target")

    # Bonus optimizer
    bonus_increment: int = Field(10, gt=0)  # bonus offered in $10 increments
    bonus_upper_bound: int = Field(10_000, gt=0)
    bonus_epsilon: float = Field(1e-3, gt=0)
    bonus_max_iterations: int = Field(64, gt=0)

    # Reporting
    top_k: int = Field(5, gt=0)
    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_prefix="REFERRAL_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Normalize and validate the loguru level name."""
        level = v.strip().upper()
        if level not in LOG_LEVELS:
            raise ValueError(f"log_level must be one of {', '.join(LOG_LEVELS)}")
        return level


def setup_logging(level: str | None = None) -> None:
    """Replace loguru's default sink with a stderr sink at ``level``."""
    logger.remove()
    logger.add(sys.stderr, level=level or settings.log_level)


# Global settings instance
settings = EngineSettings()
