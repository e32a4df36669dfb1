"""
Configuration settings for the mathfeed practice engine.

Uses Pydantic Settings for environment variable management with .env file support.
"""
from __future__ import annotations

from functools import lru_cache
from typing import Any, Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ========================================
    # Exercise Generator Service
    # ========================================
    generator_api_url: str = Field(
        default="http://127.0.0.1:8788",
        description="Base URL of the exercise generator service",
    )
    generator_endpoint: str = Field(
        default="/api/generate-adaptive-questions",
        description="Path of the adaptive generation endpoint",
    )
    generator_provider: Literal["claude", "gemini"] = Field(
        default="claude",
        description="Text-generation provider the service should use",
    )
    generator_model: str | None = Field(
        default=None,
        description="Provider model override (service default if None)",
    )
    generator_api_key: str | None = Field(
        default=None,
        description="Provider API key forwarded to the generator service",
    )
    generator_timeout_ms: int = Field(
        default=15000,
        description="Hard timeout for one generation request",
    )

    # ========================================
    # Learner Context
    # ========================================
    grade_level: str = Field(
        default="Klasse_11",
        description="Grade level sent as user context",
    )
    course_type: str = Field(
        default="Leistungsfach",
        description="Course type sent as user context",
    )

    # ========================================
    # Buffer & Adaptation
    # ========================================
    buffer_batch_size: int = Field(
        default=5,
        description="Exercises requested per foreground/background fetch",
    )
    low_water_threshold: int = Field(
        default=3,
        description="Remaining depth at which background prefetch triggers",
    )
    remediation_batch_size: int = Field(
        default=5,
        description="Easier exercises requested after a wrong streak",
    )
    correct_streak_threshold: int = Field(
        default=3,
        description="Consecutive correct answers before difficulty +1",
    )
    wrong_streak_threshold: int = Field(
        default=3,
        description="Consecutive wrong answers before difficulty -2",
    )
    initial_difficulty: int = Field(
        default=5,
        ge=1,
        le=10,
        description="Difficulty level of a fresh buffer",
    )

    # ========================================
    # Scoring
    # ========================================
    scoring_mode: Literal["formal", "live"] = Field(
        default="live",
        description="XP formula used by the practice feed",
    )
    live_streak_bonus: int = Field(
        default=5,
        description="Flat XP bonus in live mode once the streak reaches 3",
    )

    # ========================================
    # Logging
    # ========================================
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="WARNING",
        description="Logging verbosity level",
    )
    log_file: str | None = Field(
        default=None,
        description="Log file path (None for stderr only)",
    )

    def has_generator_configured(self) -> bool:
        """Check if credentials for the generator service are present."""
        return bool(self.generator_api_key)

    def get_generator_url(self) -> str:
        """Full URL of the adaptive generation endpoint."""
        return self.generator_api_url.rstrip("/") + "/" + self.generator_endpoint.lstrip("/")

    def get_practice_config(self) -> dict[str, Any]:
        """Get practice engine configuration as a dictionary."""
        return {
            "batch_size": self.buffer_batch_size,
            "low_water_threshold": self.low_water_threshold,
            "remediation_batch_size": self.remediation_batch_size,
            "correct_streak_threshold": self.correct_streak_threshold,
            "wrong_streak_threshold": self.wrong_streak_threshold,
            "initial_difficulty": self.initial_difficulty,
            "scoring_mode": self.scoring_mode,
            "live_streak_bonus": self.live_streak_bonus,
            "user_context": {
                "gradeLevel": self.grade_level,
                "courseType": self.course_type,
            },
        }


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
