"""
Configuration settings for cognitive-os.

Uses Pydantic Settings for environment variable management with .env file support.
Every field can be overridden with a COGOS_-prefixed environment variable,
e.g. COGOS_DATABASE_URL or COGOS_FATIGUE_THRESHOLD.
"""
from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from cognitive_os.learning.skill_graph import RatingConfig
from cognitive_os.study.session_composer import ComposerConfig

DEFAULT_DATABASE_PATH = Path.home() / ".cognitive_os" / "state.db"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="COGOS_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ========================================
    # Storage
    # ========================================
    database_url: str = Field(
        default=f"sqlite:///{DEFAULT_DATABASE_PATH.as_posix()}",
        description="SQLAlchemy URL of the state database",
    )
    history_limit: int = Field(
        default=100,
        ge=1,
        description="Completed sessions kept in the activity log",
    )

    # ========================================
    # Logging
    # ========================================
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="WARNING",
        description="Minimum level written to stderr by the CLI",
    )

    # ========================================
    # Rating updates
    # ========================================
    k_factor_base: float = Field(
        default=32.0,
        gt=0,
        description="Learning rate for a skill with no recorded trials",
    )
    k_factor_min: float = Field(
        default=8.0,
        gt=0,
        description="Lower bound of the learning rate",
    )
    k_factor_half_life: float = Field(
        default=100.0,
        gt=0,
        description="Trials after which the learning rate has halved",
    )

    # ========================================
    # Session composition
    # ========================================
    default_session_minutes: float = Field(
        default=20.0,
        gt=0,
        description="Session length used when none is given",
    )
    recent_window_days: float = Field(
        default=7.0,
        gt=0,
        description="Modules trained within this window are not picked for focus or variety",
    )
    focus_ratio: float = Field(
        default=0.6,
        ge=0.0,
        le=1.0,
        description="Share of the session spent on weak-skill modules",
    )
    fatigue_threshold: float = Field(
        default=0.5,
        ge=0.0,
        le=1.0,
        description="Fatigue level above which the plan is shortened",
    )
    fatigue_session_limit: int = Field(
        default=3,
        ge=1,
        description="Sessions per day that count as full fatigue",
    )
    fatigue_trial_limit: int = Field(
        default=100,
        ge=1,
        description="Trials per day that count as full fatigue",
    )
    random_seed: int | None = Field(
        default=None,
        description="Seed for variety-module selection (None = unseeded)",
    )

    def get_rating_config(self) -> RatingConfig:
        """Learning-rate schedule for the skill store."""
        return RatingConfig(
            k_base=self.k_factor_base,
            k_min=self.k_factor_min,
            half_life_trials=self.k_factor_half_life,
        )

    def get_composer_config(self) -> ComposerConfig:
        """Session composer configuration."""
        return ComposerConfig(
            focus_ratio=self.focus_ratio,
            recent_window_days=self.recent_window_days,
            fatigue_threshold=self.fatigue_threshold,
            fatigue_session_limit=self.fatigue_session_limit,
            fatigue_trial_limit=self.fatigue_trial_limit,
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
