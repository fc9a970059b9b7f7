"""
Recovery Lab configuration using pydantic-settings.

All tunables for the planning core live here so that thresholds can be
adjusted per environment without touching the scoring code.
"""
from functools import lru_cache
from typing import Literal, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Recovery Lab settings with environment variable support.

    All settings can be overridden via environment variables with the
    RECOVERY_LAB_ prefix.
    Example: RECOVERY_LAB_TEMPO_HORIZON_MINUTES=240
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="RECOVERY_LAB_",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "Recovery Lab"
    app_version: str = "0.1.0"
    environment: Literal["development", "staging", "production"] = "development"
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    log_json: bool = Field(
        default=True,
        description="Emit structured JSON log lines (False = plain text)",
    )

    # Topology
    risk_smoothing_window: int = Field(
        default=4,
        description="Trailing moving-average window for node risk profiles",
    )

    # Policy gate
    policy_min_risk_score: float = Field(
        default=30.0,
        ge=0.0,
        le=100.0,
        description="Action risk score below which the policy gate blocks",
    )
    timeline_window_threshold_minutes: float = Field(
        default=240.0,
        ge=0.0,
        description="Total readiness window above which the timeline is flagged amber",
    )

    # Tempo
    tempo_horizon_minutes: int = Field(
        default=180,
        ge=5,
        description="Planning horizon divided across actions to size tempo windows",
    )
    default_tempo_budget_minutes: Optional[float] = Field(
        default=None,
        ge=0.0,
        description="Budget used for tempo checks when none is given "
        "(None = use the plan SLA)",
    )

    @field_validator("risk_smoothing_window")
    @classmethod
    def validate_smoothing_window(cls, v: int) -> int:
        """A moving average needs at least one sample."""
        if v < 1:
            raise ValueError(f"risk_smoothing_window must be >= 1, got {v}")
        return v


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Using lru_cache ensures we only parse environment variables once.
    """
    return Settings()


# Convenience instance for direct imports
settings = get_settings()
