"""
Engine configuration management using Pydantic Settings.

Loads configuration from environment variables and .env files.
"""

from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class Settings(BaseSettings):
    """Engine settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ==========================================================================
    # Application Settings
    # ==========================================================================
    log_level: str = Field(default="INFO", description="Logging level")
    json_logs: bool = Field(default=False, description="Emit JSON log lines")

    @field_validator("log_level", mode="before")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Normalize and check the log level name."""
        level = str(v).upper()
        if level not in LOG_LEVELS:
            raise ValueError(f"Unknown log level: {v}")
        return level

    # ==========================================================================
    # Formula Engine
    # ==========================================================================
    formula_max_depth: int = Field(
        default=64,
        description="Maximum parser recursion depth for a single formula",
    )
    formula_max_length: int = Field(
        default=10_000,
        description="Formulas longer than this evaluate to #ERROR!",
    )
    date_only_format: str = Field(
        default="YYYY-MM-DD",
        description="DATETIME_FORMAT pattern used for date-only comparisons",
    )

    @field_validator("formula_max_depth", "formula_max_length")
    @classmethod
    def validate_positive(cls, v: int) -> int:
        """Limits must allow at least a single literal."""
        if v < 1:
            raise ValueError("Formula limits must be at least 1")
        return v


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses lru_cache to ensure settings are only loaded once.
    """
    return Settings()


# Global settings instance
settings = get_settings()
