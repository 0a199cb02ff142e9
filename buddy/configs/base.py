"""
Shared settings base.

Every settings section reads the same .env file and ignores unknown keys.
The root fields here (service identity, log level, CORS origins and metric
retention) are read without a prefix.

Dependencies: pydantic, pydantic_settings
System role: Foundation for the per-concern settings sections
"""

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings as PydanticBaseSettings, SettingsConfigDict

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class BaseSettings(PydanticBaseSettings):
    """Root fields shared by the aggregated Settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    app_name: str = Field(default="buddy", description="Service name reported in logs")
    environment: str = Field(default="development", description="development, staging or production")
    debug: bool = Field(default=False, description="Echo SQL and log at DEBUG")
    log_level: str = Field(default="INFO", description="Root log level name")
    cors_origins: list[str] = Field(
        default_factory=lambda: ["*"],
        description="Origins allowed to call the API (JSON list in env)",
    )
    metrics_max_samples: int = Field(default=1000, ge=1, description="Timing samples kept per metric")
    metrics_retention_hours: float = Field(
        default=24.0, gt=0, description="Age after which timing samples are pruned"
    )

    @field_validator("log_level")
    @classmethod
    def normalize_log_level(cls, value: str) -> str:
        level = value.strip().upper()
        if level not in LOG_LEVELS:
            raise ValueError(f"log_level must be one of {', '.join(LOG_LEVELS)}")
        return level

    @property
    def effective_log_level(self) -> str:
        return "DEBUG" if self.debug else self.log_level
