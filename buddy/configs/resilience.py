"""
Resilience configuration settings.

Circuit breaker thresholds and retry/backoff parameters applied to every
outbound provider call.

Dependencies: pydantic, pydantic_settings
System role: Failure-handling tuning knobs
"""

from pydantic import Field
from pydantic_settings import SettingsConfigDict

from buddy.configs.base import BaseSettings


class ResilienceSettings(BaseSettings):
    """Circuit breaker and retry configuration."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="RESILIENCE_",
        case_sensitive=False,
        extra="ignore",
    )

    failure_threshold: int = Field(default=5, description="Consecutive failures before opening")
    success_threshold: int = Field(default=2, description="Half-open successes before closing")
    breaker_timeout_ms: int = Field(default=60000, description="Open duration before a trial call")

    retry_max_attempts: int = Field(default=3, description="Maximum attempts per logical call")
    retry_initial_delay_ms: int = Field(default=1000, description="Delay before the first retry")
    retry_max_delay_ms: int = Field(default=10000, description="Upper bound for any retry delay")
    retry_backoff_multiplier: float = Field(default=2.0, description="Exponential backoff base")
