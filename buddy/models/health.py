"""
Health check schemas.

Dependencies: pydantic
System role: Health API contracts
"""

from typing import Any, Literal

from pydantic import BaseModel, Field

CheckStatus = Literal["pass", "warn", "fail"]


class HealthCheck(BaseModel):
    """Result of a single dependency check."""

    status: CheckStatus
    message: str | None = None
    latency_ms: float | None = None
    details: dict[str, Any] = Field(default_factory=dict)


class HealthResponse(BaseModel):
    """Aggregate health report."""

    status: Literal["healthy", "degraded", "unhealthy"]
    checks: dict[str, HealthCheck] = Field(default_factory=dict)
    version: str
