"""
Performance analytics schemas.

Dependencies: pydantic
System role: Admin analytics API contract
"""

from datetime import datetime

from pydantic import BaseModel, Field


class MetricSummary(BaseModel):
    """Timing distribution of one metric, in milliseconds."""

    count: int
    avg: float
    min: float
    max: float
    p50: float
    p95: float
    p99: float


class TimeRange(BaseModel):
    since: datetime
    to: datetime


class AnalyticsResponse(BaseModel):
    """Per-metric summaries over a time window."""

    time_range: TimeRange
    metrics: dict[str, MetricSummary | None] = Field(
        description="Summary per metric name; null when the window holds no samples"
    )
    metric_types: list[str] = Field(description="Every metric name recorded since startup")
